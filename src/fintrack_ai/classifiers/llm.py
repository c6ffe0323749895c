import json
import os

from openai import OpenAI, OpenAIError

from fintrack_ai.logger import get_logger
from fintrack_ai.models import CategorizationResult, Category, CategorySuggestion, Transaction

from .base import Classifier

logger = get_logger(__name__)

SYSTEM_PROMPT = "You are a helpful financial assistant."
SUGGESTION_SYSTEM_PROMPT = (
    "You are an AI assistant specializing in financial transaction categorization. "
    "Your output MUST be a JSON array of objects matching the requested schema. "
    "Do not include any other text or markdown outside the JSON."
)
MAX_SUGGESTIONS = 3


class SuggestionError(RuntimeError):
    """The model answered, but not with usable suggestions."""


class LLMClassifier(Classifier):
    """OpenAI-compatible chat model. Point OPENAI_BASE_URL at Groq to use it instead."""

    def __init__(self, api_key: str | None = None, model: str = "gpt-3.5-turbo", base_url: str | None = None):
        self.client = OpenAI(
            api_key=api_key or os.getenv("OPENAI_API_KEY"),
            base_url=base_url or os.getenv("OPENAI_BASE_URL") or None,
        )
        self.model = model

    def _complete(self, system: str, prompt: str, temperature: float) -> str | None:
        completion = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": prompt},
            ],
            temperature=temperature,
        )
        return completion.choices[0].message.content

    def classify(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        if not transaction.name:
            return None

        prompt_categories = ""
        if valid_categories:
            prompt_categories = f"\nUse ONLY one of the following categories: {', '.join(valid_categories)}"
        kind = transaction.type.value if transaction.type else "unknown"
        prompt = (
            "Categorize this financial transaction into a standard personal finance category.\n"
            f"Transaction: {transaction.name}\n"
            f"Type: {kind}\n"
            f"Amount: {transaction.amount} {transaction.currency}"
            f"{prompt_categories}\n"
            "Return ONLY the category name. If unsure, return 'Uncategorized'."
        )

        try:
            answer = self._complete(SYSTEM_PROMPT, prompt, temperature=0.0)
        except OpenAIError as e:
            logger.error("LLM error: %s", e)
            return None

        category_name = (answer or "").strip().strip("'\"")
        if not category_name:
            return None
        if valid_categories and category_name not in valid_categories:
            logger.debug("LLM answered '%s', not a valid category.", category_name)
            return None

        return CategorizationResult(
            category=Category(name=category_name),
            confidence=0.9,
            source="llm",
        )

    def suggest(
        self,
        transaction: Transaction,
        existing_categories: list[str] | None = None,
    ) -> list[CategorySuggestion]:
        """
        Ask for up to three ranked categories.

        Raises:
            SuggestionError: the reply is empty or not a JSON array.
            OpenAIError: the API call itself failed.
        """
        kind = transaction.type.value if transaction.type else "unknown"
        prompt = (
            f'Given the transaction description "{transaction.name or ""}" (type: {kind}), '
            f"suggest up to {MAX_SUGGESTIONS} relevant financial categories from the following "
            f"list of existing categories: [{', '.join(existing_categories or [])}]. "
            "If no existing category is suitable, suggest a new, appropriate category.\n"
            'Provide the output as a JSON array of objects, each with a "name" (category name), '
            '"confidence" (0-100 integer), and "reason" (brief explanation).'
        )

        raw = self._complete(SUGGESTION_SYSTEM_PROMPT, prompt, temperature=0.3)
        if not raw:
            raise SuggestionError("Model returned an empty response.")
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as e:
            raise SuggestionError(f"Model response is not JSON: {e}") from e
        if not isinstance(parsed, list):
            raise SuggestionError("Model response is not a JSON array.")

        suggestions: list[CategorySuggestion] = []
        for item in parsed:
            if not isinstance(item, dict) or not item.get("name"):
                continue
            try:
                confidence = float(item.get("confidence", 0)) / 100.0
            except (TypeError, ValueError):
                confidence = 0.0
            suggestions.append(CategorySuggestion(
                name=str(item["name"]),
                confidence=min(1.0, max(0.0, confidence)),
                reason=item.get("reason"),
            ))
        return suggestions[:MAX_SUGGESTIONS]

    def learn(self, transaction: Transaction, category: Category) -> None:
        # No fine-tuning; confirmed pairs go to memory and TF-IDF instead.
        pass
