import os

from openai import OpenAIError

from fintrack_ai.classifiers.base import Classifier
from fintrack_ai.classifiers.llm import LLMClassifier, SuggestionError
from fintrack_ai.classifiers.memory import MemoryMatcher
from fintrack_ai.classifiers.rules import RuleClassifier
from fintrack_ai.classifiers.tfidf import TfidfClassifier
from fintrack_ai.core import settings
from fintrack_ai.logger import get_logger
from fintrack_ai.models import (
    CategorizationResult,
    Category,
    CategorySuggestion,
    Transaction,
)

logger = get_logger(__name__)


class CategorizerService:
    def __init__(self,
                 memory_threshold: float = settings.DEFAULT_MEMORY_THRESHOLD,
                 tfidf_threshold: float = settings.DEFAULT_TFIDF_THRESHOLD,
                 data_dir: str = "."):

        self.classifiers: list[Classifier] = []

        # Confirmed by the user, so checked first.
        self.memory = MemoryMatcher(
            data_path=os.path.join(data_dir, "memory.json"),
            threshold=memory_threshold,
        )
        self.classifiers.append(self.memory)

        self.tfidf = TfidfClassifier(
            data_path=os.path.join(data_dir, "tfidf.pkl"),
            threshold=tfidf_threshold,
        )
        self.classifiers.append(self.tfidf)

        self.rules = RuleClassifier()
        self.classifiers.append(self.rules)

        self.llm: LLMClassifier | None = None
        self.refresh_llm()

    def refresh_llm(self) -> None:
        if self.llm is not None:
            self.classifiers.remove(self.llm)
            self.llm = None

        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            logger.warning("OPENAI_API_KEY not found. LLM classifier disabled.")
            return

        model = os.getenv("OPENAI_MODEL", settings.DEFAULT_OPENAI_MODEL)
        base_url = os.getenv("OPENAI_BASE_URL")
        self.llm = LLMClassifier(api_key=api_key, model=model, base_url=base_url)
        self.classifiers.append(self.llm)
        logger.info("LLM classifier enabled: model=%s, base_url=%s", model, base_url or "default")

    def categorize(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        label = (transaction.name or "")[:50]
        for classifier in self.classifiers:
            classifier_name = classifier.__class__.__name__
            logger.debug("Trying %s for: '%s'", classifier_name, label)

            result = classifier.classify(transaction, valid_categories=valid_categories)
            if result:
                logger.debug(
                    "%s returned: '%s' (confidence: %.2f)",
                    classifier_name,
                    result.category.name,
                    result.confidence,
                )
                return result

        logger.debug("No classifier matched for: '%s'", label)
        return None

    def suggest_categories(
        self,
        transaction: Transaction,
        existing_categories: list[str] | None = None,
    ) -> list[CategorySuggestion]:
        if self.llm is not None:
            try:
                suggestions = self.llm.suggest(transaction, existing_categories)
                if suggestions:
                    return suggestions
            except (SuggestionError, OpenAIError) as e:
                logger.warning("LLM suggestions failed, using rules: %s", e)
        return self.rules.suggest(transaction, existing_categories)

    def learn(self, transaction: Transaction, category: Category) -> None:
        """
        Teach every trainable classifier. The LLM is not trained.
        """
        self.memory.learn(transaction, category)
        self.tfidf.learn(transaction, category)
        self.rules.learn(transaction, category)

    def clear_models(self) -> None:
        """
        Clear all persisted training data.
        """
        self.memory.clear()
        self.tfidf.clear()
        logger.info("All models cleared.")
