import json
import os

from rapidfuzz import fuzz, process

from fintrack_ai.logger import get_logger
from fintrack_ai.models import CategorizationResult, Category, Transaction

from .base import Classifier, is_allowed

logger = get_logger(__name__)


def _memory_key(name: str) -> str:
    return " ".join(name.lower().split())


class MemoryMatcher(Classifier):
    """Remembers the category the user confirmed for each transaction name."""

    def __init__(self, data_path: str = "memory.json", threshold: float = 90.0):
        self.data_path = data_path
        self.threshold = threshold
        self.memory: dict[str, str] = {}  # normalized name -> category name
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.data_path):
            return
        try:
            with open(self.data_path, encoding="utf-8") as f:
                self.memory = json.load(f)
        except json.JSONDecodeError:
            logger.warning("Memory file %s is corrupt, starting empty.", self.data_path)
            self.memory = {}

    def save(self) -> None:
        with open(self.data_path, "w", encoding="utf-8") as f:
            json.dump(self.memory, f, indent=2)

    def classify(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        if not self.memory or not transaction.name:
            return None

        key = _memory_key(transaction.name)

        category_name = self.memory.get(key)
        if category_name and is_allowed(category_name, valid_categories):
            return CategorizationResult(
                category=Category(name=category_name),
                confidence=1.0,
                source="memory_exact",
            )

        match = process.extractOne(key, self.memory.keys(), scorer=fuzz.token_sort_ratio)
        if match:
            matched_key, score, _ = match
            category_name = self.memory[matched_key]
            if score >= self.threshold and is_allowed(category_name, valid_categories):
                return CategorizationResult(
                    category=Category(name=category_name),
                    confidence=score / 100.0,
                    source="memory_fuzzy",
                )

        return None

    def learn(self, transaction: Transaction, category: Category) -> None:
        if not transaction.name:
            return
        self.memory[_memory_key(transaction.name)] = category.name
        self.save()

    def clear(self) -> None:
        self.memory = {}
        self.save()
