from abc import ABC, abstractmethod

from fintrack_ai.models import CategorizationResult, Category, Transaction


class Classifier(ABC):
    @abstractmethod
    def classify(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        """Return a category for the transaction, or None when unsure."""

    @abstractmethod
    def learn(self, transaction: Transaction, category: Category) -> None:
        """Record a confirmed transaction-category pair."""


def is_allowed(category_name: str, valid_categories: list[str] | None) -> bool:
    return valid_categories is None or category_name in valid_categories
