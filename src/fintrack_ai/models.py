from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Transaction(BaseModel):
    # All optional: the same model carries partially-entered candidates.
    id: str | None = None
    type: TransactionType | None = None
    amount: float | None = None
    name: str | None = None
    date: datetime | None = None
    account_id: str | None = None
    category_id: str | None = None
    currency: str = "EUR"


class SimilarityResult(BaseModel):
    is_duplicate: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    similar_transaction: Transaction | None = None
    reasons: list[str] = Field(default_factory=list)


class DuplicateGroup(BaseModel):
    transaction: Transaction
    duplicates: list[Transaction]
    confidence: float


class Category(BaseModel):
    name: str
    id: str | None = None


class CategorizationResult(BaseModel):
    category: Category
    confidence: float  # 0.0 to 1.0
    source: str  # "memory_exact", "tfidf", "rules_keyword", "llm", ...
    model_version: str | None = None


class CategorySuggestion(BaseModel):
    name: str
    confidence: float  # 0.0 to 1.0
    reason: str | None = None
