from pydantic import BaseModel, Field

from fintrack_ai.models import Category, Transaction


class DetectDuplicateRequest(BaseModel):
    candidate: Transaction
    existing: list[Transaction] | None = None
    time_window_hours: float | None = Field(default=None, gt=0)


class ScanDuplicatesRequest(BaseModel):
    transactions: list[Transaction] | None = None


class CategorizeRequest(BaseModel):
    transaction: Transaction
    valid_categories: list[str] | None = None


class SuggestRequest(BaseModel):
    transaction: Transaction
    existing_categories: list[str] | None = None


class LearnRequest(BaseModel):
    transaction: Transaction
    category: Category
