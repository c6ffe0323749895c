import re

from fintrack_ai.logger import get_logger
from fintrack_ai.models import (
    CategorizationResult,
    Category,
    CategorySuggestion,
    Transaction,
    TransactionType,
)

from .base import Classifier, is_allowed

logger = get_logger(__name__)

MERCHANT_CONFIDENCE = 0.95
KEYWORD_CONFIDENCE_CAP = 0.9
AMOUNT_HEURISTIC_CONFIDENCE = 0.3
EXISTING_CATEGORY_CONFIDENCE = 0.9
MAX_SUGGESTIONS = 3

DEFAULT_CATEGORY_KEYWORDS: dict[str, list[str]] = {
    "Food & Dining": [
        "restaurant", "cafe", "coffee", "food", "dining", "eat", "meal", "lunch", "dinner",
        "breakfast", "pizza", "burger", "sandwich", "pasta", "chinese", "indian", "mexican",
        "italian", "fast food", "delivery", "takeout", "grubhub", "ubereats", "doordash",
        "starbucks", "mcdonalds", "kfc", "subway", "dominos", "papa johns", "chipotle",
        "taco bell", "wendys", "burger king",
    ],
    "Transportation": [
        "gas", "fuel", "petrol", "diesel", "shell", "bp", "exxon", "chevron", "mobil",
        "uber", "lyft", "taxi", "cab", "metro", "bus", "train", "parking", "toll",
        "highway", "bridge", "ferry", "airline", "flight", "airport", "car rental",
        "auto", "vehicle", "maintenance", "repair", "oil change", "tire", "brake",
    ],
    "Shopping": [
        "amazon", "walmart", "target", "costco", "sams club", "best buy", "home depot",
        "lowes", "macy", "nordstrom", "gap", "old navy", "h&m", "zara", "uniqlo", "ebay",
        "etsy", "shopify", "online", "store", "mall", "retail", "purchase", "clothing",
        "shoes", "electronics", "furniture", "home", "garden", "tools",
    ],
    "Entertainment": [
        "netflix", "spotify", "apple music", "youtube", "hulu", "disney", "hbo", "prime",
        "movie", "cinema", "theater", "concert", "show", "ticket", "event", "game",
        "playstation", "xbox", "nintendo", "steam", "gaming", "arcade", "bowling", "golf",
        "tennis", "gym", "fitness", "sport", "recreation", "leisure",
    ],
    "Healthcare": [
        "hospital", "clinic", "doctor", "medical", "pharmacy", "cvs", "walgreens",
        "prescription", "medicine", "drug", "health", "dental", "dentist", "eye", "vision",
        "glasses", "contact", "therapy", "treatment", "insurance", "copay",
    ],
    "Utilities": [
        "electric", "electricity", "water", "sewer", "trash", "waste", "internet", "phone",
        "cable", "tv", "streaming", "utility", "bill", "service", "heating", "cooling",
        "ac", "hvac", "plumbing", "electrician",
    ],
    "Income": [
        "salary", "wage", "pay", "paycheck", "bonus", "commission", "freelance", "contract",
        "refund", "rebate", "cashback", "dividend", "interest", "investment", "rental",
        "royalty", "gift", "inheritance", "lottery", "prize", "win",
    ],
}

DEFAULT_MERCHANTS: dict[str, str] = {
    "amazon": "Shopping",
    "walmart": "Shopping",
    "target": "Shopping",
    "starbucks": "Food & Dining",
    "mcdonalds": "Food & Dining",
    "uber": "Transportation",
    "lyft": "Transportation",
    "netflix": "Entertainment",
    "spotify": "Entertainment",
}

_MERCHANT_NAME = re.compile(r"^[a-zA-Z]+$")


def _contains(text: str, pattern: str) -> bool:
    return re.search(rf"\b{re.escape(pattern)}\b", text) is not None


def _amount_category(amount: float) -> str | None:
    if amount < 20:
        return "Food & Dining"
    if amount < 100 or amount > 500:
        return "Shopping"
    return None


class RuleClassifier(Classifier):
    """
    Keyword and merchant matching, the offline fallback when no model knows
    the transaction yet. Matching is whole-word and case-insensitive.
    """

    def __init__(
        self,
        category_keywords: dict[str, list[str]] | None = None,
        merchants: dict[str, str] | None = None,
        use_amount_heuristic: bool = True,
    ):
        source = category_keywords if category_keywords is not None else DEFAULT_CATEGORY_KEYWORDS
        self.category_keywords = {category: list(words) for category, words in source.items()}
        self.merchants = dict(merchants if merchants is not None else DEFAULT_MERCHANTS)
        self.use_amount_heuristic = use_amount_heuristic

    def _match_merchant(self, text: str) -> str | None:
        for merchant, category in self.merchants.items():
            if _contains(text, merchant):
                return category
        return None

    def _keyword_hits(self, text: str) -> dict[str, list[str]]:
        hits: dict[str, list[str]] = {}
        for category, keywords in self.category_keywords.items():
            matched = [keyword for keyword in keywords if _contains(text, keyword)]
            if matched:
                hits[category] = matched
        return hits

    def classify(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        if not transaction.name or not transaction.amount:
            return None

        text = transaction.name.lower()

        merchant_category = self._match_merchant(text)
        if merchant_category and is_allowed(merchant_category, valid_categories):
            return CategorizationResult(
                category=Category(name=merchant_category),
                confidence=self.confidence(transaction),
                source="rules_merchant",
            )

        for category in self._keyword_hits(text):
            if not is_allowed(category, valid_categories):
                continue
            return CategorizationResult(
                category=Category(name=category),
                confidence=self._keyword_confidence(text),
                source="rules_keyword",
            )

        if self.use_amount_heuristic and transaction.type == TransactionType.EXPENSE:
            category = _amount_category(abs(transaction.amount))
            if category and is_allowed(category, valid_categories):
                return CategorizationResult(
                    category=Category(name=category),
                    confidence=AMOUNT_HEURISTIC_CONFIDENCE,
                    source="rules_amount",
                )

        return None

    def confidence(self, transaction: Transaction) -> float:
        if not transaction.name:
            return 0.0
        text = transaction.name.lower()
        if self._match_merchant(text):
            return MERCHANT_CONFIDENCE
        return self._keyword_confidence(text)

    def _keyword_confidence(self, text: str) -> float:
        best = 0.0
        for matched in self._keyword_hits(text).values():
            for keyword in matched:
                best = max(best, min(KEYWORD_CONFIDENCE_CAP, len(keyword) / len(text)))
        return best

    def suggest(
        self,
        transaction: Transaction,
        existing_categories: list[str] | None = None,
    ) -> list[CategorySuggestion]:
        if not transaction.name:
            return []

        text = transaction.name.lower()
        suggestions: dict[str, CategorySuggestion] = {}

        for category, matched in self._keyword_hits(text).items():
            average = sum(len(keyword) / len(text) for keyword in matched) / len(matched)
            suggestions[category] = CategorySuggestion(
                name=category,
                confidence=min(KEYWORD_CONFIDENCE_CAP, average),
                reason=f"Matches keywords: {', '.join(matched)}",
            )

        for category in existing_categories or []:
            if category not in suggestions and category.lower() in text:
                suggestions[category] = CategorySuggestion(
                    name=category,
                    confidence=EXISTING_CATEGORY_CONFIDENCE,
                    reason=f"Matches existing category: {category}",
                )

        ranked = sorted(suggestions.values(), key=lambda s: s.confidence, reverse=True)
        return ranked[:MAX_SUGGESTIONS]

    def learn(self, transaction: Transaction, category: Category) -> None:
        if not transaction.name:
            return
        name = transaction.name.strip().lower()
        if len(name) > 3 and _MERCHANT_NAME.match(name):
            self.merchants[name] = category.name
            logger.debug("Learned merchant '%s' -> '%s'.", name, category.name)
            return

        keywords = self.category_keywords.setdefault(category.name, [])
        if name not in keywords:
            keywords.append(name)
            logger.debug("Learned keyword '%s' -> '%s'.", name, category.name)
