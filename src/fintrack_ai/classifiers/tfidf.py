import os
import pickle

from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.linear_model import SGDClassifier
from sklearn.pipeline import Pipeline

from fintrack_ai.logger import get_logger
from fintrack_ai.models import CategorizationResult, Category, Transaction

from .base import Classifier, is_allowed

logger = get_logger(__name__)


def _build_pipeline() -> Pipeline:
    return Pipeline([
        ("tfidf", TfidfVectorizer(analyzer="char_wb", ngram_range=(3, 5), min_df=1)),
        ("clf", SGDClassifier(loss="log_loss", random_state=42)),
    ])


def transaction_text(transaction: Transaction) -> str:
    """Model input: the name, prefixed with the type so income and expense separate."""
    prefix = transaction.type.value if transaction.type else ""
    return f"{prefix} {transaction.name or ''}".strip()


class TfidfClassifier(Classifier):
    def __init__(self, data_path: str = "tfidf.pkl", threshold: float = 0.5):
        self.data_path = data_path
        self.threshold = threshold
        self.pipeline = _build_pipeline()
        self.examples: list[str] = []
        self.labels: list[str] = []
        self.is_fitted = False
        self.load()

    def load(self) -> None:
        if not os.path.exists(self.data_path):
            return
        try:
            with open(self.data_path, "rb") as f:
                data = pickle.load(f)
        except (pickle.UnpicklingError, EOFError):
            logger.warning("TF-IDF data at %s is unreadable, starting untrained.", self.data_path)
            return
        self.examples = data.get("examples", [])
        self.labels = data.get("labels", [])
        self._fit()

    def save(self) -> None:
        with open(self.data_path, "wb") as f:
            pickle.dump({"examples": self.examples, "labels": self.labels}, f)

    def _fit(self) -> None:
        # SGD needs at least two classes.
        if len(set(self.labels)) < 2:
            self.is_fitted = False
            return
        self.pipeline.fit(self.examples, self.labels)
        self.is_fitted = True

    def classify(
        self, transaction: Transaction, valid_categories: list[str] | None = None
    ) -> CategorizationResult | None:
        if not self.is_fitted or not transaction.name:
            return None

        probs = self.pipeline.predict_proba([transaction_text(transaction)])[0]
        best = int(probs.argmax())
        confidence = float(probs[best])
        category_name = str(self.pipeline.classes_[best])

        if confidence < self.threshold or not is_allowed(category_name, valid_categories):
            return None
        return CategorizationResult(
            category=Category(name=category_name),
            confidence=confidence,
            source="tfidf",
        )

    def learn(self, transaction: Transaction, category: Category) -> None:
        if not transaction.name:
            return
        self.examples.append(transaction_text(transaction))
        self.labels.append(category.name)
        # Retraining per example is fine at personal-finance volumes.
        self._fit()
        self.save()

    def clear(self) -> None:
        self.examples = []
        self.labels = []
        self.is_fitted = False
        self.pipeline = _build_pipeline()
        self.save()
