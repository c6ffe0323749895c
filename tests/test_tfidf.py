from pathlib import Path

import pytest

from fintrack_ai.classifiers.tfidf import TfidfClassifier, transaction_text
from fintrack_ai.models import Category, Transaction, TransactionType


@pytest.fixture
def tfidf_classifier(tmp_path: Path) -> TfidfClassifier:
    data_file = tmp_path / "tfidf.pkl"
    return TfidfClassifier(data_path=str(data_file), threshold=0.5)


def test_tfidf_learn_and_classify(tfidf_classifier: TfidfClassifier) -> None:
    food = Category(name="Food")
    transport = Category(name="Transport")
    examples = [
        ("McDonalds", food),
        ("Burger King", food),
        ("Grocery Store", food),
        ("Uber", transport),
        ("Lyft", transport),
    ]
    for name, category in examples:
        tfidf_classifier.learn(Transaction(name=name, amount=10.0), category)

    res = tfidf_classifier.classify(Transaction(name="McDonalds Drive Thru", amount=15.0))

    assert res is not None
    assert res.category.name == "Food"
    assert res.source == "tfidf"


def test_tfidf_needs_two_labels(tfidf_classifier: TfidfClassifier) -> None:
    tfidf_classifier.learn(Transaction(name="Netflix"), Category(name="Subscriptions"))

    assert not tfidf_classifier.is_fitted
    assert tfidf_classifier.classify(Transaction(name="Netflix")) is None


def test_tfidf_persistence(tfidf_classifier: TfidfClassifier, tmp_path: Path) -> None:
    tfidf_classifier.learn(Transaction(name="Netflix", amount=10.0), Category(name="Subscriptions"))
    tfidf_classifier.learn(Transaction(name="Salary", amount=1000.0), Category(name="Income"))

    new_classifier = TfidfClassifier(data_path=str(tmp_path / "tfidf.pkl"))

    assert new_classifier.is_fitted
    assert len(new_classifier.examples) == 2


def test_tfidf_clear(tfidf_classifier: TfidfClassifier) -> None:
    tfidf_classifier.learn(Transaction(name="Netflix"), Category(name="Subscriptions"))
    tfidf_classifier.learn(Transaction(name="Salary"), Category(name="Income"))
    tfidf_classifier.clear()

    assert not tfidf_classifier.is_fitted
    assert tfidf_classifier.examples == []


def test_transaction_text_includes_type() -> None:
    assert transaction_text(Transaction(name="Refund", type=TransactionType.INCOME)) == "income Refund"
    assert transaction_text(Transaction(name="Refund")) == "Refund"
