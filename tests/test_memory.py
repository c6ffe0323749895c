from pathlib import Path

import pytest

from fintrack_ai.classifiers.memory import MemoryMatcher
from fintrack_ai.models import Category, Transaction


@pytest.fixture
def memory_matcher(tmp_path: Path) -> MemoryMatcher:
    data_file = tmp_path / "memory.json"
    return MemoryMatcher(data_path=str(data_file), threshold=50.0)


def test_memory_learn_and_exact_match(memory_matcher: MemoryMatcher) -> None:
    t1 = Transaction(name="Spotify Premium", amount=10.99)
    memory_matcher.learn(t1, Category(name="Subscriptions"))

    # Reload to verify persistence
    memory_matcher.load()

    res = memory_matcher.classify(Transaction(name="spotify  PREMIUM"))
    assert res is not None
    assert res.category.name == "Subscriptions"
    assert res.confidence == 1.0
    assert res.source == "memory_exact"


def test_memory_fuzzy_match(memory_matcher: MemoryMatcher) -> None:
    memory_matcher.learn(Transaction(name="Uber Ride", amount=15.50), Category(name="Transport"))

    res = memory_matcher.classify(Transaction(name="Uber Ride XL", amount=15.50))
    assert res is not None
    assert res.category.name == "Transport"
    assert res.confidence > 0.5
    assert res.source == "memory_fuzzy"


def test_memory_respects_valid_categories(memory_matcher: MemoryMatcher) -> None:
    t = Transaction(name="Spotify Premium")
    memory_matcher.learn(t, Category(name="Subscriptions"))

    assert memory_matcher.classify(t, valid_categories=["Music"]) is None


def test_memory_no_match(memory_matcher: MemoryMatcher) -> None:
    assert memory_matcher.classify(Transaction(name="Unknown Transaction")) is None
    assert memory_matcher.classify(Transaction(amount=5.0)) is None


def test_memory_corrupt_file_starts_empty(tmp_path: Path) -> None:
    data_file = tmp_path / "memory.json"
    data_file.write_text("{not json", encoding="utf-8")

    matcher = MemoryMatcher(data_path=str(data_file))
    assert matcher.memory == {}


def test_memory_clear(memory_matcher: MemoryMatcher) -> None:
    memory_matcher.learn(Transaction(name="Gym"), Category(name="Fitness"))
    memory_matcher.clear()
    memory_matcher.load()

    assert memory_matcher.memory == {}
