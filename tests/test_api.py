from collections.abc import Generator
from typing import Any
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from fintrack_ai.main import app
from fintrack_ai.models import CategorizationResult, Category, CategorySuggestion
from fintrack_ai.services.duplicates import NO_EXISTING_REASON, DuplicateDetector

client = TestClient(app)


def _swap_state(name: str, value: Any) -> Generator[Any, None, None]:
    had_value = hasattr(app.state, name)
    original = getattr(app.state, name, None)
    if value is None:
        if had_value:
            delattr(app.state, name)
    else:
        setattr(app.state, name, value)
    yield value
    if had_value:
        setattr(app.state, name, original)
    elif hasattr(app.state, name):
        delattr(app.state, name)


@pytest.fixture
def detector() -> Generator[DuplicateDetector, None, None]:
    yield from _swap_state("detector", DuplicateDetector())


@pytest.fixture
def no_detector() -> Generator[None, None, None]:
    yield from _swap_state("detector", None)


@pytest.fixture
def mock_service() -> Generator[MagicMock, None, None]:
    yield from _swap_state("service", MagicMock())


def _starbucks(date: str) -> dict[str, Any]:
    return {
        "name": "Starbucks Coffee",
        "amount": 5.50,
        "date": date,
        "account_id": "acc1",
        "type": "expense",
    }


def test_detect_duplicate(detector: DuplicateDetector) -> None:
    response = client.post("/api/duplicates/detect", json={
        "candidate": _starbucks("2024-01-15T10:00:00Z"),
        "existing": [_starbucks("2024-01-15T10:05:00Z")],
    })

    assert response.status_code == 200
    data = response.json()
    assert data["is_duplicate"] is True
    assert data["confidence"] == 1.0
    assert data["similar_transaction"]["name"] == "Starbucks Coffee"
    assert data["reasons"] == [
        "Similar transaction found: Starbucks Coffee",
        "Amount difference: 0",
        "Time difference: 5 minute(s)",
    ]


def test_detect_without_existing(detector: DuplicateDetector) -> None:
    response = client.post("/api/duplicates/detect", json={
        "candidate": _starbucks("2024-01-15T10:00:00Z"),
    })

    assert response.status_code == 200
    data = response.json()
    assert data["is_duplicate"] is False
    assert data["confidence"] == 0
    assert data["reasons"] == [NO_EXISTING_REASON]


def test_detect_window_from_environment(
    detector: DuplicateDetector, monkeypatch: pytest.MonkeyPatch
) -> None:
    body = {
        "candidate": _starbucks("2024-01-15T10:00:00Z"),
        "existing": [_starbucks("2024-01-13T10:00:00Z")],
    }

    monkeypatch.setenv("DUPLICATE_TIME_WINDOW_HOURS", "24")
    assert client.post("/api/duplicates/detect", json=body).json()["is_duplicate"] is False

    monkeypatch.setenv("DUPLICATE_TIME_WINDOW_HOURS", "72")
    assert client.post("/api/duplicates/detect", json=body).json()["is_duplicate"] is True

    body["time_window_hours"] = 1
    assert client.post("/api/duplicates/detect", json=body).json()["is_duplicate"] is False


def test_detect_with_huge_window(detector: DuplicateDetector) -> None:
    response = client.post("/api/duplicates/detect", json={
        "candidate": _starbucks("2024-01-15T10:00:00Z"),
        "existing": [_starbucks("2022-01-15T10:00:00Z")],
        "time_window_hours": 1e12,
    })

    assert response.status_code == 200
    assert response.json()["is_duplicate"] is True


def test_detect_rejects_bad_body(detector: DuplicateDetector) -> None:
    response = client.post("/api/duplicates/detect", json={"existing": []})
    assert response.status_code == 422

    response = client.post("/api/duplicates/detect", json={
        "candidate": _starbucks("2024-01-15T10:00:00Z"),
        "time_window_hours": 0,
    })
    assert response.status_code == 422


def test_detect_without_detector(no_detector: None) -> None:
    response = client.post("/api/duplicates/detect", json={
        "candidate": _starbucks("2024-01-15T10:00:00Z"),
    })
    assert response.status_code == 500
    assert response.json()["detail"] == "Service not initialized"


def test_scan_duplicates(detector: DuplicateDetector) -> None:
    first = {**_starbucks("2024-01-15T10:00:00Z"), "id": "a"}
    later = {**_starbucks("2024-01-20T10:00:00Z"), "id": "b"}
    rent = {"id": "c", "name": "Rent", "amount": 1200, "type": "expense", "account_id": "acc2"}

    response = client.post("/api/duplicates/scan", json={"transactions": [first, later, rent]})

    assert response.status_code == 200
    groups = response.json()
    assert len(groups) == 1
    assert groups[0]["transaction"]["id"] == "a"
    assert [t["id"] for t in groups[0]["duplicates"]] == ["b"]
    assert groups[0]["confidence"] == 1.0


def test_scan_without_transactions(detector: DuplicateDetector) -> None:
    response = client.post("/api/duplicates/scan", json={})
    assert response.status_code == 200
    assert response.json() == []


def test_categorize(mock_service: MagicMock) -> None:
    mock_service.categorize.return_value = CategorizationResult(
        category=Category(name="Food & Dining"),
        confidence=0.95,
        source="rules_merchant",
    )

    response = client.post("/categorize", json={
        "transaction": {"name": "Starbucks", "amount": 4.2, "type": "expense"},
        "valid_categories": ["Food & Dining"],
    })

    assert response.status_code == 200
    assert response.json()["category"]["name"] == "Food & Dining"
    kwargs = mock_service.categorize.call_args.kwargs
    assert kwargs["valid_categories"] == ["Food & Dining"]


def test_categorize_no_match(mock_service: MagicMock) -> None:
    mock_service.categorize.return_value = None

    response = client.post("/categorize", json={"transaction": {"name": "???"}})

    assert response.status_code == 200
    assert response.json() is None


def test_suggestions(mock_service: MagicMock) -> None:
    mock_service.suggest_categories.return_value = [
        CategorySuggestion(name="Salary", confidence=0.85, reason="Matches keywords: salary"),
    ]

    response = client.post("/categorize/suggestions", json={
        "transaction": {"name": "ACME salary", "type": "income"},
        "existing_categories": ["Salary"],
    })

    assert response.status_code == 200
    assert response.json() == [
        {"name": "Salary", "confidence": 0.85, "reason": "Matches keywords: salary"},
    ]


def test_learn_and_clear(mock_service: MagicMock) -> None:
    response = client.post("/learn", json={
        "transaction": {"name": "Gym", "amount": 30},
        "category": {"name": "Fitness"},
    })
    assert response.status_code == 200
    assert response.json() == {"status": "learned"}
    mock_service.learn.assert_called_once()

    response = client.post("/api/models/clear")
    assert response.json() == {"status": "cleared"}
    mock_service.clear_models.assert_called_once()
