"""Tests for the FastAPI routes."""

from fastapi.testclient import TestClient

import crud
import main


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
    assert client.get("/").status_code == 200


def test_end_to_end_create_then_replay(create):
    first = create("K1", amount=42.50, category="Food", description="Lunch", date="2024-05-01")

    assert first.status_code == 201
    body = first.json()
    assert body["amountCents"] == 4250
    assert body["category"] == "Food"
    assert body["description"] == "Lunch"
    assert body["date"] == "2024-05-01"
    assert body["idempotencyKey"] == "K1"
    assert set(body) == {"id", "amountCents", "category", "description", "date", "idempotencyKey", "createdAt"}

    second = create("K1", amount=42.50, category="Food", description="Lunch", date="2024-05-01")

    assert second.status_code == 200
    assert second.json() == body


def test_replay_ignores_a_different_body(client, create):
    original = create("K1", amount=5).json()

    replay = create("K1", amount=0, category="")

    assert replay.status_code == 200
    assert replay.json()["id"] == original["id"]
    assert len(client.get("/expenses").json()) == 1


def test_concurrent_duplicate_returns_existing_record(client, create, monkeypatch):
    winner = create("K1", amount=3).json()

    # Simulate a request whose lookup ran before the winner committed
    real_lookup = crud.get_expense_by_idempotency_key
    calls = []

    def stale_lookup(db, key):
        calls.append(key)
        if len(calls) == 1:
            return None
        return real_lookup(db, key)

    monkeypatch.setattr(crud, "get_expense_by_idempotency_key", stale_lookup)

    resp = create("K1", amount=3)

    assert resp.status_code == 200
    assert resp.json() == winner
    assert len(calls) == 2
    assert len(client.get("/expenses").json()) == 1


def test_missing_idempotency_key_is_rejected(client):
    resp = client.post(
        "/expenses",
        json={"amount": 1, "category": "Food", "description": "Lunch", "date": "2024-05-01"},
    )

    assert resp.status_code == 400
    assert resp.json() == {"error": "Idempotency-Key header is required"}


def test_non_positive_amounts_create_nothing(client, create):
    for key, amount in (("zero", 0), ("negative", -5)):
        resp = create(key, amount=amount)
        assert resp.status_code == 400
        assert "greater than 0" in resp.json()["error"]

    assert client.get("/expenses").json() == []


def test_amount_rounding(create):
    assert create("a", amount=12.3).json()["amountCents"] == 1230
    assert create("b", amount=0.005).json()["amountCents"] == 1


def test_blank_category_is_rejected(create):
    resp = create("K1", category="  ")

    assert resp.status_code == 400
    assert "category" in resp.json()["error"]


def test_malformed_json_is_rejected(client):
    resp = client.post(
        "/expenses",
        content="{not json",
        headers={"Idempotency-Key": "K1", "Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert "error" in resp.json()


def test_missing_body_is_rejected(client):
    resp = client.post("/expenses", headers={"Idempotency-Key": "K1"})

    assert resp.status_code == 400


def test_list_filters_by_category(client, create):
    create("a", category="Food")
    create("b", category="Transport")
    create("c", category="Food")

    expenses = client.get("/expenses", params={"category": "Food"}).json()

    assert {e["idempotencyKey"] for e in expenses} == {"a", "c"}
    assert all(e["category"] == "Food" for e in expenses)


def test_list_sorts_by_date(client, create):
    create("jan1", date="2024-01-01")
    create("jan3", date="2024-01-03")
    create("jan2", date="2024-01-02")

    def dates(params):
        return [e["date"] for e in client.get("/expenses", params=params).json()]

    assert dates({"sort_date": "asc"}) == ["2024-01-01", "2024-01-02", "2024-01-03"]
    assert dates({"sort_date": "desc"}) == ["2024-01-03", "2024-01-02", "2024-01-01"]
    assert dates({}) == ["2024-01-03", "2024-01-02", "2024-01-01"]


def test_same_date_lists_newest_created_first(client, create):
    create("older", date="2024-01-02")
    create("newer", date="2024-01-02")

    for sort in ("asc", "desc"):
        keys = [e["idempotencyKey"] for e in client.get("/expenses", params={"sort_date": sort}).json()]
        assert keys == ["newer", "older"]


def test_unknown_sort_lists_oldest_first(client, create):
    create("jan1", date="2024-01-01")
    create("jan2", date="2024-01-02")

    for value in ("ASC", "sideways"):
        resp = client.get("/expenses", params={"sort_date": value})

        assert resp.status_code == 200
        assert [e["date"] for e in resp.json()] == ["2024-01-01", "2024-01-02"]

    empty = client.get("/expenses", params={"sort_date": ""}).json()
    assert [e["date"] for e in empty] == ["2024-01-02", "2024-01-01"]


def test_categories_endpoint(client, create):
    create("a", category="Transport")
    create("b", category="Food")

    assert client.get("/expenses/categories").json() == ["Food", "Transport"]


def test_unexpected_failure_returns_500(monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("database is down")

    monkeypatch.setattr(crud, "list_expenses", broken)
    client = TestClient(main.app, raise_server_exceptions=False)

    resp = client.get("/expenses")

    assert resp.status_code == 500
    assert resp.json() == {"error": "database is down"}


def test_unexpected_create_failure_returns_500(monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("disk full")

    monkeypatch.setattr(crud, "create_expense", broken)
    client = TestClient(main.app, raise_server_exceptions=False)

    resp = client.post(
        "/expenses",
        json={"amount": 1, "category": "Food", "description": "Lunch", "date": "2024-05-01"},
        headers={"Idempotency-Key": "K1"},
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "disk full"}


def test_replay_with_malformed_body_returns_stored_record(client, create):
    original = create("K1").json()

    resp = client.post(
        "/expenses",
        content="{bad",
        headers={"Idempotency-Key": "K1", "Content-Type": "application/json"},
    )

    assert resp.status_code == 200
    assert resp.json() == original


def test_too_large_amount_is_rejected(client, create):
    for key, amount in (("big", 1e20), ("huge", 1e30)):
        resp = create(key, amount=amount)

        assert resp.status_code == 400
        assert "too large" in resp.json()["error"]

    assert client.get("/expenses").json() == []
