import os

# Must be set before the application modules create the engine.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["APP_ENV"] = "test"

import pytest
from fastapi.testclient import TestClient

import main
from database import Base, SessionLocal, engine


@pytest.fixture(autouse=True)
def reset_db():
    """Give every test an empty expenses table."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(main.app)


@pytest.fixture
def create(client):
    """POST an expense with the given idempotency key."""

    def _create(key, **overrides):
        body = {
            "amount": 10,
            "category": "Food",
            "description": "Lunch",
            "date": "2024-05-01",
        }
        body.update(overrides)
        return client.post("/expenses", json=body, headers={"Idempotency-Key": key})

    return _create
