"""
Shared fixtures.

The orders service runs against a throwaway SQLite file; the URL has to be
in the environment before any restaurant_services module is imported.
"""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

_TEST_DIR = Path(tempfile.mkdtemp(prefix="restaurant-services-"))
ORDERS_DB_PATH = _TEST_DIR / "orders.db"

os.environ["ORDERS_DATABASE_URL"] = f"sqlite+aiosqlite:///{ORDERS_DB_PATH}"
os.environ["ENV_MODE"] = "development"
os.environ["DEBUG"] = "false"

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.results import DeleteResult, InsertOneResult
from sqlalchemy import create_engine, text

from restaurant_services.auth.identity import MockIdentityService, get_identity_service


# =============================================================================
# ORDERS
# =============================================================================

@pytest.fixture
def orders_client():
    """Orders app with a fresh, empty orders table."""
    from restaurant_services.orders.main import app

    with TestClient(app) as client:
        engine = create_engine(f"sqlite:///{ORDERS_DB_PATH}")
        with engine.begin() as conn:
            conn.execute(text("DELETE FROM orders"))
        engine.dispose()
        yield client


# =============================================================================
# FEEDBACK
# =============================================================================

class FakeCursor:
    """Enough of an async cursor for find()/aggregate() results."""

    def __init__(self, documents: list[dict]):
        self._documents = documents

    def sort(self, key: str, direction: int) -> "FakeCursor":
        self._documents.sort(key=lambda d: d.get(key), reverse=direction < 0)
        return self

    async def to_list(self, length: Optional[int] = None) -> list[dict]:
        return list(self._documents)


class FakeCollection:
    """
    In-memory stand-in for the feedback collection.

    Implements only the calls the feedback routes make, with the same
    sync/async split as pymongo's AsyncCollection.
    """

    def __init__(self):
        self.documents: list[dict] = []

    @staticmethod
    def _matches(document: dict, query: dict) -> bool:
        return all(document.get(k) == v for k, v in query.items())

    def find(self, query: dict) -> FakeCursor:
        return FakeCursor([dict(d) for d in self.documents if self._matches(d, query)])

    async def find_one(self, query: dict) -> Optional[dict]:
        for document in self.documents:
            if self._matches(document, query):
                return dict(document)
        return None

    async def insert_one(self, document: dict) -> InsertOneResult:
        document = dict(document, _id=ObjectId())
        self.documents.append(document)
        return InsertOneResult(document["_id"], acknowledged=True)

    async def delete_one(self, query: dict) -> DeleteResult:
        for index, document in enumerate(self.documents):
            if self._matches(document, query):
                del self.documents[index]
                return DeleteResult({"n": 1}, acknowledged=True)
        return DeleteResult({"n": 0}, acknowledged=True)

    async def count_documents(self, query: dict) -> int:
        return sum(1 for d in self.documents if self._matches(d, query))

    async def aggregate(self, pipeline: list[dict]) -> FakeCursor:
        group = pipeline[0]["$group"]
        key = group["_id"]
        buckets: dict[Any, list[dict]] = {}
        for document in self.documents:
            bucket = document.get(key[1:]) if isinstance(key, str) else None
            buckets.setdefault(bucket, []).append(document)

        rows = []
        for bucket, members in buckets.items():
            row = {"_id": bucket}
            for name, op in group.items():
                if name == "_id":
                    continue
                if "$avg" in op:
                    field = op["$avg"][1:]
                    row[name] = sum(m[field] for m in members) / len(members)
                elif "$sum" in op:
                    row[name] = len(members) * op["$sum"]
            rows.append(row)

        if len(pipeline) > 1 and "$sort" in pipeline[1]:
            rows.sort(key=lambda r: r["_id"])
        return FakeCursor(rows)

    def add(self, **fields) -> dict:
        """Insert a feedback document directly, bypassing the API."""
        document = {
            "_id": ObjectId(),
            "user_id": "user123",
            "rating": 5,
            "comment": "",
            "order_id": None,
            "created_at": datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
            "updated_at": datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc),
        }
        document.update(fields)
        self.documents.append(document)
        return document


@pytest.fixture
def feedback_collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture
def feedback_client(feedback_collection, monkeypatch):
    """Feedback app wired to the in-memory collection, database reachable."""
    from restaurant_services.feedback import database
    from restaurant_services.feedback.main import app

    async def reachable() -> bool:
        return True

    async def noop() -> None:
        return None

    monkeypatch.setattr(database, "check_connection", reachable)
    monkeypatch.setattr(database, "init_indexes", noop)
    monkeypatch.setattr(database, "close_connection", noop)
    app.dependency_overrides[database.get_collection] = lambda: feedback_collection

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


# =============================================================================
# AUTH
# =============================================================================

@pytest.fixture
def identity() -> MockIdentityService:
    return MockIdentityService()


@pytest.fixture
def auth_client(identity):
    """Auth app backed by a fresh mock identity provider."""
    from restaurant_services.auth.main import app

    app.dependency_overrides[get_identity_service] = lambda: identity

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()
