"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set before any ``characters_api`` import so the
global settings object never points at a real Firestore project or at the
repository's ./data directory.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("STORAGE_BACKEND", "file")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime, timezone  # noqa: E402
from itertools import count  # noqa: E402
from typing import Any, AsyncIterator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from google.api_core import exceptions as google_exceptions  # noqa: E402
from google.cloud.firestore import SERVER_TIMESTAMP  # noqa: E402

from characters_api.adapters.rate_limit.in_memory import InMemorySlidingWindowRateLimiter  # noqa: E402
from characters_api.adapters.storage.file_store import JsonFileStore  # noqa: E402
from characters_api.core.app_factory import create_app  # noqa: E402
from characters_api.core.config import Settings  # noqa: E402


class FakeClock:
    """Deterministic clock used to drive sliding windows."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


# Minimal in-memory stand-in for google.cloud.firestore.AsyncClient


class FakeSnapshot:
    def __init__(self, doc_id: str, data: dict[str, Any] | None) -> None:
        self.id = doc_id
        self._data = dict(data) if data is not None else None

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> dict[str, Any] | None:
        return dict(self._data) if self._data is not None else None


class FakeDocumentRef:
    def __init__(self, collection: "FakeCollection", doc_id: str) -> None:
        self._collection = collection
        self.id = doc_id

    async def get(self) -> FakeSnapshot:
        return FakeSnapshot(self.id, self._collection.docs.get(self.id))

    async def update(self, data: dict[str, Any]) -> None:
        if self.id not in self._collection.docs:
            raise google_exceptions.NotFound(f"No document to update: {self.id}")
        self._collection.docs[self.id].update(self._collection.resolve(data))

    async def delete(self) -> None:
        self._collection.docs.pop(self.id, None)


class FakeCollection:
    def __init__(self, client: "FakeFirestoreClient") -> None:
        self._client = client
        self.docs: dict[str, dict[str, Any]] = {}

    def resolve(self, data: dict[str, Any]) -> dict[str, Any]:
        return {
            key: self._client.now() if value is SERVER_TIMESTAMP else value
            for key, value in data.items()
        }

    def document(self, doc_id: str) -> FakeDocumentRef:
        return FakeDocumentRef(self, doc_id)

    async def add(self, data: dict[str, Any]) -> tuple[datetime, FakeDocumentRef]:
        if self._client.fail_with is not None:
            raise self._client.fail_with
        doc_id = f"doc{next(self._client.ids)}"
        self.docs[doc_id] = self.resolve(data)
        return self._client.now(), FakeDocumentRef(self, doc_id)

    async def stream(self) -> AsyncIterator[FakeSnapshot]:
        if self._client.fail_with is not None:
            raise self._client.fail_with
        for doc_id, data in list(self.docs.items()):
            yield FakeSnapshot(doc_id, data)


class FakeFirestoreClient:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}
        self.ids = count(1)
        self._ticks = count(1)
        self.fail_with: Exception | None = None

    def now(self) -> datetime:
        return datetime(2024, 1, 1, 12, 0, next(self._ticks) % 60, tzinfo=timezone.utc)

    def collection(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection(self))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def file_store(tmp_path) -> JsonFileStore:
    return JsonFileStore(tmp_path / "data")


@pytest.fixture
def fake_firestore() -> FakeFirestoreClient:
    return FakeFirestoreClient()


@pytest.fixture
def app_settings() -> Settings:
    return Settings()


@pytest.fixture
def client(file_store: JsonFileStore, app_settings: Settings) -> TestClient:
    """TestClient over a fresh app with a tmp-dir file store and a generous limit."""
    limiter = InMemorySlidingWindowRateLimiter(max_requests=1000, window_seconds=60)
    app = create_app(settings=app_settings, store=file_store, rate_limiter=limiter)
    return TestClient(app)
