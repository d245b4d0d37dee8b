"""Tests for the Firestore document store against an in-memory fake client."""

from __future__ import annotations

from datetime import datetime

import pytest
from google.api_core import exceptions as google_exceptions

from characters_api.adapters.storage.firestore_store import FirestoreStore
from characters_api.core.errors import StorageAppError, ValidationAppError

COLLECTION = "characters"

SPIDER_MAN = {"name": "Spider-Man", "description": "hero", "skills": ["wall-crawling"]}


@pytest.fixture
def store(fake_firestore) -> FirestoreStore:
    return FirestoreStore(fake_firestore)


@pytest.mark.asyncio
async def test_create_then_read_one_round_trip(store: FirestoreStore) -> None:
    created = await store.create(COLLECTION, SPIDER_MAN)

    assert isinstance(created["id"], str) and created["id"]
    assert isinstance(created["createdAt"], datetime)
    assert "updatedAt" not in created

    fetched = await store.read_one(COLLECTION, created["id"])
    assert fetched == created
    assert fetched["skills"] == ["wall-crawling"]


@pytest.mark.asyncio
async def test_client_supplied_id_is_ignored_on_create(store: FirestoreStore) -> None:
    created = await store.create(COLLECTION, {**SPIDER_MAN, "id": "chosen"})

    assert created["id"] != "chosen"


@pytest.mark.asyncio
async def test_read_all_empty_and_populated(store: FirestoreStore) -> None:
    assert await store.read_all(COLLECTION) == []

    await store.create(COLLECTION, {**SPIDER_MAN, "name": "A"})
    await store.create(COLLECTION, {**SPIDER_MAN, "name": "B"})

    assert [r["name"] for r in await store.read_all(COLLECTION)] == ["A", "B"]


@pytest.mark.asyncio
async def test_read_one_unknown_is_none(store: FirestoreStore) -> None:
    assert await store.read_one(COLLECTION, "ghost") is None


@pytest.mark.asyncio
async def test_update_merges_and_stamps_updated_at(store: FirestoreStore) -> None:
    created = await store.create(COLLECTION, SPIDER_MAN)

    updated = await store.update(COLLECTION, created["id"], {"description": "changed"})

    assert updated["description"] == "changed"
    assert updated["name"] == "Spider-Man"
    assert updated["createdAt"] == created["createdAt"]
    assert isinstance(updated["updatedAt"], datetime)


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["id", "createdAt"])
async def test_update_rejects_protected_fields(store: FirestoreStore, fake_firestore, field: str) -> None:
    created = await store.create(COLLECTION, SPIDER_MAN)

    with pytest.raises(ValidationAppError):
        await store.update(COLLECTION, created["id"], {field: "x"})

    stored = fake_firestore.collection(COLLECTION).docs[created["id"]]
    assert "updatedAt" not in stored
    assert stored["createdAt"] == created["createdAt"]


@pytest.mark.asyncio
async def test_update_unknown_id_is_none(store: FirestoreStore, fake_firestore) -> None:
    assert await store.update(COLLECTION, "ghost", {"name": "x"}) is None
    assert fake_firestore.collection(COLLECTION).docs == {}


@pytest.mark.asyncio
async def test_delete_returns_last_state_and_is_not_idempotent(store: FirestoreStore) -> None:
    created = await store.create(COLLECTION, SPIDER_MAN)

    deleted = await store.delete(COLLECTION, created["id"])
    assert deleted == {**created, "deleted": True}

    assert await store.delete(COLLECTION, created["id"]) is None
    assert await store.read_one(COLLECTION, created["id"]) is None


@pytest.mark.asyncio
async def test_google_api_errors_become_storage_errors(store: FirestoreStore, fake_firestore) -> None:
    fake_firestore.fail_with = google_exceptions.ServiceUnavailable("backend down")

    with pytest.raises(StorageAppError) as exc_info:
        await store.read_all(COLLECTION)
    assert exc_info.value.code == "storage_backend_error"

    with pytest.raises(StorageAppError):
        await store.create(COLLECTION, SPIDER_MAN)


def test_capabilities_advertise_timestamps(store: FirestoreStore) -> None:
    assert store.capabilities.timestamps is True
    assert store.capabilities.name == "firestore"
