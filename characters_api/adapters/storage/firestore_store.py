"""Firestore document store.

Every record is its own Firestore document; ids are generated by Firestore
and per-document writes are serialized by the database, so no local locking
is needed. ``createdAt``/``updatedAt`` are server timestamps.

Update and delete read the document first and then act on it. This is not
transactional: a concurrent delete between the read and the write can change
the outcome (update then fails inside Firestore, delete returns data that was
already gone). Read-then-act consistency is accepted here.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping

from google.api_core import exceptions as google_exceptions
from google.cloud.firestore import SERVER_TIMESTAMP, AsyncClient

from characters_api.adapters.storage.base import (
    CREATED_AT,
    UPDATED_AT,
    AbstractDocumentStore,
    Record,
    StoreCapabilities,
    reject_protected_fields,
)
from characters_api.core.errors import StorageAppError

logger = logging.getLogger(__name__)


def _snapshot_to_record(snapshot: Any) -> Record:
    return {**(snapshot.to_dict() or {}), "id": snapshot.id}


class FirestoreStore(AbstractDocumentStore):
    """Document store backed by a Firestore ``AsyncClient``."""

    capabilities = StoreCapabilities(name="firestore", timestamps=True)

    def __init__(self, client: AsyncClient) -> None:
        self._client = client

    @asynccontextmanager
    async def _guard(self, operation: str, collection: str) -> AsyncIterator[None]:
        """Translate Google API failures into StorageAppError."""
        try:
            yield
        except google_exceptions.GoogleAPIError as exc:
            logger.error(
                "storage.firestore.failed",
                extra={
                    "operation": operation,
                    "collection": collection,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise StorageAppError(
                code="storage_backend_error",
                message=f"Firestore {operation} failed on '{collection}': {exc}",
                details={"collection": collection, "backend": "firestore"},
            ) from exc

    async def read_all(self, collection: str) -> list[Record]:
        async with self._guard("read_all", collection):
            return [
                _snapshot_to_record(snapshot)
                async for snapshot in self._client.collection(collection).stream()
            ]

    async def read_one(self, collection: str, record_id: str) -> Record | None:
        async with self._guard("read_one", collection):
            snapshot = await self._client.collection(collection).document(record_id).get()
        if not snapshot.exists:
            return None
        return _snapshot_to_record(snapshot)

    async def create(self, collection: str, fields: Mapping[str, Any]) -> Record:
        data = {k: v for k, v in fields.items() if k not in ("id", UPDATED_AT)}
        data[CREATED_AT] = SERVER_TIMESTAMP

        async with self._guard("create", collection):
            _, ref = await self._client.collection(collection).add(data)
            # Re-read so the resolved server timestamp is returned
            snapshot = await ref.get()

        logger.debug(
            "storage.firestore.created",
            extra={"collection": collection, "id": snapshot.id},
        )
        return _snapshot_to_record(snapshot)

    async def update(
        self, collection: str, record_id: str, fields: Mapping[str, Any]
    ) -> Record | None:
        reject_protected_fields(fields)

        ref = self._client.collection(collection).document(record_id)
        async with self._guard("update", collection):
            snapshot = await ref.get()
            if not snapshot.exists:
                return None
            await ref.update({**fields, UPDATED_AT: SERVER_TIMESTAMP})
            updated = await ref.get()

        return _snapshot_to_record(updated)

    async def delete(self, collection: str, record_id: str) -> Record | None:
        ref = self._client.collection(collection).document(record_id)
        async with self._guard("delete", collection):
            snapshot = await ref.get()
            if not snapshot.exists:
                return None
            await ref.delete()

        return {**_snapshot_to_record(snapshot), "deleted": True}
