"""JSON file document store.

Each collection lives in ``<directory>/<collection>.json`` as a pretty-printed
JSON array. Every mutation reads the whole file, changes it in memory and
rewrites it entirely (temp file + atomic rename).

Ids are integers on disk (``max(existing) + 1``, starting at 1) and strings at
the store interface.

Concurrency:
    ``max + 1`` id assignment is a read-modify-write race: two writers that
    read the same file compute the same next id and the later write clobbers
    the earlier one. Inside one process every mutation of a collection is
    serialized behind a per-collection lock, which closes the race for this
    server. Several processes (or workers) sharing one data directory still
    race; use the Firestore backend for that deployment.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
import threading
from functools import partial
from pathlib import Path
from typing import Any, Callable, Mapping, TypeVar

from characters_api.adapters.storage.base import (
    AbstractDocumentStore,
    Record,
    StoreCapabilities,
    reject_protected_fields,
)
from characters_api.core.errors import StorageAppError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _matches(item: Mapping[str, Any], record_id: str) -> bool:
    return str(item.get("id")) == record_id


def _to_record(item: Mapping[str, Any]) -> Record:
    """Expose a stored item with its id as a string."""
    return {**item, "id": str(item["id"])}


def _numeric_id(value: Any) -> int | None:
    # Hand-edited files may hold ids as digit strings ("3")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return None


def _next_id(items: list[dict[str, Any]]) -> int:
    numeric_ids = [n for n in (_numeric_id(item["id"]) for item in items) if n is not None]
    return max(numeric_ids, default=0) + 1


class JsonFileStore(AbstractDocumentStore):
    """Document store backed by one JSON file per collection."""

    capabilities = StoreCapabilities(name="file", timestamps=False)

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        """Create the store, creating ``directory`` if it does not exist.

        Args:
            directory: Folder holding the ``<collection>.json`` files.
        """
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, collection: str) -> Path:
        return self._directory / f"{collection}.json"

    def _lock_for(self, collection: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(collection, threading.Lock())

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run blocking file work in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))

    # Blocking helpers (run in executor threads)

    def _load(self, collection: str) -> list[dict[str, Any]]:
        path = self.path_for(collection)
        if not path.is_file():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            logger.error(
                "storage.file.read_failed",
                extra={"collection": collection, "path": str(path), "error_msg": str(exc)},
            )
            raise StorageAppError(
                code="storage_read_failed",
                message=f"Could not read collection '{collection}': {exc}",
                details={"collection": collection, "backend": "file"},
            ) from exc

        if not isinstance(data, list):
            raise self._corrupt(collection, path, "not a JSON array")
        for index, item in enumerate(data):
            if not isinstance(item, dict) or "id" not in item:
                raise self._corrupt(collection, path, f"item {index} is not an object with an id")
        return data

    def _corrupt(self, collection: str, path: Path, reason: str) -> StorageAppError:
        logger.error(
            "storage.file.read_failed",
            extra={"collection": collection, "path": str(path), "error_msg": reason},
        )
        return StorageAppError(
            code="storage_corrupt",
            message=f"Collection file for '{collection}' is corrupt: {reason}",
            details={"collection": collection, "backend": "file"},
        )

    def _save(self, collection: str, items: list[dict[str, Any]]) -> None:
        path = self.path_for(collection)
        payload = json.dumps(items, indent=2, ensure_ascii=False)
        tmp_name: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self._directory,
                prefix=f".{collection}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.error(
                "storage.file.write_failed",
                extra={"collection": collection, "path": str(path), "error_msg": str(exc)},
            )
            raise StorageAppError(
                code="storage_write_failed",
                message=f"Could not write collection '{collection}': {exc}",
                details={"collection": collection, "backend": "file"},
            ) from exc

        logger.debug(
            "storage.file.write",
            extra={"collection": collection, "records": len(items)},
        )

    def _create_sync(self, collection: str, fields: dict[str, Any]) -> Record:
        with self._lock_for(collection):
            items = self._load(collection)
            item = {"id": _next_id(items), **fields}
            items.append(item)
            self._save(collection, items)
        return _to_record(item)

    def _update_sync(
        self, collection: str, record_id: str, fields: dict[str, Any]
    ) -> Record | None:
        with self._lock_for(collection):
            items = self._load(collection)
            for index, item in enumerate(items):
                if _matches(item, record_id):
                    merged = {**item, **fields, "id": item["id"]}
                    items[index] = merged
                    self._save(collection, items)
                    return _to_record(merged)
        return None

    def _delete_sync(self, collection: str, record_id: str) -> Record | None:
        with self._lock_for(collection):
            items = self._load(collection)
            for index, item in enumerate(items):
                if _matches(item, record_id):
                    del items[index]
                    self._save(collection, items)
                    return {**_to_record(item), "deleted": True}
        return None

    # AbstractDocumentStore

    async def read_all(self, collection: str) -> list[Record]:
        items = await self._run(self._load, collection)
        return [_to_record(item) for item in items]

    async def read_one(self, collection: str, record_id: str) -> Record | None:
        items = await self._run(self._load, collection)
        for item in items:
            if _matches(item, record_id):
                return _to_record(item)
        return None

    async def create(self, collection: str, fields: Mapping[str, Any]) -> Record:
        data = {k: v for k, v in fields.items() if k != "id"}
        return await self._run(self._create_sync, collection, data)

    async def update(
        self, collection: str, record_id: str, fields: Mapping[str, Any]
    ) -> Record | None:
        reject_protected_fields(fields)
        return await self._run(self._update_sync, collection, record_id, dict(fields))

    async def delete(self, collection: str, record_id: str) -> Record | None:
        return await self._run(self._delete_sync, collection, record_id)
