"""Document store interface shared by every storage backend.

Records are plain dicts. At this boundary ``id`` is always a string, whatever
the backend uses internally; id generation is each backend's business.

Fields that only some backends can produce (``createdAt``/``updatedAt``) are
advertised through ``StoreCapabilities`` and simply absent from records of
backends that lack them. Callers must not assume their presence.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Mapping

from characters_api.core.errors import ValidationAppError

Record = dict[str, Any]

PROTECTED_FIELDS: tuple[str, ...] = ("id", "createdAt")
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"


@dataclass(frozen=True)
class StoreCapabilities:
    """What a backend adds to records beyond the caller's fields.

    Attributes:
        name: Short backend name used in logs ("file", "firestore").
        timestamps: Whether records carry server-assigned createdAt/updatedAt.
    """

    name: str
    timestamps: bool


def reject_protected_fields(fields: Mapping[str, Any]) -> None:
    """Refuse updates that try to overwrite server-owned fields.

    Raises:
        ValidationAppError: If ``fields`` names ``id`` or ``createdAt``.
    """
    for field in fields:
        if field in PROTECTED_FIELDS:
            raise ValidationAppError(
                code="protected_field",
                message=f'Field "{field}" cannot be updated',
                details={"field": field},
            )


class AbstractDocumentStore(ABC):
    """Async CRUD over named collections of records.

    Missing records are reported as ``None``; only real failures raise
    (``ValidationAppError`` for protected fields, ``StorageAppError`` for
    backend failures).
    """

    capabilities: StoreCapabilities

    @abstractmethod
    async def read_all(self, collection: str) -> list[Record]:
        """Return every record in storage order (``[]`` if the collection is new)."""
        raise NotImplementedError

    @abstractmethod
    async def read_one(self, collection: str, record_id: str) -> Record | None:
        """Return the record with ``record_id`` or None."""
        raise NotImplementedError

    @abstractmethod
    async def create(self, collection: str, fields: Mapping[str, Any]) -> Record:
        """Persist a new record and return it including generated fields."""
        raise NotImplementedError

    @abstractmethod
    async def update(
        self, collection: str, record_id: str, fields: Mapping[str, Any]
    ) -> Record | None:
        """Merge ``fields`` into an existing record and return the result.

        Implementations must call ``reject_protected_fields`` before touching
        storage, so a rejected update has no side effects.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete(self, collection: str, record_id: str) -> Record | None:
        """Remove a record; return its last state with ``deleted: True``."""
        raise NotImplementedError

