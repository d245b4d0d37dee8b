"""Character use cases on top of a document store.

The service owns the collection name, payload validation and the mapping of
"record absent" to ``NotFoundAppError``. Everything storage-specific (id
scheme, timestamps, file vs. document writes) stays in the store adapters.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from pydantic import ValidationError

from characters_api.adapters.storage.base import (
    AbstractDocumentStore,
    Record,
    reject_protected_fields,
)
from characters_api.core.errors import (
    NotFoundAppError,
    ValidationAppError,
    summarize_validation_errors,
)
from characters_api.schemas.character import CharacterCreate, CharacterUpdate

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "characters"

# Fields that may be omitted on update but never cleared
_NON_NULLABLE_FIELDS = ("name", "description", "skills")


def _not_found(record_id: str) -> NotFoundAppError:
    return NotFoundAppError(
        code="character_not_found",
        message="Character not found",
        details={"id": record_id},
    )


class CharacterService:
    """CRUD over the characters collection."""

    def __init__(
        self,
        store: AbstractDocumentStore,
        *,
        collection: str = DEFAULT_COLLECTION,
    ) -> None:
        self.store = store
        self.collection = collection

    @property
    def backend(self) -> str:
        return self.store.capabilities.name

    async def list_characters(self) -> list[Record]:
        return await self.store.read_all(self.collection)

    async def get_character(self, record_id: str) -> Record:
        record = await self.store.read_one(self.collection, record_id)
        if record is None:
            raise _not_found(record_id)
        return record

    async def create_character(self, payload: CharacterCreate) -> Record:
        """Persist a new character; the store assigns its id."""
        fields = payload.model_dump(exclude_none=True)
        record = await self.store.create(self.collection, fields)
        logger.info(
            "character.created",
            extra={"id": record["id"], "backend": self.backend},
        )
        return record

    async def update_character(self, record_id: str, payload: Mapping[str, Any]) -> Record:
        """Merge a partial payload into an existing character.

        The payload is checked before the record is looked up, so touching
        ``id``/``createdAt`` on an unknown id is a 400, not a 404. The earlier
        Firestore-backed service looked the document up first and answered
        404 in that case.

        Args:
            record_id: Character id.
            payload: Raw JSON object sent by the client.

        Returns:
            The merged record.

        Raises:
            ValidationAppError: If the payload touches ``id``/``createdAt``,
                has unknown fields or wrong types.
            NotFoundAppError: If no character has ``record_id``.
        """
        reject_protected_fields(payload)

        try:
            changes = CharacterUpdate.model_validate(payload).model_dump(exclude_unset=True)
        except ValidationError as exc:
            raise ValidationAppError(
                code="invalid_character",
                message="Invalid character update",
                details={"errors": summarize_validation_errors(exc.errors())},
            ) from exc

        cleared = [name for name in _NON_NULLABLE_FIELDS if name in changes and changes[name] is None]
        if cleared:
            raise ValidationAppError(
                code="invalid_character",
                message="Required fields cannot be set to null",
                details={"fields": cleared},
            )

        record = await self.store.update(self.collection, record_id, changes)
        if record is None:
            raise _not_found(record_id)

        logger.info(
            "character.updated",
            extra={"id": record_id, "fields": sorted(changes), "backend": self.backend},
        )
        return record

    async def delete_character(self, record_id: str) -> Record:
        record = await self.store.delete(self.collection, record_id)
        if record is None:
            raise _not_found(record_id)

        logger.info(
            "character.deleted",
            extra={"id": record_id, "backend": self.backend},
        )
        return record
