from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, status

from characters_api.api.dependencies import get_character_service
from characters_api.schemas.character import (
    CharacterCreate,
    CharacterResponse,
    DeletedCharacterResponse,
)
from characters_api.services.character_service import CharacterService

router = APIRouter(prefix="/characters", tags=["Characters"])

_NOT_FOUND = {404: {"description": "Character not found"}}


@router.get(
    "",
    response_model=List[CharacterResponse],
    response_model_exclude_none=True,
)
async def list_characters(
    service: CharacterService = Depends(get_character_service),
) -> List[Dict[str, Any]]:
    """Return every character in storage order."""
    return await service.list_characters()


@router.get(
    "/{character_id}",
    response_model=CharacterResponse,
    response_model_exclude_none=True,
    responses=_NOT_FOUND,
)
async def get_character(
    character_id: str,
    service: CharacterService = Depends(get_character_service),
) -> Dict[str, Any]:
    """Return one character by id."""
    return await service.get_character(character_id)


@router.post(
    "",
    response_model=CharacterResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def create_character(
    payload: CharacterCreate,
    service: CharacterService = Depends(get_character_service),
) -> Dict[str, Any]:
    """Create a character.

    ``name``, ``description`` and ``skills`` are required; ``skills`` must be
    an array but may be empty. The id (and, on timestamped backends,
    ``createdAt``) is assigned by storage.
    """
    return await service.create_character(payload)


@router.put(
    "/{character_id}",
    response_model=CharacterResponse,
    response_model_exclude_none=True,
    responses={**_NOT_FOUND, 400: {"description": "Invalid or protected field"}},
)
async def update_character(
    character_id: str,
    payload: Dict[str, Any] = Body(
        ...,
        examples=[{"description": "Now with a new suit", "skills": ["Web-slinging"]}],
    ),
    service: CharacterService = Depends(get_character_service),
) -> Dict[str, Any]:
    """Merge the supplied fields into a character.

    ``id`` and ``createdAt`` cannot be changed; sending them is a 400.
    """
    return await service.update_character(character_id, payload)


@router.delete(
    "/{character_id}",
    response_model=DeletedCharacterResponse,
    response_model_exclude_none=True,
    responses=_NOT_FOUND,
)
async def delete_character(
    character_id: str,
    service: CharacterService = Depends(get_character_service),
) -> Dict[str, Any]:
    """Delete a character and return its last known state."""
    return await service.delete_character(character_id)
