"""FastAPI dependencies resolving app-owned components."""

from __future__ import annotations

from fastapi import Request

from characters_api.services.character_service import CharacterService


def get_character_service(request: Request) -> CharacterService:
    """Return the CharacterService built by the app factory."""

    return request.app.state.character_service
