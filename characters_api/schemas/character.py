"""Pydantic schemas for character requests and responses."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CharacterCreate(BaseModel):
    """Payload accepted by ``POST /characters``."""

    model_config = ConfigDict(
        extra="ignore",
        json_schema_extra={
            "example": {
                "name": "Spider-Man",
                "description": "Friendly neighborhood superhero",
                "skills": ["Wall-crawling", "Spider-sense"],
                "avatarUrl": "",
            }
        },
    )

    name: str = Field(..., min_length=1, description="Display name of the character.")
    description: str = Field(..., min_length=1, description="Short biography.")
    skills: List[str] = Field(
        ...,
        description="Ordered list of skills. Required, but may be empty.",
    )
    avatarUrl: Optional[str] = Field(default=None, description="Optional avatar image URL.")


class CharacterUpdate(BaseModel):
    """Partial payload accepted by ``PUT /characters/{id}``.

    Only fields the client actually sends are merged into the record.
    """

    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    skills: Optional[List[str]] = None
    avatarUrl: Optional[str] = None


class CharacterResponse(BaseModel):
    """Stored character as returned by the API.

    ``createdAt``/``updatedAt`` are only present when the active storage
    backend records timestamps.
    """

    id: str = Field(..., description="Opaque record identifier.")
    name: str
    description: str
    skills: List[str] = Field(default_factory=list)
    avatarUrl: Optional[str] = None
    createdAt: Optional[datetime] = None
    updatedAt: Optional[datetime] = None


class DeletedCharacterResponse(CharacterResponse):
    """Last known state of a deleted character."""

    deleted: bool = Field(True, description="Always true for a successful delete.")
