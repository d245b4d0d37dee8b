from __future__ import annotations

from characters_api.api.routes.characters import router as characters_router
from characters_api.api.routes.health import router as health_router

__all__ = ["characters_router", "health_router"]
