from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (components, middleware, handlers, routers) so
tests can build isolated apps with their own store and rate limiter.
"""

from fastapi import FastAPI

from characters_api.adapters.rate_limit.base import AbstractRateLimiter
from characters_api.adapters.storage.base import AbstractDocumentStore
from characters_api.adapters.storage.factory import create_document_store
from characters_api.api.routes import characters_router, health_router
from characters_api.core.config import Settings, settings as default_settings
from characters_api.core.exception_handlers import setup_exception_handlers
from characters_api.core.logging import configure_logging
from characters_api.core.middleware import request_id_middleware
from characters_api.core.rate_limit import build_rate_limiter, rate_limit_middleware
from characters_api.services.character_service import CharacterService


def create_app(
    *,
    settings: Settings | None = None,
    store: AbstractDocumentStore | None = None,
    rate_limiter: AbstractRateLimiter | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings to build from (defaults to the global settings).
        store: Document store to use instead of the configured backend.
        rate_limiter: Limiter to use instead of one built from settings.

    Returns:
        Configured FastAPI app with middleware, handlers and routers.
    """
    cfg = settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    configure_logging(cfg.log)

    app = FastAPI(
        title="Characters API",
        description=(
            "CRUD API for characters stored in a JSON file or in Firestore. "
            "Every route is protected by a per-client sliding-window rate limit."
        ),
        version="1.0.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    if store is None:
        store = create_document_store(cfg.storage, cfg.firebase)
    app.state.character_service = CharacterService(store, collection=cfg.storage.collection)

    # Middleware: the last one registered runs first, so request ids wrap the limiter
    if cfg.app.rate_limit_enabled:
        limiter = rate_limiter or build_rate_limiter(cfg.app)
        app.state.rate_limiter = limiter
        app.middleware("http")(
            rate_limit_middleware(
                limiter,
                include_headers=cfg.app.rate_limit_include_headers,
            )
        )
    app.middleware("http")(request_id_middleware(cfg.log))

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(characters_router)
    app.include_router(health_router)

    return app
