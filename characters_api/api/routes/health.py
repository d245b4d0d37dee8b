from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check(request: Request) -> dict:
    """Health check endpoint.

    Returns a simple status response plus the active storage backend name.
    Used by load balancers and monitoring systems to determine service health.
    """

    service = getattr(request.app.state, "character_service", None)
    backend = service.backend if service is not None else None
    return {"status": "ok", "storage": backend}
