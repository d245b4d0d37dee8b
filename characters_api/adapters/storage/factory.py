"""Factory pattern for creating document store instances."""

from __future__ import annotations

import json
import logging
from typing import Any

import firebase_admin
from firebase_admin import credentials, firestore_async

from characters_api.adapters.storage.base import AbstractDocumentStore
from characters_api.adapters.storage.file_store import JsonFileStore
from characters_api.adapters.storage.firestore_store import FirestoreStore
from characters_api.core.config import FirebaseSettings, StorageSettings
from characters_api.core.errors import ValidationAppError

logger = logging.getLogger(__name__)


def load_service_account(raw: str | None) -> dict[str, Any]:
    """Parse the service account JSON stored in ``FIREBASE_SERVICE_ACCOUNT``.

    Environment files usually carry the private key with literal ``\\n``
    sequences; they are turned back into newlines so the PEM block parses.

    Raises:
        ValidationAppError: If the variable is missing or not a JSON object.
    """
    if not raw:
        raise ValidationAppError(
            code="firebase_missing_credentials",
            message="Firestore backend requires FIREBASE_SERVICE_ACCOUNT environment variable",
        )
    try:
        service_account = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationAppError(
            code="firebase_invalid_credentials",
            message=f"FIREBASE_SERVICE_ACCOUNT is not valid JSON: {exc.msg}",
        ) from exc
    if not isinstance(service_account, dict):
        raise ValidationAppError(
            code="firebase_invalid_credentials",
            message="FIREBASE_SERVICE_ACCOUNT must be a JSON object",
        )

    private_key = service_account.get("private_key")
    if isinstance(private_key, str):
        service_account["private_key"] = private_key.replace("\\n", "\n")
    return service_account


def _get_or_init_firebase_app(firebase_settings: FirebaseSettings) -> firebase_admin.App:
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    service_account = load_service_account(firebase_settings.service_account)
    options = {"databaseURL": firebase_settings.db_url} if firebase_settings.db_url else None
    app = firebase_admin.initialize_app(credentials.Certificate(service_account), options)
    logger.info(
        "storage.firebase.initialized",
        extra={"project_id": service_account.get("project_id")},
    )
    return app


def create_document_store(
    storage_settings: StorageSettings,
    firebase_settings: FirebaseSettings,
) -> AbstractDocumentStore:
    """Instantiate the storage backend selected by ``STORAGE_BACKEND``.

    Returns:
        AbstractDocumentStore: Configured store instance.

    Raises:
        ValidationAppError: If the backend is unknown or misconfigured.
    """
    backend = storage_settings.backend.lower()

    if backend == "file":
        logger.info(
            "storage.backend.selected",
            extra={"backend": backend, "data_dir": storage_settings.data_dir},
        )
        return JsonFileStore(storage_settings.data_dir)

    if backend == "firestore":
        app = _get_or_init_firebase_app(firebase_settings)
        logger.info("storage.backend.selected", extra={"backend": backend})
        return FirestoreStore(firestore_async.client(app))

    raise ValidationAppError(
        code="storage_unknown_backend",
        message=(
            f"Unknown storage backend: '{backend}'. Supported backends: file, firestore"
        ),
    )
