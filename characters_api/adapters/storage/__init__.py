"""Storage adapters - one document store contract, several backends."""

from characters_api.adapters.storage.base import (
    AbstractDocumentStore,
    Record,
    StoreCapabilities,
    reject_protected_fields,
)
from characters_api.adapters.storage.factory import create_document_store
from characters_api.adapters.storage.file_store import JsonFileStore
from characters_api.adapters.storage.firestore_store import FirestoreStore

__all__ = [
    "AbstractDocumentStore",
    "FirestoreStore",
    "JsonFileStore",
    "Record",
    "StoreCapabilities",
    "create_document_store",
    "reject_protected_fields",
]
