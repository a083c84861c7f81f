# src/settee/store/__init__.py
from .base import ConflictError, DocumentStore, NotFoundError, StoreError, strip_etag
from .memory import InMemoryDocumentStore, InMemoryRevision, MapFunction

__all__ = [
    "ConflictError",
    "DocumentStore",
    "InMemoryDocumentStore",
    "InMemoryRevision",
    "MapFunction",
    "NotFoundError",
    "StoreError",
    "strip_etag",
]
