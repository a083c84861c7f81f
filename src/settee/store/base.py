# src/settee/store/base.py
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol

from settee.exceptions import ConflictError, NotFoundError, StoreError

__all__ = [
    "ConflictError",
    "DocumentStore",
    "NotFoundError",
    "StoreError",
    "strip_etag",
]


class DocumentStore(Protocol):
    """
    Client of a revision-versioned document database.

    Failures are raised as StoreError subclasses carrying the server's
    status code (NotFoundError for 404, ConflictError for 409).
    """

    async def head(self, doc_id: str) -> Mapping[str, str]: ...

    async def get(self, doc_id: str) -> dict[str, Any]: ...

    async def insert(self, document: Mapping[str, Any], doc_id: Optional[str] = None) -> dict[str, Any]: ...

    async def destroy(self, doc_id: Optional[str], rev: Optional[str]) -> dict[str, Any]: ...

    async def view(self, design: str, view_name: str, options: Mapping[str, Any]) -> dict[str, Any]: ...


def strip_etag(etag: str) -> str:
    return etag.replace('"', "")
