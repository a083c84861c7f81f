# src/settee/connection.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from settee.exceptions import NotConnectedError
from settee.store.base import DocumentStore
from settee.validation import PydanticValidator, Validator


@dataclass(slots=True)
class Connection:
    """
    Process-wide collaborators of every model: the document store client and
    the schema validator. Models resolve both at call time.
    """

    store: Optional[DocumentStore] = None
    validator: Validator = field(default_factory=PydanticValidator)

    def require_store(self) -> DocumentStore:
        if self.store is None:
            raise NotConnectedError("No document store configured; call settee.connect() first.")
        return self.store


connection = Connection()


def connect(store: DocumentStore, *, validator: Optional[Validator] = None) -> Connection:
    connection.store = store
    if validator is not None:
        connection.validator = validator
    return connection


def get_store() -> DocumentStore:
    return connection.require_store()
