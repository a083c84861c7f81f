"""
Shared fixtures.

The type registry is process-wide and has no teardown, so every test that
defines a model asks `unique_name` for a fresh type name. The connection is
process-wide as well; it is restored after each test.
"""
from __future__ import annotations

import itertools
from typing import Any, Dict, List, Tuple

import pytest

from settee.config import clear_settings_cache
from settee.connection import connect, connection
from settee.store import InMemoryDocumentStore

_counter = itertools.count()


class RecordingStore:
    """
    Document store double.

    `responses[op]` is returned from the named operation, or raised when it is
    an exception. Every call is recorded as (op, args).
    """

    def __init__(self) -> None:
        self.responses: Dict[str, Any] = {}
        self.calls: List[Tuple[str, tuple]] = []

    def _answer(self, op: str, *args: Any) -> Any:
        self.calls.append((op, args))
        if op not in self.responses:
            raise AssertionError(f"unexpected store call {op}{args!r}")
        result = self.responses[op]
        if isinstance(result, BaseException):
            raise result
        return result

    def ops(self) -> list[str]:
        return [op for op, _ in self.calls]

    async def head(self, doc_id):
        return self._answer("head", doc_id)

    async def get(self, doc_id):
        return self._answer("get", doc_id)

    async def insert(self, document, doc_id=None):
        return self._answer("insert", document, doc_id)

    async def destroy(self, doc_id, rev):
        return self._answer("destroy", doc_id, rev)

    async def view(self, design, view_name, options):
        return self._answer("view", design, view_name, options)


@pytest.fixture(autouse=True)
def _restore_connection():
    store, validator = connection.store, connection.validator
    clear_settings_cache()
    yield
    connection.store, connection.validator = store, validator
    clear_settings_cache()


@pytest.fixture
def unique_name(request):
    """Return a factory of registry-unique type names for this test."""
    base = "".join(part.title() for part in request.node.name.split("[")[0].split("_") if part)

    def make(prefix: str = "") -> str:
        return f"{prefix or base}{next(_counter)}"

    return make


@pytest.fixture
def recording_store() -> RecordingStore:
    store = RecordingStore()
    connect(store)
    return store


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    connect(store)
    return store
