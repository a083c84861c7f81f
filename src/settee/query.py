# src/settee/query.py
"""
Server-side view invocation and hydration of the returned rows.

A Query is bound to a design document (the owning model's type name) and a
fixed set of view options. Each declared view becomes a coroutine attribute:

    query = Monster.get_model("couch")
    marvin = await query.by_location()

Rows are turned into models by looking up the row document's discriminator
in the type registry, so a view may return several model types at once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Awaitable, Callable, Iterable, Mapping, Optional

from settee.collection import Collection
from settee.connection import get_store
from settee.exceptions import ViewError
from settee.logs import getLogger
from settee.registry import TypeRegistry, models as default_registry
from settee.store.base import DocumentStore

if TYPE_CHECKING:
    from settee.model import Model

logger = getLogger(__name__)

Hydrator = Callable[[Mapping[str, Any]], Any]


# -----------------------------
# Hydration
# -----------------------------


def hydrate_document(
    document: Mapping[str, Any],
    discriminator: str,
    registry: TypeRegistry = default_registry,
) -> Model:
    """
    Build a model instance from a raw stored document.

    The discriminator selects the factory and is not part of the resulting
    attributes. Unknown (or missing) type tags raise ViewError.
    """
    type_name = document.get(discriminator)
    factory = registry.lookup(type_name)
    if factory is None:
        logger.warning("Cannot hydrate document %r: unknown type %r", document.get("_id"), type_name)
        raise ViewError(f'Unknown document type "{type_name}"', document=document)

    attributes = {k: v for k, v in document.items() if k != discriminator}
    return factory(attributes)


def _row_documents(results: Mapping[str, Any]) -> list[Mapping[str, Any]]:
    return [row.get("doc") or {} for row in results.get("rows") or ()]


def single_hydrator(
    options: Mapping[str, Any],
    discriminator: str,
    registry: TypeRegistry = default_registry,
) -> Hydrator:
    """No rows -> None, one row -> model, several rows -> ViewError."""

    def hydrate(results: Mapping[str, Any]) -> Optional[Model]:
        documents = _row_documents(results)
        if not documents:
            return None
        if len(documents) > 1:
            logger.warning("Ambiguous single-model query %r (%d rows)", dict(options), len(documents))
            raise ViewError("Multiple documents found", query=dict(options), results=results)
        return hydrate_document(documents[0], discriminator, registry)

    return hydrate


def collection_hydrator(
    discriminator: str,
    registry: TypeRegistry = default_registry,
) -> Hydrator:
    """All rows or nothing: one unknown type fails the whole batch."""

    def hydrate(results: Mapping[str, Any]) -> Collection:
        return Collection([hydrate_document(doc, discriminator, registry) for doc in _row_documents(results)])

    return hydrate


# -----------------------------
# Query
# -----------------------------


class Query:
    def __init__(
        self,
        design: str,
        options: Mapping[str, Any],
        hydrate: Hydrator,
        views: Iterable[str] = (),
        *,
        store: Optional[DocumentStore] = None,
    ) -> None:
        self.design = design
        self.options = dict(options)
        self._hydrate = hydrate
        self._store = store
        self._views: dict[str, Callable[[], Awaitable[Any]]] = {}

        for name in views:
            self.add_view(name)

    def __repr__(self) -> str:
        return f"Query(design={self.design!r}, options={self.options!r}, views={self.views!r})"

    @property
    def views(self) -> list[str]:
        return list(self._views)

    def add_view(self, view_name: str) -> None:
        """
        Expose `view_name` as a coroutine attribute of this query.

        Names that are not Python identifiers (e.g. "by-location") or that
        shadow an existing attribute (e.g. "run", "options") are only
        reachable through run().
        """
        if view_name in self._views:
            return
        exposed = view_name.isidentifier() and not hasattr(self, view_name)

        async def invoke() -> Any:
            return await self.run(view_name)

        invoke.__name__ = view_name
        invoke.__qualname__ = f"{type(self).__name__}.{view_name}"

        self._views[view_name] = invoke
        if exposed:
            setattr(self, view_name, invoke)

    async def run(self, view_name: str) -> Any:
        """
        Invoke the named view once and hydrate its rows.

        Store failures propagate untouched; hydration failures raise ViewError.
        Every call is an independent round trip.
        """
        if view_name not in self._views:
            raise ValueError(f"Unknown view {view_name!r} for design {self.design!r}; known: {self.views}")

        store = self._store if self._store is not None else get_store()
        logger.debug("View %s/%s %r", self.design, view_name, self.options)
        results = await store.view(self.design, view_name, dict(self.options))
        return self._hydrate(results)
