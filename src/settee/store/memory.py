# src/settee/store/memory.py
from __future__ import annotations

import copy
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Mapping, Optional

from settee.exceptions import ConflictError, NotFoundError
from settee.logs import getLogger

logger = getLogger(__name__)

MapFunction = Callable[[Mapping[str, Any]], Optional[Iterable[tuple[Any, Any]]]]


@dataclass(slots=True)
class InMemoryRevision:
    rev: str
    body: dict[str, Any] = field(default_factory=dict)
    deleted: bool = False


def _next_rev(previous: Optional[str]) -> str:
    generation = int(previous.split("-", 1)[0]) + 1 if previous else 1
    return f"{generation}-{uuid.uuid4().hex}"


def collation_key(value: Any) -> tuple[Any, ...]:
    """
    Sort key approximating view collation:
    null < false < true < numbers < strings < arrays < objects.
    """
    if value is None:
        return (0,)
    if isinstance(value, bool):
        return (1, value)
    if isinstance(value, (int, float)):
        return (2, value)
    if isinstance(value, str):
        return (3, value)
    if isinstance(value, (list, tuple)):
        return (4, tuple(collation_key(v) for v in value))
    if isinstance(value, Mapping):
        return (5, tuple((str(k), collation_key(v)) for k, v in value.items()))
    return (6, repr(value))


class InMemoryDocumentStore:
    """
    Process-local document store with revision semantics.

    - every write bumps the document's revision ("<generation>-<hex>")
    - updates must name the current revision, creates must not collide
    - deletes leave a tombstone; a deleted id can be created again
    - views are Python map functions: map(doc) -> iterable of (key, value)
    """

    def __init__(self) -> None:
        self.documents: dict[str, InMemoryRevision] = {}
        self.views: dict[tuple[str, str], MapFunction] = {}

    def add_view(self, design: str, view_name: str, map_fn: MapFunction) -> None:
        self.views[(design, view_name)] = map_fn

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def _live(self, doc_id: Optional[str]) -> InMemoryRevision:
        entry = self.documents.get(doc_id) if doc_id else None
        if entry is None:
            raise NotFoundError("missing")
        if entry.deleted:
            raise NotFoundError("deleted")
        return entry

    @staticmethod
    def _materialize(doc_id: str, entry: InMemoryRevision) -> dict[str, Any]:
        doc = copy.deepcopy(entry.body)
        doc["_id"] = doc_id
        doc["_rev"] = entry.rev
        return doc

    async def head(self, doc_id: str) -> dict[str, str]:
        entry = self._live(doc_id)
        return {"etag": f'"{entry.rev}"'}

    async def get(self, doc_id: str) -> dict[str, Any]:
        return self._materialize(doc_id, self._live(doc_id))

    async def insert(self, document: Mapping[str, Any], doc_id: Optional[str] = None) -> dict[str, Any]:
        body = copy.deepcopy(dict(document))
        doc_id = doc_id or body.get("_id") or uuid.uuid4().hex
        given_rev = body.pop("_rev", None)
        deleted = bool(body.pop("_deleted", False))
        body.pop("_id", None)

        current = self.documents.get(doc_id)
        if current is None:
            if given_rev is not None:
                raise ConflictError("Document update conflict.")
        elif current.deleted:
            if given_rev is not None and given_rev != current.rev:
                raise ConflictError("Document update conflict.")
        elif given_rev != current.rev:
            raise ConflictError("Document update conflict.")

        rev = _next_rev(current.rev if current else None)
        self.documents[doc_id] = InMemoryRevision(rev=rev, body={} if deleted else body, deleted=deleted)
        logger.debug("Stored %s at %s", doc_id, rev)
        return {"ok": True, "id": doc_id, "rev": rev}

    async def destroy(self, doc_id: Optional[str], rev: Optional[str]) -> dict[str, Any]:
        current = self._live(doc_id)
        if rev != current.rev:
            raise ConflictError("Document update conflict.")

        assert doc_id is not None
        new_rev = _next_rev(current.rev)
        self.documents[doc_id] = InMemoryRevision(rev=new_rev, deleted=True)
        logger.debug("Deleted %s at %s", doc_id, new_rev)
        return {"ok": True, "id": doc_id, "rev": new_rev}

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def _index(self, map_fn: MapFunction) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = []
        for doc_id, entry in self.documents.items():
            if entry.deleted:
                continue
            doc = self._materialize(doc_id, entry)
            for key, value in map_fn(doc) or ():
                rows.append({"id": doc_id, "key": key, "value": value})
        rows.sort(key=lambda r: (collation_key(r["key"]), r["id"]))
        return rows

    async def view(self, design: str, view_name: str, options: Mapping[str, Any]) -> dict[str, Any]:
        map_fn = self.views.get((design, view_name))
        if map_fn is None:
            raise NotFoundError(f"missing_named_view {design}/{view_name}")

        index = self._index(map_fn)
        if options.get("descending"):
            index.reverse()

        positions = list(range(len(index)))
        if "key" in options:
            wanted = collation_key(options["key"])
            positions = [i for i in positions if collation_key(index[i]["key"]) == wanted]

        selected = positions[int(options.get("skip", 0)):]
        limit = options.get("limit")
        if limit is not None:
            selected = selected[: int(limit)]

        rows = []
        for i in selected:
            row = dict(index[i])
            if options.get("include_docs"):
                row["doc"] = self._materialize(row["id"], self.documents[row["id"]])
            rows.append(row)

        return {
            "total_rows": len(index),
            "offset": selected[0] if selected else len(index),
            "rows": rows,
        }
