# src/settee/model.py
"""
Document models.

A model type is a Model subclass registered under its type name, either
through `define()` or by subclassing directly:

    Monster = define("Monster", defaults={"scary": False}, views=["by_location"])

    class Dragon(Model, defaults={"fire": True}, views=("by_lair",)):
        def initialize(self) -> None:
            self.set("wings", 2)

Instances are detached, in-memory documents. All persistence is a single
round trip through the connection's document store, with the document's
revision as the optimistic-concurrency token.
"""

from __future__ import annotations

import copy
import types
from typing import Any, Callable, ClassVar, Iterable, Mapping, Optional, TypeVar

from settee.attributes import AttributeStore
from settee.config import get_settings
from settee.connection import connection
from settee.exceptions import DatabaseError, MissingIdError, StoreError, UniquenessError, ValidationError
from settee.logs import getLogger
from settee.query import Query, collection_hydrator, single_hydrator
from settee.registry import TypeRegistry, models as default_registry
from settee.store.base import strip_etag

logger = getLogger(__name__)

M = TypeVar("M", bound="Model")

_MISSING: Any = object()

NOT_FOUND = 404
CONFLICT = 409


class Model:
    type_name: ClassVar[str] = ""
    discriminator_field: ClassVar[str] = "type"
    defaults: ClassVar[Mapping[str, Any]] = {}
    schema: ClassVar[Any] = None
    views: ClassVar[tuple[str, ...]] = ()
    registry: ClassVar[TypeRegistry] = default_registry

    _abstract: ClassVar[bool] = True

    def __init_subclass__(
        cls,
        *,
        type_name: Optional[str] = None,
        defaults: Optional[Mapping[str, Any]] = None,
        schema: Any = _MISSING,
        views: Optional[Iterable[str]] = None,
        registry: Optional[TypeRegistry] = None,
        abstract: bool = False,
        **kwargs: Any,
    ) -> None:
        super().__init_subclass__(**kwargs)

        cls.type_name = type_name or cls.__name__
        if "discriminator_field" not in cls.__dict__:
            cls.discriminator_field = get_settings().models.discriminator_field
        if defaults is not None:
            cls.defaults = dict(defaults)
        if schema is not _MISSING:
            cls.schema = schema
        if views is not None:
            # a mapping of view definitions contributes its names
            cls.views = tuple(views)
        if registry is not None:
            cls.registry = registry

        cls._abstract = abstract
        if not abstract:
            cls.registry.register(cls.type_name, cls)

    def __init__(self, doc_id: Any = None, attributes: Optional[Mapping[str, Any]] = None) -> None:
        if self._abstract:
            raise TypeError(f"{type(self).__name__} is abstract; define() a model type first")

        if isinstance(doc_id, Mapping):
            doc_id, attributes = None, doc_id

        merged = copy.deepcopy(dict(self.defaults))
        merged.update(attributes or {})
        if doc_id:
            merged["_id"] = doc_id

        self._attributes = AttributeStore(read_only=(self.discriminator_field,))
        if self.discriminator_field in merged:
            # raises: the type tag is owned by save()
            self._attributes[self.discriminator_field] = merged.pop(self.discriminator_field)
        self._attributes.update(merged)

        self.initialize()

    def initialize(self) -> None:
        """Hook run once per constructed instance, after attributes are populated."""

    @property
    def attributes(self) -> AttributeStore:
        return self._attributes

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._attributes.snapshot()!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model):
            return NotImplemented
        return type(self) is type(other) and self._attributes == other._attributes

    __hash__ = None  # type: ignore[assignment]

    # ------------------------------------------------------------------
    # Attributes
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        return self._attributes.get(key, default)

    def set(self, key: str | Mapping[str, Any], value: Any = _MISSING) -> None:
        """
        set(key, value) assigns one field; set(mapping) merges many, keeping
        fields the mapping does not mention.
        """
        if isinstance(key, Mapping):
            if value is not _MISSING:
                raise TypeError("set() takes either a mapping or a key and a value")
            self._attributes.update(key)
            return
        if value is _MISSING:
            raise TypeError(f"set() missing value for {key!r}")
        self._attributes[key] = value

    def has(self, key: str) -> bool:
        return key in self._attributes

    def unset(self, key: str) -> bool:
        if self.has(key):
            del self._attributes[key]
            return True
        return False

    def clear(self) -> None:
        self._attributes.clear()

    def to_json(self) -> dict[str, Any]:
        return self._attributes.snapshot()

    def clone(self: M) -> M:
        return type(self)(self.to_json())

    # ------------------------------------------------------------------
    # Identity & state
    # ------------------------------------------------------------------

    @property
    def id(self) -> Optional[str]:
        return self.get("_id")

    @property
    def rev(self) -> Optional[str]:
        return self.get("_rev")

    def is_new(self) -> bool:
        return not self.get("_id") or not self.get("_rev")

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate(self) -> Optional[list[Any]]:
        """Return the validator's error list, or None when valid or schemaless."""
        if self.schema is None:
            return None

        report = connection.validator.validate(self._attributes, self.schema)
        return report.errors if report.errors else None

    def is_valid(self) -> bool:
        return not self.validate()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def exists(self) -> Optional[str]:
        """Current revision in the store, or None if there is no such document."""
        if not self.id:
            raise MissingIdError("Model cannot exist without id")

        store = connection.require_store()
        try:
            headers = await store.head(self.id)
        except StoreError as exc:
            if exc.status_code == NOT_FOUND:
                logger.debug("%s %s does not exist", self.type_name, self.id)
                return None
            raise
        return strip_etag(headers["etag"])

    async def fetch(self) -> None:
        """Replace all attributes with the stored document."""
        if not self.id:
            raise MissingIdError("Cannot fetch model without id")

        store = connection.require_store()
        document = await store.get(self.id)
        logger.debug("Fetched %s %s at %s", self.type_name, self.id, document.get("_rev"))

        self.clear()
        self.set({k: v for k, v in document.items() if k != self.discriminator_field})

    async def save(self) -> None:
        """
        Validate, then upsert the document stamped with its type name.

        A conflict on a model that was never persisted means the id is taken
        (UniquenessError). A conflict on a persisted model is a stale revision
        and propagates as the store reported it. Whether the model is new is
        decided when the error is handled.
        """
        errors = self.validate()
        if errors:
            raise ValidationError(errors)

        document = self.to_json()
        document[self.discriminator_field] = self.type_name

        store = connection.require_store()
        try:
            response = await store.insert(document, self.id)
        except StoreError as exc:
            if exc.status_code == CONFLICT and self.is_new():
                raise UniquenessError(self.id) from exc
            raise

        if not response.get("ok"):
            raise DatabaseError(response)

        self.set({"_id": response["id"], "_rev": response["rev"]})
        logger.debug("Saved %s %s at %s", self.type_name, self.id, self.rev)

    async def destroy(self) -> None:
        store = connection.require_store()
        response = await store.destroy(self.id, self.rev)
        if not response.get("ok"):
            raise DatabaseError(response)

        self.set({"_id": response["id"], "_rev": response["rev"], "_deleted": True})
        logger.debug("Deleted %s %s at %s", self.type_name, self.id, self.rev)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @classmethod
    def get_model(cls, key: Any) -> Query:
        """
        Query for the single model under `key`.

        The row limit is one more than needed so that an ambiguous key is
        detected without a second round trip.
        """
        options = {
            "key": key,
            "include_docs": True,
            "limit": get_settings().models.single_result_limit,
        }
        return Query(
            cls.type_name,
            options,
            single_hydrator(options, cls.discriminator_field, cls.registry),
            cls.views,
        )

    @classmethod
    def get_collection(cls, key: Any = None) -> Query:
        """
        Query for every row of a view.

        `key` is accepted for call-site parity with get_model() and is not
        applied: collections scan the whole view.
        """
        options = {"include_docs": True}
        return Query(
            cls.type_name,
            options,
            collection_hydrator(cls.discriminator_field, cls.registry),
            cls.views,
        )


def define(
    name: str,
    *,
    defaults: Optional[Mapping[str, Any]] = None,
    schema: Any = None,
    initialize: Optional[Callable[[Any], None]] = None,
    views: Iterable[str] = (),
    registry: Optional[TypeRegistry] = None,
) -> type[Model]:
    """
    Create and register a model type called `name`.

    `initialize` is called with the new instance after its attributes are
    set. Raises DuplicateDefinitionError if `name` is already registered.
    """
    namespace: dict[str, Any] = {"__qualname__": name}
    if initialize is not None:
        namespace["initialize"] = initialize

    return types.new_class(
        name,
        (Model,),
        {
            "type_name": name,
            "defaults": defaults or {},
            "schema": schema,
            "views": tuple(views),
            "registry": registry,
        },
        lambda ns: ns.update(namespace),
    )
