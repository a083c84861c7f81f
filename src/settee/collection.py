# src/settee/collection.py
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Iterator, Sequence, overload

if TYPE_CHECKING:
    from settee.model import Model


class Collection(Sequence["Model"]):
    """Ordered, read-only result of a multi-row view query."""

    __slots__ = ("_models",)

    def __init__(self, models: Iterable[Model] = ()) -> None:
        self._models: tuple[Model, ...] = tuple(models)

    @overload
    def __getitem__(self, index: int) -> Model: ...

    @overload
    def __getitem__(self, index: slice) -> Collection: ...

    def __getitem__(self, index: int | slice) -> Model | Collection:
        if isinstance(index, slice):
            return Collection(self._models[index])
        return self._models[index]

    def __len__(self) -> int:
        return len(self._models)

    def __iter__(self) -> Iterator[Model]:
        return iter(self._models)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Collection):
            return NotImplemented
        return self._models == other._models

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Collection({list(self._models)!r})"

    @property
    def models(self) -> tuple[Model, ...]:
        return self._models

    def ids(self) -> list[Any]:
        return [m.id for m in self._models]

    def to_json(self) -> list[dict[str, Any]]:
        return [m.to_json() for m in self._models]
