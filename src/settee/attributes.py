# src/settee/attributes.py
from __future__ import annotations

from typing import Any, Iterable, Iterator, MutableMapping

from settee.exceptions import ReadOnlyAttributeError


class AttributeStore(MutableMapping[str, Any]):
    """
    Field mapping of a single model instance.

    Keys listed in `read_only` can never be assigned; the model passes its
    discriminator field here so that the type tag stays under the control of
    the persistence layer. All other keys are freely settable and removable.
    """

    __slots__ = ("_data", "_read_only")

    def __init__(self, read_only: Iterable[str] = ()) -> None:
        self._data: dict[str, Any] = {}
        self._read_only = frozenset(read_only)

    @property
    def read_only(self) -> frozenset[str]:
        return self._read_only

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key in self._read_only:
            raise ReadOnlyAttributeError(key)
        self._data[key] = value

    def __delitem__(self, key: str) -> None:
        del self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __eq__(self, other: object) -> bool:
        if isinstance(other, AttributeStore):
            return self._data == other._data
        if isinstance(other, dict):
            return self._data == other
        return NotImplemented

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"

    def clear(self) -> None:
        self._data.clear()

    def snapshot(self) -> dict[str, Any]:
        return dict(self._data)
