# src/settee/validation.py
from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Mapping, Protocol

import pydantic
from pydantic import TypeAdapter


@dataclass(frozen=True, slots=True)
class ValidationReport:
    errors: list[Any] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class Validator(Protocol):
    def validate(self, attributes: Mapping[str, Any], schema: Any) -> ValidationReport: ...


@lru_cache(maxsize=256)
def _adapter(schema: Any) -> TypeAdapter[Any]:
    return TypeAdapter(schema)


class PydanticValidator:
    """
    Validates attribute mappings with pydantic.

    `schema` is anything TypeAdapter accepts: a BaseModel subclass, a
    `typing_extensions.TypedDict` (pydantic rejects `typing.TypedDict` before
    Python 3.12), `dict[str, int]`, an Annotated type, ... Errors are pydantic's
    error dicts (`type`, `loc`, `msg`, `input`, ...).
    """

    def validate(self, attributes: Mapping[str, Any], schema: Any) -> ValidationReport:
        try:
            adapter = _adapter(schema)
        except TypeError:
            # unhashable schema objects cannot be cached
            adapter = TypeAdapter(schema)

        try:
            adapter.validate_python(dict(attributes))
        except pydantic.ValidationError as exc:
            return ValidationReport(errors=list(exc.errors(include_url=False)))
        return ValidationReport()
