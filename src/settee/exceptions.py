from __future__ import annotations

from typing import Any, Mapping, Optional


class SetteeError(Exception):
    pass


class DuplicateDefinitionError(SetteeError):
    """Raised when a model type name is registered a second time."""

    def __init__(self, name: str) -> None:
        super().__init__(f'Model "{name}" is already defined.')
        self.name = name


class ReadOnlyAttributeError(SetteeError, TypeError):
    """Raised on a write to a read-only attribute key (the discriminator)."""

    def __init__(self, key: str) -> None:
        super().__init__(f'Cannot assign to read only attribute "{key}"')
        self.key = key


class MissingIdError(SetteeError):
    pass


class NotConnectedError(SetteeError):
    pass


class ValidationError(SetteeError):
    def __init__(self, errors: list[Any]) -> None:
        super().__init__(f"Model failed validation with {len(errors)} error(s)")
        self.errors = errors


class UniquenessError(SetteeError):
    def __init__(self, doc_id: Optional[str]) -> None:
        super().__init__(f'ID "{doc_id}" already exists')
        self.id = doc_id


class DatabaseError(SetteeError):
    """The store answered, but without an ``ok`` flag."""

    def __init__(self, response: Mapping[str, Any]) -> None:
        super().__init__(f"Database reported failure: {dict(response)!r}")
        self.response = response


class ViewError(SetteeError):
    """
    Raised while hydrating view results.

    `context` carries whatever the failing step had at hand: the offending
    `document`, or the `query` options and raw `results` for ambiguous hits.
    """

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def document(self) -> Optional[Mapping[str, Any]]:
        return self.context.get("document")


class StoreError(SetteeError):
    """
    Failure reported by the document store.

    `status_code` follows HTTP semantics (404 missing, 409 conflict, ...).
    """

    status_code: int = 500

    def __init__(self, reason: str = "", *, status_code: Optional[int] = None) -> None:
        if status_code is not None:
            self.status_code = status_code
        super().__init__(f"[{self.status_code}] {reason}" if reason else f"[{self.status_code}]")
        self.reason = reason


class NotFoundError(StoreError):
    status_code = 404


class ConflictError(StoreError):
    status_code = 409
