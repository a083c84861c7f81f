try:
    from ._version import version as __version__  # populated by setuptools-scm
except ModuleNotFoundError:
    __version__ = "0.0.0"

from .collection import Collection
from .connection import Connection, connect, connection, get_store
from .exceptions import (
    ConflictError,
    DatabaseError,
    DuplicateDefinitionError,
    MissingIdError,
    NotConnectedError,
    NotFoundError,
    ReadOnlyAttributeError,
    SetteeError,
    StoreError,
    UniquenessError,
    ValidationError,
    ViewError,
)
from .model import Model, define
from .query import Query
from .registry import TypeRegistry, models

__all__ = [
    "__version__",
    # models
    "Model",
    "define",
    "models",
    "TypeRegistry",
    # querying
    "Collection",
    "Query",
    # connection
    "Connection",
    "connect",
    "connection",
    "get_store",
    # errors
    "ConflictError",
    "DatabaseError",
    "DuplicateDefinitionError",
    "MissingIdError",
    "NotConnectedError",
    "NotFoundError",
    "ReadOnlyAttributeError",
    "SetteeError",
    "StoreError",
    "UniquenessError",
    "ValidationError",
    "ViewError",
]
