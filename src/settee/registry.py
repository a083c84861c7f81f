# src/settee/registry.py
from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping, Optional

from settee.exceptions import DuplicateDefinitionError
from settee.logs import getLogger

if TYPE_CHECKING:
    from settee.model import Model

logger = getLogger(__name__)

ModelFactory = Callable[[Mapping[str, Any]], "Model"]


class TypeRegistry:
    """
    Process-wide mapping of type name -> model factory.

    Write-once per name, read-many, no removal and no reset. Registration is
    serialized so that of two concurrent definitions of the same name the
    first one wins and the other raises DuplicateDefinitionError.
    """

    def __init__(self) -> None:
        self._factories: dict[str, ModelFactory] = {}
        self._lock = threading.Lock()

    def register(self, name: str, factory: ModelFactory) -> ModelFactory:
        with self._lock:
            if name in self._factories:
                raise DuplicateDefinitionError(name)
            self._factories[name] = factory
        logger.info("Registered model type %r", name)
        return factory

    def lookup(self, name: Optional[str]) -> Optional[ModelFactory]:
        if name is None:
            return None
        return self._factories.get(name)

    def __getitem__(self, name: str) -> ModelFactory:
        return self._factories[name]

    def __contains__(self, name: object) -> bool:
        return name in self._factories

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._factories))

    def __len__(self) -> int:
        return len(self._factories)

    def names(self) -> list[str]:
        return sorted(self._factories)


# The one registry of the process. Deliberately without a teardown: tests
# define uniquely named types instead.
models = TypeRegistry()
