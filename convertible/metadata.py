"""
Type descriptors and the descriptor cache.

Introspecting a model type is done once; the resulting ``TypeDescriptor``
(ordered properties plus resolved hooks) is kept for the lifetime of the
cache. Types are assumed to be defined ahead of time, so nothing is ever
evicted and a type's field set must not change after first use.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel

from convertible.hooks import HookSet
from convertible.properties import Property, discover_properties

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TypeDescriptor:
    """Cached conversion metadata for one model type."""

    type: type
    properties: tuple[Property, ...]
    hooks: HookSet

    def __bool__(self) -> bool:
        return bool(self.properties)

    def create(self) -> Any:
        """Build a zero-initialised instance of the model type."""
        if issubclass(self.type, BaseModel):
            return self.type.model_construct()
        return self.type()


class DescriptorCache:
    """
    Memoizes TypeDescriptors per model type.

    Reads of an already-discovered type are a plain dict lookup and never
    take the lock. The first caller for a type discovers it under the lock;
    concurrent callers for the same type wait and then see that result, so
    discovery runs at most once per type.

    Attributes:
        discover: Function enumerating a type's properties. Injectable so
            tests can observe discovery.

    Example:
        >>> cache = DescriptorCache()
        >>> descriptor = cache.descriptor_for(Person)
        >>> [prop.name for prop in descriptor.properties]
        ['name', 'age']
    """

    def __init__(
        self,
        discover: Callable[[type], tuple[Property, ...]] = discover_properties,
    ):
        self.discover = discover
        self._descriptors: dict[type, TypeDescriptor] = {}
        self._lock = threading.RLock()

    def descriptor_for(self, model_type: type) -> TypeDescriptor:
        descriptor = self._descriptors.get(model_type)
        if descriptor is not None:
            return descriptor

        with self._lock:
            # Another thread may have finished discovery while we waited
            descriptor = self._descriptors.get(model_type)
            if descriptor is None:
                descriptor = TypeDescriptor(
                    type=model_type,
                    properties=tuple(self.discover(model_type)),
                    hooks=HookSet.for_type(model_type),
                )
                logger.debug(
                    "Discovered %d properties for %s",
                    len(descriptor.properties),
                    model_type.__qualname__,
                )
                self._descriptors[model_type] = descriptor
        return descriptor

    def clear(self) -> None:
        with self._lock:
            self._descriptors.clear()

    def __contains__(self, model_type: type) -> bool:
        return model_type in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)


# Process-wide cache used by the module-level API
default_cache = DescriptorCache()
