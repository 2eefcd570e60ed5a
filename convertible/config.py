"""
Global conversion configuration.

Model types can customise key naming and value filtering by defining hook
methods (see ``convertible.hooks``). When many types share the same policy,
for example "all JSON keys are camelCase", registering it here once is
simpler than repeating the hook on every class.

Registrations are keyed by model type and looked up along the MRO, so a
mapping registered for a base class also covers its subclasses. A mapping
registered without types is the global fallback.

Example:
    >>> from convertible import config
    >>> config.register_key_mapping(model_key=config.camel_case,
    ...                             json_key=config.camel_case)
    >>> config.register_value_mapping(
    ...     json_value=lambda value, prop: round(value, 2) if isinstance(value, float) else value,
    ...     types=(Invoice,),
    ... )
"""

from __future__ import annotations

import re
import threading
from typing import TYPE_CHECKING, Any, Callable, Iterable, Optional, Sequence, Union

if TYPE_CHECKING:
    from convertible.properties import Property
else:
    Property = Any

KeyMapper = Callable[[Property], Union[str, Sequence[str]]]
ValueMapper = Callable[[Any, Property], Any]

# Registry key for the global fallback. object ends every MRO, so lookups
# reach it after all more specific registrations.
_GLOBAL = object

model_key_table: dict[type, KeyMapper] = {}
json_key_table: dict[type, KeyMapper] = {}
model_value_table: dict[type, ValueMapper] = {}
json_value_table: dict[type, ValueMapper] = {}

_lock = threading.Lock()


def _register(table: dict, fn: Optional[Callable], types: Iterable[type]) -> None:
    if fn is None:
        return
    targets = tuple(types) or (_GLOBAL,)
    with _lock:
        for t in targets:
            table[t] = fn


def register_key_mapping(
    model_key: Optional[KeyMapper] = None,
    json_key: Optional[KeyMapper] = None,
    types: Iterable[type] = (),
) -> None:
    """
    Register key mappers for JSON→model and model→JSON conversion.

    Args:
        model_key: ``(prop) -> key`` used to look up a property's value in
            the source JSON. May return a sequence of candidate keys.
        json_key: ``(prop) -> key`` used when emitting a property.
        types: Model types the mappers apply to. Empty means global.
    """
    types = tuple(types)
    _register(model_key_table, model_key, types)
    _register(json_key_table, json_key, types)


def register_value_mapping(
    model_value: Optional[ValueMapper] = None,
    json_value: Optional[ValueMapper] = None,
    types: Iterable[type] = (),
) -> None:
    """
    Register value filters for JSON→model and model→JSON conversion.

    A filter receives ``(value, prop)`` and returns the value to use, or
    ``convertible.ABSENT`` to skip the property.
    """
    types = tuple(types)
    _register(model_value_table, model_value, types)
    _register(json_value_table, json_value, types)


def reset() -> None:
    """Remove every registration."""
    with _lock:
        for table in (model_key_table, json_key_table, model_value_table, json_value_table):
            table.clear()


def lookup(table: dict[type, Callable], cls: type) -> Optional[Callable]:
    """Find the mapper for ``cls``, walking its MRO, then the global fallback."""
    if not table:
        return None
    for klass in cls.__mro__:
        fn = table.get(klass)
        if fn is not None:
            return fn
    return None


# =============================================================================
# Key Mapping Helpers
# =============================================================================

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def underline_to_camel(name: str) -> str:
    """Convert ``snake_case`` to ``camelCase``; leading underscores are kept."""
    stripped = name.lstrip("_")
    prefix = name[: len(name) - len(stripped)]
    components = stripped.split("_")
    return prefix + components[0] + "".join(x[:1].upper() + x[1:] for x in components[1:] if x)


def camel_to_underline(name: str) -> str:
    """Convert ``camelCase`` (or ``PascalCase``) to ``snake_case``."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def camel_case(prop: Property) -> str:
    return underline_to_camel(prop.name)


def snake_case(prop: Property) -> str:
    return camel_to_underline(prop.name)
