"""
Value conversion engine.

Given a value taken from a JSON tree and the declared type of the field it
is headed for, produce the value to assign. The priority order is:

1. identical type: the value is used unchanged
2. model-type override: the owning model nominates a concrete model type
   (lists, maps of maps and plain maps are converted to that type)
3. nested models: a map headed for a model-typed field becomes a model,
   and containers of models are converted element by element
4. best-effort coercion between JSON scalars and the declared type

Nothing here raises for bad data. When no rule applies the source value is
passed through unchanged (a "coercion miss"), even if that leaves a
mismatched value in the field.

The reverse direction, ``json_value``, turns a field's current value into a
JSON tree node.
"""

from __future__ import annotations

import collections
import collections.abc
import enum
import functools
import logging
import math
import types
import typing
from typing import TYPE_CHECKING, Any, Optional, Union

import pydantic_core
from pydantic import ConfigDict, TypeAdapter, ValidationError
from pydantic.errors import PydanticUserError

from convertible.hooks import HookSet
from convertible.jsontree import ABSENT, is_object_of_objects
from convertible.properties import Property, is_model_type

if TYPE_CHECKING:
    from convertible.convert import Converter
else:
    Converter = Any

logger = logging.getLogger(__name__)

NoneType = type(None)

TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
FALSE_STRINGS = frozenset({"false", "no", "off", "0"})

# Declared container -> builder for the converted items
_SEQUENCE_BUILDERS: dict[Any, Any] = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.deque: collections.deque,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Set: set,
    collections.abc.MutableSet: set,
}

_MAPPING_BUILDERS: dict[Any, Any] = {
    dict: dict,
    collections.OrderedDict: collections.OrderedDict,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
}

_LAX_CONFIG = ConfigDict(arbitrary_types_allowed=True, coerce_numbers_to_str=True)


# =============================================================================
# Type Helpers
# =============================================================================


def _is_union(tp: Any) -> bool:
    return typing.get_origin(tp) in (Union, types.UnionType)


def _strip_optional(tp: Any) -> Any:
    """``Optional[X]`` -> ``X``; anything else is returned unchanged."""
    if _is_union(tp):
        args = [arg for arg in typing.get_args(tp) if arg is not NoneType]
        if len(args) == 1:
            return args[0]
    return tp


def _container(tp: Any) -> Any:
    return typing.get_origin(tp) or tp


# =============================================================================
# Pydantic Fallback
# =============================================================================


def _build_adapter(tp: Any) -> Optional[TypeAdapter]:
    failure: Exception
    for config in (_LAX_CONFIG, None):
        try:
            return TypeAdapter(tp, config=config)
        except PydanticUserError as exc:
            # Models, dataclasses and TypedDicts refuse an external config
            failure = exc
        except (TypeError, NameError) as exc:
            failure = exc
            break
    logger.debug("No validator for %r: %s", tp, failure)
    return None


@functools.lru_cache(maxsize=None)
def _cached_adapter(tp: Any) -> Optional[TypeAdapter]:
    return _build_adapter(tp)


def _adapter(tp: Any) -> Optional[TypeAdapter]:
    try:
        return _cached_adapter(tp)
    except TypeError:
        # Unhashable type expression
        return _build_adapter(tp)


def _validate(value: Any, tp: Any) -> Any:
    adapter = _adapter(tp)
    if adapter is None:
        return value
    try:
        return adapter.validate_python(value)
    except ValidationError:
        logger.debug("Coercion miss: %r is not a %r", value, tp)
        return value


# =============================================================================
# Scalar Coercion
# =============================================================================


def _to_bool(value: Any) -> Any:
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    return _validate(value, bool)


def _to_int(value: Any) -> Any:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else value
    return _validate(value, int)


def _to_float(value: Any) -> Any:
    if isinstance(value, (bool, int)):
        return float(value)
    return _validate(value, float)


def _to_str(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return _validate(value, str)


_SCALAR_RULES = {
    bool: _to_bool,
    int: _to_int,
    float: _to_float,
    str: _to_str,
}


# =============================================================================
# JSON -> Model
# =============================================================================


def _sequence_of(items: list, declared: Any) -> Any:
    builder = _SEQUENCE_BUILDERS.get(_container(_strip_optional(declared)), list)
    try:
        return builder(items)
    except TypeError:
        # e.g. unhashable models headed for a set
        return items


def _model_type_value(
    converter: Converter, value: Any, model_type: type, declared: Any
) -> Any:
    """Convert ``value`` to the model type a hook nominated."""
    if isinstance(value, list):
        return _sequence_of(converter.model_list(model_type, value), declared)

    if isinstance(value, dict):
        if is_object_of_objects(value):
            models = {key: converter.model(model_type, item) for key, item in value.items()}
            if not models:
                return value
            if _container(_strip_optional(declared)) is collections.OrderedDict:
                return collections.OrderedDict(models)
            return models
        return converter.model(model_type, value)

    return value


def coerce(converter: Converter, value: Any, tp: Any) -> Any:
    """
    Best-effort conversion of a JSON value to the declared type ``tp``.

    Returns ``value`` unchanged when no rule applies.
    """
    if tp is Any or tp is object or value is None:
        return value

    if _is_union(tp):
        args = [arg for arg in typing.get_args(tp) if arg is not NoneType]
        if len(args) == 1:
            return coerce(converter, value, args[0])
        if type(value) in args:
            return value
        if isinstance(value, dict):
            for arg in args:
                if is_model_type(arg):
                    return converter.model(arg, value)
        return _validate(value, tp)

    if isinstance(tp, type) and type(value) is tp:
        return value

    if is_model_type(tp):
        if isinstance(value, dict):
            return converter.model(tp, value)
        return value

    container = _container(tp)
    args = typing.get_args(tp)

    if container in _SEQUENCE_BUILDERS and isinstance(value, list):
        if container is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
            return _validate(value, tp)
        element_type = args[0] if args else Any
        return _sequence_of([coerce(converter, item, element_type) for item in value], tp)

    if container in _MAPPING_BUILDERS and isinstance(value, dict):
        key_type, value_type = args if len(args) == 2 else (Any, Any)
        result = {
            coerce(converter, key, key_type): coerce(converter, item, value_type)
            for key, item in value.items()
        }
        return _MAPPING_BUILDERS[container](result)

    rule = _SCALAR_RULES.get(tp)
    if rule is not None:
        return rule(value)

    return _validate(value, tp)


def model_value(
    converter: Converter,
    value: Any,
    prop: Property,
    model: Any,
    hooks: HookSet,
) -> Any:
    """Produce the value to assign to ``prop`` on ``model``."""
    declared = prop.type

    if type(value) is declared:
        return value

    # A nominated model type may be a subclass of the declared one
    model_type = hooks.type_from_json(model, value, prop)
    if model_type is not None and is_model_type(model_type):
        return _model_type_value(converter, value, model_type, declared)

    return coerce(converter, value, declared)


# =============================================================================
# Model -> JSON
# =============================================================================


def _json_key(converter: Converter, key: Any) -> Any:
    if isinstance(key, str):
        return key
    if isinstance(key, bool):
        return "true" if key else "false"
    converted = json_value(converter, key)
    if isinstance(converted, (str, int, float)) and not isinstance(converted, bool):
        return str(converted)
    return ABSENT


def json_value(converter: Converter, value: Any) -> Any:
    """
    Convert a model field's value into a JSON tree node.

    Returns ``ABSENT`` for values with no JSON representation.
    """
    if value is None:
        return None
    if isinstance(value, (bool, int, float, str)) and not isinstance(value, enum.Enum):
        return value

    if is_model_type(type(value)):
        result = converter.json_object(value)
        return ABSENT if result is None else result

    if isinstance(value, collections.abc.Mapping):
        result = {}
        for key, item in value.items():
            json_key = _json_key(converter, key)
            json_item = json_value(converter, item)
            if json_key is ABSENT or json_item is ABSENT:
                continue
            result[json_key] = json_item
        return result

    if isinstance(value, (list, tuple, set, frozenset, collections.deque)):
        items = (json_value(converter, item) for item in value)
        return [item for item in items if item is not ABSENT]

    try:
        return pydantic_core.to_jsonable_python(value)
    except pydantic_core.PydanticSerializationError:
        logger.debug("Omitting %s value with no JSON representation", type(value).__name__)
        return ABSENT
