"""
Generic JSON tree for the convertible library.

The tree is the closed union pydantic calls ``JsonValue``:

- ``None``, ``bool``, ``int``, ``float``, ``str``
- ``list`` of tree values
- ``dict`` mapping ``str`` to tree values

Parsing and rendering are delegated to pydantic-core. Nothing in this module
knows about models; the orchestrator consumes and produces these values.

The ``ABSENT`` marker stands for "no usable value". It is distinct from
``None`` because JSON ``null`` is a real value that a field can hold.
"""

from __future__ import annotations

import enum
from typing import Any, Optional, Union

import pydantic_core
from pydantic import JsonValue, TypeAdapter, ValidationError

from convertible.errors import DecodeError, EncodeError


# =============================================================================
# Type Aliases
# =============================================================================

JSONObject = dict[str, JsonValue]
JSONArray = list[JsonValue]

# Inputs accepted by the decoders
JSONSource = Union[bytes, bytearray, str]

_OBJECT_ADAPTER: TypeAdapter[JSONObject] = TypeAdapter(JSONObject)
_ARRAY_ADAPTER: TypeAdapter[JSONArray] = TypeAdapter(JSONArray)


# =============================================================================
# Absent Marker
# =============================================================================


class _Absent:
    """Singleton marking a value that should be skipped."""

    _instance: Optional["_Absent"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __reduce__(self):
        return "ABSENT"


ABSENT = _Absent()


# =============================================================================
# Variant Tags
# =============================================================================


class JSONKind(enum.Enum):
    """The six variants of the generic JSON tree."""

    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


def kind_of(value: Any) -> Optional[JSONKind]:
    """
    Tag a value with its JSON variant.

    ``bool`` is checked before numbers since it subclasses ``int``.
    Returns None for values that are not part of the tree.
    """
    if value is None:
        return JSONKind.NULL
    if isinstance(value, bool):
        return JSONKind.BOOL
    if isinstance(value, (int, float)):
        return JSONKind.NUMBER
    if isinstance(value, str):
        return JSONKind.STRING
    if isinstance(value, list):
        return JSONKind.ARRAY
    if isinstance(value, dict):
        return JSONKind.OBJECT
    return None


def is_object_of_objects(value: Any) -> bool:
    """True for a map whose every value is a map. An empty map qualifies."""
    return isinstance(value, dict) and all(isinstance(v, dict) for v in value.values())


# =============================================================================
# Codec
# =============================================================================


def _decode(data: JSONSource, adapter: TypeAdapter, shape: str) -> Any:
    if isinstance(data, bytearray):
        data = bytes(data)
    if not isinstance(data, (bytes, str)):
        raise DecodeError(f"Cannot decode JSON from {type(data).__name__}")
    try:
        return adapter.validate_json(data)
    except ValidationError as exc:
        source = data if isinstance(data, str) else data.decode("utf-8", "replace")
        raise DecodeError(f"Expected a JSON {shape}: {exc.errors()[0]['msg']}", source) from exc


def decode_object(data: JSONSource) -> JSONObject:
    """
    Parse JSON text or bytes whose top level is an object.

    Raises:
        DecodeError: If the input is not valid JSON or not an object.
    """
    return _decode(data, _OBJECT_ADAPTER, "object")


def decode_array(data: JSONSource) -> JSONArray:
    """
    Parse JSON text or bytes whose top level is an array.

    Raises:
        DecodeError: If the input is not valid JSON or not an array.
    """
    return _decode(data, _ARRAY_ADAPTER, "array")


def encode(value: Any, pretty: bool = False) -> str:
    """
    Render a JSON tree as text.

    Args:
        value: A generic JSON tree.
        pretty: Indent with two spaces when True.

    Raises:
        EncodeError: If the value holds something JSON cannot represent.
    """
    try:
        return pydantic_core.to_json(value, indent=2 if pretty else None).decode("utf-8")
    except pydantic_core.PydanticSerializationError as exc:
        raise EncodeError(str(exc)) from exc
