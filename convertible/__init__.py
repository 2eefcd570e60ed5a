"""
convertible - reflection-driven conversion between JSON and Python models.

Model types are ordinary dataclasses, pydantic models, or subclasses of the
``Convertible`` mixin. Their fields are discovered once by reflection and
cached; every conversion then walks those fields, choosing per field
between:

- identical-type assignment
- a model type nominated by the model itself (for abstract fields)
- nested models and containers of models
- best-effort scalar coercion (``"42"`` -> ``42`` for an ``int`` field)

Coercion never raises: a value that cannot be coerced is assigned as-is.

Basic Usage:
    >>> from dataclasses import dataclass, field
    >>> import convertible
    >>>
    >>> @dataclass
    ... class Book:
    ...     title: str = ""
    ...     pages: int = 0
    >>>
    >>> @dataclass
    ... class Shelf:
    ...     label: str = ""
    ...     books: list[Book] = field(default_factory=list)
    >>>
    >>> shelf = convertible.model(Shelf, '{"label": "A", "books": [{"title": "Dune", "pages": "412"}]}')
    >>> shelf.books[0].pages
    412
    >>> convertible.json_string(shelf)
    '{"label":"A","books":[{"title":"Dune","pages":412}]}'

Customization:
    Define hook methods on the model (see ``convertible.hooks``):
    >>> @dataclass
    ... class Dog(convertible.Convertible):
    ...     name: str = ""
    ...
    ...     def key_from_json(self, prop):
    ...         return ["dog_name", "name"] if prop.name == "name" else prop.name

    Or register shared policies once (see ``convertible.config``):
    >>> convertible.config.register_key_mapping(
    ...     model_key=convertible.config.camel_case,
    ...     json_key=convertible.config.camel_case,
    ... )

Diagnostics:
    Input that cannot be decoded is logged on the ``convertible`` logger and
    the call does nothing. Attach a handler to observe it.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence, TypeVar, Union

from convertible import config
from convertible.convert import Converter
from convertible.errors import ConvertibleError, DecodeError, EncodeError
from convertible.hooks import Convertible, HookSet
from convertible.jsontree import (
    ABSENT,
    JSONArray,
    JSONKind,
    JSONObject,
    decode_array,
    decode_object,
    encode,
    kind_of,
)
from convertible.metadata import DescriptorCache, TypeDescriptor, default_cache
from convertible.properties import Property, discover_properties, is_model_type

logger = logging.getLogger(__name__)

T = TypeVar("T")

JSONInput = Union[bytes, bytearray, str, dict, None]

_converter = Converter(default_cache)


def _object_from(data: JSONInput) -> Optional[JSONObject]:
    if data is None or isinstance(data, dict):
        return data
    try:
        return decode_object(data)
    except DecodeError as exc:
        kind = "text" if isinstance(data, str) else "bytes"
        logger.error("Failed to decode JSON object from %s: %s", kind, exc)
        return None


def _array_from(data: Union[bytes, bytearray, str, list, None]) -> Optional[JSONArray]:
    if data is None or isinstance(data, list):
        return data
    try:
        return decode_array(data)
    except DecodeError as exc:
        kind = "text" if isinstance(data, str) else "bytes"
        logger.error("Failed to decode JSON array from %s: %s", kind, exc)
        return None


def convert(model: Any, data: JSONInput) -> None:
    """
    Populate an existing model instance from JSON.

    Args:
        model: The instance to populate; it is mutated in place.
        data: JSON text, UTF-8 bytes, an already parsed object, or None.

    Decode failures are logged and leave ``model`` untouched.
    """
    _converter.convert(model, _object_from(data))


def model(model_type: type[T], data: JSONInput) -> Optional[T]:
    """
    Create a ``model_type`` instance from JSON.

    Returns:
        The new instance, or None if ``data`` could not be decoded.

    Example:
        >>> person = convertible.model(Person, b'{"name": "Jack", "age": 42}')
    """
    json = _object_from(data)
    if json is None and data is not None:
        return None
    return _converter.model(model_type, json)


def model_list(
    model_type: type[T], data: Union[bytes, bytearray, str, list, None]
) -> Optional[list[T]]:
    """
    Create a list of ``model_type`` instances from a JSON array.

    Entries that are not JSON objects are skipped. Returns None if ``data``
    could not be decoded.
    """
    json = _array_from(data)
    if json is None:
        return None
    return _converter.model_list(model_type, json)


def json_object(model: Any) -> Optional[JSONObject]:
    """Convert a model to a JSON object; None if its type has no fields."""
    return _converter.json_object(model)


def json_array(models: Sequence[Any]) -> JSONArray:
    """Convert a sequence of models to a JSON array."""
    return _converter.json_array(models)


def json_string(value: Any, pretty: bool = False) -> Optional[str]:
    """
    Render a model, or a list of models, as JSON text.

    Args:
        value: A model instance or a list/tuple of them.
        pretty: Indent the output when True.

    Returns:
        The JSON text, or None if nothing could be produced.
    """
    if isinstance(value, (list, tuple)):
        json: Any = json_array(value)
    else:
        json = json_object(value)
    if json is None:
        logger.error("%s has no fields to render as JSON", type(value).__qualname__)
        return None
    try:
        return encode(json, pretty=pretty)
    except EncodeError as exc:
        logger.warning("Failed to render JSON text: %s", exc)
        return None


__all__ = [
    # Core API
    "convert",
    "model",
    "model_list",
    "json_object",
    "json_array",
    "json_string",
    "Converter",
    # Customization
    "Convertible",
    "HookSet",
    "config",
    "ABSENT",
    # Metadata
    "Property",
    "TypeDescriptor",
    "DescriptorCache",
    "default_cache",
    "discover_properties",
    "is_model_type",
    # JSON tree
    "JSONObject",
    "JSONArray",
    "JSONKind",
    "kind_of",
    "decode_object",
    "decode_array",
    "encode",
    # Errors
    "ConvertibleError",
    "DecodeError",
    "EncodeError",
]
