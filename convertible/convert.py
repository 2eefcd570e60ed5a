"""
Conversion orchestrator.

The ``Converter`` walks a model instance's cached properties in declaration
order, invoking the type's hooks around and inside the walk and handing each
value to the value conversion engine (``convertible.values``).

A Converter is bound to one DescriptorCache. The module-level API uses the
process-wide ``default_cache``; tests and embedders can construct a
Converter over an isolated cache.

A single model instance must not be handed to two concurrent conversions.
Different instances can be converted from different threads freely.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Optional, TypeVar

from convertible.jsontree import ABSENT, JSONArray, JSONObject
from convertible.metadata import DescriptorCache, default_cache
from convertible.values import json_value, model_value

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _lookup(json: Mapping[str, Any], keys: Any) -> Any:
    """Value of the first candidate key present in ``json``, else ABSENT."""
    if isinstance(keys, str):
        return json.get(keys, ABSENT)
    for key in keys:
        if key in json:
            return json[key]
    return ABSENT


class Converter:
    """
    Converts between generic JSON trees and model instances.

    Attributes:
        cache: DescriptorCache holding per-type properties and hooks.

    Example:
        >>> converter = Converter()
        >>> person = converter.model(Person, {"name": "Jack", "age": "42"})
        >>> person.age
        42
        >>> converter.json_object(person)
        {'name': 'Jack', 'age': 42}
    """

    def __init__(self, cache: Optional[DescriptorCache] = None):
        self.cache = cache if cache is not None else default_cache

    # -------------------------------------------------------------------------
    # JSON -> Model
    # -------------------------------------------------------------------------

    def convert(self, model: Any, json: Optional[Mapping[str, Any]]) -> None:
        """
        Populate ``model`` in place from a JSON object.

        Keys missing from ``json`` leave their fields untouched, as does a
        value filter returning ABSENT. A None ``json`` is a no-op.
        """
        if json is None:
            return
        descriptor = self.cache.descriptor_for(type(model))
        if not descriptor.properties:
            return
        hooks = descriptor.hooks

        hooks.will_convert_from_json(model, json)

        for prop in descriptor.properties:
            keys = hooks.key_from_json(model, prop)
            value = hooks.value_from_json(model, _lookup(json, keys), prop)
            if value is ABSENT:
                continue
            prop.set(model, model_value(self, value, prop, model, hooks))

        hooks.did_convert_from_json(model, json)

    def model(self, model_type: type[T], json: Optional[Mapping[str, Any]]) -> T:
        """Create a new ``model_type`` instance and populate it from ``json``."""
        descriptor = self.cache.descriptor_for(model_type)
        instance = descriptor.create()
        self.convert(instance, json)
        return instance

    def model_list(self, model_type: type[T], json: Iterable[Any]) -> list[T]:
        """Convert every JSON object in ``json``; other entries are dropped."""
        return [self.model(model_type, item) for item in json if isinstance(item, Mapping)]

    # -------------------------------------------------------------------------
    # Model -> JSON
    # -------------------------------------------------------------------------

    def json_object(self, model: Any) -> Optional[JSONObject]:
        """
        Convert ``model`` into a JSON object.

        Keys are emitted in property declaration order. Returns None when the
        model's type has no introspectable fields; otherwise the object,
        which may be empty if every value was filtered or unconvertible.
        """
        descriptor = self.cache.descriptor_for(type(model))
        if not descriptor.properties:
            return None
        hooks = descriptor.hooks

        hooks.will_convert_to_json(model)

        json: JSONObject = {}
        for prop in descriptor.properties:
            key = hooks.key_to_json(model, prop)
            value = prop.get(model)
            # Required pydantic fields never set
            if value is ABSENT:
                continue
            value = hooks.value_to_json(model, value, prop)
            if value is ABSENT:
                continue
            value = json_value(self, value)
            if value is ABSENT:
                logger.debug("Omitting %s.%s from JSON", type(model).__qualname__, prop.name)
                continue
            json[key] = value

        hooks.did_convert_to_json(model, json or None)

        return json

    def json_array(self, models: Sequence[Any]) -> JSONArray:
        """Convert each element of ``models``; values with no JSON form are dropped."""
        items = (json_value(self, model) for model in models)
        return [item for item in items if item is not ABSENT]
