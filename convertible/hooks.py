"""
Customization hooks for model types.

A model type may define any of the methods below to take part in its own
conversion. Inheriting from ``Convertible`` documents the protocol and gives
default bodies that ``super()`` can reach, but it is not required: plain
dataclasses and pydantic models can define the same methods directly.

JSON → model:
    key_from_json(prop)               key (or candidate keys) to read
    value_from_json(json_value, prop) filter; return ABSENT to skip the field
    type_from_json(json_value, prop)  concrete model type for abstract fields
    will_convert_from_json(json)      before any field is assigned
    did_convert_from_json(json)       after every field is assigned

Model → JSON:
    key_to_json(prop)                 key to emit
    value_to_json(model_value, prop)  filter; return ABSENT to omit the key
    will_convert_to_json()            before any field is read
    did_convert_to_json(json)         after emission; None if nothing was emitted

Example:
    >>> @dataclass
    ... class Car(Convertible):
    ...     name: str = ""
    ...     price: float = 0.0
    ...
    ...     def key_from_json(self, prop):
    ...         return "car_name" if prop.name == "name" else prop.name
    ...
    ...     def value_from_json(self, json_value, prop):
    ...         if prop.name == "price" and json_value is None:
    ...             return ABSENT
    ...         return json_value
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Callable, Optional, Sequence, Union

from convertible import config

if TYPE_CHECKING:
    from convertible.properties import Property
else:
    Property = Any


class Convertible:
    """Mixin carrying the default hook implementations."""

    def key_from_json(self, prop: Property) -> Union[str, Sequence[str]]:
        mapper = config.lookup(config.model_key_table, type(self))
        return mapper(prop) if mapper is not None else prop.name

    def value_from_json(self, json_value: Any, prop: Property) -> Any:
        mapper = config.lookup(config.model_value_table, type(self))
        return mapper(json_value, prop) if mapper is not None else json_value

    def type_from_json(self, json_value: Any, prop: Property) -> Optional[type]:
        return None

    def will_convert_from_json(self, json: dict[str, Any]) -> None:
        pass

    def did_convert_from_json(self, json: dict[str, Any]) -> None:
        pass

    def key_to_json(self, prop: Property) -> str:
        mapper = config.lookup(config.json_key_table, type(self))
        return mapper(prop) if mapper is not None else prop.name

    def value_to_json(self, model_value: Any, prop: Property) -> Any:
        mapper = config.lookup(config.json_value_table, type(self))
        return mapper(model_value, prop) if mapper is not None else model_value

    def will_convert_to_json(self) -> None:
        pass

    def did_convert_to_json(self, json: Optional[dict[str, Any]]) -> None:
        pass


@dataclass(frozen=True)
class HookSet:
    """
    The hook functions in effect for one model type.

    Each field holds an unbound function taking the model instance first.
    Resolved once per type and kept on its TypeDescriptor; the functions
    themselves run on every conversion.
    """

    key_from_json: Callable = Convertible.key_from_json
    value_from_json: Callable = Convertible.value_from_json
    type_from_json: Callable = Convertible.type_from_json
    will_convert_from_json: Callable = Convertible.will_convert_from_json
    did_convert_from_json: Callable = Convertible.did_convert_from_json
    key_to_json: Callable = Convertible.key_to_json
    value_to_json: Callable = Convertible.value_to_json
    will_convert_to_json: Callable = Convertible.will_convert_to_json
    did_convert_to_json: Callable = Convertible.did_convert_to_json

    @classmethod
    def for_type(cls, model_type: type) -> "HookSet":
        """Pick up whichever hook methods ``model_type`` defines."""
        overrides = {}
        for fld in fields(cls):
            fn = getattr(model_type, fld.name, None)
            if callable(fn):
                overrides[fld.name] = fn
        return cls(**overrides)
