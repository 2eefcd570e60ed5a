"""
Field descriptors and model-type discovery.

A ``Property`` describes one settable field of a model type: its name, its
declared type, and a getter/setter pair built once when the type is first
introspected. Discovery uses Python's own reflection:

- dataclasses: ``dataclasses.fields`` in declaration order
- pydantic models: ``model_fields`` in declaration order
- ``Convertible`` subclasses: annotations across the MRO, base classes first,
  or the attributes of a probe instance when the class declares none

Frozen dataclasses and frozen pydantic models expose no mutable fields, so
they discover as empty and the engine treats them as having nothing to
convert. Names starting with an underscore and ``ClassVar`` annotations are
never fields.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
import operator
import sys
import types
import typing
from dataclasses import dataclass
from typing import Any, Callable, ClassVar

from pydantic import BaseModel

from convertible.hooks import Convertible
from convertible.jsontree import ABSENT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Property:
    """
    Immutable description of one model field.

    Attributes:
        name: Attribute name on the model.
        type: Declared type, resolved from annotations (``Any`` if unknown).
        owner: The model type the property was discovered on.
        getter: Reads the field from an instance.
        setter: Writes the field on an instance.
    """

    name: str
    type: Any
    owner: type
    getter: Callable[[Any], Any] = dataclasses.field(repr=False, compare=False)
    setter: Callable[[Any, Any], None] = dataclasses.field(repr=False, compare=False)

    def get(self, instance: Any) -> Any:
        return self.getter(instance)

    def set(self, instance: Any, value: Any) -> None:
        self.setter(instance, value)


def _make_property(owner: type, name: str, tp: Any) -> Property:
    def setter(instance, value):
        setattr(instance, name, value)

    return Property(
        name=name,
        type=tp,
        owner=owner,
        getter=operator.attrgetter(name),
        setter=setter,
    )


def _make_pydantic_property(owner: type, name: str, tp: Any) -> Property:
    """
    Field access that bypasses pydantic's ``__setattr__``.

    Writes never run assignment validation, so a value pydantic would reject
    still lands in the field. Required fields left unset by
    ``model_construct`` read as ABSENT.
    """

    def getter(instance):
        return instance.__dict__.get(name, ABSENT)

    def setter(instance, value):
        instance.__dict__[name] = value
        instance.__pydantic_fields_set__.add(name)

    return Property(name=name, type=tp, owner=owner, getter=getter, setter=setter)


def _type_hints(cls: type) -> dict[str, Any]:
    """
    Resolve annotations across the MRO, base classes first.

    When the class as a whole cannot be resolved (an undefined forward
    reference, say), each annotation is resolved on its own and the ones that
    still fail are kept as written.
    """
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError) as exc:
        logger.debug("Could not resolve type hints for %s: %s", cls.__qualname__, exc)

    hints: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        module = sys.modules.get(klass.__module__)
        globalns = vars(module) if module is not None else {}
        for name, annotation in inspect.get_annotations(klass).items():
            holder = types.SimpleNamespace(__annotations__={name: annotation})
            try:
                hints[name] = typing.get_type_hints(
                    holder, globalns=globalns, localns=dict(vars(klass))
                )[name]
            except (NameError, TypeError):
                hints[name] = annotation
    return hints


def _resolved(tp: Any) -> Any:
    # Unresolved forward references carry no usable type information
    if isinstance(tp, (str, typing.ForwardRef)):
        return Any
    return tp


def _is_public(name: str) -> bool:
    return not name.startswith("_")


# =============================================================================
# Model Type Detection
# =============================================================================


def _is_frozen(cls: type) -> bool:
    if dataclasses.is_dataclass(cls):
        return cls.__dataclass_params__.frozen
    if issubclass(cls, BaseModel):
        return bool(cls.model_config.get("frozen"))
    return False


def is_model_type(tp: Any) -> bool:
    """
    Check whether a type is handled as a model by the engine.

    Model types are dataclasses, pydantic models and ``Convertible``
    subclasses. Instances of model types are converted field by field;
    everything else is a value.
    """
    if not isinstance(tp, type) or typing.get_origin(tp) is not None:
        return False
    if tp is BaseModel or tp is Convertible:
        return False
    return (
        dataclasses.is_dataclass(tp)
        or issubclass(tp, BaseModel)
        or issubclass(tp, Convertible)
    )


# =============================================================================
# Discovery
# =============================================================================


def _dataclass_properties(cls: type) -> list[Property]:
    hints = _type_hints(cls)
    return [
        _make_property(cls, fld.name, _resolved(hints.get(fld.name, fld.type)))
        for fld in dataclasses.fields(cls)
        if _is_public(fld.name)
    ]


def _pydantic_properties(cls: type[BaseModel]) -> list[Property]:
    return [
        _make_pydantic_property(cls, name, _resolved(info.annotation))
        for name, info in cls.model_fields.items()
        if _is_public(name)
    ]


def _annotated_properties(cls: type) -> list[Property]:
    hints = _type_hints(cls)
    properties = []
    for name, tp in hints.items():
        if not _is_public(name) or typing.get_origin(tp) is ClassVar or tp is ClassVar:
            continue
        # Methods and properties are never fields, even if annotated
        attr = getattr(cls, name, None)
        if inspect.isroutine(attr) or isinstance(attr, property):
            continue
        properties.append(_make_property(cls, name, _resolved(tp)))
    return properties


def _probed_properties(cls: type) -> list[Property]:
    """Use a freshly constructed instance's attributes as the field list."""
    try:
        probe = cls()
    except TypeError as exc:
        logger.debug("Cannot probe %s without arguments: %s", cls.__qualname__, exc)
        return []
    state = getattr(probe, "__dict__", None) or {}
    return [
        _make_property(cls, name, type(value) if value is not None else Any)
        for name, value in state.items()
        if _is_public(name)
    ]


def discover_properties(cls: type) -> tuple[Property, ...]:
    """
    Enumerate the public mutable fields of a model type, in declaration order.

    Returns an empty tuple for types that are not models or expose no
    mutable fields; callers treat that as "nothing to convert".
    """
    if not is_model_type(cls) or _is_frozen(cls):
        return ()

    if dataclasses.is_dataclass(cls):
        properties = _dataclass_properties(cls)
    elif issubclass(cls, BaseModel):
        properties = _pydantic_properties(cls)
    else:
        properties = _annotated_properties(cls) or _probed_properties(cls)

    return tuple(properties)
