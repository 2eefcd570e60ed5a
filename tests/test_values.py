"""Tests for the value conversion engine."""

import enum
import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Union

import pytest

from convertible import ABSENT, Converter, DescriptorCache, HookSet, Property
from convertible.properties import discover_properties
from convertible.values import coerce, json_value, model_value


class Color(enum.Enum):
    RED = "red"
    GREEN = "green"


@dataclass
class Address:
    city: str = ""


@dataclass
class Box:
    items: list = None


@pytest.fixture
def converter():
    return Converter(DescriptorCache())


def prop_of(model_type, name):
    return next(p for p in discover_properties(model_type) if p.name == name)


# ============================================================================
# Scalar Coercion
# ============================================================================


class TestScalarCoercion:
    @pytest.mark.parametrize(
        "value, tp, expected",
        [
            ("42", int, 42),
            (3.9, int, 3),
            (True, int, 1),
            (2, float, 2.0),
            ("3.5", float, 3.5),
            (1, bool, True),
            (0.0, bool, False),
            ("on", bool, True),
            ("no", bool, False),
            (True, str, "true"),
            (1.5, str, "1.5"),
            (7, str, "7"),
        ],
    )
    def test_rules(self, converter, value, tp, expected):
        result = coerce(converter, value, tp)
        assert result == expected
        assert type(result) is tp

    @pytest.mark.parametrize(
        "value, tp",
        [
            ("abc", int),
            ("maybe", bool),
            ("x", float),
            ([1], str),
        ],
    )
    def test_misses_pass_through(self, converter, value, tp):
        assert coerce(converter, value, tp) == value

    def test_infinite_float_to_int_passes_through(self, converter):
        assert math.isinf(coerce(converter, float("inf"), int))

    def test_pydantic_fallback_types(self, converter):
        assert coerce(converter, "2024-01-01", date) == date(2024, 1, 1)
        assert coerce(converter, "3.50", Decimal) == Decimal("3.50")
        assert coerce(converter, "green", Color) is Color.GREEN

    def test_any_and_none(self, converter):
        marker = object()
        assert coerce(converter, marker, Any) is marker
        assert coerce(converter, None, int) is None


# ============================================================================
# Unions and Containers
# ============================================================================


class TestContainers:
    def test_list_is_coerced_element_wise(self, converter):
        assert coerce(converter, ["1", 2, "x"], list[int]) == [1, 2, "x"]

    def test_homogeneous_tuple(self, converter):
        assert coerce(converter, ["1", "2"], tuple[int, ...]) == (1, 2)

    def test_fixed_tuple(self, converter):
        assert coerce(converter, [1, 2], tuple[int, str]) == (1, "2")

    def test_set(self, converter):
        assert coerce(converter, ["1", "1"], set[int]) == {1}

    def test_mapping_values(self, converter):
        assert coerce(converter, {"a": "1"}, dict[str, int]) == {"a": 1}

    def test_list_of_models(self, converter):
        assert coerce(converter, [{"city": "A"}, "raw"], list[Address]) == [
            Address(city="A"),
            "raw",
        ]

    def test_optional(self, converter):
        assert coerce(converter, "5", Optional[int]) == 5
        assert coerce(converter, None, Optional[int]) is None
        assert coerce(converter, {"city": "A"}, Optional[Address]) == Address(city="A")

    def test_union_keeps_member_type(self, converter):
        assert coerce(converter, "5", Union[int, str]) == "5"

    def test_pep604_optional(self, converter):
        assert coerce(converter, "5", int | None) == 5


# ============================================================================
# Priority Chain
# ============================================================================


class TestModelValue:
    def test_identical_type_is_reused(self, converter):
        prop = prop_of(Box, "items")
        value = [1, 2]
        assert model_value(converter, value, prop, Box(), HookSet()) is value

    def test_override_wins_over_coercion(self, converter):
        def type_from_json(model, json_value, prop):
            return Address

        hooks = HookSet(type_from_json=type_from_json)
        prop = prop_of(Box, "items")
        result = model_value(converter, [{"city": "A"}, {"city": "B"}], prop, Box(), hooks)
        assert result == [Address(city="A"), Address(city="B")]


# ============================================================================
# Model -> JSON Values
# ============================================================================


class TestJSONValue:
    def test_scalars_pass_through(self, converter):
        for value in (None, True, 1, 1.5, "s"):
            assert json_value(converter, value) == value

    def test_enum(self, converter):
        assert json_value(converter, Color.GREEN) == "green"

    def test_nested(self, converter):
        assert json_value(converter, {"a": [Address(city="A"), (1, 2)]}) == {
            "a": [{"city": "A"}, [1, 2]]
        }

    def test_unconvertible(self, converter):
        assert json_value(converter, object()) is ABSENT

    def test_property_record(self):
        prop = prop_of(Address, "city")
        assert isinstance(prop, Property)
        assert prop.type is str
        assert prop.owner is Address
