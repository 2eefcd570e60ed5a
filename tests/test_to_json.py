"""Tests for model -> JSON conversion."""

import enum
import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, Optional

import convertible
from convertible import ABSENT, Convertible


# ============================================================================
# Module-level model types
# ============================================================================


class Color(enum.Enum):
    RED = "red"
    GREEN = "green"


@dataclass
class Address:
    street: str = ""
    city: str = ""


@dataclass
class Customer:
    name: str = ""
    address: Optional[Address] = None
    previous: list[Address] = field(default_factory=list)
    by_label: dict[str, Address] = field(default_factory=dict)


@dataclass
class Rich:
    color: Color = Color.RED
    created: datetime = datetime(2024, 1, 1, 10, 0)
    ident: uuid.UUID = uuid.UUID("a9f95576-7a80-4c79-9b90-6afee4c3f9d9")
    price: Decimal = Decimal("3.50")
    opaque: Any = None
    tags: set = field(default_factory=lambda: {"only"})
    pair: tuple = (1, 2)
    queue: deque = field(default_factory=lambda: deque([3]))
    by_number: dict = field(default_factory=lambda: {1: "one"})


@dataclass
class Hidden(Convertible):
    a: int = 1
    b: str = "x"

    seen: ClassVar[list] = []

    def value_to_json(self, model_value, prop):
        return ABSENT

    def did_convert_to_json(self, json):
        Hidden.seen.append(json)


@dataclass
class Renamed(Convertible):
    first_name: str = "Jo"
    secret: str = "hunter2"

    calls: ClassVar[list] = []
    events: ClassVar[list] = []

    def key_to_json(self, prop):
        Renamed.calls.append(prop.name)
        return "firstName" if prop.name == "first_name" else prop.name

    def value_to_json(self, model_value, prop):
        if prop.name == "secret":
            return ABSENT
        return model_value

    def will_convert_to_json(self):
        Renamed.events.append("will")

    def did_convert_to_json(self, json):
        Renamed.events.append(("did", json))


@dataclass
class Empty:
    pass


@dataclass
class Holder:
    inner: Any = None


# ============================================================================
# Tests
# ============================================================================


class TestJSONObject:
    def test_nested_models(self):
        customer = Customer(
            name="Ann",
            address=Address(street="Main", city="Springfield"),
            previous=[Address(city="A")],
            by_label={"home": Address(city="H")},
        )
        assert convertible.json_object(customer) == {
            "name": "Ann",
            "address": {"street": "Main", "city": "Springfield"},
            "previous": [{"street": "", "city": "A"}],
            "by_label": {"home": {"street": "", "city": "H"}},
        }

    def test_none_is_emitted_as_null(self):
        assert convertible.json_object(Customer())["address"] is None

    def test_non_json_scalars(self):
        json = convertible.json_object(Rich())
        assert json["color"] == "red"
        assert json["created"] == "2024-01-01T10:00:00"
        assert json["ident"] == "a9f95576-7a80-4c79-9b90-6afee4c3f9d9"
        assert json["price"] == "3.50"

    def test_collections_become_lists(self):
        json = convertible.json_object(Rich())
        assert json["tags"] == ["only"]
        assert json["pair"] == [1, 2]
        assert json["queue"] == [3]

    def test_non_string_keys_are_stringified(self):
        assert convertible.json_object(Rich())["by_number"] == {"1": "one"}

    def test_unconvertible_value_is_omitted(self):
        json = convertible.json_object(Rich(opaque=object()))
        assert "opaque" not in json

    def test_unconvertible_list_items_are_dropped(self):
        json = convertible.json_object(Holder(inner=[1, object(), 2]))
        assert json == {"inner": [1, 2]}

    def test_model_without_fields_is_absent(self):
        assert convertible.json_object(Empty()) is None
        assert convertible.json_object(Holder(inner=Empty())) == {}


class TestJSONHooks:
    def test_every_field_filtered(self):
        Hidden.seen.clear()
        assert convertible.json_object(Hidden()) == {}
        assert Hidden.seen == [None]

    def test_key_mapping_and_filter(self):
        Renamed.calls.clear()
        Renamed.events.clear()
        json = convertible.json_object(Renamed())
        assert json == {"firstName": "Jo"}
        assert Renamed.calls == ["first_name", "secret"]
        assert Renamed.events == ["will", ("did", {"firstName": "Jo"})]


class TestJSONArray:
    def test_list_of_models(self):
        assert convertible.json_array([Address(city="A"), Address(city="B")]) == [
            {"street": "", "city": "A"},
            {"street": "", "city": "B"},
        ]

    def test_mixed_values(self):
        assert convertible.json_array([Address(city="A"), object(), 3]) == [
            {"street": "", "city": "A"},
            3,
        ]
