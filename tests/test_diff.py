"""Diff engine tests."""

import copy
from dataclasses import dataclass, field

from pydantic import BaseModel

from app.services.diff import Shape, diff, shape_of


@dataclass
class Person:
    name: str
    age: int
    tags: list[str] = field(default_factory=list)
    _cache: dict = field(default_factory=dict)


@dataclass
class Company:
    name: str
    age: int


class Item(BaseModel):
    sku: str
    quantity: int
    attributes: dict[str, str] = {}


class TestShapeDispatch:
    """Shape classification."""

    def test_classifies_each_shape(self) -> None:
        """Map values to their diff shape.

        Returns
        -------
        None
            Asserts the closed set of shapes.
        """
        assert shape_of(Person("A", 1)) is Shape.RECORD
        assert shape_of(Item(sku="x", quantity=1)) is Shape.RECORD
        assert shape_of({"a": 1}) is Shape.MAPPING
        assert shape_of([1, 2]) is Shape.SEQUENCE
        assert shape_of((1, 2)) is Shape.SEQUENCE
        assert shape_of("text") is Shape.SCALAR
        assert shape_of(b"raw") is Shape.SCALAR
        assert shape_of(Person) is Shape.SCALAR


class TestRecordDiff:
    """Record-shaped values."""

    def test_identical_records_produce_no_changes(self) -> None:
        """Return an empty change-set for equal field values."""
        assert diff(Person("A", 30, ["x"]), Person("A", 30, ["x"])) == {}

    def test_single_field_change(self) -> None:
        """Report only the field that changed, with both whole values."""
        assert diff(Person("A", 30), Person("B", 30)) == {
            "name": {"old": "A", "new": "B"}
        }

    def test_nested_field_is_reported_whole(self) -> None:
        """Do not recurse into a changed nested value."""
        changes = diff(Person("A", 30, ["x", "y"]), Person("A", 30, ["x", "z"]))
        assert changes == {"tags": {"old": ["x", "y"], "new": ["x", "z"]}}

    def test_private_fields_are_ignored(self) -> None:
        """Skip underscore-prefixed fields."""
        before = Person("A", 30, _cache={"k": 1})
        after = Person("A", 30, _cache={"k": 2})
        assert diff(before, after) == {}

    def test_pydantic_models_are_records(self) -> None:
        """Compare declared pydantic fields."""
        before = Item(sku="x", quantity=1, attributes={"color": "red"})
        after = Item(sku="x", quantity=3, attributes={"color": "blue"})
        assert diff(before, after) == {
            "quantity": {"old": 1, "new": 3},
            "attributes": {"old": {"color": "red"}, "new": {"color": "blue"}},
        }

    def test_prefix_namespaces_paths(self) -> None:
        """Qualify emitted keys with the prefix."""
        assert diff(Person("A", 30), Person("A", 31), prefix="owner") == {
            "owner.age": {"old": 30, "new": 31}
        }


class TestMappingDiff:
    """Mapping-shaped values."""

    def test_added_key(self) -> None:
        """Report keys only in ``after`` with an empty old value."""
        assert diff({"x": 1}, {"x": 1, "y": 2}) == {"y": {"old": None, "new": 2}}

    def test_removed_and_changed_keys(self) -> None:
        """Report removed keys with an empty new value and changed keys in full."""
        changes = diff({"x": 1, "y": 2, "z": 3}, {"x": 1, "y": 5})
        assert changes == {
            "y": {"old": 2, "new": 5},
            "z": {"old": 3, "new": None},
        }

    def test_non_string_keys_and_prefix(self) -> None:
        """Stringify keys and apply the prefix."""
        assert diff({1: "a"}, {1: "b"}, prefix="lines") == {
            "lines.1": {"old": "a", "new": "b"}
        }


class TestSequenceDiff:
    """Sequence-shaped values."""

    def test_growth(self) -> None:
        """Report appended indices with an empty old value."""
        assert diff([1, 2], [1, 2, 3, 4]) == {
            "[2]": {"old": None, "new": 3},
            "[3]": {"old": None, "new": 4},
        }

    def test_shrink_and_change(self) -> None:
        """Report removed tail indices and changed positions."""
        assert diff(["a", "b", "c"], ["a", "x"]) == {
            "[1]": {"old": "b", "new": "x"},
            "[2]": {"old": "c", "new": None},
        }

    def test_prefix_is_prepended_to_index(self) -> None:
        """Attach indices directly to the prefix."""
        assert diff((1,), (2,), prefix="items") == {
            "items[0]": {"old": 1, "new": 2}
        }


class TestScalarAndMismatch:
    """Scalars and mismatched shapes."""

    def test_scalar_change(self) -> None:
        """Emit a single ``value`` entry for unequal scalars."""
        assert diff("draft", "posted") == {"value": {"old": "draft", "new": "posted"}}
        assert diff(5, 5) == {}

    def test_mismatched_types_yield_empty_change_set(self) -> None:
        """Return an empty change-set, never an error."""
        assert diff({"x": 1}, [1]) == {}
        assert diff(Person("A", 1), Company("A", 1)) == {}
        assert diff(1, 1.5) == {}
        assert diff(None, {"x": 1}) == {}

    def test_equal_but_differently_typed_values_are_changes(self) -> None:
        """Report ``True`` versus ``1`` and ``1`` versus ``1.0`` as changes."""
        assert diff({"is_active": True}, {"is_active": 1}) == {
            "is_active": {"old": True, "new": 1}
        }
        assert diff([1], [1.0]) == {"[0]": {"old": 1, "new": 1.0}}
        assert diff(Person("A", 30, [1]), Person("A", 30, [True])) == {
            "tags": {"old": [1], "new": [True]}
        }
        assert diff({"x": {"y": 0}}, {"x": {"y": False}}) == {
            "x": {"old": {"y": 0}, "new": {"y": False}}
        }
        assert diff({"x": {"y": 1}}, {"x": {"y": 1}}) == {}

    def test_inputs_are_not_mutated(self) -> None:
        """Leave both inputs untouched."""
        before = {"x": [1, 2], "y": {"z": 1}}
        after = {"x": [1, 3], "w": 4}
        before_copy = copy.deepcopy(before)
        after_copy = copy.deepcopy(after)
        diff(before, after)
        assert before == before_copy
        assert after == after_copy
