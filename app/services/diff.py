"""Shallow structural diff between two snapshots of an entity.

The engine classifies the top-level value into one of four shapes and
compares one level deep. A changed nested value is reported whole under its
field, key or index path; it is never diffed further. ``prefix`` only
namespaces the emitted paths.
"""

from __future__ import annotations

import dataclasses
import enum
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

ChangeSet = dict[str, dict[str, Any]]


class Shape(enum.Enum):
    """Closed set of value shapes the engine knows how to compare."""

    RECORD = "record"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    SCALAR = "scalar"


def shape_of(value: Any) -> Shape:
    """Classify a value for diff dispatch.

    Parameters
    ----------
    value : Any
        Value to classify.

    Returns
    -------
    Shape
        ``RECORD`` for dataclass instances and pydantic models, ``MAPPING``
        for mappings, ``SEQUENCE`` for lists and tuples, otherwise
        ``SCALAR``. Strings and bytes are scalars.
    """
    if isinstance(value, BaseModel):
        return Shape.RECORD
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return Shape.RECORD
    if isinstance(value, Mapping):
        return Shape.MAPPING
    if isinstance(value, (list, tuple)):
        return Shape.SEQUENCE
    return Shape.SCALAR


def diff(before: Any, after: Any, *, prefix: str = "") -> ChangeSet:
    """Compute the change-set between two values.

    Parameters
    ----------
    before : Any
        State prior to the operation.
    after : Any
        State after the operation.
    prefix : str, default=""
        Optional path prefix for emitted keys.

    Returns
    -------
    ChangeSet
        Mapping of path to ``{"old": ..., "new": ...}``. Empty when nothing
        changed, and also empty when the two values are of different types.
    """
    changes: ChangeSet = {}
    if type(before) is not type(after):
        return changes

    shape = shape_of(before)
    if shape is Shape.RECORD:
        _compare_records(before, after, changes, prefix)
    elif shape is Shape.MAPPING:
        _compare_mappings(before, after, changes, prefix)
    elif shape is Shape.SEQUENCE:
        _compare_sequences(before, after, changes, prefix)
    elif not _deep_equal(before, after):
        changes["value"] = _change(before, after)
    return changes


def _change(old: Any, new: Any) -> dict[str, Any]:
    return {"old": old, "new": new}


def _join(prefix: str, name: str) -> str:
    return f"{prefix}.{name}" if prefix else name


def _field_names(record: Any) -> list[str]:
    if isinstance(record, BaseModel):
        return list(type(record).model_fields)
    return [field.name for field in dataclasses.fields(record)]


def _exposed_fields(record: Any) -> list[str]:
    """Return the public field names of a record-shaped value, in declaration order."""
    return [name for name in _field_names(record) if not name.startswith("_")]


def _deep_equal(left: Any, right: Any) -> bool:
    """Compare two values structurally, treating differing types as unequal.

    ``True`` and ``1``, or ``1`` and ``1.0``, are different values here.
    """
    if type(left) is not type(right):
        return False
    shape = shape_of(left)
    if shape is Shape.RECORD:
        return all(
            _deep_equal(getattr(left, name), getattr(right, name))
            for name in _field_names(left)
        )
    if shape is Shape.MAPPING:
        return left.keys() == right.keys() and all(
            _deep_equal(value, right[key]) for key, value in left.items()
        )
    if shape is Shape.SEQUENCE:
        return len(left) == len(right) and all(
            _deep_equal(old, new) for old, new in zip(left, right)
        )
    return left == right


def _compare_records(
    before: Any, after: Any, changes: ChangeSet, prefix: str
) -> None:
    for name in _exposed_fields(before):
        old_value = getattr(before, name)
        new_value = getattr(after, name)
        if not _deep_equal(old_value, new_value):
            changes[_join(prefix, name)] = _change(old_value, new_value)


def _compare_mappings(
    before: Mapping[Any, Any],
    after: Mapping[Any, Any],
    changes: ChangeSet,
    prefix: str,
) -> None:
    for key, old_value in before.items():
        path = _join(prefix, str(key))
        if key not in after:
            changes[path] = _change(old_value, None)
        elif not _deep_equal(old_value, after[key]):
            changes[path] = _change(old_value, after[key])

    for key, new_value in after.items():
        if key not in before:
            changes[_join(prefix, str(key))] = _change(None, new_value)


def _compare_sequences(
    before: list[Any] | tuple[Any, ...],
    after: list[Any] | tuple[Any, ...],
    changes: ChangeSet,
    prefix: str,
) -> None:
    old_len = len(before)
    new_len = len(after)
    for index in range(max(old_len, new_len)):
        path = f"{prefix}[{index}]"
        if index >= old_len:
            changes[path] = _change(None, after[index])
        elif index >= new_len:
            changes[path] = _change(before[index], None)
        elif not _deep_equal(before[index], after[index]):
            changes[path] = _change(before[index], after[index])
