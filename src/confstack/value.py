"""
Value model for configuration trees.

A configuration value is a plain JSON-shaped Python object. The set of
node kinds is closed:

    None        -> ValueKind.NULL
    bool        -> ValueKind.BOOL
    int         -> ValueKind.INT     (signed 64-bit range)
    float       -> ValueKind.FLOAT
    str         -> ValueKind.STRING
    list        -> ValueKind.ARRAY
    dict        -> ValueKind.OBJECT  (str keys only)

Every function here is pure. clone() always returns fresh containers, so
a cloned tree never shares a list or dict with its input.
"""

from __future__ import annotations

import enum as _enum
import math as _math
import typing as _typing

import confstack.constants as constants
import confstack.errors as errors

Value: _typing.TypeAlias = _typing.Any
"""A JSON-shaped configuration tree (see module docstring)."""


class ValueKind(_enum.Enum):
    """Closed set of value node kinds."""

    NULL = "null"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_container(self) -> bool:
        return self in (ValueKind.ARRAY, ValueKind.OBJECT)


def kind_of(value: Value) -> ValueKind:
    """
    Classify a single value node.

    bool is checked before int, so True is a BOOL and never an INT.

    Raises:
        TypeError: If the node is not one of the supported kinds, or is an
            int outside the signed 64-bit range.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        if not constants.INT64_MIN <= value <= constants.INT64_MAX:
            raise TypeError(f"integer out of 64-bit range: {value}")
        return ValueKind.INT
    if isinstance(value, float):
        return ValueKind.FLOAT
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, list):
        return ValueKind.ARRAY
    if isinstance(value, dict):
        return ValueKind.OBJECT
    raise TypeError(f"unsupported configuration value type: {type(value).__name__}")


def is_object(value: Value) -> bool:
    """True for OBJECT nodes."""
    return isinstance(value, dict)


def check_value(
    value: Value,
    _path: tuple[str, ...] = (),
    _open: set[int] | None = None,
) -> None:
    """
    Validate a whole tree against the value model.

    Args:
        value: Tree to check.

    Raises:
        TypeError: Naming the dotted path of the first offending node,
            including a container that contains itself.
    """
    where = ".".join(_path) or "<root>"
    try:
        kind = kind_of(value)
    except TypeError as e:
        raise TypeError(f"{e} at {where}") from None

    if not kind.is_container:
        return

    if _open is None:
        _open = set()
    obj_id = id(value)
    if obj_id in _open:
        raise TypeError(f"circular reference at {where}")
    _open.add(obj_id)
    try:
        if kind is ValueKind.ARRAY:
            for index, item in enumerate(value):
                check_value(item, _path + (f"[{index}]",), _open)
        else:
            for key, item in value.items():
                if not isinstance(key, str):
                    raise TypeError(
                        f"object keys must be strings, got {type(key).__name__} at {where}"
                    )
                check_value(item, _path + (key,), _open)
    finally:
        _open.discard(obj_id)


def empty_object() -> dict[str, Value]:
    """Return a new empty OBJECT."""
    return {}


def clone(value: Value) -> Value:
    """
    Deep copy a value tree.

    Strings and numbers are immutable in Python and are shared; every list
    and dict in the result is new storage.

    Raises:
        CircularReferenceDetected: If a container contains itself.
    """
    return _clone(value, set())


def _clone(value: Value, open_ids: set[int]) -> Value:
    kind = kind_of(value)
    if not kind.is_container:
        return value

    obj_id = id(value)
    if obj_id in open_ids:
        raise errors.CircularReferenceDetected(context="clone")
    open_ids.add(obj_id)
    try:
        if kind is ValueKind.ARRAY:
            return [_clone(item, open_ids) for item in value]
        return {key: _clone(item, open_ids) for key, item in value.items()}
    finally:
        open_ids.discard(obj_id)


def equals(a: Value, b: Value) -> bool:
    """
    Structural equality.

    Unlike ==, kinds must match: True != 1 and 1 != 1.0 here. Objects
    compare key-wise regardless of insertion order. NaN equals NaN, so a
    tree holding one still equals its own clone.
    """
    kind = kind_of(a)
    if kind is not kind_of(b):
        return False

    if kind is ValueKind.ARRAY:
        if len(a) != len(b):
            return False
        return all(equals(x, y) for x, y in zip(a, b))

    if kind is ValueKind.OBJECT:
        if len(a) != len(b):
            return False
        for key, item in a.items():
            if key not in b or not equals(item, b[key]):
                return False
        return True

    if kind is ValueKind.FLOAT:
        return a == b or (_math.isnan(a) and _math.isnan(b))

    return bool(a == b)


def release(value: Value) -> None:
    """
    Clear every container in a tree, innermost first.

    Memory is reclaimed by the garbage collector; this drops a resolved
    tree eagerly, including nested containers a caller may still hold.
    """
    kind = kind_of(value)
    if kind is ValueKind.ARRAY:
        for item in value:
            if isinstance(item, (list, dict)):
                release(item)
        value.clear()
    elif kind is ValueKind.OBJECT:
        for item in value.values():
            if isinstance(item, (list, dict)):
                release(item)
        value.clear()


def get_path(value: Value, dotted_key: str) -> tuple[bool, Value]:
    """
    Walk a dotted key path through nested objects.

    Args:
        value: Root of the tree.
        dotted_key: Path such as "database.pool.size". Empty segments are
            ignored, so "" addresses the root.

    Returns:
        (found, node). found is False when a segment is missing or an
        intermediate node is not an OBJECT.
    """
    current = value
    for segment in (s for s in dotted_key.split(".") if s):
        if not isinstance(current, dict) or segment not in current:
            return False, None
        current = current[segment]
    return True, current
