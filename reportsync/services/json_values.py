"""Closed classification of JSON values used by the merge engine."""

from __future__ import annotations

from enum import Enum
from typing import Any


class JsonKind(str, Enum):
    """The six shapes a decoded JSON value can take."""

    NULL = "null"
    BOOL = "boolean"
    NUMBER = "number"
    STRING = "string"
    ARRAY = "array"
    OBJECT = "object"


class _Missing:
    """Sentinel for a path that does not resolve."""

    _instance: "_Missing | None" = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


def kind_of(value: Any) -> JsonKind:
    """Return the :class:`JsonKind` of ``value``.

    ``bool`` is checked before ``int`` because it is a subclass of it. Tuples
    are treated as arrays so callers may pass immutable sequences.
    """

    if value is None:
        return JsonKind.NULL
    if isinstance(value, bool):
        return JsonKind.BOOL
    if isinstance(value, (int, float)):
        return JsonKind.NUMBER
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, (list, tuple)):
        return JsonKind.ARRAY
    if isinstance(value, dict):
        return JsonKind.OBJECT
    raise TypeError(f"Value of type {type(value).__name__} is not JSON")


def nesting_depth(value: Any, limit: int | None = None) -> int:
    """Return how many containers deep ``value`` nests (scalars are 0).

    Walks with an explicit stack so arbitrarily deep input cannot exhaust the
    interpreter stack. With ``limit`` the walk stops once it is exceeded.
    """

    deepest = 0
    stack: list[tuple[Any, int]] = [(value, 0)]
    while stack:
        node, depth = stack.pop()
        if isinstance(node, dict):
            children = node.values()
        elif isinstance(node, (list, tuple)):
            children = node
        else:
            continue
        depth += 1
        deepest = max(deepest, depth)
        if limit is not None and deepest > limit:
            return deepest
        stack.extend((child, depth) for child in children)
    return deepest


__all__ = ["JsonKind", "MISSING", "kind_of", "nesting_depth"]
