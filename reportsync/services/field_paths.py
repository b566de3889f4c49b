"""Dot-path addressing over nested JSON documents.

A path such as ``assessment_results.standardized_tests.0.score`` is parsed into
:class:`Key` and :class:`Index` steps. Reads never raise: an unresolvable path
yields :data:`MISSING`. Writes are immutable and copy only the containers on
the path spine, so unmodified siblings are shared with the input document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Iterable, Sequence, Union

from ..utils.errors import InvalidPath, PathNotFound, TypeConflict
from .json_values import MISSING, JsonKind, kind_of

_INDEX_PATTERN = re.compile(r"^\d+$")

# Writes recurse once per step; deeper paths are rejected before any traversal.
MAX_PATH_DEPTH = 64


@dataclass(frozen=True, slots=True)
class Key:
    """Object member step."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class Index:
    """Array position step (non-negative)."""

    position: int

    def __str__(self) -> str:
        return str(self.position)


PathStep = Union[Key, Index]
Path = tuple[PathStep, ...]
PathLike = Union[str, Sequence[PathStep]]


def parse_path(text: str) -> Path:
    """Return the steps for a dot-separated ``text``.

    Raises :class:`InvalidPath` for empty strings, empty segments
    (``"a..b"``, ``".a"``, ``"a."``) and paths deeper than
    :data:`MAX_PATH_DEPTH` steps.
    """

    if not isinstance(text, str):
        raise InvalidPath(f"Path must be a string, got {type(text).__name__}")
    if not text:
        raise InvalidPath("Path cannot be empty")

    segments = text.split(".")
    _check_depth(len(segments), text)

    steps: list[PathStep] = []
    for position, segment in enumerate(segments):
        if not segment:
            raise InvalidPath(
                f"Path {text!r} has an empty segment at position {position}",
                extra={"path": text, "segment": position},
            )
        if _INDEX_PATTERN.match(segment):
            steps.append(Index(int(segment)))
        else:
            steps.append(Key(segment))
    return tuple(steps)


def _check_depth(depth: int, text: str) -> None:
    if depth > MAX_PATH_DEPTH:
        raise InvalidPath(
            f"Path has {depth} segments, the limit is {MAX_PATH_DEPTH}",
            extra={"path": text[:200], "depth": depth},
        )


def format_path(path: Iterable[PathStep]) -> str:
    """Return the dot-separated form of ``path``."""

    return ".".join(str(step) for step in path)


def _as_path(path: PathLike) -> Path:
    if isinstance(path, str):
        return parse_path(path)
    steps = tuple(path)
    _check_depth(len(steps), format_path(steps))
    return steps


def get_value(document: Any, path: PathLike) -> Any:
    """Return the value at ``path`` or :data:`MISSING` when it does not resolve."""

    node = document
    for step in _as_path(path):
        if isinstance(step, Key):
            if not isinstance(node, dict) or step.name not in node:
                return MISSING
            node = node[step.name]
        else:
            if not isinstance(node, (list, tuple)) or step.position >= len(node):
                return MISSING
            node = node[step.position]
    return node


def require_value(document: Any, path: PathLike) -> Any:
    """Return the value at ``path`` or raise :class:`PathNotFound`."""

    steps = _as_path(path)
    value = get_value(document, steps)
    if value is MISSING:
        raise PathNotFound(
            f"Path {format_path(steps)!r} does not resolve",
            extra={"path": format_path(steps)},
        )
    return value


def has_path(document: Any, path: PathLike) -> bool:
    return get_value(document, path) is not MISSING


def set_value(document: Any, path: PathLike, value: Any) -> Any:
    """Return a copy of ``document`` with ``value`` written at ``path``.

    Absent or ``null`` intermediates are created (object for a key step, array
    for an index step). An existing intermediate of the wrong kind raises
    :class:`TypeConflict`, as does an index beyond the end of an array; an
    index equal to the array length appends.
    """

    steps = _as_path(path)
    if not steps:
        return value
    return _set(document, steps, 0, value)


def _set(node: Any, steps: Path, depth: int, value: Any) -> Any:
    step = steps[depth]
    if node is MISSING or node is None:
        node = {} if isinstance(step, Key) else []

    kind = kind_of(node)
    is_leaf = depth == len(steps) - 1

    if isinstance(step, Key):
        if kind is not JsonKind.OBJECT:
            raise _conflict(steps, depth, kind, "an object")
        child = node.get(step.name, MISSING)
        updated = dict(node)
        updated[step.name] = value if is_leaf else _set(child, steps, depth + 1, value)
        return updated

    if kind is not JsonKind.ARRAY:
        raise _conflict(steps, depth, kind, "an array")
    length = len(node)
    if step.position > length:
        raise TypeConflict(
            f"Index {step.position} is beyond the end of the array at "
            f"{_location(steps, depth)} (length {length})",
            extra={"path": format_path(steps), "length": length},
        )
    child = node[step.position] if step.position < length else MISSING
    new_child = value if is_leaf else _set(child, steps, depth + 1, value)
    updated_list = list(node)
    if step.position == length:
        updated_list.append(new_child)
    else:
        updated_list[step.position] = new_child
    return updated_list


def _location(steps: Path, depth: int) -> str:
    return format_path(steps[:depth]) or "<root>"


def _conflict(steps: Path, depth: int, kind: JsonKind, expected: str) -> TypeConflict:
    return TypeConflict(
        f"Cannot apply step {str(steps[depth])!r} of {format_path(steps)!r}: "
        f"{_location(steps, depth)} is {kind.value}, expected {expected}",
        extra={"path": format_path(steps), "found": kind.value},
    )


def delete_value(document: Any, path: PathLike) -> Any:
    """Return a copy of ``document`` without the value at ``path``.

    Removing an array item shifts later items down. Unresolvable paths return
    ``document`` unchanged.
    """

    steps = _as_path(path)
    if not steps or not has_path(document, steps):
        return document
    return _delete(document, steps, 0)


def _delete(node: Any, steps: Path, depth: int) -> Any:
    step = steps[depth]
    is_leaf = depth == len(steps) - 1
    if isinstance(step, Key):
        updated = dict(node)
        if is_leaf:
            del updated[step.name]
        else:
            updated[step.name] = _delete(node[step.name], steps, depth + 1)
        return updated

    updated_list = list(node)
    if is_leaf:
        del updated_list[step.position]
    else:
        updated_list[step.position] = _delete(node[step.position], steps, depth + 1)
    return updated_list


__all__ = [
    "Index",
    "Key",
    "MAX_PATH_DEPTH",
    "MISSING",
    "Path",
    "PathLike",
    "PathStep",
    "delete_value",
    "format_path",
    "get_value",
    "has_path",
    "parse_path",
    "require_value",
    "set_value",
]
