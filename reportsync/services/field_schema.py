"""Section field schemas: path declaration checks, enumeration and coercion."""

from __future__ import annotations

import re
from functools import lru_cache
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from ..resources.section_schemas import SECTION_SCHEMAS, SECTION_TYPE_ALIASES
from .field_paths import Index, Key, PathLike, PathStep, format_path, parse_path

FieldType = Literal[
    "string", "number", "boolean", "array", "object", "date", "select", "checkbox"
]

STRING_LIKE_TYPES = frozenset({"string", "date", "select"})
BOOLEAN_LIKE_TYPES = frozenset({"boolean", "checkbox"})

_TRUE_WORDS = {"true", "yes", "y"}
_FALSE_WORDS = {"false", "no", "n"}


class FieldSchema(BaseModel):
    """One node of a section's field tree.

    ``children`` lists the fields of an ``object`` node, or the fields of each
    item of an ``array`` node.
    """

    key: str
    label: str = ""
    type: FieldType = "string"
    required: bool = False
    options: list[str] | None = None
    children: list["FieldSchema"] | None = None


class SectionSchema(BaseModel):
    """Field schema for one section type."""

    key: str
    title: str
    fields: list[FieldSchema] = Field(default_factory=list)


def field_for_path(
    schema: SectionSchema | None, path: PathLike
) -> Optional[FieldSchema]:
    """Return the schema node addressed by ``path`` or ``None``.

    Index steps are consumed without matching a node: the walk continues into
    the enclosing array's item fields.
    """

    if schema is None:
        return None
    steps = parse_path(path) if isinstance(path, str) else tuple(path)
    return _walk(schema.fields, steps)


def _walk(fields: list[FieldSchema], steps: tuple[PathStep, ...]) -> Optional[FieldSchema]:
    current: FieldSchema | None = None
    level: list[FieldSchema] | None = fields
    for step in steps:
        if isinstance(step, Index):
            if current is None or current.type != "array":
                return None
            continue
        if level is None:
            return None
        current = next((field for field in level if field.key == step.name), None)
        if current is None:
            return None
        if current.type in ("object", "array"):
            level = current.children
        else:
            level = None
    return current


def is_declared(schema: SectionSchema | None, path: PathLike) -> bool:
    """Return ``True`` when ``path`` is legal for ``schema``.

    Without a schema every path is legal.
    """

    if schema is None:
        return True
    return field_for_path(schema, path) is not None


def leaf_type(schema: SectionSchema | None, path: PathLike) -> FieldType | None:
    """Return the declared type at ``path``.

    For a path ending in an index step this is the item type: ``object`` when
    the array declares item fields, otherwise unknown.
    """

    if schema is None:
        return None
    steps = parse_path(path) if isinstance(path, str) else tuple(path)
    node = _walk(schema.fields, steps)
    if node is None:
        return None
    if steps and isinstance(steps[-1], Index):
        return "object" if node.children else None
    return node.type


def get_all_field_paths(schema: SectionSchema) -> list[str]:
    """Return every leaf path declared by ``schema`` in depth-first order.

    Array fields with item children enumerate through index ``0``
    (``tests.0.score``); arrays without item fields are leaves.
    """

    paths: list[str] = []

    def collect(fields: list[FieldSchema], prefix: tuple[PathStep, ...]) -> None:
        for field in fields:
            current = prefix + (Key(field.key),)
            if field.type == "object" and field.children:
                collect(field.children, current)
            elif field.type == "array" and field.children:
                collect(field.children, current + (Index(0),))
            else:
                paths.append(format_path(current))

    collect(schema.fields, ())
    return paths


def coerce_to_type(value: Any, field_type: FieldType | None) -> Any:
    """Best-effort conversion of ``value`` to ``field_type``.

    Values that cannot be converted are returned unchanged so the merge step
    can decide whether they are acceptable.
    """

    if value is None or field_type is None:
        return value

    if field_type == "number":
        if isinstance(value, str):
            cleaned = re.sub(r"[^0-9.+-]", "", value)
            try:
                number = float(cleaned)
            except ValueError:
                return value
            return int(number) if number.is_integer() and "." not in cleaned else number
        return value

    if field_type in BOOLEAN_LIKE_TYPES:
        if isinstance(value, bool):
            return value
        if isinstance(value, (int, float)):
            return value != 0
        if isinstance(value, str):
            word = value.strip().lower()
            if word in _TRUE_WORDS:
                return True
            if word in _FALSE_WORDS:
                return False
        return value

    if field_type == "array":
        if isinstance(value, list):
            return value
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, dict):
            return value
        return [value]

    if field_type in STRING_LIKE_TYPES:
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        return value

    return value


@lru_cache(maxsize=None)
def get_section_schema(section_type: str | None) -> SectionSchema | None:
    """Return the registered schema for ``section_type`` or ``None``."""

    if not section_type:
        return None
    key = SECTION_TYPE_ALIASES.get(section_type, section_type)
    raw = SECTION_SCHEMAS.get(key)
    if raw is None:
        return None
    return SectionSchema.model_validate(raw)


def registered_section_types() -> list[str]:
    return sorted(SECTION_SCHEMAS)


__all__ = [
    "BOOLEAN_LIKE_TYPES",
    "FieldSchema",
    "FieldType",
    "STRING_LIKE_TYPES",
    "SectionSchema",
    "coerce_to_type",
    "field_for_path",
    "get_all_field_paths",
    "get_section_schema",
    "is_declared",
    "leaf_type",
    "registered_section_types",
]
