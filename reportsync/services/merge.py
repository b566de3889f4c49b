"""Field-level merge strategies applied to section documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping

from ..config import AppendSeparatorPolicy, Settings
from ..utils.errors import MergeTypeError, ReportSyncError
from .field_paths import format_path, get_value, set_value
from .field_schema import STRING_LIKE_TYPES, FieldType
from .json_values import MISSING, JsonKind, kind_of
from .proposals import BatchError, MergeStrategy, UpdateProposal

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MergeOptions:
    """Tunable behaviour for string appends."""

    separator_policy: AppendSeparatorPolicy = "between_nonempty"
    separator: str = " "

    @classmethod
    def from_settings(cls, settings: Settings) -> "MergeOptions":
        return cls(
            separator_policy=settings.append_separator_policy,
            separator=settings.append_separator,
        )


@dataclass(slots=True)
class ChangeLogEntry:
    """Audit record for one applied update."""

    section_id: str
    field_path: str
    strategy: MergeStrategy
    previous_value: Any
    new_value: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "section_id": self.section_id,
            "field_path": self.field_path,
            "strategy": self.strategy,
            "previous_value": self.previous_value,
            "new_value": self.new_value,
        }


@dataclass(slots=True)
class MergeResult:
    document: Any
    change: ChangeLogEntry


@dataclass(slots=True)
class BatchResult:
    """Outcome of folding a batch over a set of section documents."""

    documents: dict[str, Any]
    applied: list[UpdateProposal] = field(default_factory=list)
    changes: list[ChangeLogEntry] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)

    @property
    def updated_sections(self) -> list[str]:
        seen: dict[str, None] = {}
        for change in self.changes:
            seen.setdefault(change.section_id, None)
        return list(seen)


def apply_update(
    document: Any,
    update: UpdateProposal,
    *,
    leaf_type: FieldType | None = None,
    options: MergeOptions | None = None,
) -> MergeResult:
    """Apply ``update`` to ``document`` and return the new document.

    ``document`` is never modified. Raises :class:`MergeTypeError` when the
    strategy does not fit the current target and
    :class:`~reportsync.utils.errors.TypeConflict` when the path cannot be
    created.
    """

    options = options or MergeOptions()
    current = get_value(document, update.path)

    if update.merge_strategy == "replace":
        new_value = update.value
    elif update.merge_strategy == "append":
        new_value = _append(current, update, leaf_type, options)
    elif update.merge_strategy == "merge":
        new_value = _merge(current, update)
    else:  # pragma: no cover - sanitizer rejects unknown strategies
        raise MergeTypeError(f"Unknown merge strategy: {update.merge_strategy}")

    updated = set_value(document, update.path, new_value)
    change = ChangeLogEntry(
        section_id=update.section_id,
        field_path=format_path(update.path),
        strategy=update.merge_strategy,
        previous_value=None if current is MISSING else current,
        new_value=new_value,
    )
    return MergeResult(document=updated, change=change)


def _append(
    current: Any,
    update: UpdateProposal,
    leaf_type: FieldType | None,
    options: MergeOptions,
) -> Any:
    if current is MISSING or current is None:
        current = "" if leaf_type in STRING_LIKE_TYPES else []

    kind = kind_of(current)
    if kind is JsonKind.ARRAY:
        addition = update.value if isinstance(update.value, list) else [update.value]
        return list(current) + list(addition)

    if kind is JsonKind.STRING:
        if not isinstance(update.value, str):
            raise MergeTypeError(
                f"Cannot append {kind_of(update.value).value} to the string at "
                f"{update.field_path!r}",
                extra={"path": update.field_path},
            )
        return _join_strings(current, update.value, options)

    raise MergeTypeError(
        f"Cannot append to {kind.value} at {update.field_path!r}; "
        "append needs an array or string target",
        extra={"path": update.field_path, "found": kind.value},
    )


def _join_strings(current: str, addition: str, options: MergeOptions) -> str:
    policy = options.separator_policy
    if policy == "always" and current:
        return current + options.separator + addition
    if policy == "between_nonempty" and current and addition:
        return current + options.separator + addition
    return current + addition


def _merge(current: Any, update: UpdateProposal) -> dict[str, Any]:
    if current is MISSING or current is None:
        current = {}

    current_kind = kind_of(current)
    if current_kind is not JsonKind.OBJECT:
        raise MergeTypeError(
            f"Cannot merge into {current_kind.value} at {update.field_path!r}; "
            "merge needs an object target",
            extra={"path": update.field_path, "found": current_kind.value},
        )
    value_kind = kind_of(update.value)
    if value_kind is not JsonKind.OBJECT:
        raise MergeTypeError(
            f"Merge value for {update.field_path!r} must be an object, got {value_kind.value}",
            extra={"path": update.field_path, "found": value_kind.value},
        )
    return {**current, **update.value}


def apply_batch(
    documents: Mapping[str, Any],
    updates: list[UpdateProposal],
    *,
    leaf_type_for: Callable[[UpdateProposal], FieldType | None] | None = None,
    options: MergeOptions | None = None,
) -> BatchResult:
    """Fold ``updates`` over ``documents`` (keyed by section id) in order.

    Each update sees the documents produced by the updates before it. A failed
    update leaves its section untouched and is reported by its batch index.
    """

    result = BatchResult(documents=dict(documents))
    for update in updates:
        if update.section_id not in result.documents:
            result.errors.append(
                BatchError(index=update.index, reason=f"unknown section_id: {update.section_id}")
            )
            continue
        leaf_type = leaf_type_for(update) if leaf_type_for else None
        try:
            merged = apply_update(
                result.documents[update.section_id],
                update,
                leaf_type=leaf_type,
                options=options,
            )
        except ReportSyncError as exc:
            LOGGER.warning(
                "Update %d (%s %s) not applied: %s",
                update.index,
                update.section_id,
                update.field_path,
                exc.message,
            )
            result.errors.append(BatchError(index=update.index, reason=exc.message))
            continue
        result.documents[update.section_id] = merged.document
        result.applied.append(update)
        result.changes.append(merged.change)
    return result


__all__ = [
    "BatchResult",
    "ChangeLogEntry",
    "MergeOptions",
    "MergeResult",
    "apply_batch",
    "apply_update",
]
