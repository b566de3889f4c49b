"""Decoding and per-entry validation of untrusted update batches.

Upstream tool calls sometimes serialise the ``updates`` array as a single JSON
string, and individual entries may be missing keys entirely. Decoding problems
reject the whole batch; problems with one entry only drop that entry.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from ..utils.errors import InvalidPath, ParseError
from .field_paths import Path, parse_path
from .json_values import nesting_depth

LOGGER = logging.getLogger(__name__)

MergeStrategy = Literal["replace", "append", "merge"]
MERGE_STRATEGIES: tuple[str, ...] = get_args(MergeStrategy)

FORBIDDEN_ROOT_SEGMENTS = frozenset({"structured_data"})
MAX_VALUE_DEPTH = 64
_REQUIRED_STRINGS = ("section_id", "field_path", "merge_strategy")


class SourceRef(BaseModel):
    """Reference to the artifact location that backs a written value."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    artifact_id: str = Field(alias="artifactId", min_length=1)
    page: int | None = Field(default=None, ge=0)
    start_sec: float | None = Field(default=None, alias="startSec", ge=0)
    end_sec: float | None = Field(default=None, alias="endSec", ge=0)
    confidence: float | None = None
    note: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _lift_timestamp(cls, data: Any) -> Any:
        # Older producers nest the time range as ``timestamp: {startSec, endSec}``.
        if isinstance(data, dict) and isinstance(data.get("timestamp"), dict):
            data = dict(data)
            stamp = data.pop("timestamp")
            data.setdefault("startSec", stamp.get("startSec"))
            data.setdefault("endSec", stamp.get("endSec"))
        return data

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


@dataclass(slots=True)
class UpdateProposal:
    """A well-formed update ready for the merge engine."""

    section_id: str
    field_path: str
    value: Any
    merge_strategy: MergeStrategy
    path: Path
    provenance: list[SourceRef] = field(default_factory=list)
    index: int = 0


@dataclass(slots=True)
class BatchError:
    """Why the entry at ``index`` of the raw batch was not applied."""

    index: int
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "reason": self.reason}


@dataclass(slots=True)
class SanitizedBatch:
    valid_updates: list[UpdateProposal] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.valid_updates) + len(self.errors)


def decode_batch(raw: Any) -> list[Any]:
    """Return the batch as a list, decoding a JSON string when necessary.

    Raises :class:`ParseError` when the string is not JSON or the decoded value
    is not an array.
    """

    decoded = raw
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            decoded = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseError(
                f"updates is not valid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
                raw=raw,
            ) from exc
        except (ValueError, RecursionError) as exc:
            raise ParseError(f"updates could not be decoded: {exc}", raw=raw[:200]) from exc
    if not isinstance(decoded, list):
        kind = "null" if decoded is None else type(decoded).__name__
        raise ParseError(f"updates must be an array, got {kind}")
    return decoded


def sanitize_batch(raw: Any, *, max_size: int | None = None) -> SanitizedBatch:
    """Split a raw batch into valid proposals and per-index errors."""

    entries = decode_batch(raw)
    if max_size is not None and len(entries) > max_size:
        raise ParseError(
            f"updates has {len(entries)} entries, the limit is {max_size}",
            extra={"count": len(entries), "limit": max_size},
        )

    batch = SanitizedBatch()
    for index, entry in enumerate(entries):
        result = _check_entry(index, entry)
        if isinstance(result, UpdateProposal):
            batch.valid_updates.append(result)
        else:
            LOGGER.warning("Skipping update %d: %s", index, result)
            batch.errors.append(BatchError(index=index, reason=result))
    return batch


def _check_entry(index: int, entry: Any) -> UpdateProposal | str:
    """Return a proposal for ``entry`` or the reason it was rejected."""

    if not isinstance(entry, dict):
        return "update must be an object"

    for name in _REQUIRED_STRINGS:
        if name not in entry or entry[name] is None:
            return f"missing {name}"
        candidate = entry[name]
        if not isinstance(candidate, str) or not candidate.strip():
            return f"invalid {name}"

    strategy = entry["merge_strategy"]
    if strategy not in MERGE_STRATEGIES:
        return f"unknown merge_strategy: {strategy}"

    if "value" not in entry:
        return "missing value"
    if nesting_depth(entry["value"], limit=MAX_VALUE_DEPTH) > MAX_VALUE_DEPTH:
        return f"invalid value: nested deeper than {MAX_VALUE_DEPTH} levels"

    field_path = entry["field_path"]
    try:
        path = parse_path(field_path)
    except InvalidPath as exc:
        return f"invalid field_path: {exc.message}"
    if str(path[0]) in FORBIDDEN_ROOT_SEGMENTS:
        return f"forbidden field_path: {field_path}"

    refs = entry.get("provenance")
    if refs is not None and not isinstance(refs, list):
        return "invalid provenance"

    return UpdateProposal(
        section_id=entry["section_id"],
        field_path=field_path,
        value=entry["value"],
        merge_strategy=strategy,
        path=path,
        provenance=_parse_refs(index, refs or []),
        index=index,
    )


def _parse_refs(index: int, refs: list[Any]) -> list[SourceRef]:
    parsed: list[SourceRef] = []
    for position, ref in enumerate(refs):
        try:
            parsed.append(SourceRef.model_validate(ref))
        except PydanticValidationError as exc:
            LOGGER.warning(
                "Dropping provenance %d of update %d: %s",
                position,
                index,
                exc.errors()[0]["msg"] if exc.errors() else exc,
            )
    return parsed


__all__ = [
    "BatchError",
    "FORBIDDEN_ROOT_SEGMENTS",
    "MAX_VALUE_DEPTH",
    "MERGE_STRATEGIES",
    "MergeStrategy",
    "SanitizedBatch",
    "SourceRef",
    "UpdateProposal",
    "decode_batch",
    "sanitize_batch",
]
