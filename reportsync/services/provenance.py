"""Per-field provenance history attached to section rows."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..config import DEFAULT_PROVENANCE_HISTORY_LIMIT
from .proposals import SourceRef

ProvenanceMap = dict[str, list[dict[str, Any]]]


def _clamp_confidence(value: float | None) -> float | None:
    if value is None:
        return None
    return max(0.0, min(1.0, float(value)))


def attach_provenance(
    history: Mapping[str, Iterable[Mapping[str, Any]]] | None,
    field_path: str,
    refs: Iterable[SourceRef],
    *,
    limit: int = DEFAULT_PROVENANCE_HISTORY_LIMIT,
) -> ProvenanceMap:
    """Return a copy of ``history`` with ``refs`` appended under ``field_path``.

    Confidence is clamped into ``[0, 1]``. Only the ``limit`` most recent
    entries are kept per field; the oldest are evicted first.
    """

    updated: ProvenanceMap = {
        path: [dict(entry) for entry in entries] for path, entries in (history or {}).items()
    }
    additions = []
    for ref in refs:
        entry = ref.to_wire()
        confidence = _clamp_confidence(ref.confidence)
        if confidence is not None:
            entry["confidence"] = confidence
        additions.append(entry)
    if not additions:
        return updated

    entries = updated.get(field_path, []) + additions
    updated[field_path] = entries[-max(1, limit):]
    return updated


__all__ = ["ProvenanceMap", "attach_provenance"]
