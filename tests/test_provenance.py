"""Tests for per-field provenance history."""

from __future__ import annotations

from reportsync.services.proposals import SourceRef
from reportsync.services.provenance import attach_provenance


def _ref(artifact_id, **extra):
    return SourceRef.model_validate({"artifactId": artifact_id, **extra})


def test_confidence_is_clamped():
    history = attach_provenance(
        None, "a", [_ref("x", confidence=1.7), _ref("y", confidence=-0.2)]
    )

    assert [entry["confidence"] for entry in history["a"]] == [1.0, 0.0]


def test_history_is_capped_oldest_first():
    history = {}
    for number in range(5):
        history = attach_provenance(history, "a", [_ref(f"doc-{number}")], limit=3)

    assert [entry["artifactId"] for entry in history["a"]] == ["doc-2", "doc-3", "doc-4"]


def test_input_history_is_not_modified():
    original = {"a": [{"artifactId": "old"}]}
    updated = attach_provenance(original, "a", [_ref("new", page=4)])

    assert original == {"a": [{"artifactId": "old"}]}
    assert updated["a"][-1] == {"artifactId": "new", "page": 4}


def test_no_refs_returns_copy():
    assert attach_provenance({"b": []}, "a", []) == {"b": []}
