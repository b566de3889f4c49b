"""Tests for batch decoding and per-entry sanitation."""

from __future__ import annotations

import json

import pytest

from reportsync.services.field_paths import MAX_PATH_DEPTH
from reportsync.services.proposals import (
    MAX_VALUE_DEPTH,
    SourceRef,
    decode_batch,
    sanitize_batch,
)
from reportsync.utils.errors import ParseError


def _update(**overrides):
    entry = {
        "section_id": "s1",
        "field_path": "a",
        "value": 1,
        "merge_strategy": "replace",
    }
    entry.update(overrides)
    return entry


def test_json_string_batch_is_decoded():
    raw = json.dumps([_update(), _update(field_path="b", value=2)])
    batch = sanitize_batch(raw)

    assert [update.field_path for update in batch.valid_updates] == ["a", "b"]
    assert batch.errors == []


@pytest.mark.parametrize(
    "raw",
    ["not json", "{\"a\": 1}", "null", None, 42, "[" * 100000 + "]" * 100000],
)
def test_undecodable_batch_raises_parse_error(raw):
    with pytest.raises(ParseError):
        decode_batch(raw)


def test_oversized_batch_is_rejected():
    with pytest.raises(ParseError):
        sanitize_batch([_update()] * 3, max_size=2)


def test_malformed_entry_is_skipped_with_its_index():
    raw = [
        _update(),
        {"section_id": "s1", "value": 2, "merge_strategy": "replace"},
        _update(field_path="b", value=3),
    ]
    batch = sanitize_batch(raw)

    assert [update.index for update in batch.valid_updates] == [0, 2]
    assert [error.to_dict() for error in batch.errors] == [
        {"index": 1, "reason": "missing field_path"}
    ]


@pytest.mark.parametrize(
    ("entry", "reason"),
    [
        ("text", "update must be an object"),
        (_update(section_id=""), "invalid section_id"),
        (_update(merge_strategy=None), "missing merge_strategy"),
        (_update(merge_strategy="upsert"), "unknown merge_strategy: upsert"),
        ({k: v for k, v in _update().items() if k != "value"}, "missing value"),
        (_update(provenance="doc-1"), "invalid provenance"),
        (_update(field_path="structured_data.a"), "forbidden field_path: structured_data.a"),
    ],
)
def test_rejection_reasons(entry, reason):
    batch = sanitize_batch([entry])

    assert batch.valid_updates == []
    assert batch.errors[0].reason == reason


def test_invalid_field_path_reason_names_the_problem():
    batch = sanitize_batch([_update(field_path="a..b")])

    assert batch.errors[0].reason.startswith("invalid field_path: ")


@pytest.mark.parametrize("value", [None, 0, False, ""])
def test_falsy_values_are_valid(value):
    batch = sanitize_batch([_update(value=value)])

    assert len(batch.valid_updates) == 1
    assert batch.valid_updates[0].value == value


def test_bad_source_refs_are_dropped_individually():
    batch = sanitize_batch(
        [
            _update(
                provenance=[
                    {"artifactId": "audio-1", "startSec": 3.5, "endSec": 9},
                    {"page": 2},
                    {"artifactId": "pdf-1", "page": -1},
                ]
            )
        ]
    )

    refs = batch.valid_updates[0].provenance
    assert [ref.artifact_id for ref in refs] == ["audio-1"]


def test_source_ref_accepts_nested_timestamp():
    ref = SourceRef.model_validate(
        {"artifactId": "audio-1", "timestamp": {"startSec": 1.0, "endSec": 2.5}}
    )

    assert ref.to_wire() == {"artifactId": "audio-1", "startSec": 1.0, "endSec": 2.5}


def test_overly_deep_field_path_is_skipped_not_raised():
    deep = ".".join(["a"] * (MAX_PATH_DEPTH + 1))
    batch = sanitize_batch([_update(field_path=deep), _update()])

    assert [update.index for update in batch.valid_updates] == [1]
    assert batch.errors[0].index == 0
    assert batch.errors[0].reason.startswith("invalid field_path: Path has")


def test_overly_deep_value_is_skipped():
    value = 1
    for _ in range(MAX_VALUE_DEPTH + 1):
        value = [value]
    batch = sanitize_batch([_update(value=value), _update(value=[[1]])])

    assert [update.index for update in batch.valid_updates] == [1]
    assert batch.errors[0].reason.startswith("invalid value: nested deeper than")
