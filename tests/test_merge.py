"""Tests for the replace, append and merge strategies and the batch fold."""

from __future__ import annotations

import pytest

from reportsync.services.field_paths import parse_path
from reportsync.services.merge import MergeOptions, apply_batch, apply_update
from reportsync.services.proposals import UpdateProposal
from reportsync.utils.errors import MergeTypeError, TypeConflict


def _proposal(field_path, value, strategy="replace", section_id="s1", index=0):
    return UpdateProposal(
        section_id=section_id,
        field_path=field_path,
        value=value,
        merge_strategy=strategy,
        path=parse_path(field_path),
        index=index,
    )


def test_replace_is_idempotent():
    update = _proposal("a.b", {"x": 1})
    once = apply_update({}, update).document
    twice = apply_update(once, update).document

    assert once == twice == {"a": {"b": {"x": 1}}}


def test_change_entry_records_previous_value():
    result = apply_update({"a": 1}, _proposal("a", 2))
    assert result.change.previous_value == 1
    assert result.change.new_value == 2

    fresh = apply_update({}, _proposal("b", 2))
    assert fresh.change.previous_value is None


def test_append_array_flattens_one_level():
    document = {"a": [1, 2]}
    assert apply_update(document, _proposal("a", [3, 4], "append")).document == {"a": [1, 2, 3, 4]}
    assert apply_update(document, _proposal("a", [[3]], "append")).document == {"a": [1, 2, [3]]}
    assert apply_update(document, _proposal("a", 3, "append")).document == {"a": [1, 2, 3]}


def test_append_to_absent_target_uses_declared_type():
    assert apply_update({}, _proposal("a", "x", "append")).document == {"a": ["x"]}
    assert apply_update({}, _proposal("a", "x", "append"), leaf_type="string").document == {"a": "x"}


@pytest.mark.parametrize(
    ("policy", "current", "addition", "expected"),
    [
        ("between_nonempty", "Fair", "overall", "Fair overall"),
        ("between_nonempty", "", "overall", "overall"),
        ("always", "Fair", "", "Fair "),
        ("none", "Fair", "ly", "Fairly"),
    ],
)
def test_append_string_separator_policy(policy, current, addition, expected):
    options = MergeOptions(separator_policy=policy)
    result = apply_update({"a": current}, _proposal("a", addition, "append"), options=options)

    assert result.document == {"a": expected}


def test_append_non_string_to_string_fails():
    with pytest.raises(MergeTypeError):
        apply_update({"a": "text"}, _proposal("a", 5, "append"))


def test_append_to_object_fails():
    with pytest.raises(MergeTypeError):
        apply_update({"a": {"k": 1}}, _proposal("a", 1, "append"))


def test_merge_is_shallow_and_value_wins():
    current = {"keep": 1, "same": "old", "nested": {"x": 1}}
    value = {"same": "new", "nested": {"y": 2}}
    result = apply_update({"a": current}, _proposal("a", value, "merge")).document["a"]

    assert result == {"keep": 1, "same": "new", "nested": {"y": 2}}
    for key in set(current) | set(value):
        assert result[key] == value.get(key, current.get(key))


def test_merge_into_array_fails():
    with pytest.raises(MergeTypeError):
        apply_update({"a": [1, 2]}, _proposal("a", {"b": 1}, "merge"))


def test_merge_non_object_value_fails():
    with pytest.raises(MergeTypeError):
        apply_update({}, _proposal("a", [1], "merge"))


def test_set_conflict_surfaces_as_type_conflict():
    with pytest.raises(TypeConflict):
        apply_update({"a": "x"}, _proposal("a.b", 1))


def test_batch_is_a_left_fold():
    updates = [
        _proposal("items", [1], "append", index=0),
        _proposal("items", [2], "append", index=1),
        _proposal("items", {"bad": True}, "merge", index=2),
        _proposal("count", 2, index=3),
        _proposal("x", 1, section_id="missing", index=4),
    ]
    result = apply_batch({"s1": {}}, updates)

    assert result.documents["s1"] == {"items": [1, 2], "count": 2}
    assert [update.index for update in result.applied] == [0, 1, 3]
    assert [error.index for error in result.errors] == [2, 4]
    assert result.errors[1].reason == "unknown section_id: missing"
    assert result.updated_sections == ["s1"]


def test_batch_does_not_mutate_inputs():
    documents = {"s1": {"a": 1}}
    apply_batch(documents, [_proposal("a", 2)])

    assert documents == {"s1": {"a": 1}}


def test_append_accumulates_into_a_new_array():
    document = apply_update({}, _proposal("a.b", 3, "append")).document
    document = apply_update(document, _proposal("a.b", 4, "append")).document

    assert document == {"a": {"b": [3, 4]}}


def test_repeated_merges_are_shallow():
    document = apply_update({}, _proposal("a", {"x": 1}, "merge")).document
    document = apply_update(document, _proposal("a", {"y": 2}, "merge")).document
    assert document == {"a": {"x": 1, "y": 2}}

    document = apply_update(document, _proposal("a", {"x": 3}, "merge")).document
    assert document == {"a": {"x": 3, "y": 2}}


def test_failed_updates_leave_the_batch_document_unchanged():
    updates = [
        _proposal("a.b", 1, index=0),
        _proposal("list", {"x": 1}, "merge", section_id="s2", index=1),
    ]
    result = apply_batch({"s1": {"a": "x"}, "s2": {"list": [1, 2]}}, updates)

    assert result.documents == {"s1": {"a": "x"}, "s2": {"list": [1, 2]}}
    assert result.applied == []
    assert [error.index for error in result.errors] == [0, 1]
