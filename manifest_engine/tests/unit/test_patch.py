"""Unit tests for manifest_engine.diff.patch."""

from __future__ import annotations

import copy

import pytest
from manifest_engine.diff.deep_diff import compute_diff
from manifest_engine.diff.patch import (
    apply_forward,
    apply_reverse,
    delete_value_at_path,
    reverse_changes,
    set_value_at_path,
)
from manifest_engine.models.diff import ChangeType, FieldChange

PAIRS = [
    ({}, {}),
    ({"a": 1}, {}),
    ({}, {"a": {"b": [1, 2]}}),
    ({"a": 1, "b": {"c": 2}}, {"a": 1, "b": {"c": 3}, "d": 4}),
    ({"stats": {"hp": 1, "mp": 2}}, {"stats": 7}),
    ({"stats": 7}, {"stats": {"hp": 1}}),
    ({"a": {"b": {"c": 1, "d": 2}}}, {"a": {"b": {"d": 3, "e": None}}}),
    ({"tags": ["x"], "name": "Sword"}, {"tags": ["x", "y"], "name": "Sword", "rarity": "rare"}),
    ({"a": None}, {"a": False}),
    ({"": 1}, {"": 2}),
    ({"": 1, "x": 2}, {"x": 2}),
]

# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------


class TestPathHelpers:
    def test_set_creates_parent_chain(self):
        record: dict = {}
        set_value_at_path(record, "a.b.c", 1)
        assert record == {"a": {"b": {"c": 1}}}

    def test_set_replaces_non_record_parent(self):
        record = {"a": 5}
        set_value_at_path(record, "a.b", 1)
        assert record == {"a": {"b": 1}}

    def test_delete_missing_parent_is_noop(self):
        record = {"x": 1}
        delete_value_at_path(record, "a.b.c")
        assert record == {"x": 1}

    def test_delete_missing_leaf_is_noop(self):
        record = {"a": {}}
        delete_value_at_path(record, "a.b")
        assert record == {"a": {}}

    def test_delete_nested(self):
        record = {"a": {"b": 1, "c": 2}}
        delete_value_at_path(record, "a.b")
        assert record == {"a": {"c": 2}}


# ---------------------------------------------------------------------------
# apply_forward / apply_reverse
# ---------------------------------------------------------------------------


class TestApply:
    @pytest.mark.parametrize(("old", "new"), PAIRS)
    def test_forward_reproduces_new(self, old, new):
        changes = compute_diff(old, new)
        assert apply_forward(copy.deepcopy(old), changes) == new

    @pytest.mark.parametrize(("old", "new"), PAIRS)
    def test_reverse_reproduces_old(self, old, new):
        changes = compute_diff(old, new)
        assert apply_reverse(copy.deepcopy(new), changes) == old

    def test_forward_mutates_and_returns_same_object(self):
        record = {"a": 1}
        result = apply_forward(record, [FieldChange(path="a", type=ChangeType.MODIFIED, old_value=1, new_value=2)])
        assert result is record
        assert record == {"a": 2}

    def test_deletes_applied_before_adds(self):
        changes = [
            FieldChange(path="a.b", type=ChangeType.ADDED, new_value=1),
            FieldChange(path="a", type=ChangeType.DELETED, old_value={"x": 1}),
        ]
        assert apply_forward({"a": {"x": 1}}, changes) == {"a": {"b": 1}}

    def test_applied_values_are_copies(self):
        value = {"hp": 1}
        record = apply_forward({}, [FieldChange(path="stats", type=ChangeType.ADDED, new_value=value)])
        record["stats"]["hp"] = 99
        assert value == {"hp": 1}

    def test_setting_under_missing_parent_does_not_fail(self):
        record = apply_forward({}, [FieldChange(path="a.b", type=ChangeType.MODIFIED, old_value=1, new_value=2)])
        assert record == {"a": {"b": 2}}

    def test_dotted_key_is_read_as_nested_path(self):
        # Paths are not escaped, so "a.b" round-trips as a nested key.
        old = {"a.b": 1}
        changes = compute_diff(old, {"a.b": 2})
        assert changes[0].path == "a.b"
        assert apply_forward(copy.deepcopy(old), changes) == {"a.b": 1, "a": {"b": 2}}


class TestReverseChanges:
    def test_swaps_types_and_values(self):
        changes = [
            FieldChange(path="a", type=ChangeType.ADDED, new_value=1),
            FieldChange(path="b", type=ChangeType.DELETED, old_value=2),
            FieldChange(path="c", type=ChangeType.MODIFIED, old_value=3, new_value=4),
        ]
        reversed_changes = reverse_changes(changes)
        assert reversed_changes[0] == FieldChange(path="a", type=ChangeType.DELETED, old_value=1)
        assert reversed_changes[1] == FieldChange(path="b", type=ChangeType.ADDED, new_value=2)
        assert reversed_changes[2] == FieldChange(path="c", type=ChangeType.MODIFIED, old_value=4, new_value=3)

    def test_double_reverse_is_identity(self):
        changes = compute_diff({"a": 1, "b": 2}, {"b": 3, "c": 4})
        assert reverse_changes(reverse_changes(changes)) == changes
