"""Deterministic diff, hash, and patch engine for structured records."""

from manifest_engine.diff.deep_diff import compute_diff, summarize_changes, values_equal
from manifest_engine.diff.formatter import (
    FormattedChange,
    FormattedDiffSection,
    format_diff,
    format_diff_for_ui,
    format_snapshot_diff,
    format_value,
)
from manifest_engine.diff.hashing import canonical_json, hash_manifests, hash_record
from manifest_engine.diff.patch import apply_forward, apply_reverse, reverse_changes

__all__ = [
    "FormattedChange",
    "FormattedDiffSection",
    "apply_forward",
    "apply_reverse",
    "canonical_json",
    "compute_diff",
    "format_diff",
    "format_diff_for_ui",
    "format_snapshot_diff",
    "format_value",
    "hash_manifests",
    "hash_record",
    "reverse_changes",
    "summarize_changes",
    "values_equal",
]
