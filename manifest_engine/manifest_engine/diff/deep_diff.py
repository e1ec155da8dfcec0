"""Deep, path-addressed diff between two structured records.

Walks the union of both records' keys and emits one :class:`FieldChange` per
differing leaf.  Nested mappings are recursed into and their paths joined
with ``.``; every other value (including arrays) is compared as a whole by
deep value equality.  An array with a single inserted element is therefore
reported as one ``modified`` change of the entire array field.

Output order follows key iteration order (keys of ``old`` first, then keys
only present in ``new``) and is stable for a given pair of inputs.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from datetime import date
from typing import Any

from manifest_engine.models.diff import ChangeType, DiffSummary, FieldChange

PATH_SEPARATOR = "."


def is_record(value: Any) -> bool:
    """Return ``True`` for nested records (mappings), excluding arrays and dates."""
    return isinstance(value, Mapping)


def _is_array(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def _value_kind(value: Any) -> str:
    if value is None:
        return "null"
    # bool is a subclass of int; JSON treats it as its own type.
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, date):
        return "date"
    if _is_array(value):
        return "array"
    if is_record(value):
        return "record"
    return type(value).__name__


def values_equal(a: Any, b: Any) -> bool:
    """Deep value equality used by the diff engine.

    Primitives compare by value (``1 == 1.0`` but ``True != 1``), dates by
    timestamp, arrays element-wise in order, and records by key set and
    recursive equality.
    """
    if a is b:
        return True

    kind = _value_kind(a)
    if kind != _value_kind(b):
        return False

    if kind == "array":
        if len(a) != len(b):
            return False
        return all(values_equal(x, y) for x, y in zip(a, b))

    if kind == "record":
        if len(a) != len(b):
            return False
        return all(key in b and values_equal(a[key], b[key]) for key in a)

    return bool(a == b)


def _join(base_path: str, key: Any) -> str:
    return f"{base_path}{PATH_SEPARATOR}{key}" if base_path else str(key)


def _union_keys(old: Mapping[str, Any], new: Mapping[str, Any]) -> Iterable[str]:
    seen = dict.fromkeys(old)
    seen.update(dict.fromkeys(new))
    return seen.keys()


def compute_diff(
    old: Mapping[str, Any],
    new: Mapping[str, Any],
    base_path: str = "",
) -> list[FieldChange]:
    """Compute the field changes that turn ``old`` into ``new``.

    Parameters
    ----------
    old:
        The base (previous) record.
    new:
        The target (current) record.
    base_path:
        Path prefix for emitted changes; used internally during recursion.

    Returns
    -------
    list[FieldChange]
        One entry per added, deleted, or modified field.  An empty list means
        the records are deeply equal.

    Notes
    -----
    Paths join keys with ``.`` without escaping, so a key that itself
    contains ``.`` (e.g. ``"a.b"``) yields a path the patch helpers read as
    nested keys.  Applying such changes does not reproduce ``new``.
    """
    changes: list[FieldChange] = []

    for key in _union_keys(old, new):
        path = _join(base_path, key)
        in_old = key in old
        in_new = key in new

        if not in_old:
            changes.append(FieldChange(path=path, type=ChangeType.ADDED, new_value=new[key]))
        elif not in_new:
            changes.append(FieldChange(path=path, type=ChangeType.DELETED, old_value=old[key]))
        elif is_record(old[key]) and is_record(new[key]):
            changes.extend(compute_diff(old[key], new[key], path))
        elif not values_equal(old[key], new[key]):
            changes.append(
                FieldChange(
                    path=path,
                    type=ChangeType.MODIFIED,
                    old_value=old[key],
                    new_value=new[key],
                )
            )

    return changes


def summarize_changes(changes: Iterable[FieldChange]) -> DiffSummary:
    """Count the changes of each type."""
    summary = DiffSummary()
    for change in changes:
        if change.type == ChangeType.ADDED:
            summary.added += 1
        elif change.type == ChangeType.MODIFIED:
            summary.modified += 1
        else:
            summary.deleted += 1
    return summary
