"""Apply field changes to a record, forward or in reverse.

Changes are applied deletes first, then adds, then modifications.  Setting a
path creates any missing parent records; deleting a path whose parent does
not exist is a no-op.
"""

from __future__ import annotations

import copy
from collections.abc import Iterable, MutableMapping
from typing import Any

from manifest_engine.diff.deep_diff import PATH_SEPARATOR
from manifest_engine.models.diff import ChangeType, FieldChange

_APPLY_ORDER = {
    ChangeType.DELETED: 0,
    ChangeType.ADDED: 1,
    ChangeType.MODIFIED: 2,
}

_REVERSED_TYPE = {
    ChangeType.ADDED: ChangeType.DELETED,
    ChangeType.DELETED: ChangeType.ADDED,
    ChangeType.MODIFIED: ChangeType.MODIFIED,
}


def set_value_at_path(record: MutableMapping[str, Any], path: str, value: Any) -> None:
    parts = path.split(PATH_SEPARATOR)
    current = record
    for part in parts[:-1]:
        if not isinstance(current.get(part), MutableMapping):
            current[part] = {}
        current = current[part]
    current[parts[-1]] = value


def delete_value_at_path(record: MutableMapping[str, Any], path: str) -> None:
    parts = path.split(PATH_SEPARATOR)
    current = record
    for part in parts[:-1]:
        child = current.get(part)
        if not isinstance(child, MutableMapping):
            return
        current = child
    current.pop(parts[-1], None)


def reverse_changes(changes: Iterable[FieldChange]) -> list[FieldChange]:
    """Invert a change list: ``added`` <-> ``deleted`` and old/new values swapped."""
    return [
        FieldChange(
            path=change.path,
            type=_REVERSED_TYPE[change.type],
            old_value=change.new_value,
            new_value=change.old_value,
        )
        for change in changes
    ]


def apply_forward(
    record: MutableMapping[str, Any],
    changes: Iterable[FieldChange],
) -> MutableMapping[str, Any]:
    """Apply ``changes`` to ``record`` in place and return it.

    Values are deep-copied into the record so later mutation of the record
    never leaks back into the change list.
    """
    ordered = sorted(changes, key=lambda change: _APPLY_ORDER[change.type])
    for change in ordered:
        if change.type == ChangeType.DELETED:
            delete_value_at_path(record, change.path)
        else:
            set_value_at_path(record, change.path, copy.deepcopy(change.new_value))
    return record


def apply_reverse(
    record: MutableMapping[str, Any],
    changes: Iterable[FieldChange],
) -> MutableMapping[str, Any]:
    """Roll ``changes`` back on ``record`` in place and return it."""
    return apply_forward(record, reverse_changes(changes))
