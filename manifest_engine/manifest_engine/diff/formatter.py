"""Human-readable and UI-oriented rendering of change lists.

Changes are grouped by the first segment of their path so that, for example,
``stats.attack`` and ``stats.defense`` render together under ``[stats]``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any

from pydantic import BaseModel

from manifest_engine.diff.deep_diff import PATH_SEPARATOR, summarize_changes
from manifest_engine.models.diff import ChangeType, FieldChange, SnapshotDiff

NO_CHANGES = "No changes"

_ASSET_MARKERS = {
    ChangeType.ADDED: "+",
    ChangeType.MODIFIED: "~",
    ChangeType.DELETED: "-",
}


class FormattedChange(BaseModel):
    path: str
    short_path: str
    type: ChangeType
    old_value: str | None = None
    new_value: str | None = None
    old_value_raw: Any = None
    new_value_raw: Any = None


class FormattedDiffSection(BaseModel):
    """All changes sharing one top-level path segment."""

    path: str
    changes: list[FormattedChange]


def format_value(value: Any, max_length: int = 50) -> str:
    """Render a value compactly, truncating long strings."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        if len(value) > max_length:
            return f'"{value[:max_length]}..."'
        return f'"{value}"'
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return f"[{len(value)} items]"
    if isinstance(value, Mapping):
        return f"{{{len(value)} properties}}"
    return str(value)


def format_change(change: FieldChange) -> str:
    if change.type == ChangeType.ADDED:
        return f"+ {change.path}: {format_value(change.new_value)}"
    if change.type == ChangeType.DELETED:
        return f"- {change.path}: {format_value(change.old_value)}"
    return f"~ {change.path}: {format_value(change.old_value)} -> {format_value(change.new_value)}"


def group_by_top_level(changes: Iterable[FieldChange]) -> dict[str, list[FieldChange]]:
    """Group changes by top-level path segment, preserving first-seen order."""
    grouped: dict[str, list[FieldChange]] = {}
    for change in changes:
        top_level = change.path.split(PATH_SEPARATOR, 1)[0]
        grouped.setdefault(top_level, []).append(change)
    return grouped


def _summary_line(changes: list[FieldChange]) -> str:
    summary = summarize_changes(changes)
    parts: list[str] = []
    if summary.added:
        parts.append(f"+{summary.added} added")
    if summary.modified:
        parts.append(f"~{summary.modified} modified")
    if summary.deleted:
        parts.append(f"-{summary.deleted} deleted")
    return "Changes: " + ", ".join(parts)


def format_diff(changes: Iterable[FieldChange]) -> str:
    """Render a change list as grouped plain text.

    Example output::

        Changes: +1 added, ~1 modified
        ---
        [stats]
          ~ stats.attack: 10 -> 12
        [rarity]
          + rarity: "epic"
    """
    changes = list(changes)
    if not changes:
        return NO_CHANGES

    lines = [_summary_line(changes), "---"]
    for section, section_changes in group_by_top_level(changes).items():
        lines.append(f"[{section}]")
        lines.extend(f"  {format_change(change)}" for change in section_changes)
    return "\n".join(lines)


def format_diff_for_ui(changes: Iterable[FieldChange]) -> list[FormattedDiffSection]:
    """Render a change list as structured sections for a diff viewer."""
    sections: list[FormattedDiffSection] = []
    for section, section_changes in group_by_top_level(changes).items():
        formatted = [
            FormattedChange(
                path=change.path,
                short_path=change.path[len(section) + 1 :] or section,
                type=change.type,
                old_value=format_value(change.old_value, 100) if change.has_old_value else None,
                new_value=format_value(change.new_value, 100) if change.has_new_value else None,
                old_value_raw=change.old_value,
                new_value_raw=change.new_value,
            )
            for change in section_changes
        ]
        sections.append(FormattedDiffSection(path=section, changes=formatted))
    return sections


def format_snapshot_diff(diff: SnapshotDiff) -> str:
    """Render an entity-level snapshot comparison as plain text."""
    if not diff.changes:
        return NO_CHANGES

    summary = diff.summary
    lines = [
        f"Snapshot {diff.from_snapshot_id} -> {diff.to_snapshot_id}: "
        f"+{summary.added} added, ~{summary.modified} modified, -{summary.deleted} deleted",
        "---",
    ]
    for change in diff.changes:
        label = f"{change.collection}/{change.asset_id}"
        if change.asset_name:
            label += f" ({change.asset_name})"
        lines.append(f"{_ASSET_MARKERS[change.change_type]} {label}")
        lines.extend(f"    {format_change(field)}" for field in change.field_changes)
    return "\n".join(lines)
