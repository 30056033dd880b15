"""Change detection between two item snapshots."""

from typing import Optional

from pulseflow.core.entities import (
    ChangeDetails,
    ChangeDetectionResult,
    ChangeStats,
    ChangeType,
    ComparableItem,
    UpdatedItem,
)

DEFAULT_MIN_NEW_ITEMS = 1
DEFAULT_DETECT_REMOVALS = False
DEFAULT_DETECT_UPDATES = False


def _plural(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def classify_change_type(added: int, removed: int, updated: int) -> Optional[ChangeType]:
    """Classify by which (already gated) categories are non-empty."""
    present = [
        kind
        for kind, count in (
            (ChangeType.NEW_ITEMS, added),
            (ChangeType.REMOVED, removed),
            (ChangeType.UPDATED, updated),
        )
        if count > 0
    ]
    if not present:
        return None
    if len(present) > 1:
        return ChangeType.MIXED
    return present[0]


def summarize_changes(added: int, removed: int, updated: int) -> str:
    """Human-readable sentence fragment for the qualifying categories."""
    parts: list[str] = []
    if added > 0:
        parts.append(f"{added} new {_plural(added, 'item', 'items')} detected")
    if removed > 0:
        parts.append(f"{removed} {_plural(removed, 'item', 'items')} removed")
    if updated > 0:
        parts.append(f"{updated} {_plural(updated, 'item', 'items')} updated")
    if not parts:
        return "No changes detected"
    return ", ".join(parts)


def _find_updated(
    current: list[ComparableItem], previous_by_id: dict[str, ComparableItem]
) -> list[UpdatedItem]:
    updated: list[UpdatedItem] = []
    for item in current:
        previous_item = previous_by_id.get(item.id)
        if previous_item is not None and previous_item.content != item.content:
            updated.append(UpdatedItem(item=item, previous_content=previous_item.content))
    return updated


def detect_changes(
    previous: list[ComparableItem],
    current: list[ComparableItem],
    min_new_items: int = DEFAULT_MIN_NEW_ITEMS,
    detect_removals: bool = DEFAULT_DETECT_REMOVALS,
    detect_updates: bool = DEFAULT_DETECT_UPDATES,
) -> ChangeDetectionResult:
    """Compare two snapshots and classify additions, removals and updates.

    Pure function. Items below ``min_new_items`` are still reported in
    ``details.added`` and the stats, but do not by themselves count as a change.

    Duplicate ids collapse in the lookup maps (last one wins), while the
    filters run over the original lists, so a duplicated new id is reported
    as added once per occurrence.
    """
    previous_by_id = {item.id: item for item in previous}
    current_by_id = {item.id: item for item in current}

    added = [item for item in current if item.id not in previous_by_id]
    removed = (
        [item for item in previous if item.id not in current_by_id]
        if detect_removals
        else []
    )
    updated = _find_updated(current, previous_by_id) if detect_updates else []

    stats = ChangeStats(
        added_count=len(added),
        removed_count=len(removed),
        updated_count=len(updated),
        previous_total=len(previous),
        current_total=len(current),
    )
    details = ChangeDetails(added=added, removed=removed, updated=updated, stats=stats)

    qualifying_added = len(added) if len(added) >= min_new_items else 0
    qualifying_removed = len(removed) if detect_removals else 0
    qualifying_updated = len(updated) if detect_updates else 0
    has_changes = len(added) >= min_new_items or qualifying_removed > 0 or qualifying_updated > 0

    change_type = (
        classify_change_type(qualifying_added, qualifying_removed, qualifying_updated)
        if has_changes
        else None
    )
    summary = summarize_changes(qualifying_added, qualifying_removed, qualifying_updated)

    return ChangeDetectionResult(
        has_changes=has_changes,
        change_type=change_type,
        summary=summary,
        details=details,
    )
