"""Render alert emails from Jinja2 templates."""

from pathlib import Path
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from pulseflow.core.entities import ChangeDetectionResult, ChangeType, Signal

TEMPLATE_DIR = Path(__file__).parent / "templates"

CHANGE_TYPE_LABELS = {
    ChangeType.NEW_ITEMS: "New Items Detected",
    ChangeType.REMOVED: "Items Removed",
    ChangeType.UPDATED: "Items Updated",
    ChangeType.MIXED: "Multiple Changes Detected",
}

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
    trim_blocks=True,
    lstrip_blocks=True,
)


def change_type_label(change_type: Optional[ChangeType]) -> str:
    if change_type is None:
        return "Changes Detected"
    return CHANGE_TYPE_LABELS.get(change_type, "Changes Detected")


def build_subject(signal_name: str, change: ChangeDetectionResult) -> str:
    added_count = len(change.details.added)
    if change.change_type == ChangeType.NEW_ITEMS and added_count > 0:
        noun = "item" if added_count == 1 else "items"
        return f"[PulseFlow] {added_count} new {noun} - {signal_name}"
    return f"[PulseFlow] {change_type_label(change.change_type)} - {signal_name}"


def _context(signal: Signal, change: ChangeDetectionResult) -> dict[str, Any]:
    return {
        "signal_name": signal.name,
        "signal_url": signal.url,
        "change_summary": change.summary,
        "change_label": change_type_label(change.change_type),
        "added": change.details.added,
        "removed": change.details.removed,
    }


def render_html(signal: Signal, change: ChangeDetectionResult) -> str:
    return _env.get_template("alert_email.html.j2").render(_context(signal, change)).strip()


def render_text(signal: Signal, change: ChangeDetectionResult) -> str:
    return _env.get_template("alert_email.txt.j2").render(_context(signal, change)).strip()
