"""Plain-text rendering of a directory entry."""

from __future__ import annotations

from typing import List

from .controller import DirectoryEntry
from .models import LabeledValue

_GROUP_HEADINGS = (
    ("core", "Details"),
    ("custom", "More"),
    ("email", "Email"),
    ("phone", "Phone"),
    ("website", "Website"),
)


def _lines(entries: List[LabeledValue], indent: str) -> List[str]:
    return [f"{indent}{entry.label}: {entry.value}" for entry in entries]


def format_entry(entry: DirectoryEntry) -> str:
    """Format an entry as a text card, one block per non-empty group."""

    view = entry.view
    lines = [entry.display_name or f"Contact {entry.contact_id}"]

    for name, heading in _GROUP_HEADINGS:
        entries: List[LabeledValue] = getattr(view, name)
        if entries:
            lines.append("")
            lines.append(f"{heading}:")
            lines.extend(_lines(entries, "  "))

    if view.address:
        lines.append("")
        lines.append("Address:")
        for group in view.address:
            lines.append(f"  {group.label}")
            lines.extend(_lines(group.fields, "    "))

    return "\n".join(lines)
