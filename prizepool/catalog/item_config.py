# prizepool/catalog/item_config.py
"""Parsing of the staff-edited item config text (``Item Name - QTY 3`` per line)."""

from __future__ import annotations

import re
from dataclasses import dataclass

LINE_RE = re.compile(r"^(.*?)\s*-\s*QTY\s*(\d+)$", re.IGNORECASE)


class ItemConfigError(ValueError):
    """Raised when the item config text cannot be parsed."""


@dataclass(frozen=True, slots=True)
class ItemConfigEntry:
    name: str
    qty: int


def parse_item_config(text: str) -> list[ItemConfigEntry]:
    lines = [line.strip() for line in (text or "").split("\n")]
    lines = [line for line in lines if line]

    entries: list[ItemConfigEntry] = []
    for index, line in enumerate(lines, start=1):
        match = LINE_RE.match(line)
        if not match:
            raise ItemConfigError(
                f'Invalid line {index}: "{line}". Use format: Item Name - QTY 123'
            )

        name = match.group(1).strip()
        qty = int(match.group(2))

        if not name:
            raise ItemConfigError(f"Invalid line {index}: item name cannot be empty.")
        if qty < 1:
            raise ItemConfigError(f"Invalid line {index}: quantity must be a whole number above 0.")

        entries.append(ItemConfigEntry(name=name, qty=qty))

    if not entries:
        raise ItemConfigError("Config cannot be empty.")
    return entries


def expand_item_entries(entries: list[ItemConfigEntry]) -> list[str]:
    """One string per drawable unit, in config order."""
    expanded: list[str] = []
    for entry in entries:
        expanded.extend([entry.name] * entry.qty)
    return expanded


def total_qty(entries: list[ItemConfigEntry]) -> int:
    return sum(entry.qty for entry in entries)
