# prizepool/catalog/staff_catalog.py
from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any

from prizepool.storage.base import KeyValueStore

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StaffCatalogItem:
    id: str
    name: str
    gbp_value: float

    def to_payload(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "gbpValue": self.gbp_value}


DEFAULT_CATALOG: tuple[tuple[str, float], ...] = (
    ("Mega Brave Booster Box", 109.99),
    ("Mega Symphonia Booster Box", 109.99),
    ("Mega Inferno Booster Box", 109.99),
    ("Mega Dream Booster Box", 109.99),
    ("Nihil Zero Booster Box", 99.99),
    ("Mega Brave Booster Pack", 4.99),
    ("Mega Symphonia Booster Pack", 4.99),
    ("Mega Inferno Booster Pack", 4.99),
    ("Mega Dream Booster Pack", 4.99),
    ("Nihil Zero Booster Pack", 4.49),
)


def make_catalog_id(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower().strip())
    return slug.strip("-")


def normalize_catalog(raw_items: list[dict[str, Any]]) -> list[StaffCatalogItem]:
    """Slug ids, trimmed names; drops blank names and non-positive values."""
    out: list[StaffCatalogItem] = []
    for raw in raw_items:
        name = str(raw.get("name") or "").strip()
        try:
            value = float(raw.get("gbpValue"))
        except (TypeError, ValueError):
            continue
        if not name or not math.isfinite(value) or value <= 0:
            continue
        out.append(
            StaffCatalogItem(
                id=make_catalog_id(str(raw.get("id") or "") or name),
                name=name,
                gbp_value=value,
            )
        )
    return out


def _default_payload() -> list[dict[str, Any]]:
    return [{"id": make_catalog_id(n), "name": n, "gbpValue": v} for n, v in DEFAULT_CATALOG]


async def read_staff_catalog(store: KeyValueStore, key: str) -> list[StaffCatalogItem]:
    raw = await store.read(key)
    if raw is not None and raw.strip():
        return normalize_catalog(json.loads(raw))

    seeded = normalize_catalog(_default_payload())
    await write_staff_catalog(store, key, seeded)
    log.info("Seeded staff catalog with %d default items", len(seeded))
    return seeded


async def write_staff_catalog(store: KeyValueStore, key: str, items: list[StaffCatalogItem]) -> None:
    normalized = normalize_catalog([item.to_payload() for item in items])
    await store.write(key, json.dumps([item.to_payload() for item in normalized], ensure_ascii=False))
