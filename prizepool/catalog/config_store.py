# prizepool/catalog/config_store.py
from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from prizepool.catalog.item_config import expand_item_entries, parse_item_config
from prizepool.storage.base import KeyValueStore

log = logging.getLogger(__name__)


class ItemConfigCatalog:
    """
    Catalog reader backed by the key/value store.

    The config text lives under ``key``; when it is missing or blank it is
    seeded from ``seed_path`` (data/items-config.txt) and persisted.
    """

    def __init__(self, store: KeyValueStore, *, key: str, seed_path: Path) -> None:
        self.store = store
        self.key = key
        self.seed_path = Path(seed_path)

    async def read_config_text(self) -> str:
        stored = await self.store.read(self.key)
        if stored is not None and stored.strip():
            return stored

        seeded = await asyncio.to_thread(self.seed_path.read_text, encoding="utf-8")
        await self.store.write(self.key, seeded)
        log.info("Seeded item config from %s", self.seed_path)
        return seeded

    async def write_config_text(self, text: str) -> None:
        await self.store.write(self.key, text)

    async def read_expanded_items(self) -> list[str]:
        text = await self.read_config_text()
        return expand_item_entries(parse_item_config(text))
