# prizepool/services/item_config_service.py
from __future__ import annotations

import logging
from dataclasses import dataclass

from prizepool.catalog.config_store import ItemConfigCatalog
from prizepool.catalog.item_config import expand_item_entries, parse_item_config, total_qty
from prizepool.catalog.staff_catalog import StaffCatalogItem, read_staff_catalog
from prizepool.services.spin_state import SpinStateService
from prizepool.services.state_schema import PersistedSpinState
from prizepool.storage.base import KeyValueStore

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ItemConfigView:
    config_text: str
    total_items: int
    expanded_items: list[str]


@dataclass(frozen=True, slots=True)
class ItemConfigUpdate:
    view: ItemConfigView
    state: PersistedSpinState


class ItemConfigService:
    """Owner-side editing of the item config, followed by a pool rebuild."""

    MAX_TOTAL_ITEMS = 500

    def __init__(
        self,
        catalog: ItemConfigCatalog,
        spin_state: SpinStateService,
        *,
        store: KeyValueStore,
        staff_catalog_key: str,
    ) -> None:
        self.catalog = catalog
        self.spin_state = spin_state
        self.store = store
        self.staff_catalog_key = staff_catalog_key

    async def staff_catalog(self) -> list[StaffCatalogItem]:
        return await read_staff_catalog(self.store, self.staff_catalog_key)

    async def describe(self) -> ItemConfigView:
        text = await self.catalog.read_config_text()
        entries = parse_item_config(text)
        return ItemConfigView(
            config_text=text,
            total_items=total_qty(entries),
            expanded_items=expand_item_entries(entries),
        )

    async def update_config(self, config_text: str) -> ItemConfigUpdate:
        """
        Validate and save new config text, then rebuild the pool from it.

        Raises ValueError (ItemConfigError for parse errors) before anything
        is written.
        """
        normalized = config_text.replace("\r\n", "\n").strip() + "\n"
        entries = parse_item_config(normalized)

        allowed = {item.name for item in await self.staff_catalog()}
        for entry in entries:
            if entry.name not in allowed:
                raise ValueError(
                    f'Invalid item "{entry.name}". Only predefined catalog items are allowed.'
                )

        total = total_qty(entries)
        if total > self.MAX_TOTAL_ITEMS:
            raise ValueError(
                f"Total quantity is too large ({total}). Keep total at {self.MAX_TOTAL_ITEMS} items or fewer."
            )

        await self.catalog.write_config_text(normalized)
        expanded = expand_item_entries(entries)
        state = await self.spin_state.reset_spin_state_from_items(expanded)
        log.info("Item config saved: %d entries, %d items", len(entries), total)

        return ItemConfigUpdate(
            view=ItemConfigView(config_text=normalized, total_items=total, expanded_items=expanded),
            state=state,
        )
