"""Item catalog: config text parsing, the catalog reader and the staff catalog."""

from .config_store import ItemConfigCatalog
from .item_config import (
    ItemConfigEntry,
    ItemConfigError,
    expand_item_entries,
    parse_item_config,
    total_qty,
)
from .staff_catalog import (
    StaffCatalogItem,
    make_catalog_id,
    normalize_catalog,
    read_staff_catalog,
    write_staff_catalog,
)

__all__ = [
    "ItemConfigCatalog",
    "ItemConfigEntry",
    "ItemConfigError",
    "StaffCatalogItem",
    "expand_item_entries",
    "make_catalog_id",
    "normalize_catalog",
    "parse_item_config",
    "read_staff_catalog",
    "total_qty",
    "write_staff_catalog",
]
