from __future__ import annotations

import unittest

from prizepool.catalog.item_config import (
    ItemConfigEntry,
    ItemConfigError,
    expand_item_entries,
    parse_item_config,
    total_qty,
)
from prizepool.catalog.staff_catalog import make_catalog_id, normalize_catalog


class ParseItemConfigTests(unittest.TestCase):
    def test_parses_lines_and_skips_blanks(self) -> None:
        text = "\n  Mega Brave Booster Box - QTY 2  \n\nNihil Zero Booster Pack - qty 3\n"
        entries = parse_item_config(text)
        self.assertEqual(
            entries,
            [
                ItemConfigEntry(name="Mega Brave Booster Box", qty=2),
                ItemConfigEntry(name="Nihil Zero Booster Pack", qty=3),
            ],
        )
        self.assertEqual(total_qty(entries), 5)

    def test_name_may_contain_hyphens(self) -> None:
        entries = parse_item_config("Promo - Special Edition - QTY 4")
        self.assertEqual(entries[0].name, "Promo - Special Edition")
        self.assertEqual(entries[0].qty, 4)

    def test_invalid_line_reports_its_position(self) -> None:
        with self.assertRaises(ItemConfigError) as ctx:
            parse_item_config("Box - QTY 1\nthis is not valid")
        self.assertIn("Invalid line 2", str(ctx.exception))
        self.assertIn("this is not valid", str(ctx.exception))

    def test_zero_quantity_is_rejected(self) -> None:
        with self.assertRaises(ItemConfigError):
            parse_item_config("Box - QTY 0")

    def test_empty_config_is_rejected(self) -> None:
        for text in ("", "   \n\n  "):
            with self.assertRaises(ItemConfigError) as ctx:
                parse_item_config(text)
            self.assertEqual(str(ctx.exception), "Config cannot be empty.")

    def test_config_error_is_a_value_error(self) -> None:
        with self.assertRaises(ValueError):
            parse_item_config("nope")


class ExpandItemEntriesTests(unittest.TestCase):
    def test_expands_in_config_order(self) -> None:
        entries = [ItemConfigEntry("Box", 2), ItemConfigEntry("Pack", 1)]
        self.assertEqual(expand_item_entries(entries), ["Box", "Box", "Pack"])


class StaffCatalogTests(unittest.TestCase):
    def test_make_catalog_id_slugifies(self) -> None:
        self.assertEqual(make_catalog_id("  Mega Brave Booster Box "), "mega-brave-booster-box")

    def test_normalize_drops_invalid_rows(self) -> None:
        items = normalize_catalog(
            [
                {"name": "Box", "gbpValue": 10},
                {"name": "  ", "gbpValue": 5},
                {"name": "Free", "gbpValue": 0},
                {"name": "Broken", "gbpValue": "abc"},
                {"id": "Custom Id", "name": " Pack ", "gbpValue": "4.5"},
            ]
        )
        self.assertEqual([i.name for i in items], ["Box", "Pack"])
        self.assertEqual(items[0].id, "box")
        self.assertEqual(items[1].id, "custom-id")
        self.assertAlmostEqual(items[1].gbp_value, 4.5)


if __name__ == "__main__":
    unittest.main()
