from __future__ import annotations

import unittest
from dataclasses import replace

from prizepool.services.projections import (
    REEL_ITEMS_LIMIT,
    to_admin_payload,
    to_public_payload,
    to_state_payload,
)
from prizepool.services.state_schema import PersistedSpinState, SpinRecord
from prizepool.utils.render import render_public

NOW = "2026-10-18T12:00:00.000Z"


def make_state(**changes) -> PersistedSpinState:
    items = ["A"] * 60 + ["B"] * 40
    state = PersistedSpinState.initial(items, version=7, now=NOW)
    history = tuple(SpinRecord(str(n), f"user{n}", "A", NOW, n) for n in range(30, 0, -1))
    return replace(state, pool=tuple(items[:75]), history=history, **changes)


class PublicPayloadTests(unittest.TestCase):
    def test_online_payload(self) -> None:
        payload = to_public_payload(make_state(), history_limit=5)
        self.assertFalse(payload["isOffline"])
        self.assertEqual(payload["totalCount"], 100)
        self.assertEqual(payload["remainingCount"], 75)
        self.assertEqual(payload["removedCount"], 25)
        self.assertAlmostEqual(payload["progressPercent"], 25.0)
        self.assertEqual(len(payload["reelItems"]), REEL_ITEMS_LIMIT)
        self.assertEqual(len(payload["history"]), 5)
        self.assertEqual(payload["history"][0]["auctionNumber"], "30")
        self.assertNotIn("configHash", payload)
        self.assertNotIn("isTestingMode", payload)

    def test_offline_payload_hides_details(self) -> None:
        payload = to_public_payload(make_state(is_offline=True))
        self.assertEqual(payload, {"isOffline": True, "version": 7, "updatedAt": NOW})

    def test_empty_catalog_has_zero_progress(self) -> None:
        state = PersistedSpinState.initial([], now=NOW)
        self.assertEqual(to_public_payload(state)["progressPercent"], 0)

    def test_offline_render(self) -> None:
        text = render_public(to_public_payload(make_state(is_offline=True)))
        self.assertIn("offline", text)


class AdminPayloadTests(unittest.TestCase):
    def test_admin_payload_includes_flags(self) -> None:
        state = make_state(is_testing_mode=True, is_offline=True)
        payload = to_admin_payload(state, is_owner=True, history_limit=10)
        self.assertTrue(payload["isOwner"])
        self.assertTrue(payload["isTestingMode"])
        self.assertTrue(payload["isOffline"])
        self.assertEqual(len(payload["history"]), 10)
        self.assertEqual(payload["remainingCount"], 75)
        self.assertNotIn("configHash", payload)

    def test_state_payload_drops_internal_fields(self) -> None:
        payload = to_state_payload(make_state())
        self.assertNotIn("configHash", payload)
        self.assertNotIn("schemaVersion", payload)
        self.assertEqual(payload["version"], 7)
        self.assertEqual(len(payload["history"]), 30)


if __name__ == "__main__":
    unittest.main()
