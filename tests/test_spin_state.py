from __future__ import annotations

import asyncio
import random
import unittest
from collections import Counter
from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional

from prizepool.services.errors import (
    DuplicateAuctionError,
    GiveawayUnavailableError,
    SpinValidationError,
    StateConflictError,
)
from prizepool.services.spin_state import SpinStateService
from prizepool.services.state_schema import PersistedSpinState
from prizepool.storage.memory import MemoryKeyValueStore

FIXED = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
STATE_KEY = "spin_state"


class StaticCatalog:
    def __init__(self, items) -> None:
        self.items = list(items)

    async def read_expanded_items(self) -> list[str]:
        return list(self.items)


class StaleWriteStore(MemoryKeyValueStore):
    """Accepts writes until `stale` is set, then reports every write as lost."""

    def __init__(self) -> None:
        super().__init__()
        self.stale = False

    async def write(self, key: str, value: str, *, expected_revision: Optional[int] = None) -> bool:
        if self.stale:
            await asyncio.sleep(0)
            return False
        return await super().write(key, value, expected_revision=expected_revision)


def make_service(items=("A", "B", "C", "D", "E"), *, store=None, seed=7, **kwargs):
    store = store if store is not None else MemoryKeyValueStore()
    catalog = StaticCatalog(items)
    service = SpinStateService(
        store,
        catalog,
        state_key=STATE_KEY,
        rng=random.Random(seed),
        clock=lambda: FIXED,
        **kwargs,
    )
    return service, store, catalog


async def build_audit_trail(service: SpinStateService) -> PersistedSpinState:
    """Bulk results, a finished giveaway, a pending prize and both flags on."""
    await service.spin_bulk("1", "alice", 2)
    await service.set_current_buyers_giveaway_item("Tin")
    await service.run_buyers_giveaway()
    await service.set_current_buyers_giveaway_item("Box")
    await service.set_testing_mode(True)
    state = await service.set_public_offline(True)

    assert len(state.recent_bulk_results) == 2
    assert state.buyers_giveaway is not None
    return state


class AuditTrailAssertions:
    def assertCarriesAuditTrail(self, after: PersistedSpinState, before: PersistedSpinState) -> None:
        self.assertEqual(after.history, before.history)
        self.assertEqual(after.last_spin, before.last_spin)
        self.assertEqual(after.recent_bulk_results, before.recent_bulk_results)
        self.assertEqual(after.buyers_giveaway, before.buyers_giveaway)
        self.assertEqual(after.current_buyers_giveaway_item, "Box")
        self.assertTrue(after.is_testing_mode)
        self.assertTrue(after.is_offline)


class EnsureStateTests(AuditTrailAssertions, unittest.IsolatedAsyncioTestCase):
    async def test_first_read_initialises_state(self) -> None:
        service, store, _ = make_service(("A", "B"))
        state = await service.ensure_state()
        self.assertEqual(state.items, ("A", "B"))
        self.assertEqual(state.pool, ("A", "B"))
        self.assertEqual(state.version, 1)
        self.assertEqual(state.updated_at, "2026-10-18T12:00:00.000Z")
        self.assertEqual(store.write_count, 1)

        again = await service.get_spin_state()
        self.assertEqual(again, state)
        self.assertEqual(store.write_count, 1)

    async def test_catalog_change_rebuilds_pool_and_keeps_audit(self) -> None:
        service, _, catalog = make_service(("A", "B", "C"))
        before = await build_audit_trail(service)

        catalog.items = ["X", "Y"]
        after = await service.get_spin_state()

        self.assertEqual(after.items, ("X", "Y"))
        self.assertEqual(after.pool, ("X", "Y"))
        self.assertIsNone(after.selected_item)
        self.assertEqual(after.version, before.version + 1)
        self.assertCarriesAuditTrail(after, before)

    async def test_corrupted_pool_is_repaired(self) -> None:
        items = ("A", "B")
        broken = replace(
            PersistedSpinState.initial(items, version=4, now="2026-01-01T00:00:00.000Z"),
            pool=("A", "A", "Z"),
        )
        store = MemoryKeyValueStore({STATE_KEY: broken.dumps()})
        service, _, _ = make_service(items, store=store)

        state = await service.get_spin_state()
        self.assertEqual(state.pool, items)
        self.assertEqual(state.version, 5)

    async def test_legacy_blob_is_loaded_with_defaults(self) -> None:
        store = MemoryKeyValueStore({STATE_KEY: '{"items": ["A", "B"], "pool": ["B"], "version": 9}'})
        service, _, _ = make_service(("A", "B"), store=store)

        state = await service.get_spin_state()
        self.assertEqual(state.pool, ("B",))
        self.assertEqual(state.version, 9)
        self.assertFalse(state.is_testing_mode)
        self.assertEqual(store.write_count, 0)


class SingleSpinTests(unittest.IsolatedAsyncioTestCase):
    async def test_spin_moves_one_entry_from_pool_to_history(self) -> None:
        service, _, _ = make_service()
        result = await service.spin_single(" 101 ", " alice ")

        record = result.record
        self.assertIsNotNone(record)
        self.assertEqual(record.auction_number, "101")
        self.assertEqual(record.username, "alice")
        self.assertEqual(record.version, 2)
        self.assertEqual(record.spun_at, "2026-10-18T12:00:00.000Z")

        state = result.state
        self.assertEqual(state.version, 2)
        self.assertEqual(state.selected_item, record.item)
        self.assertEqual(state.last_spin, record)
        self.assertEqual(state.history, (record,))
        self.assertEqual(Counter(state.pool) + Counter([record.item]), Counter(state.items))

    async def test_repeat_auction_is_rejected_end_to_end(self) -> None:
        service, _, _ = make_service(("Pack", "Pack", "Box"))
        state = await service.spin_once("1", "alice")
        self.assertEqual(len(state.pool), 2)
        self.assertIn(state.selected_item, {"Pack", "Box"})
        self.assertEqual(state.version, 2)
        self.assertEqual(len(state.history), 1)

        with self.assertRaises(DuplicateAuctionError):
            await service.spin_once("1", "alice")
        self.assertEqual((await service.get_spin_state()).version, 2)

    async def test_spin_once_returns_new_state(self) -> None:
        service, _, _ = make_service()
        state = await service.spin_once("101", "alice")
        self.assertEqual(len(state.pool), 4)
        self.assertEqual(state.history[0].auction_number, "101")

    async def test_blank_fields_are_rejected(self) -> None:
        service, store, _ = make_service()
        await service.ensure_state()
        for auction, user in (("", "alice"), ("101", "   "), (None, "alice")):
            with self.assertRaises(SpinValidationError):
                await service.spin_single(auction, user)
        self.assertEqual(store.write_count, 1)

    async def test_duplicate_auction_is_rejected_case_insensitively(self) -> None:
        service, _, _ = make_service()
        await service.spin_single("AB12", "alice")
        before = await service.get_spin_state()

        with self.assertRaises(DuplicateAuctionError) as ctx:
            await service.spin_single("ab12", "bob")
        self.assertEqual(ctx.exception.auction_number, "ab12")
        self.assertIn("already exists", str(ctx.exception))

        after = await service.get_spin_state()
        self.assertEqual(after, before)

    async def test_testing_mode_allows_repeated_auctions(self) -> None:
        service, _, _ = make_service()
        await service.spin_single("1", "alice")
        await service.set_testing_mode(True)

        result = await service.spin_single("1", "alice")
        self.assertIsNotNone(result.record)
        self.assertEqual(len(result.state.history), 2)

    async def test_empty_pool_is_a_no_op(self) -> None:
        service, store, _ = make_service(("A",))
        await service.spin_single("1", "alice")
        writes = store.write_count
        before = await service.get_spin_state()

        result = await service.spin_single("2", "bob")
        self.assertIsNone(result.record)
        self.assertEqual(result.state, before)
        self.assertEqual(store.write_count, writes)

    async def test_duplicate_check_runs_before_empty_pool_check(self) -> None:
        service, _, _ = make_service(("A",))
        await service.spin_single("1", "alice")
        with self.assertRaises(DuplicateAuctionError):
            await service.spin_single("1", "alice")


class BulkSpinTests(unittest.IsolatedAsyncioTestCase):
    async def test_bulk_draws_sequential_auctions(self) -> None:
        service, _, _ = make_service()
        await service.ensure_state()

        result = await service.spin_bulk("100", "bob", 3)
        self.assertEqual([r.auction_number for r in result.results], ["100", "101", "102"])
        self.assertEqual([r.version for r in result.results], [2, 2, 2])
        self.assertTrue(all(r.username == "bob" for r in result.results))

        state = result.state
        self.assertEqual(state.version, 2)
        self.assertEqual(state.recent_bulk_results, result.results)
        self.assertEqual([r.auction_number for r in state.history], ["102", "101", "100"])
        self.assertEqual(state.last_spin, result.results[-1])
        self.assertEqual(state.selected_item, result.results[-1].item)
        drawn = Counter(r.item for r in result.results)
        self.assertEqual(Counter(state.pool) + drawn, Counter(state.items))

    async def test_bulk_is_clamped_to_pool_size(self) -> None:
        service, _, _ = make_service(("A", "B"))
        result = await service.spin_bulk("1", "bob", 5)
        self.assertEqual(len(result.results), 2)
        self.assertEqual(result.state.pool, ())
        self.assertEqual(sorted(r.item for r in result.results), ["A", "B"])

    async def test_bulk_on_empty_pool_is_a_no_op(self) -> None:
        service, store, _ = make_service(("A",))
        await service.spin_single("1", "alice")
        writes = store.write_count

        result = await service.spin_bulk("10", "bob", 2)
        self.assertEqual(result.results, ())
        self.assertEqual(store.write_count, writes)

    async def test_bulk_input_validation(self) -> None:
        service, store, _ = make_service()
        await service.ensure_state()
        bad_calls = [
            ("abc", "bob", 1),
            ("0", "bob", 1),
            ("-1", "bob", 1),
            ("1.5", "bob", 1),
            ("1", "", 1),
            ("1", "bob", 0),
            ("1", "bob", 11),
            ("1", "bob", True),
            ("1", "bob", 2.5),
        ]
        for start, user, count in bad_calls:
            with self.subTest(start=start, user=user, count=count):
                with self.assertRaises(SpinValidationError):
                    await service.spin_bulk(start, user, count)
        self.assertEqual(store.write_count, 1)

    async def test_bulk_rejects_whole_batch_on_any_duplicate(self) -> None:
        service, _, _ = make_service()
        await service.spin_single("102", "alice")
        before = await service.get_spin_state()

        with self.assertRaises(DuplicateAuctionError) as ctx:
            await service.spin_bulk("100", "bob", 4)
        self.assertEqual(ctx.exception.auction_numbers, ("102",))

        after = await service.get_spin_state()
        self.assertEqual(after, before)

    async def test_bulk_in_testing_mode_skips_duplicate_check(self) -> None:
        service, _, _ = make_service()
        await service.set_testing_mode(True)
        await service.spin_single("101", "alice")
        result = await service.spin_bulk("100", "bob", 2)
        self.assertEqual(len(result.results), 2)


class ResetTests(AuditTrailAssertions, unittest.IsolatedAsyncioTestCase):
    async def test_reset_restores_pool_and_keeps_history(self) -> None:
        service, _, _ = make_service()
        before = await build_audit_trail(service)

        state = await service.reset_spin_state()
        self.assertEqual(state.pool, state.items)
        self.assertIsNone(state.selected_item)
        self.assertEqual(state.version, before.version + 1)
        self.assertCarriesAuditTrail(state, before)

    async def test_hard_reset_clears_everything_but_flags(self) -> None:
        service, _, _ = make_service()
        await service.spin_bulk("1", "alice", 2)
        await service.set_current_buyers_giveaway_item("Box")
        await service.run_buyers_giveaway()
        await service.set_public_offline(True)

        state = await service.reset_pool_and_clear_history()
        self.assertEqual(state.pool, state.items)
        self.assertEqual(state.history, ())
        self.assertEqual(state.recent_bulk_results, ())
        self.assertIsNone(state.last_spin)
        self.assertIsNone(state.buyers_giveaway)
        self.assertIsNone(state.current_buyers_giveaway_item)
        self.assertTrue(state.is_offline)

    async def test_clear_history_leaves_pool_alone(self) -> None:
        service, _, _ = make_service()
        before = await build_audit_trail(service)

        state = await service.clear_spin_history()
        self.assertEqual(state.pool, before.pool)
        self.assertEqual(state.history, ())
        self.assertEqual(state.recent_bulk_results, ())
        self.assertIsNone(state.last_spin)
        self.assertIsNone(state.selected_item)
        self.assertIsNone(state.buyers_giveaway)
        self.assertIsNone(state.current_buyers_giveaway_item)
        self.assertTrue(state.is_testing_mode)
        self.assertTrue(state.is_offline)

        await service.set_testing_mode(False)
        # cleared auction numbers may be reused
        result = await service.spin_single("1", "bob")
        self.assertIsNotNone(result.record)

    async def test_reset_from_items_rebuilds_with_new_catalog(self) -> None:
        service, _, catalog = make_service(("A", "B", "C"))
        before = await build_audit_trail(service)

        catalog.items = ["C", "C", "D"]
        state = await service.reset_spin_state_from_items(["C", "C", "D"])
        self.assertEqual(state.items, ("C", "C", "D"))
        self.assertEqual(state.pool, ("C", "C", "D"))
        self.assertIsNone(state.selected_item)
        self.assertEqual(state.version, before.version + 1)
        self.assertCarriesAuditTrail(state, before)

        # no second rebuild once the catalog agrees
        self.assertEqual(await service.get_spin_state(), state)

    async def test_reset_from_items_without_stored_state(self) -> None:
        service, _, _ = make_service(("A",))
        state = await service.reset_spin_state_from_items(["A"])
        self.assertEqual(state.version, 1)
        self.assertEqual(state.pool, ("A",))


class GiveawayTests(unittest.IsolatedAsyncioTestCase):
    async def test_requires_a_prize(self) -> None:
        service, _, _ = make_service()
        await service.spin_single("1", "alice")
        with self.assertRaises(GiveawayUnavailableError) as ctx:
            await service.run_buyers_giveaway()
        self.assertEqual(str(ctx.exception), "Set a buyer's giveaway item first.")

    async def test_requires_history(self) -> None:
        service, _, _ = make_service()
        await service.set_current_buyers_giveaway_item("Box")
        with self.assertRaises(GiveawayUnavailableError) as ctx:
            await service.run_buyers_giveaway()
        self.assertEqual(str(ctx.exception), "No auction entries available for buyer's giveaway.")

    async def test_blank_prize_name_is_rejected(self) -> None:
        service, _, _ = make_service()
        with self.assertRaises(SpinValidationError):
            await service.set_current_buyers_giveaway_item("   ")

    async def test_run_records_winner_and_clears_pending_prize(self) -> None:
        service, _, _ = make_service()
        await service.spin_single("1", "alice")
        await service.spin_single("2", "bob")
        await service.set_current_buyers_giveaway_item(" Box ")

        state = await service.run_buyers_giveaway()
        giveaway = state.buyers_giveaway
        self.assertEqual(giveaway.item_name, "Box")
        self.assertIn(giveaway.winner_username, {"alice", "bob"})
        self.assertEqual(giveaway.source_entry_count, 2)
        self.assertEqual(giveaway.version, state.version)
        self.assertIsNone(state.current_buyers_giveaway_item)

    async def test_explicit_prize_overrides_pending(self) -> None:
        service, _, _ = make_service()
        await service.spin_single("1", "alice")
        await service.set_current_buyers_giveaway_item("Box")

        state = await service.run_buyers_giveaway("Pack")
        self.assertEqual(state.buyers_giveaway.item_name, "Pack")
        self.assertIsNone(state.current_buyers_giveaway_item)

    async def test_entries_are_weighted_by_spin_count(self) -> None:
        service, _, _ = make_service(("A", "B", "C", "D", "E", "F"), seed=1234)
        for auction in ("1", "2", "3"):
            await service.spin_single(auction, "alice")
        await service.spin_single("4", "bob")

        trials = 1200
        wins = Counter()
        for _ in range(trials):
            state = await service.run_buyers_giveaway("Prize")
            wins[state.buyers_giveaway.winner_username] += 1

        self.assertEqual(set(wins), {"alice", "bob"})
        # expected 900 / 300, sigma is 15
        self.assertAlmostEqual(wins["alice"], 900, delta=75)


class FairnessTests(unittest.IsolatedAsyncioTestCase):
    async def test_first_draw_is_uniform_over_pool(self) -> None:
        service, _, _ = make_service(("A", "B", "C", "D"), seed=99)
        await service.set_testing_mode(True)

        trials = 1200
        first = Counter()
        for _ in range(trials):
            await service.reset_spin_state()
            result = await service.spin_single("1", "alice")
            first[result.record.item] += 1

        self.assertEqual(set(first), {"A", "B", "C", "D"})
        for item, hits in first.items():
            with self.subTest(item=item):
                # expected 300, sigma is 15
                self.assertAlmostEqual(hits, 300, delta=75)

    async def test_duplicate_entries_weigh_by_quantity(self) -> None:
        service, _, _ = make_service(("Box", "Pack", "Pack", "Pack"), seed=5)
        await service.set_testing_mode(True)

        trials = 1200
        first = Counter()
        for _ in range(trials):
            await service.reset_spin_state()
            result = await service.spin_single("1", "alice")
            first[result.record.item] += 1

        self.assertAlmostEqual(first["Pack"], 900, delta=75)


class VersioningTests(unittest.IsolatedAsyncioTestCase):
    async def test_every_mutation_bumps_version(self) -> None:
        service, _, _ = make_service()
        versions = [(await service.ensure_state()).version]
        versions.append((await service.spin_once("1", "a")).version)
        versions.append((await service.spin_bulk("10", "b", 2)).state.version)
        versions.append((await service.set_public_offline(True)).version)
        versions.append((await service.set_testing_mode(True)).version)
        versions.append((await service.set_current_buyers_giveaway_item("Box")).version)
        versions.append((await service.run_buyers_giveaway()).version)
        versions.append((await service.clear_spin_history()).version)
        versions.append((await service.reset_spin_state()).version)
        versions.append((await service.reset_pool_and_clear_history()).version)

        self.assertEqual(versions, [1, 2, 3, 4, 5, 6, 7, 8, 9, 10])


class ConcurrencyTests(unittest.IsolatedAsyncioTestCase):
    async def test_concurrent_spins_never_lose_a_draw(self) -> None:
        items = [f"item-{i}" for i in range(20)]
        service, _, _ = make_service(items, max_attempts=10)
        await service.ensure_state()

        results = await asyncio.gather(
            *(service.spin_single(str(n), f"user{n}") for n in range(5))
        )

        state = await service.get_spin_state()
        self.assertEqual(len(state.pool), 15)
        self.assertEqual(len(state.history), 5)
        self.assertEqual(sorted(r.record.version for r in results), [2, 3, 4, 5, 6])
        drawn = Counter(r.item for r in state.history)
        self.assertEqual(Counter(state.pool) + drawn, Counter(items))

    async def test_concurrent_duplicate_auction_admits_one(self) -> None:
        service, _, _ = make_service(max_attempts=10)
        await service.ensure_state()

        outcomes = await asyncio.gather(
            service.spin_single("500", "alice"),
            service.spin_single("500", "bob"),
            return_exceptions=True,
        )
        errors = [o for o in outcomes if isinstance(o, Exception)]
        self.assertEqual(len(errors), 1)
        self.assertIsInstance(errors[0], DuplicateAuctionError)

        state = await service.get_spin_state()
        self.assertEqual(len(state.history), 1)
        self.assertEqual(len(state.pool), 4)

    async def test_persistent_conflicts_surface_as_error(self) -> None:
        store = StaleWriteStore()
        service, _, _ = make_service(store=store, max_attempts=3)
        await service.ensure_state()

        store.stale = True
        with self.assertRaises(StateConflictError):
            await service.spin_single("1", "alice")
        with self.assertRaises(StateConflictError):
            await service.reset_spin_state()

    def test_max_attempts_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            SpinStateService(MemoryKeyValueStore(), StaticCatalog(["A"]), state_key="k", max_attempts=0)


if __name__ == "__main__":
    unittest.main()
