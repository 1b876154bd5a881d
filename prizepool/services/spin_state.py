# prizepool/services/spin_state.py
from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from random import Random
from typing import Callable, Optional, Protocol, Sequence

from prizepool.services.errors import (
    DuplicateAuctionError,
    GiveawayUnavailableError,
    SpinValidationError,
    StateConflictError,
)
from prizepool.services.state_schema import (
    MAX_HISTORY,
    BuyersGiveawayState,
    PersistedSpinState,
    SpinRecord,
    hash_items,
    is_pool_valid_for_items,
    iso_utc,
)
from prizepool.storage.base import KeyValueStore

log = logging.getLogger(__name__)

_POSITIVE_INT = re.compile(r"^\d+$")

Transition = Callable[[PersistedSpinState], Optional[PersistedSpinState]]


class CatalogReader(Protocol):
    async def read_expanded_items(self) -> list[str]: ...


@dataclass(frozen=True, slots=True)
class SingleSpinResult:
    state: PersistedSpinState
    record: Optional[SpinRecord]  # None when the pool was empty


@dataclass(frozen=True, slots=True)
class BulkSpinResult:
    state: PersistedSpinState
    results: tuple[SpinRecord, ...]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


class SpinStateService:
    """
    Spin-state engine: owns the persisted prize pool aggregate.

    Every operation reconciles against the catalog first, applies a pure
    transition to the loaded state, then writes the whole blob back with a
    compare-and-swap on the store revision. A lost race re-reads and re-applies
    the transition (validation included), up to ``max_attempts`` times.
    """

    MAX_BULK_COUNT = 10

    def __init__(
        self,
        store: KeyValueStore,
        catalog: CatalogReader,
        *,
        state_key: str,
        rng: Optional[Random] = None,
        clock: Callable[[], datetime] = _utc_now,
        max_attempts: int = 5,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.catalog = catalog
        self.state_key = state_key
        self._rng = rng or secrets.SystemRandom()
        self._clock = clock
        self.max_attempts = max_attempts

    def _now(self) -> str:
        return iso_utc(self._clock())

    # ------------------------------------------------------------------
    # reconciliation
    # ------------------------------------------------------------------
    async def _ensure(self) -> tuple[PersistedSpinState, int]:
        """Return the reconciled state and the store revision it was read at."""
        for attempt in range(1, self.max_attempts + 1):
            items = await self.catalog.read_expanded_items()
            config_hash = hash_items(items)
            entry = await self.store.read_entry(self.state_key)

            if entry is None:
                created = PersistedSpinState.initial(items, now=self._now())
                if await self.store.write(self.state_key, created.dumps(), expected_revision=0):
                    log.info("Spin state initialised with %d items", len(items))
                    return created, 1
                log.warning("Spin state init raced another writer (attempt %d)", attempt)
                continue

            stored = PersistedSpinState.loads(entry.value, now=self._now())
            config_changed = stored.config_hash != config_hash
            pool_broken = not is_pool_valid_for_items(stored.pool, items)
            if not (config_changed or pool_broken):
                return stored, entry.revision

            rebuilt = stored.rebuilt_from(items, now=self._now())
            if await self.store.write(
                self.state_key, rebuilt.dumps(), expected_revision=entry.revision
            ):
                log.warning(
                    "Spin state rebuilt from catalog (%s), v%d -> v%d, %d items",
                    "catalog changed" if config_changed else "pool repair",
                    stored.version,
                    rebuilt.version,
                    len(items),
                )
                return rebuilt, entry.revision + 1
            log.warning("Spin state rebuild raced another writer (attempt %d)", attempt)

        raise StateConflictError("Spin state is busy. Please try again.")

    async def ensure_state(self) -> PersistedSpinState:
        state, _ = await self._ensure()
        return state

    async def get_spin_state(self) -> PersistedSpinState:
        return await self.ensure_state()

    async def _mutate(self, action: str, transition: Transition) -> tuple[PersistedSpinState, bool]:
        """Returns (state, changed). ``transition`` returning None means no-op."""
        for attempt in range(1, self.max_attempts + 1):
            state, revision = await self._ensure()
            nxt = transition(state)
            if nxt is None:
                return state, False
            if await self.store.write(self.state_key, nxt.dumps(), expected_revision=revision):
                return nxt, True
            log.warning(
                "Spin state write conflict on %s (attempt %d/%d), retrying",
                action,
                attempt,
                self.max_attempts,
            )
        raise StateConflictError(f"Spin state is busy, {action} was not applied. Please try again.")

    # ------------------------------------------------------------------
    # draws
    # ------------------------------------------------------------------
    def _draw_index(self, pool: Sequence[str]) -> int:
        # Fairness guarantee: every remaining entry has probability 1 / len(pool).
        # No weighting by item rarity or value is applied.
        return self._rng.randrange(len(pool))

    async def spin_once(self, auction_number: str, username: str) -> PersistedSpinState:
        """Draw one entry. An empty pool returns the current state unchanged."""
        result = await self.spin_single(auction_number, username)
        return result.state

    async def spin_single(self, auction_number: str, username: str) -> SingleSpinResult:
        auction_number = _clean(auction_number)
        username = _clean(username)
        if not auction_number or not username:
            raise SpinValidationError("Auction number and username are required.")

        def transition(state: PersistedSpinState) -> Optional[PersistedSpinState]:
            if not state.is_testing_mode and state.has_auction(auction_number):
                raise DuplicateAuctionError([auction_number])
            if not state.pool:
                log.debug("Spin requested on empty pool (v%d)", state.version)
                return None

            index = self._draw_index(state.pool)
            item = state.pool[index]
            version = state.version + 1
            record = SpinRecord(
                auction_number=auction_number,
                username=username,
                item=item,
                spun_at=self._now(),
                version=version,
            )
            return replace(
                state,
                pool=state.pool[:index] + state.pool[index + 1:],
                selected_item=item,
                version=version,
                updated_at=record.spun_at,
                last_spin=record,
                history=((record,) + state.history)[:MAX_HISTORY],
            )

        state, changed = await self._mutate("spin", transition)
        if not changed:
            return SingleSpinResult(state=state, record=None)

        log.info(
            "Spin v%d: auction=%s user=%s item=%s remaining=%d",
            state.version,
            auction_number,
            username,
            state.selected_item,
            len(state.pool),
        )
        return SingleSpinResult(state=state, record=state.last_spin)

    async def spin_bulk(
        self, auction_number_start: str, username: str, count: int
    ) -> BulkSpinResult:
        """
        Draw up to ``count`` entries for auction numbers start, start+1, ...

        All numbers are checked for duplicates before any draw. The count is
        clamped to the remaining pool. The state version goes up by one for the
        whole call, so every record in the batch carries the same ``version``;
        use ``auction_number`` to tell them apart.
        """
        start_raw = _clean(auction_number_start)
        username = _clean(username)
        if not _POSITIVE_INT.match(start_raw) or int(start_raw) < 1:
            raise SpinValidationError(
                f"Starting auction number must be a positive whole number, got {start_raw!r}."
            )
        if not username:
            raise SpinValidationError("Username is required.")
        if isinstance(count, bool) or not isinstance(count, int):
            raise SpinValidationError(f"Bulk count must be a whole number, got {count!r}.")
        if not 1 <= count <= self.MAX_BULK_COUNT:
            raise SpinValidationError(
                f"Bulk count must be between 1 and {self.MAX_BULK_COUNT}, got {count}."
            )

        start = int(start_raw)
        auction_numbers = [str(start + offset) for offset in range(count)]

        def transition(state: PersistedSpinState) -> Optional[PersistedSpinState]:
            if not state.is_testing_mode:
                taken = [n for n in auction_numbers if state.has_auction(n)]
                if taken:
                    raise DuplicateAuctionError(taken)
            if not state.pool:
                log.debug("Bulk spin requested on empty pool (v%d)", state.version)
                return None

            draws = min(count, len(state.pool))
            pool = list(state.pool)
            history = state.history
            # one version bump per call; every record in the batch shares it
            version = state.version + 1
            spun_at = self._now()
            results: list[SpinRecord] = []
            for auction_number in auction_numbers[:draws]:
                index = self._draw_index(pool)
                item = pool.pop(index)
                record = SpinRecord(
                    auction_number=auction_number,
                    username=username,
                    item=item,
                    spun_at=spun_at,
                    version=version,
                )
                results.append(record)
                history = (record,) + history

            last = results[-1]
            return replace(
                state,
                pool=tuple(pool),
                selected_item=last.item,
                version=version,
                updated_at=spun_at,
                last_spin=last,
                history=history[:MAX_HISTORY],
                recent_bulk_results=tuple(results),
            )

        state, changed = await self._mutate("bulk spin", transition)
        if not changed:
            return BulkSpinResult(state=state, results=())

        if len(state.recent_bulk_results) < count:
            log.info(
                "Bulk spin clamped to %d of %d requested (pool exhausted)",
                len(state.recent_bulk_results),
                count,
            )
        log.info(
            "Bulk spin v%d: auctions=%s..%s user=%s draws=%d remaining=%d",
            state.version,
            auction_numbers[0],
            state.recent_bulk_results[-1].auction_number,
            username,
            len(state.recent_bulk_results),
            len(state.pool),
        )
        return BulkSpinResult(state=state, results=state.recent_bulk_results)

    # ------------------------------------------------------------------
    # resets
    # ------------------------------------------------------------------
    async def reset_spin_state(self) -> PersistedSpinState:
        def transition(state: PersistedSpinState) -> PersistedSpinState:
            return replace(
                state,
                pool=state.items,
                selected_item=None,
                version=state.version + 1,
                updated_at=self._now(),
            )

        state, _ = await self._mutate("reset", transition)
        log.info("Pool reset v%d: %d items", state.version, len(state.pool))
        return state

    async def reset_spin_state_from_items(self, items: Sequence[str]) -> PersistedSpinState:
        """
        Rebuild from a freshly saved catalog. Reads the stored blob directly,
        skipping reconciliation, because the catalog has just changed.
        """
        items = tuple(str(i) for i in items)
        for attempt in range(1, self.max_attempts + 1):
            entry = await self.store.read_entry(self.state_key)
            now = self._now()
            if entry is None:
                nxt = PersistedSpinState.initial(items, version=1, now=now)
                expected = 0
            else:
                stored = PersistedSpinState.loads(entry.value, now=now)
                nxt = stored.rebuilt_from(items, now=now)
                expected = entry.revision

            if await self.store.write(self.state_key, nxt.dumps(), expected_revision=expected):
                log.info("Pool rebuilt from new catalog v%d: %d items", nxt.version, len(items))
                return nxt
            log.warning("Catalog reset write conflict (attempt %d/%d)", attempt, self.max_attempts)

        raise StateConflictError("Spin state is busy, the catalog reset was not applied.")

    async def reset_pool_and_clear_history(self) -> PersistedSpinState:
        def transition(state: PersistedSpinState) -> PersistedSpinState:
            return replace(
                state,
                pool=state.items,
                selected_item=None,
                last_spin=None,
                history=(),
                recent_bulk_results=(),
                buyers_giveaway=None,
                current_buyers_giveaway_item=None,
                version=state.version + 1,
                updated_at=self._now(),
            )

        state, _ = await self._mutate("hard reset", transition)
        log.info("Hard reset v%d: pool restored, history cleared", state.version)
        return state

    async def clear_spin_history(self) -> PersistedSpinState:
        def transition(state: PersistedSpinState) -> PersistedSpinState:
            return replace(
                state,
                selected_item=None,
                last_spin=None,
                history=(),
                recent_bulk_results=(),
                buyers_giveaway=None,
                current_buyers_giveaway_item=None,
                version=state.version + 1,
                updated_at=self._now(),
            )

        state, _ = await self._mutate("clear history", transition)
        log.info("History cleared v%d (pool untouched, %d remaining)", state.version, len(state.pool))
        return state

    # ------------------------------------------------------------------
    # toggles
    # ------------------------------------------------------------------
    async def set_public_offline(self, is_offline: bool) -> PersistedSpinState:
        def transition(state: PersistedSpinState) -> PersistedSpinState:
            return replace(
                state,
                is_offline=bool(is_offline),
                version=state.version + 1,
                updated_at=self._now(),
            )

        state, _ = await self._mutate("set offline", transition)
        log.info("Public view %s v%d", "offline" if state.is_offline else "online", state.version)
        return state

    async def set_testing_mode(self, is_testing_mode: bool) -> PersistedSpinState:
        def transition(state: PersistedSpinState) -> PersistedSpinState:
            return replace(
                state,
                is_testing_mode=bool(is_testing_mode),
                version=state.version + 1,
                updated_at=self._now(),
            )

        state, _ = await self._mutate("set testing mode", transition)
        if state.is_testing_mode:
            log.warning("Testing mode ENABLED v%d: auction numbers may repeat", state.version)
        else:
            log.info("Testing mode disabled v%d", state.version)
        return state

    # ------------------------------------------------------------------
    # buyer's giveaway
    # ------------------------------------------------------------------
    async def set_current_buyers_giveaway_item(self, item_name: str) -> PersistedSpinState:
        item_name = _clean(item_name)
        if not item_name:
            raise SpinValidationError("Buyer's giveaway item name is required.")

        def transition(state: PersistedSpinState) -> PersistedSpinState:
            return replace(
                state,
                current_buyers_giveaway_item=item_name,
                version=state.version + 1,
                updated_at=self._now(),
            )

        state, _ = await self._mutate("set giveaway item", transition)
        log.info("Buyer's giveaway prize set to %r v%d", item_name, state.version)
        return state

    async def run_buyers_giveaway(self, item_name: Optional[str] = None) -> PersistedSpinState:
        override = _clean(item_name)

        def transition(state: PersistedSpinState) -> PersistedSpinState:
            prize = override or _clean(state.current_buyers_giveaway_item)
            if not prize:
                raise GiveawayUnavailableError("Set a buyer's giveaway item first.")
            if not state.history:
                raise GiveawayUnavailableError("No auction entries available for buyer's giveaway.")

            # one entry per spin, so repeat buyers hold proportionally more entries
            entries = [record.username for record in state.history]
            winner = entries[self._draw_index(entries)]
            ran_at = self._now()
            version = state.version + 1
            return replace(
                state,
                buyers_giveaway=BuyersGiveawayState(
                    item_name=prize,
                    winner_username=winner,
                    source_entry_count=len(entries),
                    ran_at=ran_at,
                    version=version,
                ),
                current_buyers_giveaway_item=None,
                version=version,
                updated_at=ran_at,
            )

        state, _ = await self._mutate("buyer's giveaway", transition)
        giveaway = state.buyers_giveaway
        if giveaway is not None:
            log.info(
                "Buyer's giveaway v%d: %r won by %s (%d entries)",
                state.version,
                giveaway.item_name,
                giveaway.winner_username,
                giveaway.source_entry_count,
            )
        return state
