# prizepool/services/state_schema.py
"""
Persisted shape of the spin state.

The blob is JSON with camelCase field names. Every field has a default so
older or partial blobs load without a migration step; ``schemaVersion`` is
written on every save and is absent on legacy blobs.
"""

from __future__ import annotations

import hashlib
import json
from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

SCHEMA_VERSION = 1
MAX_HISTORY = 200


def iso_utc(dt: datetime) -> str:
    """``2026-10-18T17:20:01.123Z`` style timestamp."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def hash_items(items: Iterable[str]) -> str:
    return hashlib.sha256("\n".join(items).encode("utf-8")).hexdigest()


def is_pool_valid_for_items(pool: Iterable[str], items: Iterable[str]) -> bool:
    """True when ``pool`` is a sub-multiset of ``items``."""
    remaining = Counter(items)
    for item in pool:
        if remaining[item] <= 0:
            return False
        remaining[item] -= 1
    return True


def _str_tuple(raw: Any) -> tuple[str, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(str(x) for x in raw)


def _opt_str(raw: Any) -> Optional[str]:
    return None if raw is None else str(raw)


def _int(raw: Any, default: int) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        return default


def _bool(raw: Any, default: bool) -> bool:
    # only real JSON booleans; "false" or 0 must not switch a flag on
    return raw if isinstance(raw, bool) else default


@dataclass(frozen=True, slots=True)
class SpinRecord:
    auction_number: str
    username: str
    item: str
    spun_at: str
    version: int

    def to_json(self) -> dict[str, Any]:
        return {
            "auctionNumber": self.auction_number,
            "username": self.username,
            "item": self.item,
            "spunAt": self.spun_at,
            "version": self.version,
        }

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> "SpinRecord":
        return cls(
            auction_number=str(raw.get("auctionNumber") or ""),
            username=str(raw.get("username") or ""),
            item=str(raw.get("item") or ""),
            spun_at=str(raw.get("spunAt") or ""),
            version=_int(raw.get("version"), 0),
        )


@dataclass(frozen=True, slots=True)
class BuyersGiveawayState:
    item_name: str
    winner_username: str
    source_entry_count: int
    ran_at: str
    version: int

    def to_json(self) -> dict[str, Any]:
        return {
            "itemName": self.item_name,
            "winnerUsername": self.winner_username,
            "sourceEntryCount": self.source_entry_count,
            "ranAt": self.ran_at,
            "version": self.version,
        }

    @classmethod
    def from_json(cls, raw: dict[str, Any]) -> "BuyersGiveawayState":
        return cls(
            item_name=str(raw.get("itemName") or ""),
            winner_username=str(raw.get("winnerUsername") or ""),
            source_entry_count=_int(raw.get("sourceEntryCount"), 0),
            ran_at=str(raw.get("ranAt") or ""),
            version=_int(raw.get("version"), 0),
        )


def _records(raw: Any) -> tuple[SpinRecord, ...]:
    if not isinstance(raw, list):
        return ()
    return tuple(SpinRecord.from_json(r) for r in raw if isinstance(r, dict))


@dataclass(frozen=True, slots=True)
class PersistedSpinState:
    items: tuple[str, ...]
    pool: tuple[str, ...]
    selected_item: Optional[str]
    version: int
    updated_at: str
    config_hash: str
    is_offline: bool = False
    is_testing_mode: bool = False
    last_spin: Optional[SpinRecord] = None
    history: tuple[SpinRecord, ...] = ()
    recent_bulk_results: tuple[SpinRecord, ...] = ()
    buyers_giveaway: Optional[BuyersGiveawayState] = None
    current_buyers_giveaway_item: Optional[str] = None

    @classmethod
    def initial(cls, items: Iterable[str], *, version: int = 1, now: str) -> "PersistedSpinState":
        items = tuple(items)
        return cls(
            items=items,
            pool=items,
            selected_item=None,
            version=version,
            updated_at=now,
            config_hash=hash_items(items),
        )

    def rebuilt_from(self, items: Iterable[str], *, now: str) -> "PersistedSpinState":
        """Fresh pool from ``items``; mode flags and audit fields carried over."""
        fresh = PersistedSpinState.initial(items, version=self.version + 1, now=now)
        return replace(
            fresh,
            is_offline=self.is_offline,
            is_testing_mode=self.is_testing_mode,
            last_spin=self.last_spin,
            history=self.history,
            recent_bulk_results=self.recent_bulk_results,
            buyers_giveaway=self.buyers_giveaway,
            current_buyers_giveaway_item=self.current_buyers_giveaway_item,
        )

    def has_auction(self, auction_number: str) -> bool:
        needle = auction_number.lower()
        return any(r.auction_number.lower() == needle for r in self.history)

    def to_json(self) -> dict[str, Any]:
        return {
            "schemaVersion": SCHEMA_VERSION,
            "items": list(self.items),
            "pool": list(self.pool),
            "selectedItem": self.selected_item,
            "version": self.version,
            "updatedAt": self.updated_at,
            "configHash": self.config_hash,
            "isOffline": self.is_offline,
            "isTestingMode": self.is_testing_mode,
            "lastSpin": self.last_spin.to_json() if self.last_spin else None,
            "history": [r.to_json() for r in self.history],
            "recentBulkResults": [r.to_json() for r in self.recent_bulk_results],
            "buyersGiveaway": self.buyers_giveaway.to_json() if self.buyers_giveaway else None,
            "currentBuyersGiveawayItem": self.current_buyers_giveaway_item,
        }

    def dumps(self) -> str:
        return json.dumps(self.to_json(), ensure_ascii=False)

    @classmethod
    def from_json(cls, raw: dict[str, Any], *, now: str) -> "PersistedSpinState":
        items = _str_tuple(raw.get("items"))
        last_spin = raw.get("lastSpin")
        giveaway = raw.get("buyersGiveaway")
        return cls(
            items=items,
            pool=_str_tuple(raw.get("pool")),
            selected_item=_opt_str(raw.get("selectedItem")),
            version=_int(raw.get("version"), 1),
            updated_at=str(raw.get("updatedAt") or now),
            config_hash=str(raw.get("configHash") or hash_items(items)),
            is_offline=_bool(raw.get("isOffline"), False),
            is_testing_mode=_bool(raw.get("isTestingMode"), False),
            last_spin=SpinRecord.from_json(last_spin) if isinstance(last_spin, dict) else None,
            history=_records(raw.get("history"))[:MAX_HISTORY],
            recent_bulk_results=_records(raw.get("recentBulkResults")),
            buyers_giveaway=(
                BuyersGiveawayState.from_json(giveaway) if isinstance(giveaway, dict) else None
            ),
            current_buyers_giveaway_item=_opt_str(raw.get("currentBuyersGiveawayItem")),
        )

    @classmethod
    def loads(cls, raw: str, *, now: str) -> "PersistedSpinState":
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError("Stored spin state is not a JSON object.")
        return cls.from_json(data, now=now)
