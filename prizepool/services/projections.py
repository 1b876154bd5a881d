# prizepool/services/projections.py
"""Client-facing payloads built from the persisted state (presentation only)."""

from __future__ import annotations

from typing import Any

from prizepool.services.state_schema import PersistedSpinState

REEL_ITEMS_LIMIT = 80


def _counts(state: PersistedSpinState) -> dict[str, Any]:
    total = len(state.items)
    remaining = len(state.pool)
    removed = total - remaining
    return {
        "totalCount": total,
        "remainingCount": remaining,
        "removedCount": removed,
        "progressPercent": 0 if total == 0 else removed / total * 100,
    }


def to_state_payload(state: PersistedSpinState) -> dict[str, Any]:
    """Every persisted field except the internal config hash."""
    payload = state.to_json()
    payload.pop("configHash", None)
    payload.pop("schemaVersion", None)
    return payload


def to_public_payload(state: PersistedSpinState, *, history_limit: int = 20) -> dict[str, Any]:
    if state.is_offline:
        return {"isOffline": True, "version": state.version, "updatedAt": state.updated_at}

    return {
        "isOffline": False,
        "selectedItem": state.selected_item,
        **_counts(state),
        "version": state.version,
        "updatedAt": state.updated_at,
        "reelItems": list(state.items[:REEL_ITEMS_LIMIT]),
        "lastSpin": state.last_spin.to_json() if state.last_spin else None,
        "history": [r.to_json() for r in state.history[:history_limit]],
        "recentBulkResults": [r.to_json() for r in state.recent_bulk_results[:history_limit]],
        "buyersGiveaway": state.buyers_giveaway.to_json() if state.buyers_giveaway else None,
        "currentBuyersGiveawayItem": state.current_buyers_giveaway_item,
    }


def to_admin_payload(
    state: PersistedSpinState, *, is_owner: bool, history_limit: int = 20
) -> dict[str, Any]:
    payload = to_state_payload(state)
    payload["history"] = payload["history"][:history_limit]
    payload["recentBulkResults"] = payload["recentBulkResults"][:history_limit]
    payload.update(_counts(state))
    payload["isOwner"] = is_owner
    return payload
