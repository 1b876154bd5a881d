"""Spin-state engine and the services around it."""

from .errors import (
    DuplicateAuctionError,
    GiveawayUnavailableError,
    SpinStateError,
    SpinValidationError,
    StateConflictError,
)
from .spin_state import BulkSpinResult, CatalogReader, SingleSpinResult, SpinStateService
from .state_schema import (
    MAX_HISTORY,
    BuyersGiveawayState,
    PersistedSpinState,
    SpinRecord,
    is_pool_valid_for_items,
)

__all__ = [
    "MAX_HISTORY",
    "BulkSpinResult",
    "BuyersGiveawayState",
    "CatalogReader",
    "DuplicateAuctionError",
    "GiveawayUnavailableError",
    "PersistedSpinState",
    "SingleSpinResult",
    "SpinRecord",
    "SpinStateError",
    "SpinStateService",
    "SpinValidationError",
    "StateConflictError",
    "is_pool_valid_for_items",
]
