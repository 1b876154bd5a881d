# prizepool/services/errors.py
from __future__ import annotations


class SpinStateError(Exception):
    """Base class for rejections raised by the spin-state engine."""


class SpinValidationError(SpinStateError, ValueError):
    """Bad caller input (blank fields, out-of-range counts). Nothing was written."""


class DuplicateAuctionError(SpinStateError):
    """Auction number already present in history while testing mode is off."""

    def __init__(self, auction_numbers: list[str]) -> None:
        self.auction_numbers = tuple(auction_numbers)
        if len(auction_numbers) == 1:
            head = f"Auction number {auction_numbers[0]} already exists."
        else:
            head = f"Auction numbers {', '.join(auction_numbers)} already exist."
        super().__init__(
            f"{head} Use a unique auction number or ask the owner to enable testing mode."
        )

    @property
    def auction_number(self) -> str:
        return self.auction_numbers[0]


class GiveawayUnavailableError(SpinStateError):
    """Buyer's giveaway cannot run: no prize set or no history entries."""


class StateConflictError(SpinStateError):
    """Optimistic write kept losing to concurrent writers."""
