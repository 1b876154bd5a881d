# prizepool/storage/base.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass(frozen=True, slots=True)
class StoredValue:
    value: str
    revision: int  # >= 1 once written


class KeyValueStore(Protocol):
    """
    Opaque blob storage keyed by logical name.

    A missing key is the normal "not initialized yet" case, never an error.
    `write` with ``expected_revision``:
      - ``None``: unconditional upsert
      - ``0``: only if the key does not exist yet
      - ``n > 0``: only if the stored revision is still ``n``
    and returns False when the condition does not hold.
    """

    async def read_entry(self, key: str) -> Optional[StoredValue]: ...

    async def read(self, key: str) -> Optional[str]: ...

    async def write(self, key: str, value: str, *, expected_revision: Optional[int] = None) -> bool: ...
