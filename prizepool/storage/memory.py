# prizepool/storage/memory.py
from __future__ import annotations

import asyncio
from typing import Optional

from prizepool.storage.base import StoredValue


class MemoryKeyValueStore:
    """Process-local store for tests and dry runs."""

    def __init__(self, initial: Optional[dict[str, str]] = None) -> None:
        self._data: dict[str, StoredValue] = {
            k: StoredValue(value=v, revision=1) for k, v in (initial or {}).items()
        }
        self.write_count = 0

    async def read_entry(self, key: str) -> Optional[StoredValue]:
        # suspension point, same as a networked store
        await asyncio.sleep(0)
        return self._data.get(key)

    async def read(self, key: str) -> Optional[str]:
        entry = await self.read_entry(key)
        return entry.value if entry else None

    async def write(self, key: str, value: str, *, expected_revision: Optional[int] = None) -> bool:
        await asyncio.sleep(0)
        current = self._data.get(key)
        current_revision = current.revision if current else 0
        if expected_revision is not None and expected_revision != current_revision:
            return False
        self._data[key] = StoredValue(value=value, revision=current_revision + 1)
        self.write_count += 1
        return True
