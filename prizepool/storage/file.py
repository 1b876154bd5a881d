# prizepool/storage/file.py
from __future__ import annotations

import asyncio
import json
import os
import re
from pathlib import Path
from typing import Optional

from prizepool.storage.base import StoredValue

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]+")


class FileKeyValueStore:
    """
    File fallback: one JSON envelope ``{"revision": n, "value": "..."}`` per key.
    Single-process only; the lock serializes check-and-write.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = Path(directory)
        self._lock = asyncio.Lock()

    def _path(self, key: str) -> Path:
        safe = _SAFE_KEY.sub("_", key).strip("._") or "_"
        return self.directory / f"{safe}.json"

    def _read_sync(self, key: str) -> Optional[StoredValue]:
        path = self._path(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        envelope = json.loads(raw)
        return StoredValue(value=str(envelope["value"]), revision=int(envelope["revision"]))

    def _write_sync(self, key: str, value: str, revision: int) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(
            json.dumps({"revision": revision, "value": value}, ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        os.replace(tmp, path)

    async def read_entry(self, key: str) -> Optional[StoredValue]:
        async with self._lock:
            return await asyncio.to_thread(self._read_sync, key)

    async def read(self, key: str) -> Optional[str]:
        entry = await self.read_entry(key)
        return entry.value if entry else None

    async def write(self, key: str, value: str, *, expected_revision: Optional[int] = None) -> bool:
        async with self._lock:
            current = await asyncio.to_thread(self._read_sync, key)
            current_revision = current.revision if current else 0
            if expected_revision is not None and expected_revision != current_revision:
                return False
            await asyncio.to_thread(self._write_sync, key, value, current_revision + 1)
            return True
