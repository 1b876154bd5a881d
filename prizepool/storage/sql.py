# prizepool/storage/sql.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from prizepool.database.models import KeyValueEntry
from prizepool.database.session import Database
from prizepool.database.tx import transactional
from prizepool.storage.base import StoredValue

log = logging.getLogger(__name__)


async def _conditional_update(
    session: AsyncSession, *, key: str, value: str, expected_revision: Optional[int]
) -> bool:
    stmt = update(KeyValueEntry).where(KeyValueEntry.key == key)
    if expected_revision is not None:
        stmt = stmt.where(KeyValueEntry.revision == expected_revision)
    res = await session.execute(
        stmt.values(value=value, revision=KeyValueEntry.revision + 1).execution_options(
            synchronize_session=False
        )
    )
    return (res.rowcount or 0) > 0


class SqlKeyValueStore:
    """`app_kv` table backend. Every call runs in its own short session."""

    def __init__(self, db: Database) -> None:
        self.db = db

    async def read_entry(self, key: str) -> Optional[StoredValue]:
        async with self.db.session() as session:
            res = await session.execute(
                select(KeyValueEntry.value, KeyValueEntry.revision).where(KeyValueEntry.key == key)
            )
            row = res.first()
        if row is None:
            return None
        value, revision = row
        return StoredValue(value=value, revision=int(revision))

    async def read(self, key: str) -> Optional[str]:
        entry = await self.read_entry(key)
        return entry.value if entry else None

    async def write(self, key: str, value: str, *, expected_revision: Optional[int] = None) -> bool:
        if expected_revision is not None and expected_revision > 0:
            async with self.db.session() as session:
                async with transactional(session):
                    ok = await _conditional_update(
                        session, key=key, value=value, expected_revision=expected_revision
                    )
            if not ok:
                log.debug("kv write conflict key=%s expected_revision=%s", key, expected_revision)
            return ok

        if expected_revision is None:
            async with self.db.session() as session:
                async with transactional(session):
                    if await _conditional_update(session, key=key, value=value, expected_revision=None):
                        return True

        # insert path: first write of the key
        try:
            async with self.db.session() as session:
                async with transactional(session):
                    session.add(KeyValueEntry(key=key, value=value, revision=1))
                    await session.flush()
        except IntegrityError:
            if expected_revision == 0:
                log.debug("kv create conflict key=%s", key)
                return False
            # someone created it between our update and insert; last writer wins
            async with self.db.session() as session:
                async with transactional(session):
                    return await _conditional_update(session, key=key, value=value, expected_revision=None)
        return True
