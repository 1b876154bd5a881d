# prizepool/database/tx.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def transactional(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Transactional scope for SQLAlchemy 2.x autobegin.

    - inside an active transaction (handler session): SAVEPOINT via begin_nested
    - otherwise (store-owned session): a fresh transaction, committed on exit
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield session
    else:
        async with session.begin():
            yield session
