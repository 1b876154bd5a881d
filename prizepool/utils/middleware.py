# prizepool/utils/middleware.py
from __future__ import annotations

from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from prizepool.database.repo.users import upsert_user_from_event
from prizepool.database.session import Database


class DbSessionMiddleware(BaseMiddleware):
    """
    Creates a DB session per update and injects it into handler data as `session`.

    Also upserts the current Telegram user (if present) and injects it as `db_user`.
    Auto-commits on success and rolls back on error. Spin state writes go
    through the key/value store and are not part of this session.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async with self.db.SessionLocal() as session:
            data["session"] = session

            db_user, dirty = await upsert_user_from_event(session, event)
            if db_user is not None:
                data["db_user"] = db_user
            if dirty:
                # release the SQLite write lock before the store opens its own session
                await session.commit()

            try:
                result = await handler(event, data)
                await session.commit()
                return result
            except Exception:
                await session.rollback()
                raise
