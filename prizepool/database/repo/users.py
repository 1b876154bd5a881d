# prizepool/database/repo/users.py
from __future__ import annotations

from typing import Optional

from aiogram.types import TelegramObject
from aiogram.types import User as TgUser
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from prizepool.database.models.user import User

_PROFILE_FIELDS = ("username", "first_name", "last_name")


def telegram_user_of(event: TelegramObject) -> Optional[TgUser]:
    """`from_user` of a Message / CallbackQuery, or of the message inside an Update."""
    tg = getattr(event, "from_user", None)
    if tg is not None:
        return tg
    for attr in ("message", "callback_query"):
        inner = getattr(event, attr, None)
        if inner is not None and getattr(inner, "from_user", None) is not None:
            return inner.from_user
    return None


async def get_user_by_telegram(session: AsyncSession, telegram_id: int) -> Optional[User]:
    return await session.scalar(select(User).where(User.telegram_id == telegram_id))


async def upsert_user_from_event(
    session: AsyncSession, event: TelegramObject
) -> tuple[Optional[User], bool]:
    """
    Returns (user, dirty). ``dirty`` is True when a row was inserted or a
    profile field changed, i.e. when the caller has something to commit.
    """
    tg = telegram_user_of(event)
    if tg is None:
        return None, False

    user = await get_user_by_telegram(session, tg.id)
    if user is None:
        user = User(telegram_id=tg.id, **{f: getattr(tg, f) for f in _PROFILE_FIELDS})
        session.add(user)
        await session.flush()  # user.id needed by action logs
        return user, True

    dirty = False
    for field in _PROFILE_FIELDS:
        value = getattr(tg, field)
        if getattr(user, field) != value:
            setattr(user, field, value)
            dirty = True
    return user, dirty
