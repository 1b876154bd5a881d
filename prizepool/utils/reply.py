# prizepool/utils/reply.py
from __future__ import annotations

from aiogram.types import Message, ReplyKeyboardMarkup

from prizepool.keyboards.main import main_menu_kb


async def reply_safe(
    message: Message,
    text: str,
    *,
    keyboard: ReplyKeyboardMarkup | None = None,
    **kwargs,
) -> None:
    """
    Reply helper: attach a reply keyboard only in private chats.
    """
    if message.chat.type == "private":
        kwargs.setdefault("reply_markup", keyboard or main_menu_kb())
    else:
        kwargs.setdefault("reply_markup", None)

    kwargs.setdefault("parse_mode", "HTML")
    await message.answer(text, **kwargs)
