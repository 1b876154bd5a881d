# prizepool/handlers/admin/giveaway_admin.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from prizepool.config.settings import Settings
from prizepool.database.models import User
from prizepool.handlers.admin.panel import audit, require_staff_or_reply
from prizepool.services.errors import SpinStateError
from prizepool.services.spin_state import SpinStateService

router = Router()


@router.message(Command("giveaway_item"))
async def cmd_giveaway_item(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
    spin_state: SpinStateService,
    db_user: User | None = None,
) -> None:
    if not await require_staff_or_reply(message, settings, session):
        return
    try:
        state = await spin_state.set_current_buyers_giveaway_item(command.args or "")
    except SpinStateError as e:
        await message.answer("❌ " + hd.quote(str(e)) + " Usage: /giveaway_item <prize name>")
        return

    await audit(session, db_user, "set_giveaway_item", state, item=state.current_buyers_giveaway_item)
    await message.answer(
        f"🎟 Next buyer's giveaway prize: <b>{hd.quote(state.current_buyers_giveaway_item or '')}</b>\n"
        "Run /giveaway when ready."
    )


@router.message(Command("giveaway"))
async def cmd_giveaway(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
    spin_state: SpinStateService,
    db_user: User | None = None,
) -> None:
    if not await require_staff_or_reply(message, settings, session):
        return
    try:
        state = await spin_state.run_buyers_giveaway(command.args)
    except SpinStateError as e:
        await message.answer("❌ " + hd.quote(str(e)))
        return

    result = state.buyers_giveaway
    if result is None:
        return
    await audit(session, db_user, "buyers_giveaway", state, **result.to_json())
    await message.answer(
        f"🏆 <b>{hd.quote(result.winner_username)}</b> wins <b>{hd.quote(result.item_name)}</b>!\n"
        f"Drawn from {result.source_entry_count} spin entries."
    )
