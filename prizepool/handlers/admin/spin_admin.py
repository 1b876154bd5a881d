# prizepool/handlers/admin/spin_admin.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from prizepool.config.settings import Settings
from prizepool.database.models import User
from prizepool.handlers.admin.panel import audit, require_staff_or_reply, send_admin_view
from prizepool.services.errors import SpinStateError
from prizepool.services.spin_state import SpinStateService
from prizepool.utils.render import render_bulk, render_spin

router = Router()

HARD_RESET_CONFIRM = "CONFIRM"


def _parse_spin(args: str | None) -> tuple[str, str]:
    # /spin <auction> <username...>
    parts = (args or "").split(maxsplit=1)
    if len(parts) < 2:
        raise ValueError("Usage: /spin <auction number> <username>")
    return parts[0], parts[1]


def _parse_bulk(args: str | None) -> tuple[str, int, str]:
    # /bulk <start> <count> <username...>
    parts = (args or "").split(maxsplit=2)
    if len(parts) < 3:
        raise ValueError("Usage: /bulk <first auction number> <count 1-10> <username>")
    try:
        count = int(parts[1])
    except ValueError:
        raise ValueError(f"Bulk count must be a whole number, got {parts[1]!r}.") from None
    return parts[0], count, parts[2]


def parse_on_off(args: str | None) -> bool:
    value = (args or "").strip().lower()
    if value in {"on", "yes", "true", "1"}:
        return True
    if value in {"off", "no", "false", "0"}:
        return False
    raise ValueError("Use on or off.")


@router.message(Command("spin"))
async def cmd_spin(
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
        auction_number, username = _parse_spin(command.args)
        result = await spin_state.spin_single(auction_number, username)
    except (SpinStateError, ValueError) as e:
        await message.answer("❌ " + hd.quote(str(e)))
        return

    if result.record is None:
        await message.answer(render_spin(None, 0))
        return

    record = result.record.to_json()
    await audit(session, db_user, "spin", result.state, **record)
    await message.answer(render_spin(record, len(result.state.pool)))


@router.message(Command("bulk"))
async def cmd_bulk(
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
        start, count, username = _parse_bulk(command.args)
        result = await spin_state.spin_bulk(start, username, count)
    except (SpinStateError, ValueError) as e:
        await message.answer("❌ " + hd.quote(str(e)))
        return

    records = [r.to_json() for r in result.results]
    if records:
        await audit(
            session,
            db_user,
            "bulk_spin",
            result.state,
            requested=count,
            drawn=len(records),
            auctions=[r["auctionNumber"] for r in records],
        )
    await message.answer(render_bulk(records, count, len(result.state.pool)))


@router.message(Command("reset"))
async def cmd_reset(
    message: Message,
    settings: Settings,
    session: AsyncSession,
    spin_state: SpinStateService,
    db_user: User | None = None,
) -> None:
    authz = await require_staff_or_reply(message, settings, session)
    if not authz:
        return
    state = await spin_state.reset_spin_state()
    await audit(session, db_user, "reset", state)
    await message.answer("🔄 Pool restored for a new round. History kept.")
    await send_admin_view(message, settings, state, authz)


@router.message(Command("hard_reset"))
async def cmd_hard_reset(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
    spin_state: SpinStateService,
    db_user: User | None = None,
) -> None:
    authz = await require_staff_or_reply(message, settings, session)
    if not authz:
        return
    if (command.args or "").strip() != HARD_RESET_CONFIRM:
        await message.answer(
            "⚠️ This restores the pool AND wipes history, bulk results and giveaways.\n"
            f"It cannot be undone. Send <code>/hard_reset {HARD_RESET_CONFIRM}</code> to proceed."
        )
        return

    state = await spin_state.reset_pool_and_clear_history()
    await audit(session, db_user, "hard_reset", state)
    await message.answer("🧨 Pool restored and history cleared.")
    await send_admin_view(message, settings, state, authz)


@router.message(Command("clear_history"))
async def cmd_clear_history(
    message: Message,
    settings: Settings,
    session: AsyncSession,
    spin_state: SpinStateService,
    db_user: User | None = None,
) -> None:
    if not await require_staff_or_reply(message, settings, session):
        return
    state = await spin_state.clear_spin_history()
    await audit(session, db_user, "clear_history", state)
    await message.answer(f"🧹 History cleared. Pool untouched ({len(state.pool)} left).")


@router.message(Command("offline"))
async def cmd_offline(
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
        is_offline = parse_on_off(command.args)
    except ValueError as e:
        await message.answer("❌ " + hd.quote(str(e)) + " Example: /offline on")
        return

    state = await spin_state.set_public_offline(is_offline)
    await audit(session, db_user, "set_offline", state, is_offline=state.is_offline)
    await message.answer("🌙 Public view is now OFFLINE." if state.is_offline else "☀️ Public view is back online.")
