# prizepool/handlers/admin/owner_admin.py
from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from aiogram.utils.text_decorations import html_decoration as hd
from sqlalchemy.ext.asyncio import AsyncSession

from prizepool.config.settings import Settings
from prizepool.database.models import AdminRole, User
from prizepool.database.repo.action_log_repo import recent_actions
from prizepool.database.repo.admins import grant_role, list_admins
from prizepool.database.repo.users import get_user_by_telegram
from prizepool.handlers.admin.panel import audit, require_staff_or_reply
from prizepool.handlers.admin.spin_admin import parse_on_off
from prizepool.services.item_config_service import ItemConfigService
from prizepool.services.spin_state import SpinStateService

router = Router()


@router.message(Command("testing"))
async def cmd_testing(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
    spin_state: SpinStateService,
    db_user: User | None = None,
) -> None:
    if not await require_staff_or_reply(message, settings, session, owner=True):
        return
    try:
        enabled = parse_on_off(command.args)
    except ValueError as e:
        await message.answer("❌ " + hd.quote(str(e)) + " Example: /testing on")
        return

    state = await spin_state.set_testing_mode(enabled)
    await audit(session, db_user, "set_testing_mode", state, is_testing_mode=state.is_testing_mode)
    if state.is_testing_mode:
        await message.answer(
            "⚠️ <b>TESTING MODE ON</b>\nAuction numbers are no longer checked for duplicates. "
            "Turn it off with /testing off before going live."
        )
    else:
        await message.answer("✅ Testing mode off. Auction numbers must be unique again.")


@router.message(Command("items"))
async def cmd_items(
    message: Message,
    settings: Settings,
    session: AsyncSession,
    item_config: ItemConfigService,
) -> None:
    if not await require_staff_or_reply(message, settings, session):
        return
    try:
        view = await item_config.describe()
    except ValueError as e:
        await message.answer("❌ Could not load item configuration: " + hd.quote(str(e)))
        return
    await message.answer(
        f"📦 <b>Item config</b> ({view.total_items} items)\n<pre>{hd.quote(view.config_text)}</pre>"
    )


@router.message(Command("items_set"))
async def cmd_items_set(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
    item_config: ItemConfigService,
    db_user: User | None = None,
) -> None:
    if not await require_staff_or_reply(message, settings, session, owner=True):
        return
    if not (command.args or "").strip():
        await message.answer(
            "Usage:\n<code>/items_set\nMega Brave Booster Box - QTY 2\nMega Brave Booster Pack - QTY 20</code>"
        )
        return
    try:
        update = await item_config.update_config(command.args or "")
    except ValueError as e:
        await message.answer("❌ " + hd.quote(str(e)))
        return

    await audit(
        session,
        db_user,
        "items_config_update",
        update.state,
        total_items=update.view.total_items,
    )
    await message.answer(
        f"✅ Item configuration saved ({update.view.total_items} items). "
        "The pool was rebuilt from the new config; history was kept."
    )


@router.message(Command("catalog"))
async def cmd_catalog(
    message: Message,
    settings: Settings,
    session: AsyncSession,
    item_config: ItemConfigService,
) -> None:
    if not await require_staff_or_reply(message, settings, session, owner=True):
        return
    items = await item_config.staff_catalog()
    lines = [f"• {hd.quote(i.name)} (£{i.gbp_value:.2f})" for i in items]
    await message.answer("📚 <b>Staff catalog</b>\n" + ("\n".join(lines) or "(empty)"))


@router.message(Command("staff_add"))
async def cmd_staff_add(
    message: Message,
    command: CommandObject,
    settings: Settings,
    session: AsyncSession,
) -> None:
    if not await require_staff_or_reply(message, settings, session, owner=True):
        return

    # /staff_add <telegram_id> [owner]
    parts = (command.args or "").split()
    if not parts or not parts[0].isdigit():
        await message.answer("Usage: /staff_add <telegram_id> [owner]")
        return
    role = AdminRole.OWNER if len(parts) > 1 and parts[1].lower() == "owner" else AdminRole.STAFF

    user = await get_user_by_telegram(session, int(parts[0]))
    if user is None:
        await message.answer("ℹ️ That user has not started the bot yet. Ask them to send /start first.")
        return

    created, _ = await grant_role(session, user=user, role=role)
    verb = "added as" if created else "updated to"
    await message.answer(f"✅ {hd.quote(user.username or str(user.telegram_id))} {verb} {role.value}.")


@router.message(Command("actions"))
async def cmd_actions(message: Message, settings: Settings, session: AsyncSession) -> None:
    if not await require_staff_or_reply(message, settings, session, owner=True):
        return
    rows = await recent_actions(session, limit=15)
    if not rows:
        await message.answer("ℹ️ No staff actions recorded yet.")
        return
    lines = [
        f"{row.created_at:%Y-%m-%d %H:%M} · v{row.state_version} · <b>{hd.quote(row.action)}</b>"
        for row in rows
    ]
    await message.answer("🧾 <b>Recent staff actions</b>\n" + "\n".join(lines))


@router.message(Command("staff"))
async def cmd_staff(message: Message, settings: Settings, session: AsyncSession) -> None:
    if not await require_staff_or_reply(message, settings, session, owner=True):
        return
    rows = await list_admins(session)
    lines = [f"• {tid} (owner, env)" for tid in settings.owner_ids]
    for admin, user in rows:
        name = admin.display_name or user.username or str(user.telegram_id)
        lines.append(f"• {hd.quote(name)} ({user.telegram_id}) · {admin.role.value}")
    await message.answer("👥 <b>Staff</b>\n" + ("\n".join(lines) or "(none)"))
