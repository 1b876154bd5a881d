# prizepool/handlers/admin/panel.py
from __future__ import annotations

from typing import Any

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from prizepool.config.settings import Settings
from prizepool.database.models import User
from prizepool.database.repo.action_log_repo import log_admin_action
from prizepool.keyboards.main import PANEL_BUTTON_TEXT, admin_panel_kb
from prizepool.services.auth import AuthResult, AuthService
from prizepool.services.projections import to_admin_payload
from prizepool.services.spin_state import SpinStateService
from prizepool.services.state_schema import PersistedSpinState
from prizepool.utils.render import render_admin
from prizepool.utils.reply import reply_safe

router = Router()


async def require_staff_or_reply(
    message: Message,
    settings: Settings,
    session: AsyncSession,
    *,
    owner: bool = False,
) -> AuthResult | None:
    tg = message.from_user
    if not tg:
        await message.answer("⛔ You are not allowed to use staff commands.")
        return None

    authz = await AuthService(settings).resolve_by_telegram(session, tg.id)
    if not authz.is_staff:
        await message.answer("⛔ You are not allowed to use staff commands.")
        return None
    if owner and not authz.is_owner:
        await message.answer("⛔ Only the owner can do that.")
        return None
    return authz


async def audit(
    session: AsyncSession,
    db_user: User | None,
    action: str,
    state: PersistedSpinState,
    **payload: Any,
) -> None:
    await log_admin_action(
        session,
        actor_user_id=db_user.id if db_user else None,
        action=action,
        state_version=state.version,
        payload=payload or None,
    )


async def send_admin_view(
    message: Message, settings: Settings, state: PersistedSpinState, authz: AuthResult
) -> None:
    payload = to_admin_payload(
        state, is_owner=authz.is_owner, history_limit=settings.public_history_limit
    )
    await reply_safe(message, render_admin(payload), keyboard=admin_panel_kb())


@router.message(Command("panel"))
@router.message(F.text == PANEL_BUTTON_TEXT)
async def open_panel(
    message: Message,
    settings: Settings,
    session: AsyncSession,
    spin_state: SpinStateService,
) -> None:
    authz = await require_staff_or_reply(message, settings, session)
    if not authz:
        return
    state = await spin_state.get_spin_state()
    await send_admin_view(message, settings, state, authz)
