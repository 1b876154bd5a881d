# prizepool/handlers/user/pool.py
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import Command
from aiogram.types import Message

from prizepool.config.settings import Settings
from prizepool.keyboards.main import POOL_BUTTON_TEXT
from prizepool.services.projections import to_public_payload
from prizepool.services.spin_state import SpinStateService
from prizepool.utils.render import render_public
from prizepool.utils.reply import reply_safe

router = Router()


@router.message(Command("pool"))
@router.message(F.text == POOL_BUTTON_TEXT)
async def pool_cmd(message: Message, settings: Settings, spin_state: SpinStateService) -> None:
    state = await spin_state.get_spin_state()
    payload = to_public_payload(state, history_limit=settings.public_history_limit)
    await reply_safe(message, render_public(payload))
