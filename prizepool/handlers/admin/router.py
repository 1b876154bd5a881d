import logging

from aiogram import F, Router
from aiogram.filters import ExceptionTypeFilter
from aiogram.types import ErrorEvent, Message

from prizepool.handlers.admin.giveaway_admin import router as giveaway_admin_router
from prizepool.handlers.admin.owner_admin import router as owner_admin_router
from prizepool.handlers.admin.panel import router as panel_router
from prizepool.handlers.admin.spin_admin import router as spin_admin_router
from prizepool.services.errors import StateConflictError

log = logging.getLogger(__name__)

router = Router()

router.include_router(panel_router)
router.include_router(spin_admin_router)
router.include_router(giveaway_admin_router)
router.include_router(owner_admin_router)


@router.error(ExceptionTypeFilter(StateConflictError), F.update.message.as_("message"))
async def on_state_conflict(event: ErrorEvent, message: Message) -> None:
    log.warning("Staff command dropped after write conflicts: %s", event.exception)
    await message.answer("⏳ " + str(event.exception))
