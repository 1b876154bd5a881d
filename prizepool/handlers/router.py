from aiogram import Router

from prizepool.handlers.admin.router import router as admin_router
from prizepool.handlers.common import router as common_router
from prizepool.handlers.user.router import router as user_router

router = Router()

router.include_router(admin_router)   # staff commands first
router.include_router(user_router)
router.include_router(common_router)  # LAST = fallback only
