from aiogram import Router

from prizepool.handlers.user.pool import router as pool_router

router = Router()

router.include_router(pool_router)
