# prizepool/main.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from prizepool.catalog.config_store import ItemConfigCatalog
from prizepool.config import Settings
from prizepool.database import Database
from prizepool.handlers.router import router as handlers_router
from prizepool.services.item_config_service import ItemConfigService
from prizepool.services.spin_state import SpinStateService
from prizepool.storage import build_store
from prizepool.utils.middleware import DbSessionMiddleware


def setup_logging(is_dev: bool) -> None:
    """
    Clean production logging:
    - app logs: INFO (or DEBUG in dev)
    - SQLAlchemy / driver logs: WARNING+
    """
    app_level = logging.DEBUG if is_dev else logging.INFO

    logging.basicConfig(
        level=app_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    for name in (
        "sqlalchemy",
        "sqlalchemy.engine",
        "sqlalchemy.pool",
        "sqlalchemy.orm",
        "aiosqlite",
        "aiogram.event",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)


async def main() -> None:
    settings = Settings.load()
    setup_logging(settings.is_dev)
    log = logging.getLogger("prizepool")

    db = Database(settings.database_url)
    await db.init_models()
    log.info("DB initialized")

    store = build_store(settings, db)
    log.info("State backend: %s", settings.state_backend)

    catalog = ItemConfigCatalog(
        store,
        key=settings.items_config_key,
        seed_path=settings.items_config_seed_path,
    )
    spin_state = SpinStateService(store, catalog, state_key=settings.state_key)
    item_config = ItemConfigService(
        catalog,
        spin_state,
        store=store,
        staff_catalog_key=settings.staff_catalog_key,
    )

    state = await spin_state.ensure_state()
    log.info("Spin state ready: v%d, %d/%d left", state.version, len(state.pool), len(state.items))

    bot = Bot(
        token=settings.bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )

    dp = Dispatcher()

    # Inject workflow data
    dp.workflow_data["settings"] = settings
    dp.workflow_data["db"] = db
    dp.workflow_data["spin_state"] = spin_state
    dp.workflow_data["item_config"] = item_config

    # DB session per update
    dp.update.middleware(DbSessionMiddleware(db))

    # Include routers (admin/user/common)
    dp.include_router(handlers_router)

    try:
        await dp.start_polling(bot)
    except (asyncio.CancelledError, KeyboardInterrupt):
        pass
    except Exception:
        log.exception("Bot crashed")
        raise
    finally:
        try:
            await db.close()
        except Exception:
            log.exception("Failed to close DB")

        try:
            await bot.session.close()
        except Exception:
            log.exception("Failed to close bot session")


if __name__ == "__main__":
    asyncio.run(main())
