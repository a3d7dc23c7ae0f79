# spinbot/main.py
import asyncio
import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiohttp import web

from spinbot.config import Settings
from spinbot.database import Database
from spinbot.database.repo.accounts import AccountStore
from spinbot.handlers import router as handlers_router
from spinbot.scheduler import setup_scheduler
from spinbot.services.auth import InitDataVerifier
from spinbot.services.spin import SpinService
from spinbot.utils.middleware import IdentityMiddleware
from spinbot.web import create_app


def setup_logging(is_dev: bool) -> None:
    """
    Clean production logging:
    - app logs: INFO (or DEBUG in dev)
    - SQLAlchemy / driver / access logs: WARNING+
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
        "asyncpg",
        "aiosqlite",
        "aiohttp.access",
        "apscheduler",
    ):
        logging.getLogger(name).setLevel(logging.WARNING)


def build_dispatcher(settings: Settings, accounts: AccountStore) -> Dispatcher:
    dp = Dispatcher()

    # Inject workflow data
    dp.workflow_data["settings"] = settings
    dp.workflow_data["accounts"] = accounts

    dp.message.middleware(IdentityMiddleware())
    dp.include_router(handlers_router)
    return dp


async def main() -> None:
    settings = Settings.load()
    setup_logging(settings.is_dev)
    log = logging.getLogger("spinbot")

    db = Database(settings.database_url)
    await db.init_models()
    log.info("DB initialized")

    accounts = AccountStore(db)
    verifier = InitDataVerifier(settings.bot_token)
    spin_service = SpinService(accounts)

    runner = web.AppRunner(create_app(verifier, spin_service))
    await runner.setup()
    site = web.TCPSite(runner, host=settings.host, port=settings.port)
    await site.start()
    log.info("HTTP backend running on %s:%s", settings.host, settings.port)

    scheduler = setup_scheduler(accounts)
    log.info("Reset scheduler started, next run at %s", scheduler.next_run_at)

    bot: Bot | None = None
    try:
        if settings.run_bot:
            bot = Bot(
                token=settings.bot_token,
                default=DefaultBotProperties(parse_mode=ParseMode.HTML),
            )
            dp = build_dispatcher(settings, accounts)
            await dp.start_polling(bot)
        else:
            log.info("RUN_BOT disabled, serving HTTP only")
            await asyncio.Event().wait()
    except (asyncio.CancelledError, KeyboardInterrupt):
        pass
    except Exception:
        log.exception("Backend crashed")
        raise
    finally:
        try:
            scheduler.shutdown()
        except Exception:
            log.exception("Failed to shutdown scheduler")

        try:
            await runner.cleanup()
        except Exception:
            log.exception("Failed to stop HTTP server")

        try:
            await db.close()
        except Exception:
            log.exception("Failed to close DB")

        if bot is not None:
            try:
                await bot.session.close()
            except Exception:
                log.exception("Failed to close bot session")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
