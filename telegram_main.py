import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from application.refresh import DEFAULT_REFRESH_INTERVAL_SECONDS, CodeRefresher
from application.registry import AccountRegistry
from application.services import DEFAULT_NOTICE_TTL_SECONDS
from domain.errors import StorageError
from infrastructure.db.account_repository_sqlite import SqliteAccountRepository
from infrastructure.logging_config import configure_logging
from infrastructure.otp.steam_guard import SteamGuardCodeGenerator
from interfaces.telegram.gateway import TelegramMessageGateway
from interfaces.telegram.handlers import create_telegram_bot


load_dotenv()

BOT_TOKEN = os.environ.get("BOT_TOKEN")
DB_PATH = os.environ.get("DB_PATH", "database.db")
REFRESH_INTERVAL_SECONDS = float(
    os.environ.get("REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL_SECONDS)
)
NOTICE_TTL_SECONDS = float(os.environ.get("NOTICE_TTL_SECONDS", DEFAULT_NOTICE_TTL_SECONDS))

logger = logging.getLogger(__name__)


async def run(bot, refresher: CodeRefresher) -> None:
    refresh_task = asyncio.create_task(refresher.run_forever())
    try:
        await bot.infinity_polling()
    finally:
        # Let the in-flight sweep finish before the HTTP session goes away.
        refresher.stop()
        await refresh_task
        await bot.close_session()


def main() -> None:
    configure_logging()

    if not BOT_TOKEN:
        logger.error("BOT_TOKEN is not provided")
        sys.exit(1)

    registry = AccountRegistry()
    try:
        account_repo = SqliteAccountRepository(DB_PATH)
        registry.load_all(account_repo)
    except StorageError:
        logger.exception("Cannot load accounts from %s", DB_PATH)
        sys.exit(1)
    logger.info("Loaded %d account(s) from %s", len(registry), DB_PATH)

    code_generator = SteamGuardCodeGenerator()
    bot = create_telegram_bot(
        BOT_TOKEN,
        registry,
        account_repo,
        code_generator,
        notice_ttl=NOTICE_TTL_SECONDS,
    )
    refresher = CodeRefresher(
        registry,
        code_generator,
        TelegramMessageGateway(bot),
        interval=REFRESH_INTERVAL_SECONDS,
    )

    asyncio.run(run(bot, refresher))


if __name__ == "__main__":
    main()
