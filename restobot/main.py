"""
Restaurant ordering bot entry point.
"""

import asyncio
import logging
import sys

from restobot.bot.bot import create_bot, create_dispatcher
from restobot.bot.notifier import ManagerNotifier
from restobot.config import settings
from restobot.core.orders import create_controller
from restobot.db.sqlite import db

if sys.platform == "win32":
    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def on_startup() -> None:
    await db.init()
    logger.info(f"Database ready at {db.url}")
    if not settings.manager_chat_id:
        logger.warning("MANAGER_CHAT_ID is not set, new orders will not be forwarded")


async def on_shutdown() -> None:
    await db.close()
    logger.info("Database closed")


async def main() -> None:
    bot = create_bot()
    controller = create_controller(
        db, on_order_created=ManagerNotifier(bot, settings.manager_chat_id)
    )
    dp = create_dispatcher(controller)
    dp.startup.register(on_startup)
    dp.shutdown.register(on_shutdown)

    logger.info(f"Starting {settings.restaurant_name} bot")
    try:
        await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
    finally:
        await bot.session.close()


if __name__ == "__main__":
    asyncio.run(main())
