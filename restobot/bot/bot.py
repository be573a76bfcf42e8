"""
Bot and dispatcher factories.
"""

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from restobot.bot.handlers import register_handlers
from restobot.config import settings
from restobot.core.orders import ConversationController


def create_bot(token: str | None = None) -> Bot:
    """Bot replying in HTML by default."""
    return Bot(
        token=token or settings.telegram_bot_token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )


def create_dispatcher(controller: ConversationController) -> Dispatcher:
    """
    Dispatcher with all routers and the controller in workflow data.

    No FSM storage: dialogue state lives in the database, so any worker
    can take any update.
    """
    dp = Dispatcher(controller=controller)
    register_handlers(dp)
    return dp
