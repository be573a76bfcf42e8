"""
Delivers controller replies through the Telegram Bot API.
"""

import logging

from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest

from restobot.bot.keyboards.order import build_markup
from restobot.core.orders.models import OutboundReply

logger = logging.getLogger(__name__)


async def deliver(bot: Bot, reply: OutboundReply) -> None:
    """
    Send a reply, editing the target message when the reply names one.

    Falls back to a new message when the target can no longer be edited.
    """
    markup = build_markup(reply.keyboard)

    if reply.is_edit:
        try:
            await bot.edit_message_text(
                text=reply.text,
                chat_id=reply.conversation_id,
                message_id=reply.edit_target_message_id,
                reply_markup=markup,
            )
            return
        except TelegramBadRequest as e:
            if "message is not modified" in str(e):
                logger.debug(f"Message {reply.edit_target_message_id} unchanged")
                return
            logger.info(
                f"Cannot edit message {reply.edit_target_message_id} in "
                f"{reply.conversation_id}, sending new one: {e}"
            )

    await bot.send_message(
        chat_id=reply.conversation_id,
        text=reply.text,
        reply_markup=markup,
    )
