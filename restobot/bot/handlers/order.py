"""
Order handling for the restaurant bot.
Turns Telegram updates into controller events and delivers the replies.
"""

import logging

from aiogram import Bot, F, Router
from aiogram.types import CallbackQuery, Message

from restobot.bot.transport import deliver
from restobot.core.orders import ConversationController, EventKind, InboundEvent

logger = logging.getLogger(__name__)

router = Router(name="orders")


def _user_name(message: Message) -> str | None:
    return message.from_user.first_name if message.from_user else None


@router.message(F.contact)
async def handle_contact(message: Message, bot: Bot, controller: ConversationController) -> None:
    """Shared contact card answers the phone step."""
    event = InboundEvent(
        conversation_id=message.chat.id,
        kind=EventKind.TEXT,
        payload=message.contact.phone_number,
        user_name=_user_name(message),
    )
    await deliver(bot, await controller.handle(event))


@router.message(F.text)
async def handle_text(message: Message, bot: Bot, controller: ConversationController) -> None:
    """Commands and free text."""
    event = InboundEvent(
        conversation_id=message.chat.id,
        kind=EventKind.TEXT,
        payload=message.text,
        user_name=_user_name(message),
    )
    await deliver(bot, await controller.handle(event))


@router.callback_query(F.data)
async def handle_callback(
    callback: CallbackQuery, bot: Bot, controller: ConversationController
) -> None:
    """Inline button presses; the reply edits the message holding the button."""
    await callback.answer()

    message = callback.message
    if message is not None:
        conversation_id = message.chat.id
        origin_message_id = message.message_id
    else:
        conversation_id = callback.from_user.id
        origin_message_id = None

    event = InboundEvent(
        conversation_id=conversation_id,
        kind=EventKind.CALLBACK,
        payload=callback.data,
        origin_message_id=origin_message_id,
        user_name=callback.from_user.first_name,
    )
    await deliver(bot, await controller.handle(event))


@router.message()
async def handle_other(message: Message) -> None:
    """Stickers, photos and the like."""
    logger.debug(f"Ignoring non-text message in chat {message.chat.id}")
    await message.answer("Iltimos, matn yoki tugmalardan foydalaning. /help")
