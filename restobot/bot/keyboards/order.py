"""
Inline keyboard markup for order flow replies.
"""

from typing import Optional

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from restobot.config import settings
from restobot.core.orders.models import Keyboard


def build_markup(keyboard: Optional[Keyboard]) -> Optional[InlineKeyboardMarkup]:
    """Turn rows of (label, callback_data) into Telegram markup."""
    if not keyboard:
        return None
    builder = InlineKeyboardBuilder()
    for row in keyboard:
        builder.row(
            *(InlineKeyboardButton(text=label, callback_data=data) for label, data in row)
        )
    return builder.as_markup()


def get_website_keyboard() -> InlineKeyboardMarkup:
    """Link to the storefront."""
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="🌐 Saytga o'tish", url=settings.website_url),
    )
    return builder.as_markup()
