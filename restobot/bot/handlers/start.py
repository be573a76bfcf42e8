"""
Help and storefront commands.
"""

from aiogram import Router
from aiogram.filters import Command
from aiogram.types import Message

from restobot.bot.keyboards.order import get_website_keyboard
from restobot.core.orders.texts import HELP_MESSAGE

router = Router(name="start")


@router.message(Command("help"))
async def handle_help(message: Message) -> None:
    """Handle /help command."""
    await message.answer(HELP_MESSAGE)


@router.message(Command("site"))
async def handle_site(message: Message) -> None:
    """Link to the website for ordering in the browser."""
    await message.answer(
        "🌐 Saytimiz orqali ham buyurtma berishingiz mumkin:",
        reply_markup=get_website_keyboard(),
    )
