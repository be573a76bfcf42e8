"""
Bot handlers registration.
"""

from aiogram import Dispatcher

from restobot.bot.handlers.start import router as start_router
from restobot.bot.handlers.order import router as order_router


def register_handlers(dp: Dispatcher) -> None:
    """Register all handlers to dispatcher."""
    # Help comes first; everything else goes through the ordering controller
    dp.include_router(start_router)
    dp.include_router(order_router)
