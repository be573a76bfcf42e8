"""
Notifies restaurant staff about new orders.
"""

import asyncio
import logging
from typing import Optional

from aiogram import Bot
from aiogram.types import FSInputFile

from restobot.core.orders.exporter import order_exporter
from restobot.core.orders.texts import manager_notification
from restobot.db.models import Order

logger = logging.getLogger(__name__)


class ManagerNotifier:
    """Posts the order summary and its XLSX export to the staff chat."""

    def __init__(self, bot: Bot, chat_id: Optional[int]):
        self.bot = bot
        self.chat_id = chat_id

    async def __call__(self, order: Order) -> None:
        if not self.chat_id:
            logger.warning("MANAGER_CHAT_ID not set, skipping order notification")
            return

        logger.info(f"Sending order {order.id} to manager chat {self.chat_id}...")
        await self.bot.send_message(chat_id=self.chat_id, text=manager_notification(order))

        xlsx_path = await asyncio.to_thread(order_exporter.export, order)
        await self.bot.send_document(
            chat_id=self.chat_id,
            document=FSInputFile(xlsx_path),
            caption=f"📎 Buyurtma {order.order_number} (Excel)",
        )
        logger.info(f"Order {order.id} sent to manager chat {self.chat_id}")
