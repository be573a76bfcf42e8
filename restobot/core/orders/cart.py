"""
Per-conversation shopping cart persisted in the database.
"""

import logging
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from restobot.core.errors import ValidationError
from restobot.core.orders.models import CartLine, normalize_conversation_id
from restobot.db.models import CartItem, Product
from restobot.db.sqlite import Database

logger = logging.getLogger(__name__)

# Upper bound for one cart line
MAX_LINE_QUANTITY = 100


class CartStore:
    """
    Cart rows keyed by conversation id.

    At most one row exists per (conversation, product); a quantity that
    drops to zero removes the row.
    """

    def __init__(self, database: Database):
        self._db = database

    async def add_item(self, conversation_id, product_id: int, qty: int = 1) -> int:
        """
        Add qty of a product, incrementing an existing line.

        Returns:
            New quantity of the line
        """
        if qty < 1:
            raise ValueError("qty must be at least 1")
        conversation_id = normalize_conversation_id(conversation_id)

        try:
            return await self._add(conversation_id, product_id, qty)
        except IntegrityError:
            # Lost an insert race for the same line; the row exists now
            logger.debug(f"Cart insert race for {conversation_id}/{product_id}, incrementing")
            return await self._add(conversation_id, product_id, qty)

    async def _add(self, conversation_id: str, product_id: int, qty: int) -> int:
        async with self._db.session() as session:
            current = await session.scalar(
                select(CartItem.quantity).where(
                    CartItem.conversation_id == conversation_id,
                    CartItem.product_id == product_id,
                )
            )
            new_quantity = (current or 0) + qty
            if new_quantity > MAX_LINE_QUANTITY:
                raise ValidationError(
                    f"Bitta mahsulotdan ko'pi bilan {MAX_LINE_QUANTITY} ta buyurtma qilish mumkin"
                )

            if current is None:
                session.add(
                    CartItem(
                        conversation_id=conversation_id,
                        product_id=product_id,
                        quantity=qty,
                    )
                )
                await session.flush()
            else:
                # Increment in SQL so concurrent adds both land
                await session.execute(
                    update(CartItem)
                    .where(
                        CartItem.conversation_id == conversation_id,
                        CartItem.product_id == product_id,
                    )
                    .values(quantity=CartItem.quantity + qty)
                )
        return new_quantity

    async def change_quantity(self, conversation_id, product_id: int, delta: int) -> Optional[int]:
        """
        Apply delta to a line.

        Returns:
            New quantity (0 when the line was removed), None if the line is absent
        """
        conversation_id = normalize_conversation_id(conversation_id)
        async with self._db.session() as session:
            item = await session.scalar(
                select(CartItem).where(
                    CartItem.conversation_id == conversation_id,
                    CartItem.product_id == product_id,
                )
            )
            if item is None:
                return None

            new_quantity = item.quantity + delta
            if new_quantity <= 0:
                await session.delete(item)
                return 0
            if new_quantity > MAX_LINE_QUANTITY:
                raise ValidationError(
                    f"Bitta mahsulotdan ko'pi bilan {MAX_LINE_QUANTITY} ta buyurtma qilish mumkin"
                )

            item.quantity = new_quantity
            return new_quantity

    async def remove_item(self, conversation_id, product_id: int) -> bool:
        conversation_id = normalize_conversation_id(conversation_id)
        async with self._db.session() as session:
            result = await session.execute(
                delete(CartItem).where(
                    CartItem.conversation_id == conversation_id,
                    CartItem.product_id == product_id,
                )
            )
            return result.rowcount > 0

    async def list_items(self, conversation_id) -> list[CartLine]:
        """Cart lines with the current product name and effective price."""
        conversation_id = normalize_conversation_id(conversation_id)
        async with self._db.session() as session:
            result = await session.execute(
                select(CartItem, Product)
                .join(Product, CartItem.product_id == Product.id)
                .where(CartItem.conversation_id == conversation_id)
                .order_by(CartItem.id.asc())
            )
            rows = result.all()

        return [
            CartLine(
                product_id=product.id,
                name=product.name,
                unit_price=product.effective_price,
                quantity=item.quantity,
                image_url=product.image_url,
                is_active=product.is_active,
            )
            for item, product in rows
        ]

    async def count_lines(self, conversation_id) -> int:
        conversation_id = normalize_conversation_id(conversation_id)
        async with self._db.session() as session:
            count = await session.scalar(
                select(func.count(CartItem.id)).where(
                    CartItem.conversation_id == conversation_id
                )
            )
        return count or 0

    async def clear(self, conversation_id) -> int:
        """Delete every line of the conversation. Returns rows removed."""
        conversation_id = normalize_conversation_id(conversation_id)
        async with self._db.session() as session:
            result = await session.execute(
                delete(CartItem).where(CartItem.conversation_id == conversation_id)
            )
            return result.rowcount

    async def total_price(self, conversation_id) -> int:
        """Sum of effective unit price times quantity, read fresh."""
        conversation_id = normalize_conversation_id(conversation_id)
        unit_price = func.coalesce(Product.discount_price, Product.price)
        async with self._db.session() as session:
            total = await session.scalar(
                select(func.sum(unit_price * CartItem.quantity))
                .select_from(CartItem)
                .join(Product, CartItem.product_id == Product.id)
                .where(CartItem.conversation_id == conversation_id)
            )
        return int(total or 0)
