"""
Turns a confirmed checkout into an order.
"""

import asyncio
import logging
import weakref

from sqlalchemy import delete, select
from sqlalchemy.orm import selectinload

from restobot.core.errors import (
    EmptyCart,
    IncompleteCheckout,
    PartialCommitFailure,
    ProductUnavailable,
)
from restobot.core.orders.cart import CartStore
from restobot.core.orders.dialogue import DialogueTracker
from restobot.core.orders.models import normalize_conversation_id
from restobot.core.orders.states import Step
from restobot.db.models import CartItem, Order, OrderItem
from restobot.db.sqlite import TRANSIENT_ERRORS, Database

logger = logging.getLogger(__name__)

ORDER_SOURCE = "bot"
ORDER_STATUS_NEW = "new"


class OrderCommitter:
    """
    Creates Order + OrderItems from a conversation's cart in one transaction.

    Commits for the same conversation are serialized by an in-process lock
    and, across processes, by a compare-and-set that moves the dialogue out
    of the confirmed step in the same transaction that inserts the order.
    """

    def __init__(self, database: Database, cart: CartStore, dialogue: DialogueTracker):
        self._db = database
        self._cart = cart
        self._dialogue = dialogue
        # Entries vanish once no commit holds or waits on the lock
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()

    async def commit(self, conversation_id) -> Order:
        """
        Commit the checkout of a conversation.

        Raises:
            EmptyCart: Nothing to order
            IncompleteCheckout: Dialogue is not in the confirmed step
            ProductUnavailable: A cart line's product was deactivated
            TransientIO: Backend failed before commit; nothing was written
            PartialCommitFailure: Commit outcome unknown
        """
        conversation_id = normalize_conversation_id(conversation_id)
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        async with lock:
            return await self._commit(conversation_id)

    async def _commit(self, conversation_id: str) -> Order:
        lines = await self._cart.list_items(conversation_id)
        if not lines:
            raise EmptyCart(f"Cart of {conversation_id} is empty")

        state = await self._dialogue.get(conversation_id)
        if state.step != Step.CONFIRMED:
            raise IncompleteCheckout(
                f"Conversation {conversation_id} is at {state.step.value}, not confirmed"
            )

        # Names and prices are frozen here; later catalog edits must not touch the order
        for line in lines:
            if not line.is_active:
                raise ProductUnavailable(line.product_id, line.name)

        total_price = sum(line.unit_price * line.quantity for line in lines)

        async with self._db.session() as session:
            if not await self._dialogue.consume_confirmed(session, conversation_id, state.version):
                raise IncompleteCheckout(
                    f"Conversation {conversation_id} changed while committing"
                )

            order = Order(
                conversation_id=conversation_id,
                customer_name=state.name,
                phone=state.phone,
                address=state.address,
                total_price=total_price,
                payment_method=state.payment_method.value,
                notes=state.notes,
                source=ORDER_SOURCE,
                status=ORDER_STATUS_NEW,
            )
            session.add(order)
            await session.flush()

            session.add_all(
                OrderItem(
                    order_id=order.id,
                    product_id=line.product_id,
                    product_name=line.name,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                )
                for line in lines
            )
            await session.execute(
                delete(CartItem).where(CartItem.conversation_id == conversation_id)
            )
            await session.flush()
            # Items are loaded before COMMIT; nothing after it may touch the database
            await session.refresh(order, ["items"])
            order_id = order.id

            # Anything failing from here on may have reached the database
            try:
                await session.commit()
            except TRANSIENT_ERRORS as e:
                logger.critical(
                    f"Commit of order {order_id} for conversation {conversation_id} "
                    f"failed at COMMIT, needs reconciliation: {e}",
                    exc_info=True,
                )
                raise PartialCommitFailure(conversation_id, str(e)) from e

        logger.info(
            f"Order {order_id} created for conversation {conversation_id}: "
            f"{len(lines)} lines, total {total_price}"
        )
        return order

    async def get_order(self, order_id: int) -> Order:
        """Order with its items loaded."""
        async with self._db.session() as session:
            return await session.scalar(
                select(Order).options(selectinload(Order.items)).where(Order.id == order_id)
            )
