"""
Conversation controller for the ordering bot.

Receives one inbound event, looks up the conversation's dialogue step,
dispatches to the catalog, cart, dialogue tracker or order committer and
returns exactly one reply.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from restobot.config import settings
from restobot.core.errors import (
    EmptyCart,
    IncompleteCheckout,
    NotFound,
    PartialCommitFailure,
    ProductUnavailable,
    TransientIO,
    ValidationError,
)
from restobot.core.orders import keyboards, texts
from restobot.core.orders.cart import CartStore
from restobot.core.orders.catalog import CatalogReader
from restobot.core.orders.committer import OrderCommitter
from restobot.core.orders.dialogue import DialogueTracker
from restobot.core.orders.models import DialogueState, InboundEvent, Keyboard, OutboundReply
from restobot.core.orders.states import Step
from restobot.db.models import Order

logger = logging.getLogger(__name__)

OrderHook = Callable[[Order], Awaitable[None]]
Handler = Callable[[InboundEvent, DialogueState, list[str]], Awaitable[OutboundReply]]

COMMANDS = {
    "/start": "start",
    "/menu": "menu",
    "/cart": "cart",
    "/cancel": "cancel",
}

# Reply-keyboard buttons arrive as plain text
BUTTON_LABELS = {
    "🍽 Menyu": "menu",
    "🛒 Savat": "cart",
    "❌ Bekor qilish": "cancel",
}

AWAITING_STEPS = (
    Step.AWAITING_NAME,
    Step.AWAITING_PHONE,
    Step.AWAITING_ADDRESS,
    Step.AWAITING_PAYMENT_METHOD,
)


def parse_action(event: InboundEvent) -> tuple[str, list[str]]:
    """
    Map an event to (action, args).

    Callback data looks like "cat:3:0" or "pay:cash". Free text becomes the
    "text" action with the message as its only argument.
    """
    if event.is_callback:
        action, *args = event.payload.split(":")
        return action, args

    if event.payload in BUTTON_LABELS:
        return BUTTON_LABELS[event.payload], []

    command = event.payload.split(maxsplit=1)[0].split("@")[0].lower() if event.payload else ""
    if command in COMMANDS:
        return COMMANDS[command], []
    return "text", [event.payload]


def _int_arg(args: list[str], index: int = 0, default: Optional[int] = None) -> int:
    try:
        return int(args[index])
    except (IndexError, ValueError):
        if default is None:
            raise NotFound(f"Bad callback argument: {args}")
        return default


class ConversationController:
    """Per-event orchestrator of the ordering dialogue."""

    def __init__(
        self,
        catalog: CatalogReader,
        cart: CartStore,
        dialogue: DialogueTracker,
        committer: OrderCommitter,
        on_order_created: Optional[OrderHook] = None,
        retry_attempts: Optional[int] = None,
        retry_backoff: Optional[float] = None,
    ):
        self.catalog = catalog
        self.cart = cart
        self.dialogue = dialogue
        self.committer = committer
        self.on_order_created = on_order_created
        self.retry_attempts = retry_attempts or settings.retry_attempts
        self.retry_backoff = settings.retry_backoff_seconds if retry_backoff is None else retry_backoff

        # (step, action) -> handler; step None matches any step
        self._routes: dict[tuple[Optional[Step], str], Handler] = {
            (None, "cancel"): self._cancel,
            (Step.BROWSING, "start"): self._start,
            (Step.BROWSING, "menu"): self._show_categories,
            (Step.BROWSING, "cat"): self._show_category,
            (Step.BROWSING, "prod"): self._show_product,
            (Step.BROWSING, "add"): self._add_to_cart,
            (Step.BROWSING, "inc"): self._increment,
            (Step.BROWSING, "dec"): self._decrement,
            (Step.BROWSING, "rm"): self._remove_line,
            (Step.BROWSING, "cart"): self._show_cart,
            (Step.BROWSING, "clear"): self._clear_cart,
            (Step.BROWSING, "checkout"): self._start_checkout,
            (Step.AWAITING_PAYMENT_METHOD, "pay"): self._provide_field,
            (Step.CONFIRMED, "confirm"): self._confirm,
            (Step.CONFIRMED, "rm"): self._remove_line,
            (Step.CONFIRMED, "text"): self._add_notes,
        }
        for step in AWAITING_STEPS:
            self._routes[(step, "text")] = self._provide_field

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    async def handle(self, event: InboundEvent) -> OutboundReply:
        """Handle one inbound event, retrying on transient backend failures."""
        for attempt in range(1, self.retry_attempts + 1):
            try:
                return await self._dispatch(event)
            except TransientIO as e:
                logger.warning(
                    f"Transient failure for conversation {event.conversation_id} "
                    f"(attempt {attempt}/{self.retry_attempts}): {e}"
                )
                if attempt < self.retry_attempts:
                    await asyncio.sleep(self.retry_backoff * attempt)

        logger.error(f"Retries exhausted for conversation {event.conversation_id}")
        return self._reply(event, texts.generic_apology())

    async def _dispatch(self, event: InboundEvent) -> OutboundReply:
        state = await self.dialogue.get(event.conversation_id)
        action, args = parse_action(event)
        handler = (
            self._routes.get((state.step, action))
            or self._routes.get((None, action))
            or self._reprompt
        )
        logger.debug(
            f"Conversation {event.conversation_id}: step={state.step.value} "
            f"action={action} -> {handler.__name__}"
        )

        try:
            return await handler(event, state, args)
        except ValidationError as e:
            return await self._reprompt(event, state, args, error=str(e))
        except NotFound as e:
            logger.info(f"Conversation {event.conversation_id}: {e}")
            return self._reply(event, texts.ITEM_UNAVAILABLE, keyboards.menu_keyboard())

    def _reply(
        self,
        event: InboundEvent,
        text: str,
        keyboard: Optional[Keyboard] = None,
    ) -> OutboundReply:
        """Button presses edit the message they came from; text gets a new message."""
        return OutboundReply(
            conversation_id=event.conversation_id,
            text=text,
            keyboard=keyboard,
            edit_target_message_id=event.origin_message_id if event.is_callback else None,
        )

    async def _reprompt(
        self,
        event: InboundEvent,
        state: DialogueState,
        args: list[str],
        error: Optional[str] = None,
    ) -> OutboundReply:
        """Repeat the current step's instructions."""
        if state.step == Step.BROWSING:
            categories = await self.catalog.list_categories()
            note = texts.error_note(error) if error else texts.UNRECOGNIZED
            return self._reply(
                event,
                f"{note}\n\n{texts.CATEGORIES_HEADER}",
                keyboards.categories_keyboard(categories),
            )
        if state.step == Step.CONFIRMED:
            return await self._show_summary(event, state)
        return self._step_reply(event, state, error)

    def _step_reply(
        self, event: InboundEvent, state: DialogueState, error: Optional[str] = None
    ) -> OutboundReply:
        keyboard = (
            keyboards.payment_keyboard()
            if state.step == Step.AWAITING_PAYMENT_METHOD
            else keyboards.cancel_keyboard()
        )
        return self._reply(event, texts.step_prompt(state, error), keyboard)

    # =========================================================================
    # BROWSING
    # =========================================================================

    async def _start(self, event: InboundEvent, state: DialogueState, args: list[str]) -> OutboundReply:
        categories = await self.catalog.list_categories()
        if not categories:
            return self._reply(event, texts.NO_CATEGORIES)
        return self._reply(
            event, texts.welcome(event.user_name), keyboards.categories_keyboard(categories)
        )

    async def _show_categories(
        self, event: InboundEvent, state: DialogueState, args: list[str]
    ) -> OutboundReply:
        categories = await self.catalog.list_categories()
        if not categories:
            return self._reply(event, texts.NO_CATEGORIES)
        return self._reply(event, texts.CATEGORIES_HEADER, keyboards.categories_keyboard(categories))

    async def _show_category(
        self, event: InboundEvent, state: DialogueState, args: list[str]
    ) -> OutboundReply:
        category = await self.catalog.get_category(_int_arg(args))
        page = await self.catalog.list_products(category.id, offset=_int_arg(args, 1, default=0))
        return self._reply(
            event,
            texts.category_text(category, page.items),
            keyboards.category_keyboard(category.id, page),
        )

    async def _show_product(
        self,
        event: InboundEvent,
        state: DialogueState,
        args: list[str],
        note: Optional[str] = None,
    ) -> OutboundReply:
        product = await self.catalog.get_product(_int_arg(args))
        in_cart = await self._quantity_in_cart(event.conversation_id, product.id)
        return self._reply(
            event,
            texts.product_text(product, in_cart, note),
            keyboards.product_keyboard(product, in_cart),
        )

    async def _quantity_in_cart(self, conversation_id: str, product_id: int) -> int:
        for line in await self.cart.list_items(conversation_id):
            if line.product_id == product_id:
                return line.quantity
        return 0

    async def _add_to_cart(
        self, event: InboundEvent, state: DialogueState, args: list[str]
    ) -> OutboundReply:
        product = await self.catalog.get_product(_int_arg(args))
        try:
            quantity = await self.cart.add_item(event.conversation_id, product.id)
        except ValidationError as e:
            return await self._show_product(
                event, state, [str(product.id)], note=texts.error_note(str(e))
            )
        return await self._show_product(
            event, state, [str(product.id)], note=f"✅ Savatga qo'shildi ({quantity} ta)"
        )

    async def _increment(self, event: InboundEvent, state: DialogueState, args: list[str]) -> OutboundReply:
        return await self._change_quantity(event, state, args, +1)

    async def _decrement(self, event: InboundEvent, state: DialogueState, args: list[str]) -> OutboundReply:
        return await self._change_quantity(event, state, args, -1)

    async def _change_quantity(
        self, event: InboundEvent, state: DialogueState, args: list[str], delta: int
    ) -> OutboundReply:
        product_id = _int_arg(args)
        # "p" marks buttons on the product card
        on_card = len(args) > 1 and args[1] == "p"
        try:
            quantity = await self.cart.change_quantity(event.conversation_id, product_id, delta)
        except ValidationError as e:
            if on_card:
                return await self._show_product(event, state, args, note=texts.error_note(str(e)))
            return await self._show_cart(event, state, args, note=texts.error_note(str(e)))
        note = texts.LINE_NOT_IN_CART if quantity is None else None

        if on_card and quantity is not None:
            return await self._show_product(event, state, args)
        return await self._show_cart(event, state, args, note=note)

    async def _remove_line(
        self, event: InboundEvent, state: DialogueState, args: list[str]
    ) -> OutboundReply:
        await self.cart.remove_item(event.conversation_id, _int_arg(args))
        if state.step == Step.CONFIRMED:
            if await self.cart.count_lines(event.conversation_id) == 0:
                await self.dialogue.reset(event.conversation_id)
                return self._reply(event, texts.EMPTY_CART, keyboards.menu_keyboard())
            return await self._show_summary(event, state)
        return await self._show_cart(event, state, args)

    async def _show_cart(
        self,
        event: InboundEvent,
        state: DialogueState,
        args: list[str],
        note: Optional[str] = None,
    ) -> OutboundReply:
        lines = await self.cart.list_items(event.conversation_id)
        total = await self.cart.total_price(event.conversation_id)
        return self._reply(event, texts.cart_text(lines, total, note), keyboards.cart_keyboard(lines))

    async def _clear_cart(
        self, event: InboundEvent, state: DialogueState, args: list[str]
    ) -> OutboundReply:
        await self.cart.clear(event.conversation_id)
        return self._reply(event, texts.CART_CLEARED, keyboards.menu_keyboard())

    # =========================================================================
    # CHECKOUT
    # =========================================================================

    async def _start_checkout(
        self, event: InboundEvent, state: DialogueState, args: list[str]
    ) -> OutboundReply:
        step, error = await self.dialogue.advance(event.conversation_id, "")
        if error:
            return self._reply(event, texts.EMPTY_CART, keyboards.menu_keyboard())
        state = await self.dialogue.get(event.conversation_id)
        return self._step_reply(event, state)

    async def _provide_field(
        self, event: InboundEvent, state: DialogueState, args: list[str]
    ) -> OutboundReply:
        value = args[0] if args else ""
        step, error = await self.dialogue.advance(event.conversation_id, value)
        state = await self.dialogue.get(event.conversation_id)
        if error:
            return self._step_reply(event, state, error)
        if step == Step.CONFIRMED:
            return await self._show_summary(event, state)
        return self._step_reply(event, state)

    async def _show_summary(
        self, event: InboundEvent, state: DialogueState, error: Optional[str] = None
    ) -> OutboundReply:
        lines = await self.cart.list_items(event.conversation_id)
        total = await self.cart.total_price(event.conversation_id)
        return self._reply(
            event,
            texts.checkout_summary(state, lines, total, error),
            keyboards.confirmation_keyboard(),
        )

    async def _add_notes(
        self, event: InboundEvent, state: DialogueState, args: list[str]
    ) -> OutboundReply:
        """Free text on the confirmation screen becomes the order comment."""
        try:
            error = await self.dialogue.add_notes(event.conversation_id, args[0] if args else "")
        except IncompleteCheckout:
            state = await self.dialogue.get(event.conversation_id)
            return await self._reprompt(event, state, args)
        state = await self.dialogue.get(event.conversation_id)
        return await self._show_summary(event, state, error)

    async def _confirm(
        self, event: InboundEvent, state: DialogueState, args: list[str]
    ) -> OutboundReply:
        conversation_id = event.conversation_id
        try:
            order = await self.committer.commit(conversation_id)
        except EmptyCart:
            return self._reply(event, texts.EMPTY_CART, keyboards.cancel_keyboard())
        except ProductUnavailable as e:
            return self._reply(
                event,
                texts.unavailable_line(e.product_name),
                keyboards.unavailable_keyboard(e.product_id, e.product_name),
            )
        except IncompleteCheckout:
            # Someone else moved the dialogue on; show where it is now
            state = await self.dialogue.get(conversation_id)
            return await self._reprompt(event, state, args)
        except PartialCommitFailure:
            return self._reply(event, texts.partial_commit())

        if self.on_order_created is not None:
            try:
                await self.on_order_created(order)
            except Exception as e:
                logger.error(f"Order hook failed for order {order.id}: {e}", exc_info=True)

        return self._reply(event, texts.order_accepted(order), keyboards.order_done_keyboard())

    async def _cancel(self, event: InboundEvent, state: DialogueState, args: list[str]) -> OutboundReply:
        await self.dialogue.reset(event.conversation_id)
        if state.step != Step.BROWSING:
            logger.info(f"Conversation {event.conversation_id} cancelled checkout at {state.step.value}")
        return self._reply(event, texts.CANCELLED, keyboards.menu_keyboard())


def create_controller(database, on_order_created: Optional[OrderHook] = None) -> ConversationController:
    """Wire the ordering components around one database."""
    cart = CartStore(database)
    dialogue = DialogueTracker(database, cart)
    return ConversationController(
        catalog=CatalogReader(database),
        cart=cart,
        dialogue=dialogue,
        committer=OrderCommitter(database, cart, dialogue),
        on_order_created=on_order_created,
    )
