import asyncio
import logging

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from restobot.core.errors import (
    EmptyCart,
    IncompleteCheckout,
    PartialCommitFailure,
    ProductUnavailable,
)
from restobot.core.orders.cart import CartStore
from restobot.core.orders.committer import OrderCommitter
from restobot.core.orders.dialogue import DialogueTracker
from restobot.core.orders.states import Step
from restobot.db.models import Category, Order, Product
from restobot.db.sqlite import Database

CONVERSATION = "998001"


async def test_commit_creates_order(committer, cart, dialogue, menu, fill_checkout, count_orders):
    await cart.add_item(CONVERSATION, menu.products["osh"].id, qty=2)
    await fill_checkout()

    order = await committer.commit(CONVERSATION)

    assert order.total_price == 70000
    assert order.customer_name == "Ali"
    assert order.phone == "+998901234567"
    assert order.address == "Tashkent"
    assert order.payment_method == "cash"
    assert order.source == "bot"
    assert order.status == "new"
    assert order.order_number == f"#{order.id:06d}"

    assert len(order.items) == 1
    item = order.items[0]
    assert item.product_name == "Osh"
    assert item.quantity == 2
    assert item.unit_price == 35000
    assert item.line_total == 70000

    assert await cart.count_lines(CONVERSATION) == 0
    state = await dialogue.get(CONVERSATION)
    assert state.step == Step.BROWSING
    assert state.collected_fields == {}
    assert await count_orders() == 1


async def test_total_matches_items(committer, cart, menu, fill_checkout):
    await cart.add_item(CONVERSATION, menu.products["osh"].id)
    await cart.add_item(CONVERSATION, menu.products["lagmon"].id, qty=3)
    await cart.add_item(CONVERSATION, menu.products["choy"].id, qty=2)
    await fill_checkout(payment_method="card")

    order = await committer.commit(CONVERSATION)

    assert [item.product_name for item in order.items] == ["Osh", "Lag'mon", "Choy"]
    assert order.total_price == sum(item.line_total for item in order.items) == 126000
    assert order.payment_method == "card"


async def test_second_commit_finds_empty_cart(committer, cart, menu, fill_checkout, count_orders):
    await cart.add_item(CONVERSATION, menu.products["osh"].id)
    await fill_checkout()
    await committer.commit(CONVERSATION)

    with pytest.raises(EmptyCart):
        await committer.commit(CONVERSATION)
    assert await count_orders() == 1


async def test_concurrent_commits_create_one_order(
    committer, cart, menu, fill_checkout, count_orders
):
    await cart.add_item(CONVERSATION, menu.products["osh"].id, qty=2)
    await fill_checkout()

    results = await asyncio.gather(
        committer.commit(CONVERSATION),
        committer.commit(CONVERSATION),
        return_exceptions=True,
    )

    orders = [r for r in results if isinstance(r, Order)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(orders) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], EmptyCart)
    assert await count_orders() == 1


async def _worker(url):
    database = Database(url, echo=False)
    await database.init()
    cart = CartStore(database)
    dialogue = DialogueTracker(database, cart)
    return database, cart, dialogue, OrderCommitter(database, cart, dialogue)


async def test_two_workers_race_for_one_checkout(tmp_path):
    url = f"sqlite+aiosqlite:///{tmp_path / 'shared.db'}"
    db_a, cart_a, dialogue_a, committer_a = await _worker(url)
    db_b, _, _, committer_b = await _worker(url)
    try:
        async with db_a.session() as session:
            category = Category(name="Milliy taomlar")
            session.add(category)
            await session.flush()
            osh = Product(name="Osh", price=35000, category_id=category.id)
            session.add(osh)

        await cart_a.add_item(CONVERSATION, osh.id, qty=2)
        for text in ("", "Ali", "+998901234567", "Tashkent", "cash"):
            await dialogue_a.advance(CONVERSATION, text)

        results = await asyncio.gather(
            committer_a.commit(CONVERSATION),
            committer_b.commit(CONVERSATION),
            return_exceptions=True,
        )

        orders = [r for r in results if isinstance(r, Order)]
        failures = [r for r in results if not isinstance(r, Order)]
        assert len(orders) == 1
        assert len(failures) == 1
        assert isinstance(failures[0], (EmptyCart, IncompleteCheckout)), failures[0]

        async with db_b.session() as session:
            assert await session.scalar(select(func.count(Order.id))) == 1
    finally:
        await db_a.close()
        await db_b.close()


async def test_empty_cart(committer, menu, count_orders):
    with pytest.raises(EmptyCart):
        await committer.commit(CONVERSATION)
    assert await count_orders() == 0


async def test_unconfirmed_checkout(committer, cart, dialogue, menu, count_orders):
    await cart.add_item(CONVERSATION, menu.products["osh"].id)
    await dialogue.advance(CONVERSATION, "")
    await dialogue.advance(CONVERSATION, "Ali")

    with pytest.raises(IncompleteCheckout):
        await committer.commit(CONVERSATION)

    assert await count_orders() == 0
    assert await cart.count_lines(CONVERSATION) == 1
    assert (await dialogue.get(CONVERSATION)).step == Step.AWAITING_PHONE


async def test_deactivated_product(
    database, committer, cart, dialogue, menu, fill_checkout, count_orders
):
    osh = menu.products["osh"]
    await cart.add_item(CONVERSATION, osh.id)
    await cart.add_item(CONVERSATION, menu.products["choy"].id)
    await fill_checkout()

    async with database.session() as session:
        await session.execute(update(Product).where(Product.id == osh.id).values(is_active=False))

    with pytest.raises(ProductUnavailable) as exc_info:
        await committer.commit(CONVERSATION)

    assert exc_info.value.product_id == osh.id
    assert exc_info.value.product_name == "Osh"
    assert await count_orders() == 0
    assert await cart.count_lines(CONVERSATION) == 2
    assert (await dialogue.get(CONVERSATION)).step == Step.CONFIRMED

    # Dropping the line lets the order through
    await cart.remove_item(CONVERSATION, osh.id)
    order = await committer.commit(CONVERSATION)
    assert [item.product_name for item in order.items] == ["Choy"]


async def test_order_keeps_names_and_prices(database, committer, cart, menu, fill_checkout):
    osh = menu.products["osh"]
    await cart.add_item(CONVERSATION, osh.id, qty=2)
    await fill_checkout()
    order = await committer.commit(CONVERSATION)

    async with database.session() as session:
        await session.execute(
            update(Product).where(Product.id == osh.id).values(name="Toy oshi", price=50000)
        )

    reloaded = await committer.get_order(order.id)
    assert reloaded.items[0].product_name == "Osh"
    assert reloaded.items[0].unit_price == 35000
    assert reloaded.total_price == 70000


async def test_failed_commit_is_partial(
    monkeypatch, caplog, committer, cart, menu, fill_checkout
):
    await cart.add_item(CONVERSATION, menu.products["osh"].id)
    await fill_checkout()

    original_commit = AsyncSession.commit

    async def flaky_commit(self):
        if any(isinstance(obj, Order) for obj in self.sync_session.identity_map.values()):
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))
        return await original_commit(self)

    monkeypatch.setattr(AsyncSession, "commit", flaky_commit)

    with caplog.at_level(logging.CRITICAL, logger="restobot.core.orders.committer"):
        with pytest.raises(PartialCommitFailure) as exc_info:
            await committer.commit(CONVERSATION)

    assert exc_info.value.conversation_id == CONVERSATION
    assert any(record.levelno == logging.CRITICAL for record in caplog.records)


async def test_order_carries_notes(committer, cart, dialogue, menu, fill_checkout):
    await cart.add_item(CONVERSATION, menu.products["osh"].id)
    await fill_checkout()
    await dialogue.add_notes(CONVERSATION, "Piyozsiz")

    order = await committer.commit(CONVERSATION)

    assert order.notes == "Piyozsiz"
    assert (await dialogue.get(CONVERSATION)).notes is None


async def test_comment_during_commit_is_not_lost(
    monkeypatch, committer, cart, dialogue, menu, fill_checkout, count_orders
):
    await cart.add_item(CONVERSATION, menu.products["osh"].id)
    await fill_checkout()

    read_state = dialogue.get
    commented = []

    async def get_then_comment(conversation_id):
        state = await read_state(conversation_id)
        if not commented:
            commented.append(conversation_id)
            await dialogue.add_notes(conversation_id, "Piyozsiz")
        return state

    monkeypatch.setattr(dialogue, "get", get_then_comment)

    with pytest.raises(IncompleteCheckout):
        await committer.commit(CONVERSATION)
    assert await count_orders() == 0
    assert await cart.count_lines(CONVERSATION) == 1

    order = await committer.commit(CONVERSATION)
    assert order.notes == "Piyozsiz"
