import pytest
from sqlalchemy import func, select, update

from restobot.core.errors import ValidationError
from restobot.core.orders.cart import MAX_LINE_QUANTITY
from restobot.db.models import CartItem, Product

CONVERSATION = "998001"


async def _row_count(database, conversation_id=CONVERSATION):
    async with database.session() as session:
        return await session.scalar(
            select(func.count(CartItem.id)).where(CartItem.conversation_id == conversation_id)
        )


async def test_adding_twice_increments_one_line(database, cart, menu):
    osh = menu.products["osh"]

    assert await cart.add_item(CONVERSATION, osh.id) == 1
    assert await cart.add_item(CONVERSATION, osh.id) == 2

    lines = await cart.list_items(CONVERSATION)
    assert len(lines) == 1
    assert lines[0].quantity == 2
    assert lines[0].name == "Osh"
    assert await _row_count(database) == 1


async def test_conversation_id_may_be_int(cart, menu):
    await cart.add_item(998001, menu.products["choy"].id)
    assert await cart.count_lines("998001") == 1


async def test_add_rejects_non_positive_qty(cart, menu):
    with pytest.raises(ValueError):
        await cart.add_item(CONVERSATION, menu.products["osh"].id, qty=0)


@pytest.mark.parametrize("delta", [-2, -5])
async def test_quantity_reaching_zero_removes_row(database, cart, menu, delta):
    osh = menu.products["osh"]
    await cart.add_item(CONVERSATION, osh.id, qty=2)

    assert await cart.change_quantity(CONVERSATION, osh.id, delta) == 0
    assert await _row_count(database) == 0
    assert await cart.list_items(CONVERSATION) == []


async def test_change_quantity(cart, menu):
    osh = menu.products["osh"]
    await cart.add_item(CONVERSATION, osh.id)

    assert await cart.change_quantity(CONVERSATION, osh.id, +3) == 4
    assert await cart.change_quantity(CONVERSATION, osh.id, -1) == 3


async def test_change_quantity_of_missing_line(cart, menu):
    assert await cart.change_quantity(CONVERSATION, menu.products["osh"].id, +1) is None


async def test_line_quantity_is_capped(cart, menu):
    osh = menu.products["osh"]
    await cart.add_item(CONVERSATION, osh.id, qty=MAX_LINE_QUANTITY)

    with pytest.raises(ValidationError):
        await cart.add_item(CONVERSATION, osh.id)
    with pytest.raises(ValidationError):
        await cart.change_quantity(CONVERSATION, osh.id, +1)

    lines = await cart.list_items(CONVERSATION)
    assert lines[0].quantity == MAX_LINE_QUANTITY


async def test_total_uses_discount_price(cart, menu):
    await cart.add_item(CONVERSATION, menu.products["osh"].id, qty=2)
    await cart.add_item(CONVERSATION, menu.products["lagmon"].id)

    lines = await cart.list_items(CONVERSATION)
    assert [line.unit_price for line in lines] == [35000, 27000]
    assert await cart.total_price(CONVERSATION) == 97000
    assert sum(line.total_price for line in lines) == 97000


async def test_total_follows_price_changes(database, cart, menu):
    osh = menu.products["osh"]
    await cart.add_item(CONVERSATION, osh.id, qty=2)
    assert await cart.total_price(CONVERSATION) == 70000

    async with database.session() as session:
        await session.execute(update(Product).where(Product.id == osh.id).values(price=40000))

    assert await cart.total_price(CONVERSATION) == 80000
    lines = await cart.list_items(CONVERSATION)
    assert lines[0].unit_price == 40000


async def test_empty_cart_total_is_zero(cart, menu):
    assert await cart.total_price(CONVERSATION) == 0
    assert await cart.count_lines(CONVERSATION) == 0


async def test_remove_item(cart, menu):
    await cart.add_item(CONVERSATION, menu.products["osh"].id)
    await cart.add_item(CONVERSATION, menu.products["choy"].id)

    assert await cart.remove_item(CONVERSATION, menu.products["osh"].id)
    assert not await cart.remove_item(CONVERSATION, menu.products["osh"].id)
    assert [line.name for line in await cart.list_items(CONVERSATION)] == ["Choy"]


async def test_clear_leaves_other_conversations(cart, menu):
    await cart.add_item(CONVERSATION, menu.products["osh"].id)
    await cart.add_item(CONVERSATION, menu.products["choy"].id)
    await cart.add_item("other", menu.products["osh"].id)

    assert await cart.clear(CONVERSATION) == 2
    assert await cart.count_lines(CONVERSATION) == 0
    assert await cart.count_lines("other") == 1


async def test_inactive_product_stays_in_cart(database, cart, menu):
    osh = menu.products["osh"]
    await cart.add_item(CONVERSATION, osh.id)

    async with database.session() as session:
        await session.execute(update(Product).where(Product.id == osh.id).values(is_active=False))

    lines = await cart.list_items(CONVERSATION)
    assert len(lines) == 1
    assert not lines[0].is_active
