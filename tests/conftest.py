import os

os.environ.setdefault("TELEGRAM_BOT_TOKEN", "123456:TEST-TOKEN")

from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy import func, select

from restobot.core.orders.cart import CartStore
from restobot.core.orders.catalog import CatalogReader
from restobot.core.orders.committer import OrderCommitter
from restobot.core.orders.controller import ConversationController
from restobot.core.orders.dialogue import DialogueTracker
from restobot.db.models import Category, Order, Product
from restobot.db.sqlite import Database

CONVERSATION = "998001"

CHECKOUT_FIELDS = {
    "name": "Ali",
    "phone": "+998901234567",
    "address": "Tashkent",
    "payment_method": "cash",
}


@pytest_asyncio.fixture
async def database():
    database = Database("sqlite+aiosqlite:///:memory:", echo=False)
    await database.init()
    yield database
    await database.close()


@pytest_asyncio.fixture
async def menu(database):
    async with database.session() as session:
        national = Category(name="Milliy taomlar", sort_order=1)
        drinks = Category(name="Ichimliklar", sort_order=2)
        archive = Category(name="Arxiv", sort_order=0, is_active=False)
        session.add_all([national, drinks, archive])
        await session.flush()

        products = {
            "osh": Product(name="Osh", price=35000, category_id=national.id),
            "lagmon": Product(
                name="Lag'mon", price=30000, discount_price=27000, category_id=national.id
            ),
            "manti": Product(name="Manti", price=32000, category_id=national.id),
            "choy": Product(name="Choy", price=5000, category_id=drinks.id),
            "retired": Product(
                name="Eski taom", price=10000, category_id=national.id, is_active=False
            ),
        }
        session.add_all(products.values())

    return SimpleNamespace(
        categories={"national": national, "drinks": drinks, "archive": archive},
        products=products,
    )


@pytest.fixture
def catalog(database):
    return CatalogReader(database)


@pytest.fixture
def cart(database):
    return CartStore(database)


@pytest.fixture
def dialogue(database, cart):
    return DialogueTracker(database, cart)


@pytest.fixture
def committer(database, cart, dialogue):
    return OrderCommitter(database, cart, dialogue)


@pytest.fixture
def order_hook():
    created = []

    async def hook(order):
        created.append(order)

    hook.created = created
    return hook


@pytest.fixture
def controller(catalog, cart, dialogue, committer, order_hook):
    return ConversationController(
        catalog=catalog,
        cart=cart,
        dialogue=dialogue,
        committer=committer,
        on_order_created=order_hook,
        retry_attempts=3,
        retry_backoff=0,
    )


@pytest.fixture
def fill_checkout(dialogue):
    """Drive a conversation from browsing to confirmed."""

    async def fill(conversation_id=CONVERSATION, **overrides):
        fields = {**CHECKOUT_FIELDS, **overrides}
        await dialogue.advance(conversation_id, "")
        for key in ("name", "phone", "address", "payment_method"):
            step, error = await dialogue.advance(conversation_id, fields[key])
            assert error is None, error
        return step

    return fill


@pytest.fixture
def count_orders(database):
    async def count():
        async with database.session() as session:
            return await session.scalar(select(func.count(Order.id)))

    return count
