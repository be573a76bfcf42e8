"""
Inline keyboard layouts for the ordering flow.

Layouts are plain rows of (label, callback_data); the transport turns them
into Telegram markup.
"""

from restobot.core.orders.models import CartLine, CatalogPage, Keyboard, PaymentMethod
from restobot.db.models import Category, Product


def _short(text: str, limit: int = 28) -> str:
    return text if len(text) <= limit else text[: limit - 1] + "…"


def categories_keyboard(categories: list[Category]) -> Keyboard:
    rows = [[(f"🍽 {_short(c.name)}", f"cat:{c.id}:0")] for c in categories]
    rows.append([("🛒 Savat", "cart")])
    return rows


def category_keyboard(category_id: int, page: CatalogPage) -> Keyboard:
    rows = [[(_short(p.name), f"prod:{p.id}")] for p in page.items]

    nav = []
    if page.offset > 0:
        nav.append(("⬅️", f"cat:{category_id}:{max(page.offset - page.page_size, 0)}"))
    if page.has_more:
        nav.append(("➡️", f"cat:{category_id}:{page.offset + len(page.items)}"))
    if nav:
        rows.append(nav)

    rows.append([("🔙 Kategoriyalar", "menu"), ("🛒 Savat", "cart")])
    return rows


def product_keyboard(product: Product, in_cart: int = 0) -> Keyboard:
    if in_cart:
        rows = [
            [
                ("➖", f"dec:{product.id}:p"),
                (f"{in_cart} ta", "cart"),
                ("➕", f"inc:{product.id}:p"),
            ]
        ]
    else:
        rows = [[("➕ Savatga qo'shish", f"add:{product.id}")]]
    rows.append([("🔙 Orqaga", f"cat:{product.category_id}:0"), ("🛒 Savat", "cart")])
    return rows


def cart_keyboard(lines: list[CartLine]) -> Keyboard:
    if not lines:
        return menu_keyboard()
    rows = [
        [
            ("➖", f"dec:{line.product_id}"),
            (f"{_short(line.name, 20)} × {line.quantity}", f"prod:{line.product_id}"),
            ("➕", f"inc:{line.product_id}"),
        ]
        for line in lines
    ]
    rows.append([("🗑 Tozalash", "clear"), ("🍽 Menyu", "menu")])
    rows.append([("✅ Buyurtma berish", "checkout")])
    return rows


def menu_keyboard() -> Keyboard:
    return [[("🍽 Menyu", "menu")]]


def cancel_keyboard() -> Keyboard:
    return [[("❌ Bekor qilish", "cancel")]]


def payment_keyboard() -> Keyboard:
    return [
        [(method.label, f"pay:{method.value}") for method in PaymentMethod],
        [("❌ Bekor qilish", "cancel")],
    ]


def confirmation_keyboard() -> Keyboard:
    return [
        [("✅ Tasdiqlash", "confirm")],
        [("❌ Bekor qilish", "cancel")],
    ]


def unavailable_keyboard(product_id: int, product_name: str) -> Keyboard:
    return [
        [(f"🗑 {_short(product_name, 24)} ni olib tashlash", f"rm:{product_id}")],
        [("❌ Bekor qilish", "cancel")],
    ]


def order_done_keyboard() -> Keyboard:
    return [[("🍽 Yangi buyurtma", "menu")]]
