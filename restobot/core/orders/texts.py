"""
User-facing texts of the ordering flow (Uzbek, HTML parse mode).
"""

from html import escape
from typing import Optional

from restobot.config import settings
from restobot.core.orders.models import PAYMENT_LABELS, CartLine, DialogueState
from restobot.core.orders.states import Step, progress
from restobot.db.models import Category, Order, Product


PAYMENT_LABELS_BY_VALUE = {method.value: label for method, label in PAYMENT_LABELS.items()}


def format_price(amount: int) -> str:
    """70000 -> "70 000 so'm"."""
    return f"{amount:,}".replace(",", " ") + " so'm"


def format_progress(step: Step) -> str:
    current, total = progress(step)
    filled = "●" * current
    empty = "○" * (total - current)
    return f"[{filled}{empty}] {current}-qadam / {total}"


def welcome(user_name: Optional[str]) -> str:
    name = escape(user_name) if user_name else "Mehmon"
    return (
        f"🍽 <b>{escape(settings.restaurant_name)}</b> ga xush kelibsiz, {name}!\n\n"
        "Eng mazali taomlar sizni kutmoqda.\n"
        "Kategoriyani tanlang:"
    )


HELP_MESSAGE = """🤖 <b>Bot orqali buyurtma berish:</b>

1. Menyudan kategoriya va taomni tanlang
2. «➕ Savatga qo'shish» tugmasini bosing
3. Savatda «✅ Buyurtma berish» ni bosing
4. Ism, telefon, manzil va to'lov turini kiriting
5. Buyurtmani tasdiqlang

<b>Buyruqlar:</b>
/menu — menyu
/cart — savat
/cancel — buyurtmani bekor qilish
/help — yordam"""

CATEGORIES_HEADER = "📋 <b>Menyu</b>\n\nKategoriyani tanlang:"
NO_CATEGORIES = "😔 Hozircha menyu bo'sh. Keyinroq urinib ko'ring."
NO_PRODUCTS = "😔 Bu kategoriyada hozircha taom yo'q."
EMPTY_CART = "🛒 Savatingiz bo'sh. Avval menyudan taom tanlang."
ITEM_UNAVAILABLE = "😔 Bu mahsulot hozir mavjud emas."
LINE_NOT_IN_CART = "Bu mahsulot savatda yo'q."
CART_CLEARED = "🗑 Savat tozalandi."
CANCELLED = "❌ Buyurtma bekor qilindi. Savatingiz saqlanib qoldi."
UNRECOGNIZED = "Iltimos, quyidagi tugmalardan foydalaning."


def error_note(message: str) -> str:
    return f"❌ {escape(message, quote=False)}"


def generic_apology() -> str:
    return (
        "😔 Kechirasiz, texnik nosozlik yuz berdi. Birozdan so'ng qayta urinib ko'ring.\n\n"
        f"📞 Shoshilinch bo'lsa: {settings.support_phone}"
    )


def partial_commit() -> str:
    return (
        "⚠️ Buyurtmangizni saqlashda muammo yuz berdi. Operator tekshirib, "
        "siz bilan bog'lanadi. Iltimos, buyurtmani qayta yubormang.\n\n"
        f"📞 {settings.support_phone}"
    )


def category_text(category: Category, products: list[Product]) -> str:
    if not products:
        return f"<b>{escape(category.name)}</b>\n\n{NO_PRODUCTS}"
    lines = [f"<b>{escape(category.name)}</b>", ""]
    for product in products:
        lines.append(f"• {escape(product.name)} — {format_price(product.effective_price)}")
    lines.append("")
    lines.append("Taomni tanlang:")
    return "\n".join(lines)


def product_text(product: Product, in_cart: int = 0, note: Optional[str] = None) -> str:
    lines = []
    if note:
        lines += [note, ""]
    lines.append(f"🍽 <b>{escape(product.name)}</b>")
    if product.description:
        lines.append(escape(product.description))
    lines.append("")
    if product.discount_price is not None:
        lines.append(
            f"💰 <s>{format_price(product.price)}</s> {format_price(product.discount_price)}"
        )
    else:
        lines.append(f"💰 {format_price(product.price)}")
    if in_cart:
        lines.append(f"🛒 Savatda: {in_cart} ta")
    return "\n".join(lines)


def format_lines(lines: list[CartLine]) -> str:
    result = []
    for i, line in enumerate(lines, 1):
        unavailable = " <i>(mavjud emas)</i>" if not line.is_active else ""
        result.append(
            f"{i}. {escape(line.name)}{unavailable} — {line.quantity} × "
            f"{format_price(line.unit_price)} = {format_price(line.total_price)}"
        )
    return "\n".join(result)


def cart_text(lines: list[CartLine], total: int, note: Optional[str] = None) -> str:
    head = [note, ""] if note else []
    if not lines:
        return "\n".join(head + [EMPTY_CART])
    return "\n".join(
        head
        + [
            "🛒 <b>Savat</b>",
            "",
            format_lines(lines),
            "",
            f"<b>Jami:</b> {format_price(total)}",
        ]
    )


STEP_PROMPTS = {
    Step.AWAITING_NAME: "👤 <b>Ismingiz</b>\n\nIsmingizni kiriting:",
    Step.AWAITING_PHONE: (
        "📞 <b>Telefon raqam</b>\n\n"
        "Telefon raqamingizni kiriting (masalan, +998901234567):"
    ),
    Step.AWAITING_ADDRESS: (
        "📍 <b>Manzil</b>\n\n"
        "Yetkazib berish manzilini kiriting (shahar, ko'cha, uy, xonadon):"
    ),
    Step.AWAITING_PAYMENT_METHOD: "💳 <b>To'lov turi</b>\n\nTo'lov turini tanlang:",
}


def step_prompt(state: DialogueState, error: Optional[str] = None) -> str:
    lines = []
    if error:
        lines += [error_note(error), ""]
    lines.append(format_progress(state.step))
    lines.append("")
    for label, value in (("Ism", state.name), ("Telefon", state.phone), ("Manzil", state.address)):
        if value:
            lines.append(f"✅ {label}: {escape(value)}")
    if state.name:
        lines.append("")
    lines.append(STEP_PROMPTS[state.step])
    return "\n".join(lines)


CHECKOUT_NOTES_HINT = "✏️ Izoh qoldirish uchun xabar yozing."


def checkout_summary(
    state: DialogueState, lines: list[CartLine], total: int, error: Optional[str] = None
) -> str:
    head = [error_note(error), ""] if error else []
    customer = [
        f"👤 {escape(state.name or '')}",
        f"📞 {escape(state.phone or '')}",
        f"📍 {escape(state.address or '')}",
        f"💳 {state.payment_method.label if state.payment_method else ''}",
    ]
    if state.notes:
        customer.append(f"💬 Izoh: {escape(state.notes)}")
    return "\n".join(
        head
        + [
            "📦 <b>Buyurtmangizni tekshiring</b>",
            "",
            format_lines(lines),
            "",
            f"💰 <b>Jami:</b> {format_price(total)}",
            "",
        ]
        + customer
        + ["", CHECKOUT_NOTES_HINT, "", "Hammasi to'g'rimi?"]
    )


def unavailable_line(product_name: str) -> str:
    return (
        f"😔 «{escape(product_name)}» hozir mavjud emas.\n"
        "Uni savatdan olib tashlang va buyurtmani qayta tasdiqlang."
    )


def order_accepted(order: Order) -> str:
    return (
        f"✅ <b>Buyurtma {order.order_number} qabul qilindi!</b>\n\n"
        f"💰 Jami: {format_price(order.total_price)}\n\n"
        f"Operator tez orada {escape(order.phone)} raqamiga qo'ng'iroq qiladi."
    )


def manager_notification(order: Order) -> str:
    """New order message for the restaurant staff chat."""
    items = "\n".join(
        f"   {i}. {escape(item.product_name)} x{item.quantity} = {format_price(item.line_total)}"
        for i, item in enumerate(order.items, 1)
    )
    payment = PAYMENT_LABELS_BY_VALUE.get(order.payment_method, order.payment_method)
    notes = f"💬 <b>Izoh:</b> {escape(order.notes)}\n" if order.notes else ""
    return (
        f"🆕 <b>YANGI BUYURTMA {order.order_number}</b>\n\n"
        f"👤 <b>Mijoz:</b> {escape(order.customer_name)}\n"
        f"📞 <b>Telefon:</b> {escape(order.phone)}\n"
        f"📍 <b>Manzil:</b> {escape(order.address)}\n\n"
        f"📦 <b>Mahsulotlar:</b>\n{items}\n\n"
        f"💰 <b>Jami:</b> {format_price(order.total_price)}\n"
        f"💳 <b>To'lov:</b> {payment}\n"
        f"{notes}"
        f"🤖 <b>Manba:</b> {order.source}\n"
        f"⏰ <b>Vaqt:</b> {order.created_at.strftime('%d.%m.%Y %H:%M')}"
    )
