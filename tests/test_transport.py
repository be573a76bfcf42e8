from aiogram.exceptions import TelegramBadRequest
from aiogram.methods import EditMessageText
from aiogram.types import InlineKeyboardMarkup

from restobot.bot.keyboards.order import build_markup
from restobot.bot.transport import deliver
from restobot.core.orders.models import OutboundReply


class FakeBot:
    """Records Bot API calls; edit_error is raised from edit_message_text."""

    def __init__(self, edit_error=None):
        self.edit_error = edit_error
        self.sent = []
        self.edited = []

    async def send_message(self, **kwargs):
        self.sent.append(kwargs)

    async def edit_message_text(self, **kwargs):
        if self.edit_error is not None:
            raise self.edit_error
        self.edited.append(kwargs)


def bad_request(message):
    method = EditMessageText(text="x", chat_id=1, message_id=5)
    return TelegramBadRequest(method=method, message=message)


def test_build_markup():
    markup = build_markup([[("➖", "dec:1"), ("➕", "inc:1")], [("🛒 Savat", "cart")]])

    assert isinstance(markup, InlineKeyboardMarkup)
    assert [[b.callback_data for b in row] for row in markup.inline_keyboard] == [
        ["dec:1", "inc:1"],
        ["cart"],
    ]


def test_build_markup_without_keyboard():
    assert build_markup(None) is None
    assert build_markup([]) is None


async def test_new_message():
    bot = FakeBot()
    await deliver(bot, OutboundReply(conversation_id="42", text="Salom"))

    assert bot.edited == []
    assert bot.sent == [{"chat_id": "42", "text": "Salom", "reply_markup": None}]


async def test_edit_target():
    bot = FakeBot()
    reply = OutboundReply(
        conversation_id="42", text="Savat", keyboard=[[("🍽 Menyu", "menu")]], edit_target_message_id=5
    )

    await deliver(bot, reply)

    assert bot.sent == []
    assert len(bot.edited) == 1
    assert bot.edited[0]["message_id"] == 5
    assert bot.edited[0]["reply_markup"].inline_keyboard[0][0].callback_data == "menu"


async def test_unmodified_message_is_left_alone():
    bot = FakeBot(edit_error=bad_request("Bad Request: message is not modified"))

    await deliver(bot, OutboundReply(conversation_id="42", text="Savat", edit_target_message_id=5))

    assert bot.sent == []


async def test_uneditable_message_falls_back_to_send():
    bot = FakeBot(edit_error=bad_request("Bad Request: message to edit not found"))

    await deliver(bot, OutboundReply(conversation_id="42", text="Savat", edit_target_message_id=5))

    assert len(bot.sent) == 1
    assert bot.sent[0]["text"] == "Savat"
