"""
Value objects passed between the ordering components and the transport.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from restobot.core.orders.states import Step

# Rows of (label, callback_data) pairs
Keyboard = list[list[tuple[str, str]]]


class EventKind(str, Enum):
    TEXT = "text"
    CALLBACK = "callback"


class PaymentMethod(str, Enum):
    """Payment methods accepted at checkout."""
    CASH = "cash"
    CARD = "card"

    @property
    def label(self) -> str:
        return PAYMENT_LABELS[self]


PAYMENT_LABELS = {
    PaymentMethod.CASH: "💵 Naqd",
    PaymentMethod.CARD: "💳 Karta",
}


def normalize_conversation_id(conversation_id: Union[int, str]) -> str:
    """Conversation ids are opaque; store them as strings."""
    return str(conversation_id).strip()


@dataclass
class InboundEvent:
    """Message or button press delivered by the messaging transport."""
    conversation_id: str
    kind: EventKind
    payload: str
    origin_message_id: Optional[int] = None
    user_name: Optional[str] = None

    def __post_init__(self) -> None:
        self.conversation_id = normalize_conversation_id(self.conversation_id)
        self.kind = EventKind(self.kind)
        self.payload = (self.payload or "").strip()

    @property
    def is_callback(self) -> bool:
        return self.kind == EventKind.CALLBACK


@dataclass
class OutboundReply:
    """
    The single reply produced for an inbound event.

    When edit_target_message_id is set the transport edits that message,
    otherwise it sends a new one.
    """
    conversation_id: str
    text: str
    keyboard: Optional[Keyboard] = None
    edit_target_message_id: Optional[int] = None

    @property
    def is_edit(self) -> bool:
        return self.edit_target_message_id is not None


@dataclass
class CartLine:
    """Cart item joined with a snapshot of its product."""
    product_id: int
    name: str
    unit_price: int
    quantity: int
    image_url: Optional[str] = None
    is_active: bool = True

    @property
    def total_price(self) -> int:
        return self.unit_price * self.quantity


@dataclass
class DialogueState:
    """Checkout progress of one conversation."""
    conversation_id: str
    step: Step = Step.BROWSING
    name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None
    version: int = 0

    @property
    def collected_fields(self) -> dict:
        """Fields collected so far, without the empty ones."""
        fields = {
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "payment_method": self.payment_method,
        }
        return {k: v for k, v in fields.items() if v is not None}


@dataclass
class CatalogPage:
    """One page of products."""
    items: list = field(default_factory=list)
    offset: int = 0
    has_more: bool = False
    page_size: int = 20
