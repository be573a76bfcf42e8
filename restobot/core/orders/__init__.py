"""
Orders module for the restaurant bot.
Handles catalog browsing, the cart, checkout dialogue and order commit.
"""

from restobot.core.orders.models import (
    CartLine,
    DialogueState,
    EventKind,
    InboundEvent,
    OutboundReply,
    PaymentMethod,
)
from restobot.core.orders.states import Step
from restobot.core.orders.validators import (
    AddressValidator,
    NameValidator,
    PaymentMethodValidator,
    PhoneValidator,
)
from restobot.core.orders.catalog import CatalogReader
from restobot.core.orders.cart import CartStore
from restobot.core.orders.dialogue import DialogueTracker
from restobot.core.orders.committer import OrderCommitter
from restobot.core.orders.controller import ConversationController, create_controller
from restobot.core.orders.exporter import order_exporter

__all__ = [
    # Models
    "CartLine",
    "DialogueState",
    "EventKind",
    "InboundEvent",
    "OutboundReply",
    "PaymentMethod",
    # States
    "Step",
    # Validators
    "AddressValidator",
    "NameValidator",
    "PaymentMethodValidator",
    "PhoneValidator",
    # Components
    "CatalogReader",
    "CartStore",
    "DialogueTracker",
    "OrderCommitter",
    "ConversationController",
    "create_controller",
    # Exporter
    "order_exporter",
]
