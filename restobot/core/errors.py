"""
Error taxonomy of the ordering core.
"""


class OrderBotError(Exception):
    """Base class for all ordering errors."""


class NotFound(OrderBotError):
    """Catalog lookup did not resolve to an active row."""


class ProductUnavailable(NotFound):
    """A cart line references a product that is no longer active."""

    def __init__(self, product_id: int, product_name: str):
        super().__init__(f"Product {product_id} ({product_name}) is unavailable")
        self.product_id = product_id
        self.product_name = product_name


class EmptyCart(OrderBotError):
    """Checkout or commit attempted on an empty cart."""


class IncompleteCheckout(OrderBotError):
    """Commit attempted before the dialogue reached the confirmed step."""


class ValidationError(OrderBotError):
    """User input rejected; carries the message shown to the user."""


class TransientIO(OrderBotError):
    """Backend unavailable. Nothing was written; the action may be retried."""


class StaleDialogueState(TransientIO):
    """Dialogue state changed underneath us between read and write."""


class PartialCommitFailure(OrderBotError):
    """Order commit outcome unknown. Needs operator reconciliation, never retried."""

    def __init__(self, conversation_id: str, detail: str):
        super().__init__(f"Commit for conversation {conversation_id} may be incomplete: {detail}")
        self.conversation_id = conversation_id
