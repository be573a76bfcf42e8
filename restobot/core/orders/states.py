"""
Checkout dialogue steps.
"""

from enum import Enum


class Step(str, Enum):
    """Steps of the checkout flow."""

    BROWSING = "browsing"                                 # Menyu va savat
    AWAITING_NAME = "awaiting_name"                       # Ism
    AWAITING_PHONE = "awaiting_phone"                     # Telefon raqam
    AWAITING_ADDRESS = "awaiting_address"                 # Manzil
    AWAITING_PAYMENT_METHOD = "awaiting_payment_method"   # To'lov turi
    CONFIRMED = "confirmed"                               # Tasdiqlashni kutmoqda


# Valid input moves exactly one step forward
NEXT_STEP = {
    Step.BROWSING: Step.AWAITING_NAME,
    Step.AWAITING_NAME: Step.AWAITING_PHONE,
    Step.AWAITING_PHONE: Step.AWAITING_ADDRESS,
    Step.AWAITING_ADDRESS: Step.AWAITING_PAYMENT_METHOD,
    Step.AWAITING_PAYMENT_METHOD: Step.CONFIRMED,
}

# Which collected field each step fills
STEP_FIELD = {
    Step.AWAITING_NAME: "name",
    Step.AWAITING_PHONE: "phone",
    Step.AWAITING_ADDRESS: "address",
    Step.AWAITING_PAYMENT_METHOD: "payment_method",
}

CHECKOUT_STEPS = tuple(STEP_FIELD)


def progress(step: Step) -> tuple[int, int]:
    """Position of an awaiting step within checkout, 1-based."""
    return CHECKOUT_STEPS.index(step) + 1, len(CHECKOUT_STEPS)
