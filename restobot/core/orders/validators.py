"""
Validators for checkout data.
"""

import re
from typing import Optional, Tuple

from restobot.core.orders.models import PaymentMethod


class NameValidator:
    """Validate customer name."""

    MIN_LENGTH = 2
    MAX_LENGTH = 100

    @classmethod
    def validate(cls, name: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate customer name.

        Returns:
            Tuple of (is_valid, normalized_name, error_message)
        """
        name = " ".join((name or "").split())

        if len(name) < cls.MIN_LENGTH:
            return False, None, "Ism kamida 2 ta belgidan iborat bo'lishi kerak"

        if len(name) > cls.MAX_LENGTH:
            return False, None, "Ism 100 ta belgidan oshmasligi kerak"

        if name.startswith("/"):
            return False, None, "Iltimos, ismingizni yozing"

        return True, name, None


class PhoneValidator:
    """Validate and normalize Uzbekistan phone numbers."""

    PHONE_PATTERN = re.compile(r"^\+?998(\d{9})$")

    @classmethod
    def clean(cls, phone: str) -> str:
        """Drop spaces, dashes and parentheses."""
        return re.sub(r"[\s\-()]", "", phone or "")

    @classmethod
    def validate(cls, phone: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate and normalize phone number.

        Returns:
            Tuple of (is_valid, normalized_phone, error_message)
        """
        cleaned = cls.clean(phone)

        if not cleaned:
            return False, None, "Telefon raqam majburiy"

        match = cls.PHONE_PATTERN.match(cleaned)
        if not match:
            return False, None, (
                "Telefon raqam formati noto'g'ri.\n"
                "Format: +998XXXXXXXXX (masalan, +998901234567)"
            )

        return True, f"+998{match.group(1)}", None


class AddressValidator:
    """Validate delivery address."""

    MAX_LENGTH = 500

    @classmethod
    def validate(cls, address: str) -> Tuple[bool, Optional[str], Optional[str]]:
        """
        Validate delivery address.

        Returns:
            Tuple of (is_valid, normalized_address, error_message)
        """
        address = (address or "").strip()

        if not address or address.startswith("/"):
            return False, None, "Manzil bo'sh bo'lmasligi kerak"

        if len(address) > cls.MAX_LENGTH:
            return False, None, "Manzil 500 ta belgidan oshmasligi kerak"

        return True, address, None


class PaymentMethodValidator:
    """Map callback values and typed labels to a payment method."""

    ALIASES = {
        "cash": PaymentMethod.CASH,
        "naqd": PaymentMethod.CASH,
        "naqd pul": PaymentMethod.CASH,
        "💵 naqd": PaymentMethod.CASH,
        "card": PaymentMethod.CARD,
        "karta": PaymentMethod.CARD,
        "plastik": PaymentMethod.CARD,
        "💳 karta": PaymentMethod.CARD,
    }

    @classmethod
    def validate(cls, value: str) -> Tuple[bool, Optional[PaymentMethod], Optional[str]]:
        """
        Validate payment method.

        Returns:
            Tuple of (is_valid, payment_method, error_message)
        """
        method = cls.ALIASES.get((value or "").strip().lower())
        if method is None:
            return False, None, "To'lov turini tugmalar orqali tanlang: naqd yoki karta"
        return True, method, None


class NotesValidator:
    """Optional comment for the kitchen or the courier."""

    MAX_LENGTH = 500

    @classmethod
    def validate(cls, notes: str) -> Tuple[bool, Optional[str], Optional[str]]:
        notes = (notes or "").strip()

        if not notes:
            return False, None, "Izoh bo'sh bo'lmasligi kerak"

        if len(notes) > cls.MAX_LENGTH:
            return False, None, "Izoh 500 ta belgidan oshmasligi kerak"

        return True, notes, None
