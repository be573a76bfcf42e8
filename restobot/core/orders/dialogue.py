"""
Durable checkout dialogue state.

Every conversation has one row in dialogue_states. The row is the only
source of truth for the current step, so any worker can handle any event.
"""

import logging
from typing import Optional, Tuple

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from restobot.core.errors import IncompleteCheckout, StaleDialogueState
from restobot.core.orders.cart import CartStore
from restobot.core.orders.models import DialogueState, PaymentMethod, normalize_conversation_id
from restobot.core.orders.states import NEXT_STEP, STEP_FIELD, Step
from restobot.core.orders.validators import (
    AddressValidator,
    NameValidator,
    NotesValidator,
    PaymentMethodValidator,
    PhoneValidator,
)
from restobot.db.models import DialogueStateRecord
from restobot.db.sqlite import Database

logger = logging.getLogger(__name__)

EMPTY_CART_MESSAGE = "Savatingiz bo'sh. Avval menyudan taom tanlang."

VALIDATORS = {
    Step.AWAITING_NAME: NameValidator,
    Step.AWAITING_PHONE: PhoneValidator,
    Step.AWAITING_ADDRESS: AddressValidator,
    Step.AWAITING_PAYMENT_METHOD: PaymentMethodValidator,
}


def _to_state(record: DialogueStateRecord) -> DialogueState:
    return DialogueState(
        conversation_id=record.conversation_id,
        step=Step(record.step),
        name=record.name,
        phone=record.phone,
        address=record.address,
        payment_method=PaymentMethod(record.payment_method) if record.payment_method else None,
        notes=record.notes,
        version=record.version,
    )


class DialogueTracker:
    """Holds the checkout step and collected fields per conversation."""

    def __init__(self, database: Database, cart: CartStore):
        self._db = database
        self._cart = cart

    async def get(self, conversation_id) -> DialogueState:
        """Current state, created in the browsing step on first use."""
        conversation_id = normalize_conversation_id(conversation_id)
        record = await self._load(conversation_id)
        if record is not None:
            return _to_state(record)

        try:
            async with self._db.session() as session:
                session.add(
                    DialogueStateRecord(
                        conversation_id=conversation_id,
                        step=Step.BROWSING.value,
                        version=0,
                    )
                )
        except IntegrityError:
            # Another worker created it first
            pass
        return _to_state(await self._load(conversation_id))

    async def _load(self, conversation_id: str) -> Optional[DialogueStateRecord]:
        async with self._db.session() as session:
            return await session.get(DialogueStateRecord, conversation_id)

    async def advance(self, conversation_id, text: str) -> Tuple[Step, Optional[str]]:
        """
        Feed user input to the current step.

        Returns:
            Tuple of (step after the input, validation error or None)
        """
        state = await self.get(conversation_id)
        step = state.step

        if step == Step.CONFIRMED:
            return step, None

        if step == Step.BROWSING:
            if await self._cart.count_lines(state.conversation_id) == 0:
                return step, EMPTY_CART_MESSAGE
        else:
            is_valid, value, error = VALIDATORS[step].validate(text)
            if not is_valid:
                return step, error
            setattr(state, STEP_FIELD[step], value)

        state.step = NEXT_STEP[step]
        await self._save(state)
        logger.debug(f"Conversation {state.conversation_id}: {step.value} -> {state.step.value}")
        return state.step, None

    async def _save(self, state: DialogueState) -> None:
        """Write state if nobody changed it since it was read."""
        async with self._db.session() as session:
            result = await session.execute(
                update(DialogueStateRecord)
                .where(
                    DialogueStateRecord.conversation_id == state.conversation_id,
                    DialogueStateRecord.version == state.version,
                )
                .values(
                    step=state.step.value,
                    name=state.name,
                    phone=state.phone,
                    address=state.address,
                    payment_method=state.payment_method.value if state.payment_method else None,
                    notes=state.notes,
                    version=DialogueStateRecord.version + 1,
                )
            )
            if result.rowcount == 0:
                raise StaleDialogueState(
                    f"Dialogue state of {state.conversation_id} changed concurrently"
                )
        state.version += 1

    async def reset(self, conversation_id) -> DialogueState:
        """Back to browsing, discarding collected fields."""
        state = await self.get(conversation_id)
        async with self._db.session() as session:
            await session.execute(self._reset_statement(state.conversation_id))
        return await self.get(state.conversation_id)

    async def add_notes(self, conversation_id, text: str) -> Optional[str]:
        """
        Attach a comment to a confirmed checkout.

        Returns:
            Validation error, or None when the comment was saved
        """
        state = await self.get(conversation_id)
        if state.step != Step.CONFIRMED:
            raise IncompleteCheckout(f"Conversation {state.conversation_id} is not confirmed")

        is_valid, notes, error = NotesValidator.validate(text)
        if not is_valid:
            return error
        state.notes = notes
        await self._save(state)
        return None

    async def consume_confirmed(
        self, session: AsyncSession, conversation_id: str, version: Optional[int] = None
    ) -> bool:
        """
        Move a confirmed dialogue back to browsing inside the caller's transaction.

        Returns False when the dialogue was not in the confirmed step, or not
        at the given version, which is how a concurrent commit or edit
        finds out it lost.
        """
        statement = self._reset_statement(conversation_id).where(
            DialogueStateRecord.step == Step.CONFIRMED.value
        )
        if version is not None:
            statement = statement.where(DialogueStateRecord.version == version)
        result = await session.execute(statement)
        return result.rowcount == 1

    @staticmethod
    def _reset_statement(conversation_id: str):
        return (
            update(DialogueStateRecord)
            .where(DialogueStateRecord.conversation_id == conversation_id)
            .values(
                step=Step.BROWSING.value,
                name=None,
                phone=None,
                address=None,
                payment_method=None,
                notes=None,
                version=DialogueStateRecord.version + 1,
            )
        )
