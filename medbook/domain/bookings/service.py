"""Booking service - Booking state machine and payment ordering"""

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import (
    ConflictError,
    NotAuthorizedError,
    NotFoundError,
    PaymentFailedError,
    PaymentProviderError,
    PaymentRequiredError,
    SlotUnavailableError,
    ValidationError,
)
from ...locks import provider_transaction
from ...models import BOOKING_PRIORITIES, BOOKING_STATUSES, Booking, Provider, Slot
from ...shared.validators import to_naive_utc, utcnow
from ..availability.repository import AvailabilityRepository
from ..payments.gate import PaymentConfirmation, PaymentGate
from .repository import BookingRepository

logger = logging.getLogger(__name__)

# booked → completed | cancelled; nothing leaves a terminal status
TRANSITIONS = {
    "booked": ("completed", "cancelled"),
    "completed": (),
    "cancelled": (),
}


class BookingService:
    """Service layer for bookings"""

    def __init__(self, db: Session, gate: Optional[PaymentGate] = None):
        self.db = db
        self.gate = gate if gate is not None else PaymentGate()
        self.repo = BookingRepository()
        self.availability = AvailabilityRepository()

    # ------------------------------------------------------------------
    # Booking
    # ------------------------------------------------------------------

    async def book(
        self,
        provider_id: int,
        consumer_id: str,
        day: date,
        start: datetime,
        payment_reference: Optional[str] = None,
        priority: str = "medium",
    ) -> Booking:
        """
        Claim the open slot starting at ``start`` on ``day``.

        Payment is confirmed before the claim and outside the provider lock;
        the claim itself is a conditional update, so a slot taken while the
        payment call was in flight fails with SlotUnavailableError and nothing
        is written.
        """
        if priority not in BOOKING_PRIORITIES:
            raise ValidationError(f"Unknown priority '{priority}'")
        start = to_naive_utc(start)
        consumer_id = str(consumer_id)

        provider = self._get_provider(provider_id)
        category = provider.category
        self._locate_open_slot(provider_id, day, start)
        # no transaction held across the payment call
        self.db.commit()

        if self.gate.requires_payment(category):
            if not payment_reference:
                logger.warning(f"⚠️ Booking refused for provider {provider_id}: payment reference missing")
                raise PaymentRequiredError()
            await self._confirm_payment(payment_reference)
        else:
            payment_reference = None

        with provider_transaction(self.db, provider_id):
            slot = self._locate_open_slot(provider_id, day, start)
            if payment_reference and self.repo.payment_reference_in_use(self.db, payment_reference):
                logger.warning(f"⚠️ Payment {payment_reference} already backs another booking")
                raise PaymentFailedError("Payment already used for another booking")
            if not self.availability.claim_slot(self.db, slot.id):
                logger.warning(f"⚠️ Slot {slot.id} was taken concurrently")
                raise SlotUnavailableError("Slot unavailable", slot_id=slot.id)

            booking = self.repo.add_booking(
                self.db,
                {
                    "consumer_id": consumer_id,
                    "provider_id": provider_id,
                    "slot_id": slot.id,
                    "date": day,
                    "slot_start": slot.start,
                    "slot_end": slot.end,
                    "category": category,
                    "status": "booked",
                    "priority": priority,
                    "payment_reference": payment_reference,
                },
            )

        self.db.refresh(booking)
        logger.info(
            f"✅ Booking {booking.id} created: consumer {consumer_id}, provider {provider_id}, slot {booking.slot_id}"
        )
        return booking

    def _locate_open_slot(self, provider_id: int, day: date, start: datetime) -> Slot:
        if not self.availability.has_window_on(self.db, provider_id, day):
            raise SlotUnavailableError("No availability for this date", date=day.isoformat())
        slot = self.availability.find_open_slot(self.db, provider_id, day, start)
        if slot is None:
            raise SlotUnavailableError("Slot unavailable", start=start.isoformat())
        return slot

    async def _confirm_payment(self, payment_reference: str) -> None:
        try:
            outcome = await self.gate.confirm(payment_reference)
        except PaymentProviderError as e:
            raise PaymentFailedError(f"Payment verification failed: {e.message}") from e

        if outcome is PaymentConfirmation.NOT_FOUND:
            raise PaymentFailedError("Payment not found", payment_reference=payment_reference)
        if outcome is not PaymentConfirmation.CONFIRMED:
            raise PaymentFailedError("Payment not completed", payment_reference=payment_reference)

    async def create_payment_intent(self, provider_id: int, consumer_id: str, amount: int) -> dict:
        """Open a payment intent for a provider that requires prepayment"""
        provider = self._get_provider(provider_id)
        if not self.gate.requires_payment(provider.category):
            raise ValidationError("Payment required for private hospitals only")
        intent = await self.gate.create_intent(amount, provider_id, str(consumer_id))
        logger.info(f"💳 Payment intent {intent['id']} opened for provider {provider_id}")
        return intent

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def cancel(self, booking_id: int, requester_id: str) -> Booking:
        """Consumer cancels their own booking; the paired slot reopens"""
        booking = self._get_booking(booking_id)
        if booking.consumer_id != str(requester_id):
            logger.warning(f"⚠️ {requester_id} tried to cancel booking {booking_id} owned by {booking.consumer_id}")
            raise NotAuthorizedError()
        return self._apply(booking, "cancelled")

    def complete(self, booking_id: int) -> Booking:
        return self._apply(self._get_booking(booking_id), "completed")

    def update_status(self, booking_id: int, status: str) -> Booking:
        """Administrative transition; ``cancelled`` reopens the slot, ``completed`` does not"""
        if status not in BOOKING_STATUSES or status == "booked":
            raise ValidationError(f"Invalid status '{status}'")
        return self._apply(self._get_booking(booking_id), status)

    def _apply(self, booking: Booking, status: str) -> Booking:
        booking_id = booking.id
        with provider_transaction(self.db, booking.provider_id):
            # reload under the lock so a concurrent transition is seen
            self.db.refresh(booking)
            if status not in TRANSITIONS.get(booking.status, ()):
                logger.warning(f"⚠️ Booking {booking_id} cannot move from {booking.status} to {status}")
                raise ConflictError(
                    f"Cannot change booking from {booking.status} to {status}", booking_id=booking_id
                )

            booking.status = status
            if status == "cancelled":
                booking.cancelled_at = utcnow()
                self._release_slot(booking)
            else:
                booking.completed_at = utcnow()
            self.db.flush()

        self.db.refresh(booking)
        logger.info(f"✅ Booking {booking_id} {status}")
        return booking

    def _release_slot(self, booking: Booking) -> None:
        if booking.slot_id is None:
            logger.warning(f"⚠️ Booking {booking.id}: slot no longer exists, nothing to reopen")
            return
        if not self.availability.release_slot(self.db, booking.slot_id):
            logger.warning(f"⚠️ Booking {booking.id}: slot {booking.slot_id} was not occupied")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_consumer_bookings(self, consumer_id: str) -> list[Booking]:
        return self.repo.get_consumer_bookings(self.db, str(consumer_id))

    def list_provider_bookings(
        self, provider_id: int, status: Optional[str] = None, day: Optional[date] = None
    ) -> list[Booking]:
        if status is not None and status not in BOOKING_STATUSES:
            raise ValidationError(f"Invalid status '{status}'")
        self._get_provider(provider_id)
        return self.repo.get_provider_bookings(self.db, provider_id, status, day)

    def _get_booking(self, booking_id: int) -> Booking:
        booking = self.repo.get_booking(self.db, booking_id)
        if not booking:
            raise NotFoundError("Booking not found", booking_id=booking_id)
        return booking

    def _get_provider(self, provider_id: int) -> Provider:
        provider = self.db.query(Provider).filter(Provider.id == provider_id).first()
        if not provider:
            raise NotFoundError("Provider not found", provider_id=provider_id)
        return provider
