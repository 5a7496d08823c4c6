"""Booking repository - Database operations for bookings"""

from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking

LIVE_STATUSES = ("booked", "completed")


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_booking(db: Session, booking_id: int) -> Optional[Booking]:
        return db.query(Booking).filter(Booking.id == booking_id).first()

    @staticmethod
    def add_booking(db: Session, data: dict) -> Booking:
        booking = Booking(**data)
        db.add(booking)
        db.flush()
        return booking

    @staticmethod
    def payment_reference_in_use(db: Session, payment_reference: str) -> bool:
        """A reference may back only one booking that is not cancelled"""
        return (
            db.query(Booking.id)
            .filter(
                Booking.payment_reference == payment_reference,
                Booking.status.in_(LIVE_STATUSES),
            )
            .first()
            is not None
        )

    @staticmethod
    def get_consumer_bookings(db: Session, consumer_id: str) -> list[Booking]:
        """Newest date first"""
        return (
            db.query(Booking)
            .filter(Booking.consumer_id == consumer_id)
            .order_by(Booking.date.desc(), Booking.slot_start.desc(), Booking.id.desc())
            .all()
        )

    @staticmethod
    def get_provider_bookings(
        db: Session,
        provider_id: int,
        status: Optional[str] = None,
        day: Optional[date] = None,
    ) -> list[Booking]:
        query = db.query(Booking).filter(Booking.provider_id == provider_id)
        if status:
            query = query.filter(Booking.status == status)
        if day:
            query = query.filter(Booking.date == day)
        return query.order_by(Booking.date, Booking.slot_start, Booking.id).all()
