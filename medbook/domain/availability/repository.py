"""Availability repository - Database operations for windows and slots"""

from datetime import date
from typing import Iterable, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session, selectinload

from ...models import AvailabilityWindow, Booking, Slot
from .overlap import SlotSpec


class AvailabilityRepository:
    """Repository for availability database operations.

    Methods only flush; the service decides when a unit of work commits.
    """

    @staticmethod
    def get_windows(db: Session, provider_id: int) -> list[AvailabilityWindow]:
        """All windows for a provider, oldest date first"""
        return (
            db.query(AvailabilityWindow)
            .options(selectinload(AvailabilityWindow.slots))
            .filter(AvailabilityWindow.provider_id == provider_id)
            .order_by(AvailabilityWindow.date, AvailabilityWindow.id)
            .all()
        )

    @staticmethod
    def get_windows_on(db: Session, provider_id: int, day: date) -> list[AvailabilityWindow]:
        return (
            db.query(AvailabilityWindow)
            .options(selectinload(AvailabilityWindow.slots))
            .filter(AvailabilityWindow.provider_id == provider_id, AvailabilityWindow.date == day)
            .order_by(AvailabilityWindow.id)
            .all()
        )

    @staticmethod
    def get_windows_between(
        db: Session, provider_id: int, start: date, end: date
    ) -> list[AvailabilityWindow]:
        """Windows with ``start <= date < end``"""
        return (
            db.query(AvailabilityWindow)
            .options(selectinload(AvailabilityWindow.slots))
            .filter(
                AvailabilityWindow.provider_id == provider_id,
                AvailabilityWindow.date >= start,
                AvailabilityWindow.date < end,
            )
            .order_by(AvailabilityWindow.date, AvailabilityWindow.id)
            .all()
        )

    @staticmethod
    def get_window(db: Session, window_id: int, provider_id: Optional[int] = None) -> Optional[AvailabilityWindow]:
        query = db.query(AvailabilityWindow).filter(AvailabilityWindow.id == window_id)
        if provider_id is not None:
            query = query.filter(AvailabilityWindow.provider_id == provider_id)
        return query.first()

    @staticmethod
    def add_window(
        db: Session,
        provider_id: int,
        day: date,
        slots: Iterable[SlotSpec],
        recurrence: str = "none",
        template_id: Optional[int] = None,
    ) -> AvailabilityWindow:
        window = AvailabilityWindow(
            provider_id=provider_id,
            date=day,
            recurrence=recurrence,
            template_id=template_id,
            slots=[Slot(start=s.start, end=s.end, occupied=False) for s in slots],
        )
        db.add(window)
        db.flush()
        return window

    @staticmethod
    def detach_bookings(db: Session, slot_ids: list[int]) -> None:
        """Clear booking references to slots about to be removed"""
        if not slot_ids:
            return
        db.execute(
            update(Booking)
            .where(Booking.slot_id.in_(slot_ids))
            .values(slot_id=None)
            .execution_options(synchronize_session=False)
        )

    @staticmethod
    def remove_slots(db: Session, window: AvailabilityWindow, slots: list[Slot]) -> None:
        AvailabilityRepository.detach_bookings(db, [s.id for s in slots])
        for slot in slots:
            window.slots.remove(slot)
        db.flush()

    @staticmethod
    def delete_window(db: Session, window: AvailabilityWindow) -> None:
        AvailabilityRepository.detach_bookings(db, [s.id for s in window.slots])
        db.delete(window)
        db.flush()

    @staticmethod
    def find_open_slot(db: Session, provider_id: int, day: date, start) -> Optional[Slot]:
        """Unoccupied slot on ``day`` starting exactly at ``start``"""
        return (
            db.query(Slot)
            .join(AvailabilityWindow, Slot.window_id == AvailabilityWindow.id)
            .filter(
                AvailabilityWindow.provider_id == provider_id,
                AvailabilityWindow.date == day,
                Slot.start == start,
                Slot.occupied.is_(False),
            )
            .order_by(Slot.id)
            .first()
        )

    @staticmethod
    def has_window_on(db: Session, provider_id: int, day: date) -> bool:
        return (
            db.query(AvailabilityWindow.id)
            .filter(AvailabilityWindow.provider_id == provider_id, AvailabilityWindow.date == day)
            .first()
            is not None
        )

    @staticmethod
    def claim_slot(db: Session, slot_id: int) -> bool:
        """Atomically flip a free slot to occupied; False if someone else holds it"""
        result = db.execute(
            update(Slot)
            .where(Slot.id == slot_id, Slot.occupied.is_(False))
            .values(occupied=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @staticmethod
    def release_slot(db: Session, slot_id: int) -> bool:
        """Flip an occupied slot back to free; False if the slot is gone or already free"""
        result = db.execute(
            update(Slot)
            .where(Slot.id == slot_id, Slot.occupied.is_(True))
            .values(occupied=False)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
