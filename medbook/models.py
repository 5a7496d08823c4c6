"""
Availability and booking models
"""

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base

RECURRENCE_POLICIES = ("none", "daily", "weekly", "monthly")

# Status workflow: booked → completed | cancelled (both terminal)
BOOKING_STATUSES = ("booked", "completed", "cancelled")
BOOKING_PRIORITIES = ("low", "medium", "high")


class Provider(Base):
    """Service provider (doctor). Category decides whether bookings must prepay"""

    __tablename__ = "providers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    specialization = Column(String(255), nullable=True)
    category = Column(String(50), nullable=False, default="government")  # private | government
    consultation_rate = Column(Integer, nullable=True)  # minor currency units
    user_id = Column(String(255), nullable=True, index=True)  # identity-service subject

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    windows = relationship(
        "AvailabilityWindow",
        back_populates="provider",
        cascade="all, delete-orphan",
        order_by="AvailabilityWindow.date",
    )


class AvailabilityWindow(Base):
    """A provider's bookable slots for one calendar day"""

    __tablename__ = "availability_windows"

    id = Column(Integer, primary_key=True, index=True)
    provider_id = Column(
        Integer, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date = Column(Date, nullable=False, index=True)
    recurrence = Column(String(20), nullable=False, default="none")

    # Set on windows generated by recurrence expansion
    template_id = Column(
        Integer, ForeignKey("availability_windows.id", ondelete="SET NULL"), nullable=True
    )

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider", back_populates="windows")
    slots = relationship(
        "Slot",
        back_populates="window",
        cascade="all, delete-orphan",
        order_by="Slot.start",
    )

    @property
    def has_occupied_slots(self) -> bool:
        return any(slot.occupied for slot in self.slots)


class Slot(Base):
    """Atomic unit of bookable time, owned by exactly one window"""

    __tablename__ = "slots"

    id = Column(Integer, primary_key=True, index=True)
    window_id = Column(
        Integer, ForeignKey("availability_windows.id", ondelete="CASCADE"), nullable=False, index=True
    )
    start = Column(DateTime, nullable=False)
    end = Column(DateTime, nullable=False)
    occupied = Column(Boolean, nullable=False, default=False)

    window = relationship("AvailabilityWindow", back_populates="slots")


class Booking(Base):
    """A consumer's claim on one slot. Slot times are copied, the slot is referenced by id"""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    consumer_id = Column(String(255), nullable=False, index=True)
    provider_id = Column(
        Integer, ForeignKey("providers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    slot_id = Column(Integer, ForeignKey("slots.id", ondelete="SET NULL"), nullable=True, index=True)

    date = Column(Date, nullable=False, index=True)
    slot_start = Column(DateTime, nullable=False)
    slot_end = Column(DateTime, nullable=False)

    category = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default="booked", index=True)
    priority = Column(String(20), nullable=False, default="medium")
    payment_reference = Column(String(255), nullable=True, index=True)

    cancelled_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    provider = relationship("Provider")
    slot = relationship("Slot")
