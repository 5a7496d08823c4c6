"""Bookings domain - Booking state machine and the payment-before-claim flow"""

from .router import router

__all__ = ["router"]
