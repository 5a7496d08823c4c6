"""Booking router - FastAPI endpoints for bookings"""

import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import Principal, require_role
from ...database import get_db
from ..payments.gate import PaymentGate, get_payment_gate
from ..payments.schemas import PaymentIntentRequest, PaymentIntentResponse
from .schemas import BookingCreate, BookingResponse, BookingStatusUpdate
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(
    db: Session = Depends(get_db),
    gate: PaymentGate = Depends(get_payment_gate),
) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db, gate)


@router.post("/payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    data: PaymentIntentRequest,
    principal: Principal = Depends(require_role("patient")),
    service: BookingService = Depends(get_booking_service),
):
    """Open a payment intent before booking a private provider"""
    return await service.create_payment_intent(data.provider_id, principal.id, data.amount)


@router.post("", response_model=BookingResponse, status_code=201)
async def create_booking(
    data: BookingCreate,
    principal: Principal = Depends(require_role("patient")),
    service: BookingService = Depends(get_booking_service),
):
    logger.info(f"📥 Booking request from {principal.id} for provider {data.provider_id} on {data.date}")
    return await service.book(
        provider_id=data.provider_id,
        consumer_id=principal.id,
        day=data.date,
        start=data.slot.start,
        payment_reference=data.payment_reference,
        priority=data.priority,
    )


@router.get("/my", response_model=list[BookingResponse])
async def get_my_bookings(
    principal: Principal = Depends(require_role("patient")),
    service: BookingService = Depends(get_booking_service),
):
    """Caller's bookings, newest date first"""
    return service.list_consumer_bookings(principal.id)


@router.get("/provider/{provider_id}", response_model=list[BookingResponse])
async def get_provider_bookings(
    provider_id: int,
    status: Optional[str] = Query(None),
    date: Optional[dt.date] = Query(None),
    principal: Principal = Depends(require_role("admin", "doctor")),
    service: BookingService = Depends(get_booking_service),
):
    return service.list_provider_bookings(provider_id, status=status, day=date)


@router.delete("/{booking_id}", response_model=BookingResponse)
async def cancel_booking(
    booking_id: int,
    principal: Principal = Depends(require_role("patient")),
    service: BookingService = Depends(get_booking_service),
):
    """Cancel the caller's booking and reopen its slot"""
    return service.cancel(booking_id, principal.id)


@router.patch("/{booking_id}/status", response_model=BookingResponse)
async def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    principal: Principal = Depends(require_role("admin", "doctor")),
    service: BookingService = Depends(get_booking_service),
):
    return service.update_status(booking_id, data.status)
