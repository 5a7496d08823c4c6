"""Availability router - FastAPI endpoints for a provider's windows and slots"""

import datetime as dt
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import Principal, get_current_principal, require_role
from ...database import get_db
from ...shared.validators import utcnow
from .schemas import (
    AvailabilityListResponse,
    WindowCreate,
    WindowCreateResponse,
    WindowResponse,
    WindowUpdate,
    WindowUpdateResponse,
)
from .service import AvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers/{provider_id}/availability", tags=["Availability"])


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Dependency injection for AvailabilityService"""
    return AvailabilityService(db)


@router.post("", response_model=WindowCreateResponse, status_code=201)
async def create_availability(
    provider_id: int,
    data: WindowCreate,
    principal: Principal = Depends(require_role("admin", "doctor")),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Declare slots for a date, optionally repeating daily/weekly/monthly"""
    result = service.create_window(provider_id, data.date, data.slots, data.recurrence)
    return WindowCreateResponse.model_validate(result, from_attributes=True)


@router.get("", response_model=AvailabilityListResponse)
async def list_availability(
    provider_id: int,
    date: Optional[dt.date] = Query(None),
    principal: Principal = Depends(get_current_principal),
    service: AvailabilityService = Depends(get_availability_service),
):
    """Open slots on ``date``, or from today through the lookahead period"""
    listing = service.list_availability(provider_id, now=utcnow(), day=date)
    return AvailabilityListResponse.model_validate(listing, from_attributes=True)


@router.get("/windows", response_model=list[WindowResponse])
async def list_windows(
    provider_id: int,
    principal: Principal = Depends(require_role("admin", "doctor")),
    service: AvailabilityService = Depends(get_availability_service),
):
    return service.list_windows(provider_id)


@router.put("/{window_id}", response_model=WindowUpdateResponse)
async def update_availability(
    provider_id: int,
    window_id: int,
    data: WindowUpdate,
    principal: Principal = Depends(require_role("admin", "doctor")),
    service: AvailabilityService = Depends(get_availability_service),
):
    edit = service.update_window(
        provider_id,
        window_id,
        day=data.date,
        raw_slots=data.slots,
        recurrence=data.recurrence,
    )
    return WindowUpdateResponse.model_validate(edit, from_attributes=True)


@router.delete("/{window_id}", status_code=204)
async def delete_availability(
    provider_id: int,
    window_id: int,
    principal: Principal = Depends(require_role("admin", "doctor")),
    service: AvailabilityService = Depends(get_availability_service),
):
    service.delete_window(provider_id, window_id)
    return Response(status_code=204)
