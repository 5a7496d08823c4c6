"""Provider router - FastAPI endpoints for provider records"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from ...auth import Principal, get_current_principal, require_role
from ...database import get_db
from .schemas import ProviderCreate, ProviderResponse, ProviderUpdate
from .service import ProviderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/providers", tags=["Providers"])


def get_provider_service(db: Session = Depends(get_db)) -> ProviderService:
    """Dependency injection for ProviderService"""
    return ProviderService(db)


@router.get("", response_model=list[ProviderResponse])
async def search_providers(
    category: Optional[Literal["private", "government"]] = Query(None),
    name: Optional[str] = Query(None),
    specialization: Optional[str] = Query(None),
    principal: Principal = Depends(get_current_principal),
    service: ProviderService = Depends(get_provider_service),
):
    """
    List providers.

    ``name`` matches name or specialization by substring, ``specialization``
    matches the whole specialization. Both ignore case.
    """
    return service.search_providers(category=category, name=name, specialization=specialization)


@router.post("", response_model=ProviderResponse, status_code=201)
async def create_provider(
    data: ProviderCreate,
    principal: Principal = Depends(require_role("admin")),
    service: ProviderService = Depends(get_provider_service),
):
    """Register a provider (admin only)"""
    return service.create_provider(data)


@router.get("/{provider_id}", response_model=ProviderResponse)
async def get_provider(
    provider_id: int,
    principal: Principal = Depends(get_current_principal),
    service: ProviderService = Depends(get_provider_service),
):
    return service.get_provider(provider_id)


@router.put("/{provider_id}", response_model=ProviderResponse)
async def update_provider(
    provider_id: int,
    data: ProviderUpdate,
    principal: Principal = Depends(require_role("admin")),
    service: ProviderService = Depends(get_provider_service),
):
    return service.update_provider(provider_id, data)


@router.delete("/{provider_id}", status_code=204)
async def delete_provider(
    provider_id: int,
    principal: Principal = Depends(require_role("admin")),
    service: ProviderService = Depends(get_provider_service),
):
    """Remove a provider (admin only); refused while bookings are outstanding"""
    service.delete_provider(provider_id)
    return Response(status_code=204)
