"""Provider service - Business logic for provider records"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import ConflictError, NotFoundError
from ...locks import provider_transaction
from ...models import Provider
from .repository import ProviderRepository
from .schemas import ProviderCreate, ProviderUpdate

logger = logging.getLogger(__name__)


class ProviderService:
    """Service layer for providers"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProviderRepository()

    def get_provider(self, provider_id: int) -> Provider:
        provider = self.repo.get_provider(self.db, provider_id)
        if not provider:
            raise NotFoundError("Provider not found", provider_id=provider_id)
        return provider

    def search_providers(
        self,
        category: Optional[str] = None,
        name: Optional[str] = None,
        specialization: Optional[str] = None,
    ) -> list[Provider]:
        """Providers matching every given filter, ordered by name"""
        return self.repo.search_providers(
            self.db, category=category, name=name, specialization=specialization
        )

    def create_provider(self, data: ProviderCreate) -> Provider:
        """Register a provider; a user account maps to at most one provider"""
        if data.user_id and self.repo.get_provider_by_user(self.db, data.user_id):
            logger.warning(f"⚠️ User {data.user_id} already has a provider record")
            raise ConflictError("Provider already exists for this user", user_id=data.user_id)

        provider = self.repo.create_provider(self.db, data.model_dump())
        logger.info(f"✅ Provider {provider.id} created ({provider.category})")
        return provider

    def update_provider(self, provider_id: int, data: ProviderUpdate) -> Provider:
        """Apply the fields present in ``data``; omitted fields are left alone"""
        provider = self.get_provider(provider_id)
        changes = data.model_dump(exclude_unset=True)

        user_id = changes.get("user_id")
        if user_id and user_id != provider.user_id:
            owner = self.repo.get_provider_by_user(self.db, user_id)
            if owner and owner.id != provider.id:
                logger.warning(f"⚠️ User {user_id} already has a provider record")
                raise ConflictError("Provider already exists for this user", user_id=user_id)

        provider = self.repo.update_provider(self.db, provider, changes)
        logger.info(f"✅ Provider {provider_id} updated: {sorted(changes)}")
        return provider

    def delete_provider(self, provider_id: int) -> None:
        """
        Remove a provider with its availability and booking history.

        Refused while the provider still has bookings in the booked state.
        """
        with provider_transaction(self.db, provider_id) as provider:
            live = self.repo.count_live_bookings(self.db, provider_id)
            if live:
                logger.warning(f"⚠️ Refusing to delete provider {provider_id}: {live} booking(s) outstanding")
                raise ConflictError("Cannot delete provider with active bookings", provider_id=provider_id)
            self.repo.delete_provider(self.db, provider)

        logger.info(f"🗑️ Provider {provider_id} removed")
