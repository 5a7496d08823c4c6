"""Provider repository - Database operations for providers"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Booking, Provider


class ProviderRepository:
    """Repository for provider database operations"""

    @staticmethod
    def get_provider(db: Session, provider_id: int) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.id == provider_id).first()

    @staticmethod
    def get_provider_by_user(db: Session, user_id: str) -> Optional[Provider]:
        return db.query(Provider).filter(Provider.user_id == user_id).first()

    @staticmethod
    def search_providers(
        db: Session,
        category: Optional[str] = None,
        name: Optional[str] = None,
        specialization: Optional[str] = None,
    ) -> list[Provider]:
        query = db.query(Provider)
        if category:
            query = query.filter(Provider.category == category)
        if name:
            # Name search also matches the specialization
            search_term = f"%{name.strip()}%"
            query = query.filter(
                (Provider.name.ilike(search_term)) | (Provider.specialization.ilike(search_term))
            )
        if specialization:
            query = query.filter(Provider.specialization.ilike(specialization.strip()))
        return query.order_by(Provider.name, Provider.id).all()

    @staticmethod
    def create_provider(db: Session, data: dict) -> Provider:
        provider = Provider(**data)
        db.add(provider)
        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    def update_provider(db: Session, provider: Provider, data: dict) -> Provider:
        for key, value in data.items():
            setattr(provider, key, value)
        db.commit()
        db.refresh(provider)
        return provider

    @staticmethod
    def count_live_bookings(db: Session, provider_id: int) -> int:
        return (
            db.query(Booking)
            .filter(Booking.provider_id == provider_id, Booking.status == "booked")
            .count()
        )

    @staticmethod
    def delete_provider(db: Session, provider: Provider) -> None:
        """Remove a provider with its bookings; windows and slots cascade"""
        db.query(Booking).filter(Booking.provider_id == provider.id).delete(synchronize_session=False)
        db.delete(provider)
        db.flush()
