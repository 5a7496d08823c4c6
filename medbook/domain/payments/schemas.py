"""Payment domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel, field_validator


class PaymentIntentRequest(BaseModel):
    """Schema for opening a payment intent before booking a private provider"""

    provider_id: int
    amount: int  # minor currency units

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("amount must be a positive number in minor units")
        return v


class PaymentIntentResponse(BaseModel):
    id: str
    client_secret: Optional[str] = None
