"""Provider domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, field_validator


class ProviderCreate(BaseModel):
    """Schema for registering a provider"""

    name: str
    specialization: Optional[str] = None
    category: Literal["private", "government"] = "government"
    consultation_rate: Optional[int] = None  # minor currency units
    user_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("consultation_rate")
    @classmethod
    def validate_rate(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("consultation_rate cannot be negative")
        return v


class ProviderResponse(BaseModel):
    id: int
    name: str
    specialization: Optional[str] = None
    category: str
    consultation_rate: Optional[int] = None
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProviderUpdate(BaseModel):
    """Schema for editing a provider; only fields sent are changed"""

    name: Optional[str] = None
    specialization: Optional[str] = None
    category: Optional[Literal["private", "government"]] = None
    consultation_rate: Optional[int] = None
    user_id: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: Optional[str]) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v

    @field_validator("category")
    @classmethod
    def validate_category(cls, v: Optional[str]) -> str:
        if v is None:
            raise ValueError("category cannot be null")
        return v

    @field_validator("consultation_rate")
    @classmethod
    def validate_rate(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("consultation_rate cannot be negative")
        return v
