"""Billing domain schemas - Pydantic models for validation"""

from pydantic import BaseModel, field_validator


class TierResponse(BaseModel):
    tier: str
    name: str
    monthly_price_cents: int
    commission_percent: float


class ChangeTierRequest(BaseModel):
    """Schema for changing subscription tier"""

    tier: str  # "free" | "pro" | "business" | "enterprise"

    @field_validator("tier")
    @classmethod
    def normalize_tier(cls, v: str) -> str:
        return v.strip().lower()
