"""Review domain schemas - Pydantic models for validation"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ReviewCreate(BaseModel):
    """Schema for creating a review (rating range is checked by the service)"""

    booking_id: int
    therapist_id: int
    rating: int
    comment: Optional[str] = None
    is_public: bool = True


class ReviewResponse(BaseModel):
    id: int
    booking_id: int
    therapist_id: int
    rating: int
    comment: Optional[str] = None
    is_public: bool
    client_name: Optional[str] = None
    created_at: Optional[datetime] = None


class PendingReviewResponse(BaseModel):
    booking_id: int
    therapist_id: int
    therapist_name: Optional[str] = None
    service_name: Optional[str] = None
    scheduled_at: datetime
    completed_at: Optional[datetime] = None
