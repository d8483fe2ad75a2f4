"""
Reviews Domain

Client reviews of completed bookings and the therapist rating they feed.
"""

from .router import router
from .service import ReviewService

__all__ = ["router", "ReviewService"]
