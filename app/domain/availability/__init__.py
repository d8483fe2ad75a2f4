"""
Availability Domain

Weekly availability rules, the therapist's availability switch and blocked periods.
"""

from .router import router
from .service import AvailabilityService

__all__ = ["router", "AvailabilityService"]
