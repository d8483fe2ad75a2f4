"""
Bookings Domain

Marketplace and manual bookings, slot computation, the booking lifecycle
and its escrow side effects.
"""

from .router import router
from .service import Actor, BookingService

__all__ = ["router", "Actor", "BookingService"]
