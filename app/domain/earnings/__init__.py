"""
Earnings Domain

Read-only earnings aggregation for therapists.
"""

from .router import router
from .service import EarningsService, EarningsSummary

__all__ = ["router", "EarningsService", "EarningsSummary"]
