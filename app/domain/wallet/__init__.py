"""
Wallet Domain
"""

from .router import router
from .service import WalletService

__all__ = ["router", "WalletService"]
