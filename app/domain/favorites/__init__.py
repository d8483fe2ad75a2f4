"""
Favorites Domain
"""

from .router import router
from .service import FavoritesService

__all__ = ["router", "FavoritesService"]
