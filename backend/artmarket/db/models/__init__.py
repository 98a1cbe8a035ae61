"""Re-export all models so Base.metadata sees them."""

from artmarket.db.models.commission import CommissionRecord
from artmarket.db.models.user import User

__all__ = [
    "CommissionRecord",
    "User",
]
