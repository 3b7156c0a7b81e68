"""Models package - Import all models for SQLAlchemy registration."""
from recycleconnect.models.user import User, UserRole
from recycleconnect.models.listing import WasteListing, MaterialType, ListingStatus, ReservationPolicy
from recycleconnect.models.transaction import Transaction, TransactionStatus

__all__ = [
    "User",
    "UserRole",
    "WasteListing",
    "MaterialType",
    "ListingStatus",
    "ReservationPolicy",
    "Transaction",
    "TransactionStatus",
]
