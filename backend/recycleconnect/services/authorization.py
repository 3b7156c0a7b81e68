"""
Authorization guard: role and ownership checks.

Checks run in a fixed order (authenticated, role, ownership) and raise
before anything is written. Authentication itself is the
``get_current_user`` dependency; everything here receives a resolved user.
"""
from recycleconnect.core.exceptions import Forbidden
from recycleconnect.models.user import UserRole
from recycleconnect.repositories.base import PARTY_FIELDS
from recycleconnect.schemas.listing import ListingRecord
from recycleconnect.schemas.transaction import TransactionRecord
from recycleconnect.schemas.user import UserRecord

# Roles allowed to open a transaction, and the party field they fill
INITIATOR_FIELDS = {
    UserRole.TRANSPORTER: "transporter_id",
    UserRole.BUYER: "buyer_id",
}


def require_role(user: UserRecord, *roles: UserRole) -> None:
    if user.role not in roles:
        raise Forbidden("Forbidden: Incorrect role")


def party_field_for(role: UserRole) -> str:
    """Transaction attribute identifying the party with this role."""
    return PARTY_FIELDS[role]


def initiator_field_for(user: UserRecord) -> str:
    """Party field set from the caller when they open a transaction."""
    field = INITIATOR_FIELDS.get(user.role)
    if field is None:
        raise Forbidden("Only transporters and buyers can create transactions")
    return field


def require_listing_owner(user: UserRecord, listing: ListingRecord, action: str = "update") -> None:
    if listing.collector_id != user.id:
        raise Forbidden(f"You can only {action} your own listings")


def require_transaction_party(user: UserRecord, transaction: TransactionRecord) -> None:
    if getattr(transaction, party_field_for(user.role)) != user.id:
        raise Forbidden("You are not involved in this transaction")
