"""
Listing and transaction state machines.

Listing status never changes on request of the listing itself: every move is
derived from a transaction event (creation, status change, shipment
progress) or from the collector withdrawing the listing. The functions here
are pure so the rules can be checked without a store or an HTTP layer.
"""
from typing import Optional

from recycleconnect.core.exceptions import InvalidState
from recycleconnect.models.listing import ListingStatus, ReservationPolicy
from recycleconnect.models.transaction import TransactionStatus
from recycleconnect.models.user import UserRole


LISTING_TRANSITIONS = {
    ListingStatus.AVAILABLE: frozenset({
        ListingStatus.PENDING_PICKUP,
        ListingStatus.COMPLETED,
        ListingStatus.CANCELLED,
    }),
    ListingStatus.PENDING_PICKUP: frozenset({
        ListingStatus.IN_TRANSIT,
        ListingStatus.AVAILABLE,
        ListingStatus.COMPLETED,
        ListingStatus.CANCELLED,
    }),
    ListingStatus.IN_TRANSIT: frozenset({
        ListingStatus.DELIVERED,
        ListingStatus.AVAILABLE,
        ListingStatus.COMPLETED,
        ListingStatus.CANCELLED,
    }),
    ListingStatus.DELIVERED: frozenset({
        ListingStatus.COMPLETED,
        ListingStatus.AVAILABLE,
        ListingStatus.CANCELLED,
    }),
    ListingStatus.COMPLETED: frozenset(),
    ListingStatus.CANCELLED: frozenset(),
}

TRANSACTION_TRANSITIONS = {
    TransactionStatus.PENDING: frozenset({TransactionStatus.COMPLETED, TransactionStatus.CANCELLED}),
    TransactionStatus.COMPLETED: frozenset(),
    TransactionStatus.CANCELLED: frozenset(),
}

SHIPMENT_STEPS = {
    ListingStatus.PENDING_PICKUP: ListingStatus.IN_TRANSIT,
    ListingStatus.IN_TRANSIT: ListingStatus.DELIVERED,
}


def is_terminal_listing(status: ListingStatus) -> bool:
    return not LISTING_TRANSITIONS[status]


def is_terminal_transaction(status: TransactionStatus) -> bool:
    return not TRANSACTION_TRANSITIONS[status]


def check_listing_transition(current: ListingStatus, new: ListingStatus) -> None:
    """Raise InvalidState unless ``current -> new`` is an edge of the listing machine."""
    if new not in LISTING_TRANSITIONS[current]:
        raise InvalidState(f"Listing cannot move from {current.value} to {new.value}")


def check_transaction_transition(current: TransactionStatus, new: TransactionStatus) -> None:
    """Raise InvalidState unless ``current -> new`` is an edge of the transaction machine."""
    if new not in TRANSACTION_TRANSITIONS[current]:
        raise InvalidState(f"Transaction is already {current.value}")


def listing_status_for_transaction_change(
    current: ListingStatus,
    new_transaction_status: TransactionStatus
) -> Optional[ListingStatus]:
    """
    Listing status that follows a transaction moving to ``new_transaction_status``.

    Completion completes the listing, cancellation re-opens it. Returns None
    when the listing keeps its status.
    """
    if new_transaction_status == TransactionStatus.COMPLETED:
        target = ListingStatus.COMPLETED
    elif new_transaction_status == TransactionStatus.CANCELLED:
        target = ListingStatus.AVAILABLE
    else:
        return None

    if target == current:
        return None
    check_listing_transition(current, target)
    return target


def listing_status_on_transaction_created(
    role: UserRole,
    policy: ReservationPolicy = ReservationPolicy.TRANSPORTER_ONLY
) -> Optional[ListingStatus]:
    """Listing status after ``role`` opens a transaction on an available listing."""
    if role == UserRole.TRANSPORTER:
        return ListingStatus.PENDING_PICKUP
    if role == UserRole.BUYER:
        if policy == ReservationPolicy.ALL_PARTIES:
            return ListingStatus.PENDING_PICKUP
        return None
    raise InvalidState("Collectors cannot open transactions")


def next_shipment_status(current: ListingStatus) -> ListingStatus:
    """Next pickup/delivery step for a reserved listing."""
    try:
        return SHIPMENT_STEPS[current]
    except KeyError:
        raise InvalidState(f"Listing in status {current.value} has no shipment step") from None
