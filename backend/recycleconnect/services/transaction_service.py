"""
Transaction service.

A transaction and the listing it references move together: opening a
transaction may reserve the listing, completing it completes the listing,
cancelling it re-opens the listing. Every listing status change goes through
``compare_and_set_listing_status`` while holding the listing's lock, so two
requests racing on the same listing cannot leave it in a status neither of
them asked for.
"""
import logging
from typing import List

from recycleconnect.core.config import settings
from recycleconnect.core.exceptions import InvalidState, NotFound
from recycleconnect.core.utils import utcnow
from recycleconnect.models.listing import ListingStatus
from recycleconnect.models.transaction import TransactionStatus
from recycleconnect.models.user import UserRole
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.schemas.transaction import TransactionCreate, TransactionRecord, TransactionUpdate
from recycleconnect.schemas.user import UserRecord
from recycleconnect.services import authorization, lifecycle
from recycleconnect.services.listing_service import has_active_transaction, listing_total

logger = logging.getLogger(__name__)


def _reservation_policy() -> lifecycle.ReservationPolicy:
    return settings.LISTING_RESERVATION_POLICY


async def _set_listing_status(
    store: MarketplaceStore,
    listing_id: int,
    current: ListingStatus,
    new: ListingStatus
) -> None:
    lifecycle.check_listing_transition(current, new)
    if await store.compare_and_set_listing_status(listing_id, current, new) is None:
        logger.warning("Listing %s left %s before it could move to %s", listing_id, current.value, new.value)
        raise InvalidState("Listing was modified concurrently")
    logger.info("Listing %s: %s -> %s", listing_id, current.value, new.value)


async def get_party_transaction(
    store: MarketplaceStore,
    user: UserRecord,
    transaction_id: int
) -> TransactionRecord:
    """Fetch a transaction the caller takes part in: 404 if missing, 403 if not."""
    transaction = await store.get_transaction(transaction_id)
    if not transaction:
        raise NotFound("Transaction not found")
    authorization.require_transaction_party(user, transaction)
    return transaction


async def create_transaction(
    store: MarketplaceStore,
    user: UserRecord,
    transaction_data: TransactionCreate,
    policy: lifecycle.ReservationPolicy = None,
    single_active: bool = None
) -> TransactionRecord:
    """Open a pending transaction on an available listing."""
    party_field = authorization.initiator_field_for(user)
    if policy is None:
        policy = _reservation_policy()
    if single_active is None:
        single_active = settings.SINGLE_ACTIVE_TRANSACTION

    listing_id = transaction_data.listing_id
    async with store.listing_lock(listing_id):
        listing = await store.get_listing(listing_id)
        if not listing:
            store.discard_listing_lock(listing_id)
            raise NotFound("Listing not found")
        if listing.status != ListingStatus.AVAILABLE:
            raise InvalidState("This listing is not available")
        if single_active and await has_active_transaction(store, listing_id):
            raise InvalidState("This listing already has an active transaction")
        total_amount = listing_total(listing.quantity, listing.price)

        reserved_status = lifecycle.listing_status_on_transaction_created(user.role, policy)
        if reserved_status is not None:
            await _set_listing_status(store, listing_id, listing.status, reserved_status)

        fields = {
            "listing_id": listing_id,
            "collector_id": listing.collector_id,
            party_field: user.id,
            "total_amount": total_amount,
            "pickup_date": transaction_data.pickup_date,
            "delivery_date": transaction_data.delivery_date,
        }
        try:
            transaction = await store.create_transaction(fields)
        except Exception:
            if reserved_status is not None:
                await store.compare_and_set_listing_status(listing_id, reserved_status, listing.status)
            raise

    logger.info(
        "%s %s opened transaction %s on listing %s for %.2f",
        user.role.value.capitalize(), user.id, transaction.id, listing_id, transaction.total_amount
    )
    return transaction


async def list_user_transactions(store: MarketplaceStore, user: UserRecord) -> List[TransactionRecord]:
    """Transactions in which the caller is the party for their role."""
    return await store.list_transactions_for_party(user.id, user.role)


async def update_transaction(
    store: MarketplaceStore,
    user: UserRecord,
    transaction_id: int,
    transaction_data: TransactionUpdate
) -> TransactionRecord:
    """Update dates and/or status; a status change carries the listing along."""
    transaction = await get_party_transaction(store, user, transaction_id)
    changes = transaction_data.model_dump(exclude_unset=True)
    new_status = changes.pop("status", None)

    async with store.listing_lock(transaction.listing_id):
        transaction = await store.get_transaction(transaction_id)
        if transaction is None:
            raise NotFound("Transaction not found")

        status_changed = new_status is not None and new_status != transaction.status
        if lifecycle.is_terminal_transaction(transaction.status) and (status_changed or changes):
            raise InvalidState(f"Transaction is already {transaction.status.value}")

        listing, target = None, None
        if status_changed:
            lifecycle.check_transaction_transition(transaction.status, new_status)
            listing = await store.get_listing(transaction.listing_id)
            if listing is not None:
                target = lifecycle.listing_status_for_transaction_change(listing.status, new_status)
                if target is not None:
                    await _set_listing_status(store, listing.id, listing.status, target)
            changes["status"] = new_status

        if not changes:
            return transaction
        try:
            updated = await store.update_transaction(transaction_id, changes)
            if updated is None:
                raise NotFound("Transaction not found")
        except Exception:
            if target is not None:
                await store.compare_and_set_listing_status(listing.id, target, listing.status)
            raise

    if status_changed:
        logger.info(
            "Transaction %s: %s -> %s by user %s",
            transaction_id, transaction.status.value, new_status.value, user.id
        )
    return updated


async def advance_shipment(
    store: MarketplaceStore,
    user: UserRecord,
    transaction_id: int
) -> TransactionRecord:
    """
    Move the listing one pickup/delivery step forward.

    Only the transporter on a pending transaction may do this. Picking up
    stamps ``pickup_date``, delivering stamps ``delivery_date``.
    """
    authorization.require_role(user, UserRole.TRANSPORTER)
    transaction = await get_party_transaction(store, user, transaction_id)

    async with store.listing_lock(transaction.listing_id):
        transaction = await store.get_transaction(transaction_id)
        if transaction is None:
            raise NotFound("Transaction not found")
        if transaction.status != TransactionStatus.PENDING:
            raise InvalidState(f"Transaction is already {transaction.status.value}")

        listing = await store.get_listing(transaction.listing_id)
        if listing is None:
            raise NotFound("Listing not found")
        target = lifecycle.next_shipment_status(listing.status)
        await _set_listing_status(store, listing.id, listing.status, target)

        stamp = "pickup_date" if target == ListingStatus.IN_TRANSIT else "delivery_date"
        try:
            updated = await store.update_transaction(transaction_id, {stamp: utcnow()})
            if updated is None:
                raise NotFound("Transaction not found")
        except Exception:
            await store.compare_and_set_listing_status(listing.id, target, listing.status)
            raise
    return updated
