"""
Listing service: collector-side operations on waste listings.
"""
import logging
import math
from typing import List

from recycleconnect.core.exceptions import InvalidState, NotFound, ValidationError
from recycleconnect.models.listing import ListingStatus
from recycleconnect.models.transaction import TransactionStatus
from recycleconnect.models.user import UserRole
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.schemas.listing import ListingCreate, ListingRecord, ListingUpdate
from recycleconnect.schemas.user import UserRecord
from recycleconnect.services import authorization, lifecycle

logger = logging.getLogger(__name__)

# Fields that may be cleared with an explicit null
NULLABLE_FIELDS = {"description", "location"}


async def get_owned_listing(
    store: MarketplaceStore,
    user: UserRecord,
    listing_id: int,
    action: str = "update"
) -> ListingRecord:
    """Fetch a listing the collector owns: 404 if missing, 403 if not theirs."""
    authorization.require_role(user, UserRole.COLLECTOR)
    listing = await store.get_listing(listing_id)
    if not listing:
        raise NotFound("Listing not found")
    authorization.require_listing_owner(user, listing, action)
    return listing


def listing_total(quantity: float, price: float) -> float:
    """Value of the whole listing; the amount a transaction on it carries."""
    total = quantity * price
    if not math.isfinite(total):
        raise ValidationError("Quantity times price is too large")
    return total


async def has_active_transaction(store: MarketplaceStore, listing_id: int) -> bool:
    pending = await store.list_transactions(listing_id=listing_id, status=TransactionStatus.PENDING)
    return bool(pending)


async def create_listing(
    store: MarketplaceStore,
    user: UserRecord,
    listing_data: ListingCreate
) -> ListingRecord:
    """Create a listing owned by the calling collector, starting available."""
    authorization.require_role(user, UserRole.COLLECTOR)
    listing_total(listing_data.quantity, listing_data.price)
    fields = listing_data.model_dump()
    fields["collector_id"] = user.id
    listing = await store.create_listing(fields)
    logger.info(
        "Collector %s listed %s %s of %s as listing %s",
        user.id, listing.quantity, listing.unit, listing.material_type.value, listing.id
    )
    return listing


async def list_collector_listings(store: MarketplaceStore, user: UserRecord) -> List[ListingRecord]:
    authorization.require_role(user, UserRole.COLLECTOR)
    return await store.list_listings(collector_id=user.id)


async def list_available_listings(store: MarketplaceStore) -> List[ListingRecord]:
    return await store.list_listings(status=ListingStatus.AVAILABLE)


async def update_listing(
    store: MarketplaceStore,
    user: UserRecord,
    listing_id: int,
    listing_data: ListingUpdate
) -> ListingRecord:
    """Edit listing fields. Status is left to the transaction lifecycle."""
    listing = await get_owned_listing(store, user, listing_id)

    changes = {
        key: value
        for key, value in listing_data.model_dump(exclude_unset=True).items()
        if value is not None or key in NULLABLE_FIELDS
    }
    listing_total(changes.get("quantity", listing.quantity), changes.get("price", listing.price))
    updated = await store.update_listing(listing_id, changes)
    if updated is None:
        raise NotFound("Listing not found")
    return updated


async def delete_listing(store: MarketplaceStore, user: UserRecord, listing_id: int) -> None:
    """Delete a listing unless a pending transaction still references it."""
    await get_owned_listing(store, user, listing_id, action="delete")

    async with store.listing_lock(listing_id):
        if await has_active_transaction(store, listing_id):
            raise InvalidState("Listing has an active transaction")
        if not await store.delete_listing(listing_id):
            raise NotFound("Listing not found")
    store.discard_listing_lock(listing_id)
    logger.info("Collector %s deleted listing %s", user.id, listing_id)


async def withdraw_listing(store: MarketplaceStore, user: UserRecord, listing_id: int) -> ListingRecord:
    """Cancel a listing that has no transaction in progress."""
    await get_owned_listing(store, user, listing_id, action="withdraw")

    async with store.listing_lock(listing_id):
        listing = await store.get_listing(listing_id)
        if listing is None:
            raise NotFound("Listing not found")
        if lifecycle.is_terminal_listing(listing.status):
            raise InvalidState(f"Listing is already {listing.status.value}")
        if await has_active_transaction(store, listing_id):
            raise InvalidState("Listing has an active transaction")
        lifecycle.check_listing_transition(listing.status, ListingStatus.CANCELLED)

        updated = await store.compare_and_set_listing_status(
            listing_id, listing.status, ListingStatus.CANCELLED
        )
        if updated is None:
            logger.warning("Listing %s changed while being withdrawn", listing_id)
            raise InvalidState("Listing was modified concurrently")

    logger.info("Collector %s withdrew listing %s", user.id, listing_id)
    return updated
