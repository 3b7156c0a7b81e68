"""
Waste listing routes.
"""
from fastapi import APIRouter, Depends, status
from typing import List
from recycleconnect.api.dependencies import get_current_user, get_store, role_required
from recycleconnect.core.utils import format_response
from recycleconnect.models.user import UserRole
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.schemas.listing import ListingCreate, ListingRecord, ListingUpdate
from recycleconnect.schemas.user import UserRecord
from recycleconnect.services import listing_service

router = APIRouter(prefix="/listings", tags=["listings"])

collector_only = role_required(UserRole.COLLECTOR)


@router.post("", response_model=ListingRecord, status_code=status.HTTP_201_CREATED)
async def create_listing(
    listing_data: ListingCreate,
    current_user: UserRecord = Depends(collector_only),
    store: MarketplaceStore = Depends(get_store)
):
    """Create a waste listing (collectors only)."""
    return await listing_service.create_listing(store, current_user, listing_data)


@router.get("/collector", response_model=List[ListingRecord])
async def list_collector_listings(
    current_user: UserRecord = Depends(collector_only),
    store: MarketplaceStore = Depends(get_store)
):
    """List the caller's own listings."""
    return await listing_service.list_collector_listings(store, current_user)


@router.get("/available", response_model=List[ListingRecord])
async def list_available_listings(
    current_user: UserRecord = Depends(get_current_user),
    store: MarketplaceStore = Depends(get_store)
):
    """List listings open for transactions."""
    return await listing_service.list_available_listings(store)


@router.put("/{listing_id}", response_model=ListingRecord)
async def update_listing(
    listing_id: int,
    listing_data: ListingUpdate,
    current_user: UserRecord = Depends(collector_only),
    store: MarketplaceStore = Depends(get_store)
):
    """Edit one of the caller's listings."""
    return await listing_service.update_listing(store, current_user, listing_id, listing_data)


@router.delete("/{listing_id}")
async def delete_listing(
    listing_id: int,
    current_user: UserRecord = Depends(collector_only),
    store: MarketplaceStore = Depends(get_store)
):
    """Delete one of the caller's listings."""
    await listing_service.delete_listing(store, current_user, listing_id)
    return format_response(message="Listing deleted successfully")


@router.post("/{listing_id}/withdraw", response_model=ListingRecord)
async def withdraw_listing(
    listing_id: int,
    current_user: UserRecord = Depends(collector_only),
    store: MarketplaceStore = Depends(get_store)
):
    """Take a listing off the market without deleting it."""
    return await listing_service.withdraw_listing(store, current_user, listing_id)
