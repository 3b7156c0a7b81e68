"""
Transaction routes.
"""
from fastapi import APIRouter, Depends, status
from typing import List
from recycleconnect.api.dependencies import get_current_user, get_settings, get_store
from recycleconnect.core.config import Settings
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.schemas.transaction import TransactionCreate, TransactionRecord, TransactionUpdate
from recycleconnect.schemas.user import UserRecord
from recycleconnect.services import transaction_service

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post("", response_model=TransactionRecord, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    current_user: UserRecord = Depends(get_current_user),
    store: MarketplaceStore = Depends(get_store),
    app_settings: Settings = Depends(get_settings)
):
    """Accept a pickup (transporter) or purchase (buyer) on an available listing."""
    return await transaction_service.create_transaction(
        store,
        current_user,
        transaction_data,
        policy=app_settings.LISTING_RESERVATION_POLICY,
        single_active=app_settings.SINGLE_ACTIVE_TRANSACTION
    )


@router.get("", response_model=List[TransactionRecord])
async def list_transactions(
    current_user: UserRecord = Depends(get_current_user),
    store: MarketplaceStore = Depends(get_store)
):
    """List the caller's transactions."""
    return await transaction_service.list_user_transactions(store, current_user)


@router.put("/{transaction_id}", response_model=TransactionRecord)
async def update_transaction(
    transaction_id: int,
    transaction_data: TransactionUpdate,
    current_user: UserRecord = Depends(get_current_user),
    store: MarketplaceStore = Depends(get_store)
):
    """Update a transaction the caller takes part in."""
    return await transaction_service.update_transaction(
        store, current_user, transaction_id, transaction_data
    )


@router.post("/{transaction_id}/advance", response_model=TransactionRecord)
async def advance_shipment(
    transaction_id: int,
    current_user: UserRecord = Depends(get_current_user),
    store: MarketplaceStore = Depends(get_store)
):
    """Record pickup, then delivery, of the listed material."""
    return await transaction_service.advance_shipment(store, current_user, transaction_id)
