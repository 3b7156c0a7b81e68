"""
User profile routes.
"""
from fastapi import APIRouter, Depends
from recycleconnect.api.dependencies import get_current_user, get_store
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.schemas.user import UserProfileUpdate, UserRecord, UserResponse
from recycleconnect.services import auth_service

router = APIRouter(prefix="/users", tags=["users"])


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    profile_data: UserProfileUpdate,
    current_user: UserRecord = Depends(get_current_user),
    store: MarketplaceStore = Depends(get_store)
):
    """Update the caller's contact details."""
    return await auth_service.update_profile(store, current_user, profile_data)
