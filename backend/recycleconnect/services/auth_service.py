"""
Account service: registration, credential checks and profile updates.
"""
import logging

from recycleconnect.core.config import settings
from recycleconnect.core.exceptions import NotFound, Unauthorized, ValidationError
from recycleconnect.core.security import get_password_hash, verify_password
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.schemas.user import UserCreate, UserProfileUpdate, UserRecord

logger = logging.getLogger(__name__)


async def register_user(
    store: MarketplaceStore,
    user_data: UserCreate,
    min_password_length: int = None
) -> UserRecord:
    """Create a user after checking the password length and that email and username are free."""
    if min_password_length is None:
        min_password_length = settings.PASSWORD_MIN_LENGTH
    if len(user_data.password) < min_password_length:
        raise ValidationError(f"Password must be at least {min_password_length} characters")
    if await store.get_user_by_email(user_data.email):
        raise ValidationError("Email already in use")
    if await store.get_user_by_username(user_data.username):
        raise ValidationError("Username already in use")

    fields = user_data.model_dump(exclude={"password"})
    fields["hashed_password"] = get_password_hash(user_data.password)
    user = await store.create_user(fields)
    logger.info("Registered user %s as %s", user.id, user.role.value)
    return user


async def authenticate(store: MarketplaceStore, email: str, password: str) -> UserRecord:
    """Return the user for valid credentials, else raise Unauthorized."""
    user = await store.get_user_by_email(email)
    if not user or not verify_password(password, user.hashed_password):
        logger.warning("Rejected login attempt")
        raise Unauthorized("Incorrect email or password")
    return user


async def update_profile(
    store: MarketplaceStore,
    user: UserRecord,
    profile_data: UserProfileUpdate
) -> UserRecord:
    """Apply the mutable profile fields. Role may be echoed back but not changed."""
    changes = profile_data.model_dump(exclude_unset=True)

    role = changes.pop("role", None)
    if role is not None and role != user.role:
        raise ValidationError("Role cannot be changed")
    if changes.get("full_name", "") is None:
        changes.pop("full_name")
    if changes.get("profile_complete", False) is None:
        changes.pop("profile_complete")

    updated = await store.update_user(user.id, changes)
    if updated is None:
        raise NotFound("User not found")
    return updated
