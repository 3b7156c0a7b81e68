"""
Request dependencies: store access and the authentication/role guards.
"""
from typing import Optional
from fastapi import Depends, Request
from recycleconnect.core.config import Settings
from recycleconnect.core.exceptions import Unauthorized
from recycleconnect.models.user import UserRole
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.schemas.user import UserRecord
from recycleconnect.services import authorization
from recycleconnect.services.session_service import SessionStore


def get_store(request: Request) -> MarketplaceStore:
    """Store attached to the running application."""
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_sessions(request: Request) -> SessionStore:
    return request.app.state.sessions


def get_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(get_settings(request).SESSION_COOKIE_NAME)


async def get_current_user(
    token: Optional[str] = Depends(get_session_token),
    sessions: SessionStore = Depends(get_sessions),
    store: MarketplaceStore = Depends(get_store)
) -> UserRecord:
    """Resolve the session cookie to a user, else 401."""
    user_id = sessions.resolve(token)
    if user_id is None:
        raise Unauthorized()
    user = await store.get_user(user_id)
    if user is None:
        sessions.destroy(token)
        raise Unauthorized()
    return user


def role_required(role: UserRole):
    """Dependency factory: authenticated user holding ``role``, else 403."""
    async def dependency(current_user: UserRecord = Depends(get_current_user)) -> UserRecord:
        authorization.require_role(current_user, role)
        return current_user
    return dependency
