"""
Authentication routes for registration, login and logout.
"""
from fastapi import APIRouter, Depends, Request, Response, status
from recycleconnect.api.dependencies import get_current_user, get_session_token, get_sessions, get_settings, get_store
from recycleconnect.core.config import Settings
from recycleconnect.core.utils import format_response
from recycleconnect.repositories.base import MarketplaceStore
from recycleconnect.schemas.user import UserCreate, UserLogin, UserRecord, UserResponse
from recycleconnect.services import auth_service
from recycleconnect.services.session_service import SessionStore

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserCreate,
    store: MarketplaceStore = Depends(get_store),
    app_settings: Settings = Depends(get_settings)
):
    """Register a new user."""
    return await auth_service.register_user(store, user_data, app_settings.PASSWORD_MIN_LENGTH)


@router.post("/login", response_model=UserResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    response: Response,
    store: MarketplaceStore = Depends(get_store),
    sessions: SessionStore = Depends(get_sessions)
):
    """Check credentials and open a session cookie."""
    user = await auth_service.authenticate(store, credentials.email, credentials.password)

    # Replace any session this browser already had
    sessions.destroy(get_session_token(request))
    token = sessions.create(user.id)

    app_settings = request.app.state.settings
    response.set_cookie(
        key=app_settings.SESSION_COOKIE_NAME,
        value=token,
        max_age=int(sessions.ttl.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=app_settings.SESSION_COOKIE_SECURE,
    )
    return user


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    sessions: SessionStore = Depends(get_sessions)
):
    """Close the session, if any, and clear the cookie."""
    sessions.destroy(get_session_token(request))
    response.delete_cookie(request.app.state.settings.SESSION_COOKIE_NAME)
    return format_response(message="Logged out successfully")


@router.get("/me", response_model=UserResponse)
async def me(current_user: UserRecord = Depends(get_current_user)):
    """Get current user information."""
    return current_user
