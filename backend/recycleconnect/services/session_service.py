"""
Server-side login sessions.

The browser only holds a signed token naming the session; the user it
belongs to and its expiry stay on the server, so logout takes effect
immediately.
"""
import logging
import secrets
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple

from recycleconnect.core.config import settings
from recycleconnect.core.security import create_session_token, decode_session_token
from recycleconnect.core.utils import utcnow

logger = logging.getLogger(__name__)


class SessionStore:
    """In-process session map: session id -> (user id, expiry)."""

    def __init__(
        self,
        ttl: Optional[timedelta] = None,
        secret_key: Optional[str] = None,
        algorithm: Optional[str] = None
    ):
        self.ttl = ttl or timedelta(hours=settings.SESSION_EXPIRE_HOURS)
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._sessions: Dict[str, Tuple[int, datetime]] = {}

    def _decode(self, token: str) -> Optional[str]:
        return decode_session_token(token, secret_key=self._secret_key, algorithm=self._algorithm)

    def __len__(self) -> int:
        self.prune()
        return len(self._sessions)

    def create(self, user_id: int) -> str:
        """Open a session for the user and return the cookie value."""
        self.prune()
        session_id = secrets.token_urlsafe(32)
        self._sessions[session_id] = (user_id, utcnow() + self.ttl)
        logger.info("Session opened for user %s", user_id)
        return create_session_token(
            session_id, self.ttl, secret_key=self._secret_key, algorithm=self._algorithm
        )

    def resolve(self, token: Optional[str]) -> Optional[int]:
        """User id behind a cookie value, or None."""
        if not token:
            return None
        session_id = self._decode(token)
        if session_id is None:
            return None
        entry = self._sessions.get(session_id)
        if entry is None:
            return None
        user_id, expires_at = entry
        if expires_at <= utcnow():
            del self._sessions[session_id]
            return None
        return user_id

    def destroy(self, token: Optional[str]) -> bool:
        if not token:
            return False
        session_id = self._decode(token)
        entry = self._sessions.pop(session_id, None) if session_id else None
        if entry is None:
            return False
        logger.info("Session closed for user %s", entry[0])
        return True

    def prune(self) -> int:
        """Drop expired sessions; returns how many were removed."""
        now = utcnow()
        expired = [sid for sid, (_, expires_at) in self._sessions.items() if expires_at <= now]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)
