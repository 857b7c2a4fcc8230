"""
Bearer sessions issued by /auth/login.

Each token maps to the user id it was issued for and an expiry instant
(SESSION_TTL_SECONDS after login). Sessions live in this process only, so a
restart signs everyone out.
"""
from threading import Lock
from uuid import uuid4
import time
from typing import Dict, Optional, Tuple

from schoolportal.core.config import settings

_lock = Lock()
_sessions: Dict[str, Tuple[str, float]] = {}


def create_session(user_id: str, ttl: Optional[int] = None) -> str:
    """Issue a new token for user_id."""
    token = str(uuid4())
    lifetime = settings.SESSION_TTL_SECONDS if ttl is None else ttl
    with _lock:
        _sessions[token] = (user_id, time.time() + lifetime)
    return token


def get_user_id_for_token(token: str) -> Optional[str]:
    """User id behind a live token; None for unknown or lapsed tokens."""
    with _lock:
        entry = _sessions.get(token)
        if entry is None:
            return None
        user_id, expires_at = entry
        if expires_at < time.time():
            del _sessions[token]
            return None
        return user_id


def invalidate_session(token: str) -> None:
    with _lock:
        _sessions.pop(token, None)


def invalidate_user_sessions(user_id: str) -> None:
    """Sign a user out everywhere, e.g. after their account is deleted."""
    with _lock:
        for token in [t for t, (owner, _) in _sessions.items() if owner == user_id]:
            del _sessions[token]


def clear_expired() -> None:
    now = time.time()
    with _lock:
        for token in [t for t, (_, expires_at) in _sessions.items() if expires_at < now]:
            del _sessions[token]
