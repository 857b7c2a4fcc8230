import logging
from typing import Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from supabase import Client

from schoolportal.core.session_cache import get_user_id_for_token
from schoolportal.db.supabase import get_supabase

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

ROLES = ("admin", "teacher", "student")


def load_profile(client: Client, user_id: str) -> dict:
    """
    Fetches the profile (and with it the role claim) for a user ID.

    Returns:
        dict: id, email, role, full_name

    Raises:
        HTTPException: 401 if the profile is missing or has no valid role
    """
    try:
        profile_response = client.table("profiles").select(
            "id, email, full_name, role"
        ).eq("id", user_id).execute()
    except Exception:
        logger.exception("Unexpected error fetching profile %s", user_id)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Upstream error fetching profile"
        )

    if not profile_response.data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User profile not found"
        )

    profile = profile_response.data[0]

    # Ensure required fields are present
    if profile.get("role") not in ROLES:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User profile incomplete. Role information missing."
        )

    return {
        "id": profile["id"],
        "email": profile.get("email"),
        "role": profile["role"],
        "full_name": profile.get("full_name"),
    }


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    client: Client = Depends(get_supabase),
) -> dict:
    """
    Resolve the bearer session token to the caller's profile.

    Raises:
        HTTPException: 401 if the token is unknown or expired
    """
    user_id = get_user_id_for_token(token)
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired or invalid",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return load_profile(client, user_id)
