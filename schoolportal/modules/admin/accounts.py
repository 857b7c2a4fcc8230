"""
Account provisioning against Supabase Auth.

An account is an auth user plus its ``profiles`` row (the role claim). If the
profile cannot be written the auth user is removed again.
"""
import logging
import secrets
import string
from typing import Optional, Tuple

from fastapi import HTTPException
from supabase import Client

from schoolportal.core.session_cache import invalidate_user_sessions

logger = logging.getLogger(__name__)


def generate_password(length: int = 12) -> str:
    alphabet = string.ascii_letters + string.digits + string.punctuation
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def create_account(
    client: Client,
    email: str,
    full_name: str,
    role: str,
    password: Optional[str] = None,
) -> Tuple[str, Optional[str]]:
    """
    Create the auth user and profile.

    Returns:
        (user_id, generated_password): generated_password is None when the
        caller supplied one
    """
    existing = client.table("profiles").select("id").eq("email", email).execute()
    if existing.data:
        raise HTTPException(status_code=400, detail=f"Email '{email}' is already registered.")

    generated = None if password else generate_password()
    try:
        auth_response = client.auth.admin.create_user({
            "email": email,
            "password": password or generated,
            "email_confirm": True,
            "user_metadata": {"full_name": full_name, "role": role},
        })
        user_id = str(auth_response.user.id)
    except Exception as auth_error:
        error_detail = str(auth_error)
        logger.error("Auth user creation failed for %s: %s", email, error_detail)
        if "already" in error_detail.lower() or "exists" in error_detail.lower():
            error_detail = f"Email '{email}' is already registered."
        raise HTTPException(status_code=400, detail=f"Failed to create auth user: {error_detail}")

    try:
        client.table("profiles").upsert({
            "id": user_id,
            "email": email,
            "full_name": full_name,
            "role": role,
        }).execute()
    except Exception as profile_error:
        # If profile creation fails, clean up the auth user
        remove_auth_user(client, user_id)
        raise HTTPException(status_code=400, detail=f"Failed to create user profile: {profile_error}")

    logger.info("Created %s account %s", role, user_id)
    return user_id, generated


def remove_auth_user(client: Client, user_id: str) -> None:
    try:
        client.auth.admin.delete_user(user_id)
    except Exception as cleanup_error:
        logger.warning("Failed to delete auth user %s: %s", user_id, cleanup_error)


def delete_account(client: Client, user_id: str) -> None:
    """Remove the profile, the auth user and any live sessions."""
    client.table("profiles").delete().eq("id", user_id).execute()
    invalidate_user_sessions(user_id)
    remove_auth_user(client, user_id)
