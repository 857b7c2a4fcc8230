from fastapi import APIRouter, HTTPException, Depends
from supabase import Client
from schoolportal.db.supabase import get_supabase
from schoolportal.schemas.auth import UserResponse, LoginRequest, LoginResponse
from schoolportal.core.security import get_current_token, get_current_user, load_profile
from schoolportal.core.session_cache import create_session, invalidate_session, clear_expired
import logging

# Setup logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

@router.post("/login", response_model=LoginResponse)
def login(request: LoginRequest, client: Client = Depends(get_supabase)):
    """
    Login with email and password.
    Uses Supabase authentication; the returned token authenticates every
    other request as `Authorization: Bearer <token>`.
    """
    try:
        auth_response = client.auth.sign_in_with_password({
            "email": request.email,
            "password": request.password
        })
    except Exception as e:
        logger.info("Login failed for %s: %s", request.email, e)
        raise HTTPException(
            status_code=401,
            detail="Login failed. Please check your credentials."
        )

    if not auth_response.user or not auth_response.session:
        raise HTTPException(
            status_code=401,
            detail="Invalid email or password"
        )

    # Role comes from the profile, the same claim every guarded route checks
    user_id = str(auth_response.user.id)
    profile = load_profile(client, user_id)

    clear_expired()
    token = create_session(user_id)
    logger.info("User %s logged in as %s", user_id, profile["role"])
    return LoginResponse(user_id=user_id, token=token, role=profile["role"])

@router.post("/logout")
def logout(token: str = Depends(get_current_token)):
    invalidate_session(token)
    return {"message": "Logged out"}

@router.get("/me", response_model=UserResponse)
def get_current_user_profile(user: dict = Depends(get_current_user)):
    """
    Get current authenticated user's profile information:
    id, email, role (admin, teacher, student) and full_name.
    """
    return UserResponse(**user)
