from fastapi import Depends, HTTPException, status
from schoolportal.core.security import get_current_user


def require_role(*allowed_roles: str):
    """
    Dependency to check if user has one of the allowed roles.
    """
    def role_checker(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required role: {' or '.join(allowed_roles)}"
            )
        return user
    return role_checker


require_admin = require_role("admin")
require_teacher = require_role("teacher")
require_student = require_role("student")
require_admin_or_teacher = require_role("admin", "teacher")
