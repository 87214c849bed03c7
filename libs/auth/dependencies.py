from datetime import datetime, timezone
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import ValidationError

from libs.auth.models import AuthUser
from libs.common.config import get_settings

settings = get_settings()
security = HTTPBearer()


def _service_role_jwt(calling_service: str) -> str:
    """Short-lived token that internal endpoints accept as service_role."""
    now = int(datetime.now(tz=timezone.utc).timestamp())
    payload = {
        "sub": f"service:{calling_service}",
        "email": settings.ADMIN_EMAIL,
        "role": "service_role",
        "iat": now,
        "exp": now + 60,
    }
    return jwt.encode(payload, settings.SUPABASE_JWT_SECRET, algorithm="HS256")


async def get_current_user(
    token: Annotated[HTTPAuthorizationCredentials, Depends(security)]
) -> AuthUser:
    """
    Validate Supabase JWT and return the authenticated user.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(
            token.credentials,
            settings.SUPABASE_JWT_SECRET,
            algorithms=["HS256"],
            options={"verify_aud": False},
        )
        return AuthUser(**payload)

    except (JWTError, ValidationError):
        raise credentials_exception


async def require_admin(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    """
    Allow store admins (app_metadata.role == "admin") and service_role tokens.
    """
    if current_user.role != "service_role" and not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin privileges required",
        )
    return current_user


async def require_service_role(
    current_user: Annotated[AuthUser, Depends(get_current_user)]
) -> AuthUser:
    """Only other services may call internal endpoints."""
    if current_user.role != "service_role":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Service role required",
        )
    return current_user
