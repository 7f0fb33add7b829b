"""
Authentication Utility - JWT handling.

Identity lives with the campus sign-in provider; this module only trusts
the bearer tokens it issues.

Provides:
- JWT token creation/verification
- FastAPI dependencies for protected routes
"""

from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from campuslink.core.config import get_settings

settings = get_settings()

# Bearer token extractor
bearer_scheme = HTTPBearer()

ROLE_USER = "user"
ROLE_ADMIN = "admin"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token. `data` must carry `sub` (user id) and may carry `role`."""
    to_encode = data.copy()
    to_encode.setdefault("role", ROLE_USER)
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Optional[dict]:
    """Decode and verify JWT token."""
    try:
        return jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def user_from_token(token: str) -> Optional[dict]:
    """Resolve a raw token to the caller dict, or None if invalid."""
    payload = decode_token(token)
    if not payload or not payload.get("sub"):
        return None
    return {"user_id": str(payload["sub"]), "role": payload.get("role", ROLE_USER)}


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)) -> dict:
    """
    FastAPI dependency - Get current authenticated user.

    Usage:
        @router.get("/protected")
        async def route(user: dict = Depends(get_current_user)):
            return user
    """
    user = user_from_token(credentials.credentials)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_current_reviewer(user: dict = Depends(get_current_user)) -> dict:
    """Dependency - Require the admin (report reviewer) role."""
    if user["role"] != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admins only")
    return user
