from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Callable, Optional, Sequence

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, AuthenticationError, UserRole, TokenCodec, get_token_codec
)
from ..services.auth_service import AuthService, Principal

async def get_bearer_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> str:
    """Extract the bearer token from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()
    return credentials.credentials

def get_auth_service(
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
) -> AuthService:
    return AuthService(db, codec)

def require_role(allowed_roles: Sequence[UserRole]) -> Callable:
    """Create a dependency that admits a token valid for any of ``allowed_roles``."""
    def role_checker(
        token: str = Depends(get_bearer_token),
        auth_service: AuthService = Depends(get_auth_service),
    ) -> Principal:
        for role in allowed_roles:
            principal = auth_service.authorize(token, role)
            if principal is not None:
                return principal
        raise AuthenticationError()

    return role_checker

# Specific role dependencies
require_admin = require_role([UserRole.ADMIN])
require_doctor = require_role([UserRole.DOCTOR])
require_patient = require_role([UserRole.PATIENT])
require_any_role = require_role([UserRole.PATIENT, UserRole.DOCTOR, UserRole.ADMIN])

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Fixed one-hour window on login attempts per client address."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, 3600, 1)
    else:
        if int(current_requests) >= settings.LOGIN_RATE_LIMIT:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
