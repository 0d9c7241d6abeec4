from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional

from ..core.database import get_db, get_redis
from ..core.config import settings
from ..core.access import evaluate_access, AccessState
from ..core.security import (
    security, verify_token, AuthenticationError,
    UserRole, TokenPayload
)
from ..models.user import User

async def get_current_user_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if token_payload.user_id is None:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == token_payload.user_id).first()
    if not user:
        raise AuthenticationError("User not found")

    if user.blocked:
        raise AuthenticationError("User account is blocked")

    return user

async def get_current_user_optional(
    request: Request,
    db: Session = Depends(get_db)
) -> Optional[User]:
    """Get current user if authenticated, None otherwise."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None

    token_payload = verify_token(auth_header.split(" ", 1)[1])
    if not token_payload or token_payload.token_type != "access" or token_payload.user_id is None:
        return None

    user = db.query(User).filter(User.id == token_payload.user_id).first()
    return user if user and not user.blocked else None

class AccessDenied(HTTPException):
    """Route guard failure; carries the guard state and where the client should go."""

    def __init__(self, state: AccessState, redirect: Optional[str]):
        status_code = (
            status.HTTP_401_UNAUTHORIZED
            if state == AccessState.UNAUTHENTICATED
            else status.HTTP_403_FORBIDDEN
        )
        super().__init__(
            status_code=status_code,
            detail={"state": state.value, "redirect": redirect},
        )

def require_access(*allowed_roles: UserRole):
    """
    Dependency enforcing the route guard for ``allowed_roles``: signed in,
    role, completed profile and, for doctors, admin approval. Anonymous and
    blocked callers fail with the unauthenticated state.
    """
    async def access_checker(
        current_user: Optional[User] = Depends(get_current_user_optional)
    ) -> User:
        decision = evaluate_access(current_user, allowed_roles)
        if not decision.authorized:
            raise AccessDenied(decision.state, decision.redirect)
        return current_user

    return access_checker

# Role-scoped dependencies
get_admin_user = require_access(UserRole.ADMIN)
get_doctor_user = require_access(UserRole.DOCTOR, UserRole.ADMIN)
get_patient_user = require_access(UserRole.PATIENT)
get_caregiver_user = require_access(UserRole.CAREGIVER)
get_member_user = require_access(UserRole.PATIENT, UserRole.DOCTOR, UserRole.CAREGIVER, UserRole.ADMIN)
get_participant_user = require_access(UserRole.PATIENT, UserRole.DOCTOR, UserRole.CAREGIVER)

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic rate limiting for registration and password reset endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, 3600, 1)  # one hour window
        return

    if int(current_requests) >= settings.RATE_LIMIT_PER_HOUR:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests. Please try again later."
        )
    redis_client.incr(key)
