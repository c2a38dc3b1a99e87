# app/api/v1/deps.py

from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import decode_access_token
from app.db.database import get_db
from app.db.models import User
from app.db.schemas import CaseRecord
from app.services import case_repository
from app.services.active_case_service import PreferencesActiveCaseStore
from app.services.rate_limit_service import IPRateLimiter, get_rate_limiter
from app.utils.exceptions import CaseNotFoundError, NotAuthenticatedError, RateLimitExceededError
from app.utils.helpers import format_retry_after

# auto_error=False: missing credentials become our 401 envelope, not FastAPI's 403
security = HTTPBearer(auto_error=False)

# ============================================================================
# JWT Dependency
# ============================================================================

def _user_from_token(token: str, db: Session) -> User:
    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise NotAuthenticatedError("Token expired")
    except jwt.PyJWTError:
        raise NotAuthenticatedError("Invalid token")

    # Accept either "user_id" or the standard "sub"
    user_id = payload.get("user_id") or payload.get("sub")
    try:
        user_uuid = UUID(str(user_id))
    except (TypeError, ValueError):
        raise NotAuthenticatedError("Invalid token")

    user = db.query(User).filter(User.id == user_uuid).first()
    if not user or not user.is_active:
        raise NotAuthenticatedError("User not found")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Validate JWT token and return current user.
    """
    if credentials is None:
        raise NotAuthenticatedError()
    return _user_from_token(credentials.credentials, db)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> Optional[User]:
    """
    Current user, or None for anonymous callers. A bad token is treated as
    anonymous rather than rejected.
    """
    if credentials is None:
        return None
    try:
        return _user_from_token(credentials.credentials, db)
    except NotAuthenticatedError:
        return None


# ============================================================================
# Client identity
# ============================================================================

def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, then X-Real-IP, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def owner_id_for(user: Optional[User], client_ip: str) -> str:
    """Artifact owner: the user id, or an IP pseudo-identity for anonymous use"""
    if user is not None:
        return str(user.id)
    return f"ip-{client_ip}"


def get_active_case_store(db: Session = Depends(get_db)) -> PreferencesActiveCaseStore:
    return PreferencesActiveCaseStore(db)


# ============================================================================
# Anonymous quota
# ============================================================================

def enforce_anonymous_quota(
    request: Request,
    user: Optional[User] = Depends(get_optional_user),
    limiter: IPRateLimiter = Depends(get_rate_limiter)
) -> None:
    """
    Daily per-IP quota for anonymous callers. Runs before the body is
    validated, so every anonymous attempt counts.
    """
    if user is not None:
        return
    result = limiter.check(get_client_ip(request), settings.ANON_DAILY_LIMIT)
    if not result.allowed:
        wait = format_retry_after(result.seconds_until_reset())
        raise RateLimitExceededError(
            result.seconds_until_reset(),
            f"Daily limit reached. Try again in {wait} or sign up for unlimited access.",
        )


# ============================================================================
# Case linking
# ============================================================================

def resolve_linked_case(
    db: Session, user: Optional[User], case_id: Optional[UUID]
) -> Optional[CaseRecord]:
    """
    Case an artifact should be attached to. Anonymous callers never link to a
    case; a signed-in caller must own it (404 otherwise).
    """
    if case_id is None or user is None:
        return None
    case = case_repository.find_owned(db, user.id, case_id)
    if case is None:
        raise CaseNotFoundError(str(case_id))
    return case
