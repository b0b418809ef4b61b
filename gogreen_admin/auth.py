"""
Session-token verification and role guards.

Tokens are issued by the login service as HS256 JWTs carrying `userId`,
`email` and `role`, and arrive either in the `admin_session` cookie or as a
Bearer header. This module only verifies them.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, UTC
from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import Settings, get_settings
from .exceptions import AuthenticationError, PermissionDeniedError
from .logging_config import app_logger, audit_log
from .models import UserRole

security = HTTPBearer(auto_error=False)

@dataclass(frozen=True)
class CurrentUser:
    user_id: UUID
    email: Optional[str]
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

def create_session_token(
    user_id: UUID,
    email: str,
    role: UserRole,
    settings: Optional[Settings] = None,
    expires_in: Optional[timedelta] = None,
) -> str:
    settings = settings or get_settings()
    now = datetime.now(UTC)
    payload = {
        "userId": str(user_id),
        "email": email,
        "role": UserRole(role).value,
        "iat": now,
        "exp": now + (expires_in or timedelta(days=settings.JWT_EXPIRES_DAYS)),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

def verify_token(token: str, settings: Settings) -> CurrentUser:
    """
    Verify a session token and return the user it names.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Session expired")
    except jwt.InvalidTokenError as e:
        app_logger.warning("invalid_session_token", error=str(e))
        raise AuthenticationError("Invalid token")

    try:
        return CurrentUser(
            user_id=UUID(payload["userId"]),
            email=payload.get("email"),
            role=UserRole(payload["role"]),
        )
    except (KeyError, ValueError):
        raise AuthenticationError("Malformed token claims")

async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_settings),
) -> CurrentUser:
    """
    Resolve the authenticated user from the session cookie or Bearer header.
    """
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token and credentials:
        token = credentials.credentials
    if not token:
        raise AuthenticationError("Not authenticated")

    user = verify_token(token, settings)
    request.state.user = user
    return user

async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role != UserRole.ADMIN:
        audit_log(action="access_denied", user_id=user.user_id, required_role="admin")
        raise PermissionDeniedError("Admin access required")
    return user

async def require_editor(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if user.role not in (UserRole.ADMIN, UserRole.EDITOR):
        raise PermissionDeniedError("Editor access required")
    return user
