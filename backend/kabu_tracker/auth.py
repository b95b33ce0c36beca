"""
Session Authentication

Single static credential pair from settings; the session is a signed JWT
carried in the `session_token` cookie or an `Authorization: Bearer` header.
"""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Request
from pydantic import BaseModel

from .config import Settings, get_settings
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
JWT_ISSUER = "kabu-tracker"
SESSION_COOKIE_NAME = "session_token"


class SessionUser(BaseModel):
    """Decoded session token"""

    username: str
    expires_at: datetime


def verify_credentials(username: str, password: str, settings: Settings) -> bool:
    """Constant-time comparison against the configured credentials"""
    # compare_digest only accepts ASCII str; compare UTF-8 bytes instead
    username_ok = secrets.compare_digest(username.encode("utf-8"), settings.auth_username.encode("utf-8"))
    password_ok = secrets.compare_digest(password.encode("utf-8"), settings.auth_password.encode("utf-8"))
    return username_ok and password_ok


def create_session_token(username: str, settings: Settings, now: Optional[datetime] = None) -> str:
    """Create a signed session token valid for SESSION_MAX_AGE_DAYS"""
    now = now or datetime.now(timezone.utc)
    payload = {
        "sub": username,
        "iat": now,
        "exp": now + timedelta(days=settings.session_max_age_days),
        "iss": JWT_ISSUER,
    }
    return jwt.encode(payload, settings.auth_secret, algorithm=JWT_ALGORITHM)


def decode_session_token(token: str, settings: Settings) -> SessionUser:
    """
    Decode and validate a session token

    Raises:
        AuthenticationError: expired, tampered, or malformed token
    """
    try:
        payload = jwt.decode(
            token,
            settings.auth_secret,
            algorithms=[JWT_ALGORITHM],
            issuer=JWT_ISSUER,
            options={"require": ["exp", "iat", "sub", "iss"]},
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("セッションの有効期限が切れました", error_code="TOKEN_EXPIRED")
    except jwt.InvalidTokenError as e:
        logger.warning(f"Invalid session token: {e}")
        raise AuthenticationError(error_code="INVALID_TOKEN")

    return SessionUser(
        username=payload["sub"],
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def _token_from_request(request: Request) -> Optional[str]:
    token = request.cookies.get(SESSION_COOKIE_NAME)
    if token:
        return token

    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials.strip()
    return None


async def require_session(request: Request, settings: Settings = Depends(get_settings)) -> SessionUser:
    """
    Dependency for protected routes

    Raises:
        AuthenticationError: no session, or an invalid one
    """
    token = _token_from_request(request)
    if not token:
        raise AuthenticationError()
    return decode_session_token(token, settings)
