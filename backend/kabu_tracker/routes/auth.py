"""
Auth API Routes
ログイン・ログアウト・セッション確認
"""

import logging

from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from ..auth import (
    SESSION_COOKIE_NAME,
    SessionUser,
    create_session_token,
    require_session,
    verify_credentials,
)
from ..config import Settings, get_settings
from ..exceptions import AuthenticationError

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)


class LoginRequest(BaseModel):
    """Request model for login"""
    username: str
    password: str


@router.post("/api/auth/login")
async def login(request: LoginRequest, response: Response, settings: Settings = Depends(get_settings)):
    """
    ログイン

    Sets the session cookie and also returns the token for bearer use.
    """
    if not verify_credentials(request.username, request.password, settings):
        logger.warning(f"Login failed for user: {request.username}")
        raise AuthenticationError("ユーザー名またはパスワードが正しくありません", error_code="INVALID_CREDENTIALS")

    token = create_session_token(request.username, settings)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=settings.session_max_age_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
    )
    logger.info(f"User logged in: {request.username}")
    return {"success": True, "username": request.username, "token": token}


@router.post("/api/auth/logout")
async def logout(response: Response):
    response.delete_cookie(SESSION_COOKIE_NAME)
    return {"success": True}


@router.get("/api/auth/session")
async def get_session(user: SessionUser = Depends(require_session)):
    """現在のセッション"""
    return {"username": user.username, "expires_at": user.expires_at.isoformat()}


@router.get("/login")
async def login_page(callbackUrl: str = Query(default="/")):
    """Login entry point for redirected page requests"""
    return {"login": "/api/auth/login", "callbackUrl": callbackUrl}
