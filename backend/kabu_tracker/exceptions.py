"""
Application Exceptions
Typed errors and the handlers that turn them into JSON responses
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse

from .config import settings

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception with structured error response"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: Optional[str] = None,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.status_code = status_code or self.status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to error response body"""
        body = {
            "error": self.error_code,
            "message": self.message,
            "status": self.status_code,
        }
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(AppException):
    """Malformed or out-of-range input"""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "VALIDATION_ERROR"
    message = "入力内容が正しくありません"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class AuthenticationError(AppException):
    status_code = status.HTTP_401_UNAUTHORIZED
    error_code = "AUTHENTICATION_FAILED"
    message = "ログインが必要です"


class NotFoundError(AppException):
    status_code = status.HTTP_404_NOT_FOUND
    error_code = "NOT_FOUND"
    message = "銘柄が見つかりません"


class DuplicateStockError(AppException):
    status_code = status.HTTP_409_CONFLICT
    error_code = "DUPLICATE_STOCK"
    message = "この銘柄は既に登録されています"


class EmptyDocumentError(AppException):
    """Text extraction from an uploaded document yielded nothing"""

    status_code = 422
    error_code = "EMPTY_DOCUMENT"
    message = "PDFからテキストを抽出できませんでした"


class UpstreamUnavailableError(AppException):
    """Every external source for a lookup failed"""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "UPSTREAM_UNAVAILABLE"
    message = "外部データを取得できませんでした"


class AnalysisServiceError(AppException):
    """The language-model call failed or returned no text"""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "ANALYSIS_FAILED"
    message = "AI分析に失敗しました"


def soft_failure(exc: UpstreamUnavailableError, **fields) -> Dict[str, Any]:
    """
    Build the 200 OK body used by lookup endpoints when upstream data is absent

    Args:
        exc: Upstream error describing what could not be fetched
        **fields: Extra identifying fields (stock id, code, name)

    Returns:
        Response body with success=False and the typed error
    """
    return {"success": False, **fields, "error": exc.to_dict()}


def register_exception_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers"""

    @app.exception_handler(AuthenticationError)
    async def authentication_exception_handler(request: Request, exc: AuthenticationError):
        # Page requests go to the login page, API calls get a JSON 401
        if not request.url.path.startswith("/api"):
            login_url = f"/login?callbackUrl={quote(request.url.path)}"
            return RedirectResponse(url=login_url, status_code=status.HTTP_303_SEE_OTHER)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        if exc.status_code >= 500:
            logger.error(f"{exc.error_code} on {request.method} {request.url.path}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path"))
        error = ValidationError(first.get("msg", ValidationError.message), field=field or None)
        return JSONResponse(status_code=error.status_code, content=error.to_dict())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Global exception handler"""
        logger.error(f"Unhandled exception: {exc}", exc_info=True)
        content = {"detail": "Internal server error"}
        if settings.expose_error_details:
            content["message"] = str(exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)
