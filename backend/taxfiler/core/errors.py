"""
Error taxonomy and the handlers that turn it into JSON responses.

Every response body carries ``success`` and ``message``. Validation failures
add an ``errors`` list; unexpected failures only expose their detail in
development.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from taxfiler.core.config import settings

logger = logging.getLogger(__name__)


class TaxFilerError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    message: str = "Internal server error"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: Optional[str] = None):
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(TaxFilerError):
    """Malformed or out-of-range input."""
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Validation failed"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


class DuplicateEmail(TaxFilerError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "User with this email already exists"


class InvalidCredentials(TaxFilerError):
    # Same message for unknown email and wrong password
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Invalid email or password"


class Unauthorized(TaxFilerError):
    """Authentication error."""
    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Authentication required"
    headers = {"WWW-Authenticate": "Bearer"}


class MissingToken(Unauthorized):
    message = "No token provided, authorization denied"


class MalformedToken(Unauthorized):
    message = "Invalid token format"


class ExpiredToken(Unauthorized):
    message = "Token expired"


class InvalidToken(Unauthorized):
    message = "Invalid token"


class StaleToken(Unauthorized):
    message = "User not found, token invalid"


class NotFound(TaxFilerError):
    status_code = status.HTTP_404_NOT_FOUND
    message = "Not found"


class NoFile(TaxFilerError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "No file uploaded"


class UnsupportedFileType(TaxFilerError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "Only images, PDFs, and Word documents are allowed"


class FileTooLarge(TaxFilerError):
    status_code = status.HTTP_400_BAD_REQUEST
    message = "File too large"


class StorageUnavailable(TaxFilerError):
    """Database not reachable or connection pool exhausted."""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Storage temporarily unavailable, please retry"


def _field_name(loc) -> str:
    # ("body", "email") -> "email"
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or str(loc[-1])


def validation_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    """Flatten FastAPI validation errors into field/message pairs."""
    return [
        {"field": _field_name(err.get("loc", ())), "message": err.get("msg", "Invalid value")}
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the JSON error handlers to the application."""

    @app.exception_handler(TaxFilerError)
    async def handle_taxfiler_error(request: Request, exc: TaxFilerError):
        body: Dict[str, Any] = {"success": False, "message": exc.message}
        if isinstance(exc, ValidationError) and exc.errors:
            body["errors"] = exc.errors
        if exc.status_code >= 500:
            logger.warning(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
        return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "success": False,
                "message": "Validation failed",
                "errors": validation_errors(exc),
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
            message = f"Route {request.method} {request.url.path} not found"
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        body: Dict[str, Any] = {"success": False, "message": "Something went wrong!"}
        body["error"] = str(exc) if settings.SHOW_ERROR_DETAIL else "Internal server error"
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)
