"""
Error taxonomy and the FastAPI handlers that map it to HTTP responses.

Services raise these; routers let them propagate. Auth failures are raised as
HTTPException(401/403) by the auth dependencies instead.
"""

import traceback
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.config import settings
from storefront.logger import get_logger

logger = get_logger("errors")


class StoreError(Exception):
    """Base class for domain errors."""
    status_code = 500

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(StoreError):
    """Missing or malformed input."""
    status_code = 400


class NotFoundError(StoreError):
    """Referenced id or slug does not exist."""
    status_code = 404


class ConflictError(StoreError):
    """Uniqueness violation (duplicate variation, slug, email)."""
    status_code = 400


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "form")]
    return parts[-1] if parts else "request"


def describe_validation_error(exc: RequestValidationError) -> dict:
    """Build a message naming the first offending field."""
    errors = exc.errors()
    if not errors:
        return {"message": "Invalid request"}
    first = errors[0]
    field = _field_name(first.get("loc", ()))
    err_type = first.get("type", "")
    if err_type == "missing" or (err_type == "string_too_short" and first.get("ctx", {}).get("min_length") == 1):
        message = f"{field} is required"
    elif err_type == "too_short":
        message = f"{field} must not be empty"
    else:
        message = f"{field}: {first.get('msg', 'invalid value')}"
    return {"message": message, "field": field}


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        content = {"success": False, "message": exc.message}
        if exc.field:
            content["field"] = exc.field
        if exc.status_code >= 500:
            logger.error("Store error on %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        described = describe_validation_error(exc)
        logger.info("Rejected %s %s: %s", request.method, request.url.path, described["message"])
        return JSONResponse(status_code=400, content={"success": False, **described})

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Log unhandled exceptions and return 500; detail only outside production."""
        err_msg = str(exc)
        logger.error("Unhandled exception: %s\n%s", err_msg, traceback.format_exc())
        content = {"success": False, "message": "Internal server error"}
        if not settings.is_production:
            content["error"] = err_msg
            content["type"] = type(exc).__name__
        return JSONResponse(status_code=500, content=content)
