import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.data_url import InvalidImageError
from errors_response.image_errors import format_failure_message, get_image_error_message
from services.image_adapter import ProviderError

logger = logging.getLogger("image_studio.core.error_handler")


def create_error_response(
    status_code: int,
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Create standardized error response"""
    error_response: Dict[str, Any] = {
        "success": False,
        "error": {
            "code": error_code or f"ERROR_{status_code}",
            "message": message,
            "status_code": status_code,
        },
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }

    if details:
        error_response["error"]["details"] = details

    if request_id:
        error_response["request_id"] = request_id

    return error_response


def _request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def _language(request: Request) -> Optional[str]:
    return getattr(request.state, "language", None)


def setup_error_handlers(app: FastAPI) -> None:
    """Setup global error handlers for FastAPI app"""

    @app.exception_handler(ProviderError)
    async def provider_error_handler(request: Request, exc: ProviderError):
        request_id = _request_id(request)
        logger.warning(
            "Provider error returned to client",
            extra={"code": exc.code, "reason": exc.reason, "request_id": request_id},
        )
        return JSONResponse(
            status_code=502,
            content=create_error_response(
                status_code=502,
                message=format_failure_message(exc, _language(request)),
                error_code=exc.code,
                details={"reason": exc.reason},
                request_id=request_id,
            ),
        )

    @app.exception_handler(InvalidImageError)
    async def invalid_image_handler(request: Request, exc: InvalidImageError):
        request_id = _request_id(request)
        logger.warning("Invalid source image", extra={"code": exc.code, "detail": exc.message, "request_id": request_id})
        return JSONResponse(
            status_code=400,
            content=create_error_response(
                status_code=400,
                message=get_image_error_message(exc.code, _language(request)),
                error_code=exc.code,
                details={"reason": exc.message},
                request_id=request_id,
            ),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        request_id = _request_id(request)
        detail = exc.detail
        error_code = None
        message = detail
        if isinstance(detail, dict):
            error_code = detail.get("error")
            message = detail.get("message") or str(detail)

        logger.warning(f"HTTP Exception: {message} (Request ID: {request_id})")

        return JSONResponse(
            status_code=exc.status_code,
            content=create_error_response(
                status_code=exc.status_code,
                message=str(message),
                error_code=error_code,
                request_id=request_id,
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        request_id = _request_id(request)

        logger.warning(f"Validation Error: {exc.errors()} (Request ID: {request_id})")

        return JSONResponse(
            status_code=422,
            content=create_error_response(
                status_code=422,
                message="Validation error",
                error_code="VALIDATION_ERROR",
                details={"errors": [_jsonable_error(err) for err in exc.errors()]},
                request_id=request_id,
            ),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        request_id = _request_id(request)

        logger.error(f"Unhandled Exception: {exc} (Request ID: {request_id})", exc_info=exc)

        return JSONResponse(
            status_code=500,
            content=create_error_response(
                status_code=500,
                message="Internal server error",
                error_code="INTERNAL_SERVER_ERROR",
                request_id=request_id,
            ),
        )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        logger.info(
            "Incoming request: %s %s (Request ID: %s)",
            request.method,
            request.url.path,
            request_id,
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "Response: %s (Request ID: %s)",
            response.status_code,
            request_id,
        )

        return response


def _jsonable_error(error: Dict[str, Any]) -> Dict[str, Any]:
    # "ctx" may hold exception objects, "input" may hold raw upload data
    cleaned = {key: value for key, value in error.items() if key not in ("ctx", "input")}
    if "ctx" in error:
        cleaned["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
    return cleaned


__all__ = ["create_error_response", "setup_error_handlers"]
