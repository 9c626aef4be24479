from typing import Any

from fastapi import Request, status
from fastapi.responses import ORJSONResponse

from app.core.config import get_settings


class AppError(Exception):
    """Base application error with consistent schema."""

    # Details are stripped from responses in production when set.
    debug_only_details = False

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request", details: dict[str, Any] | None = None):
        super().__init__(message, code="BAD_REQUEST", status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ConfigurationError(AppError):
    """Deployment is missing gateway credentials; never a per-request condition."""

    def __init__(self, message: str = "Payment service is not configured"):
        super().__init__(message, code="CONFIGURATION_ERROR")


class GatewayError(AppError):
    """The payment gateway call failed or returned a non-success response."""

    debug_only_details = True

    def __init__(self, detail: str, message: str = "Failed to create payment"):
        self.detail = detail
        super().__init__(message, code="GATEWAY_ERROR", details={"gateway": detail})


class DuplicateKeyError(AppError):
    def __init__(self, key: str):
        self.key = key
        super().__init__("Internal server error", code="DUPLICATE_KEY", details={"key": key})


class RecordNotFoundError(AppError):
    def __init__(self, key: str):
        self.key = key
        super().__init__("Internal server error", code="NOT_FOUND", details={"key": key})


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    details = exc.details
    if exc.debug_only_details and get_settings().is_production:
        details = {}
    body = {
        "error": {
            "message": exc.message,
            "code": exc.code,
            "details": details,
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=exc.status_code, content=body)


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    if exc.status_code >= 500:
        from app.core.logging import get_logger
        get_logger(__name__).error("app_error", code=exc.code, message=str(exc), details=exc.details)
    return error_response(request, exc)


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from app.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    body = {
        "error": {
            "message": "Internal server error",
            "code": "INTERNAL_ERROR",
            "details": {},
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body,
    )
