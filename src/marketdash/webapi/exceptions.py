"""API exception types and handlers that render the MarketDash error envelope."""

from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..config.logging import get_logger
from ..services.stock_picker.exceptions import (
    AnalysisProviderError,
    MarketDataError,
    StockPickerError,
)
from .models.responses import ErrorResponse

logger = get_logger(__name__)


class MarketDashException(Exception):
    """Base exception for errors surfaced by the API."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.request_id = request_id


class ValidationException(MarketDashException):
    """Request input that passed schema validation but is still unusable."""

    def __init__(
        self,
        message: str = "Validation failed",
        field_errors: Optional[Dict[str, str]] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(
            message=message,
            status_code=422,
            details={"field_errors": field_errors or {}},
            request_id=request_id,
        )


class ExternalServiceError(MarketDashException):
    """A market data or analysis dependency could not serve the request."""

    def __init__(
        self,
        service: str,
        operation: str,
        message: str,
        request_id: Optional[str] = None,
        **details: Any,
    ):
        super().__init__(
            message=f"{service} service error during {operation}: {message}",
            status_code=503,
            details={"service": service, "operation": operation, **details},
            request_id=request_id,
        )


def to_api_exception(
    exc: StockPickerError, request_id: Optional[str] = None
) -> MarketDashException:
    """
    Translate a stock picker service error into its API counterpart.

    Args:
        exc: Error raised inside the stock picker service
        request_id: Request the error belongs to

    Returns:
        ExternalServiceError naming the dependency that failed
    """
    message = getattr(exc, "message", None) or str(exc) or type(exc).__name__

    if isinstance(exc, MarketDataError):
        return ExternalServiceError(
            service="market_data",
            operation="get_quotes",
            message=message,
            request_id=request_id,
            symbols=exc.symbols,
        )
    if isinstance(exc, AnalysisProviderError):
        details = {"provider_status": exc.status} if exc.status is not None else {}
        return ExternalServiceError(
            service="analysis_provider",
            operation="analyze",
            message=message,
            request_id=request_id,
            **details,
        )
    return ExternalServiceError(
        service="stock_picker",
        operation="process",
        message=message,
        request_id=request_id,
    )


def _error_json(
    request_id: Optional[str],
    status_code: int,
    error_type: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    error: Dict[str, Any] = {
        "type": error_type,
        "message": message,
        "status_code": status_code,
    }
    if details is not None:
        error["details"] = details

    body = ErrorResponse(success=False, error=error, request_id=request_id)
    return JSONResponse(status_code=status_code, content=body.model_dump())


async def marketdash_exception_handler(
    request: Request, exc: MarketDashException
) -> JSONResponse:
    """Handle MarketDash API exceptions."""
    request_id = getattr(request.state, "request_id", None)

    logger.error(
        "MarketDash exception occurred",
        exception_type=type(exc).__name__,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        request_id=request_id,
        path=request.url.path,
        method=request.method,
    )

    return _error_json(
        request_id, exc.status_code, type(exc).__name__, exc.message, exc.details
    )


async def stock_picker_exception_handler(
    request: Request, exc: StockPickerError
) -> JSONResponse:
    """Render service-layer failures as external service errors."""
    request_id = getattr(request.state, "request_id", None)
    return await marketdash_exception_handler(
        request, to_api_exception(exc, request_id=request_id)
    )


async def validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle Pydantic validation exceptions raised while building models."""
    request_id = getattr(request.state, "request_id", None)

    field_errors = {
        ".".join(str(loc) for loc in error["loc"]): error["msg"]
        for error in exc.errors()
    }

    logger.warning(
        "Validation error occurred",
        field_errors=field_errors,
        request_id=request_id,
        path=request.url.path,
    )

    return _error_json(
        request_id,
        422,
        "ValidationError",
        "Request validation failed",
        {"field_errors": field_errors},
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle FastAPI HTTP exceptions."""
    request_id = getattr(request.state, "request_id", None)

    logger.warning(
        "HTTP exception occurred",
        status_code=exc.status_code,
        detail=exc.detail,
        request_id=request_id,
        path=request.url.path,
    )

    return _error_json(request_id, exc.status_code, "HTTPException", str(exc.detail))


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    request_id = getattr(request.state, "request_id", None)

    logger.error(
        "Unexpected exception occurred",
        exception_type=type(exc).__name__,
        message=str(exc),
        request_id=request_id,
        path=request.url.path,
        exc_info=True,
    )

    # Internal details stay in the logs
    return _error_json(
        request_id, 500, "InternalServerError", "An unexpected error occurred"
    )


def setup_exception_handlers(app):
    """Register exception handlers with FastAPI app."""
    app.add_exception_handler(MarketDashException, marketdash_exception_handler)
    app.add_exception_handler(StockPickerError, stock_picker_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered")
