"""
Custom exception handlers for consistent error responses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, cast

from fastapi.responses import JSONResponse

from slice_search.logging import get_logger
from slice_search.services.errors import (
    DimensionMismatchError,
    InvalidEmbeddingError,
    InvalidRequestError,
    MetadataError,
    NonUnitVectorError,
    RangeReadError,
    SliceSearchError,
    StoreNotFoundError,
    TruncatedRecordError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from typing import Any

    from fastapi import FastAPI, Request
    from starlette.requests import Request as StarletteRequest

    ExceptionHandler = Callable[
        [StarletteRequest, Exception],
        Coroutine[Any, Any, JSONResponse],
    ]

__all__ = [
    "EmbeddingProviderError",
    "ServiceError",
    "register_exception_handlers",
    "service_error_from",
    "service_error_handler",
    "unhandled_exception_handler",
]


class ServiceError(Exception):
    """
    Base exception for service errors.

    Attributes:
        error: Machine-readable error code
        message: Human-readable description
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        error: str,
        message: str,
        status_code: int,
        details: dict[str, object] | None = None,
    ) -> None:
        self.error = error
        self.message = message
        self.status_code = status_code
        if details is None:
            self.details: dict[str, object] = {}
        else:
            self.details = details
        super().__init__(message)


class EmbeddingProviderError(ServiceError):
    """
    Exception for embedding provider failures.

    Used when the provider times out, is unreachable, returns an error
    status, or returns a payload without a usable embedding.
    """


def service_error_from(exc: SliceSearchError) -> ServiceError:
    """
    Translate a search engine error into a ServiceError.

    Args:
        exc: Error raised by the search engine or store

    Returns:
        ServiceError carrying the matching error code and HTTP status
    """
    if isinstance(exc, InvalidRequestError):
        return ServiceError("invalid_request", str(exc), 400, {"reason": exc.reason})
    if isinstance(exc, InvalidEmbeddingError):
        return ServiceError("invalid_embedding", str(exc), 400, {"reason": exc.reason})
    if isinstance(exc, DimensionMismatchError):
        return ServiceError(
            "dimension_mismatch",
            str(exc),
            400,
            {"expected": exc.expected, "received": exc.received},
        )
    if isinstance(exc, StoreNotFoundError):
        return ServiceError("store_not_found", str(exc), 404, {"key": exc.key})
    if isinstance(exc, RangeReadError):
        return ServiceError(
            "range_read_failed",
            str(exc),
            502,
            {"key": exc.key, "offset": exc.offset, "length": exc.length, "reason": exc.reason},
        )
    if isinstance(exc, TruncatedRecordError):
        return ServiceError(
            "truncated_record",
            str(exc),
            502,
            {"pending_bytes": exc.pending_bytes, "record_bytes": exc.record_bytes},
        )
    if isinstance(exc, NonUnitVectorError):
        return ServiceError(
            "non_unit_vector",
            str(exc),
            500,
            {"index": exc.index, "norm": exc.norm, "tolerance": exc.tolerance},
        )
    if isinstance(exc, MetadataError):
        return ServiceError("invalid_metadata", str(exc), 500, {})
    return ServiceError("search_failed", str(exc), 500, {"exception_type": type(exc).__name__})


async def service_error_handler(
    request: Request,
    exc: ServiceError,
) -> JSONResponse:
    """Handle ServiceError exceptions."""
    logger = get_logger()
    logger.warning(
        "Service error",
        extra={
            "error_code": exc.error,
            "error_message": exc.message,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": str(request.url.path),
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error,
            "message": exc.message,
            "details": exc.details,
        },
    )


async def unhandled_exception_handler(
    request: Request,
    _exc: Exception,
) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs full traceback but returns sanitized error to client.
    """
    logger = get_logger()
    logger.exception(
        "Unhandled exception",
        extra={
            "path": str(request.url.path),
            "method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": {},
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the app."""
    app.add_exception_handler(
        ServiceError,
        cast("ExceptionHandler", service_error_handler),
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)
