"""
API Error Envelope - Unified response format

This module provides a standardized response structure and exception handlers
to ensure consistent formatting across all app management API endpoints.
"""

import logging
import traceback
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from composestore.core.time import iso_z, utc_now

logger = logging.getLogger(__name__)


def _format_timestamp() -> str:
    """Format current time as ISO 8601 UTC with Z suffix"""
    return iso_z(utc_now())


class ErrorEnvelope:
    """
    Unified response envelope

    Ensures all error responses follow the same structure:
    {
        "ok": false,
        "error_code": "NOT_FOUND",
        "message": "app store id 3 is not found",
        "details": {...},
        "timestamp": "2026-01-31T12:34:56.789000Z"
    }
    """

    @staticmethod
    def format_error(
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Format an error response with consistent structure

        Args:
            error_code: Machine-readable error code (e.g., "VALIDATION_ERROR", "NOT_FOUND")
            message: Human-readable error message
            details: Additional error details (optional)

        Returns:
            Standardized error response dictionary with compatibility aliases:
            - reason_code (alias for error_code)
            - hint (top-level, extracted from details.hint if present)
        """
        details = details or {}

        response = {
            "ok": False,
            "error_code": error_code,
            "message": message,
            "details": details,
            "timestamp": _format_timestamp()
        }

        response["reason_code"] = error_code

        if "hint" in details:
            response["hint"] = details["hint"]

        return response

    @staticmethod
    def format_success(
        data: Any,
        message: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Format a success response with consistent structure

        Args:
            data: Response data
            message: Optional success message

        Returns:
            Standardized success response dictionary
        """
        response = {
            "ok": True,
            "data": data,
            "timestamp": _format_timestamp()
        }

        if message:
            response["message"] = message

        return response


ERROR_CODE_MAP = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
    502: "BAD_GATEWAY",
    503: "SERVICE_UNAVAILABLE",
    504: "GATEWAY_TIMEOUT"
}


def _expose_debug_info(request: Request) -> bool:
    config = getattr(request.app.state, "config", None)
    if config is None:
        return False
    return config.debug and not config.is_production


def register_error_handlers(app: FastAPI) -> None:
    """
    Register global error handlers for consistent error responses

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Convert FastAPI/Pydantic validation errors into the standard format"""
        formatted_errors = [
            {
                "field": " -> ".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
                "type": error["type"]
            }
            for error in exc.errors()
        ]

        logger.warning(
            f"Validation error on {request.method} {request.url.path}: {formatted_errors}"
        )

        return JSONResponse(
            status_code=422,
            content=ErrorEnvelope.format_error(
                error_code="VALIDATION_ERROR",
                message="Request validation failed",
                details={"errors": formatted_errors},
            )
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Wrap HTTPException in the standard error envelope"""
        detail = exc.detail
        error_code = ERROR_CODE_MAP.get(exc.status_code, "HTTP_ERROR")

        logger.warning(
            f"HTTP exception on {request.method} {request.url.path}: "
            f"status={exc.status_code}, detail={detail}"
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorEnvelope.format_error(
                error_code=error_code,
                message=str(detail) if detail else "An error occurred",
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all handler for unhandled exceptions

        Internal details are only returned in debug mode outside production.
        """
        logger.error(
            f"Unhandled exception on {request.method} {request.url.path}",
            exc_info=exc
        )

        if not _expose_debug_info(request):
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content=ErrorEnvelope.format_error(
                    error_code="INTERNAL_ERROR",
                    message="Internal server error",
                    details={"hint": "An unexpected error occurred. See the service log for details."},
                )
            )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorEnvelope.format_error(
                error_code="INTERNAL_ERROR",
                message=f"{type(exc).__name__}: {str(exc)}",
                details={
                    "hint": "An unexpected error occurred. See debug_info below (DEBUG mode).",
                    "debug_info": {
                        "exception_type": type(exc).__name__,
                        "exception_message": str(exc),
                        "traceback": "".join(
                            traceback.format_exception(type(exc), exc, exc.__traceback__)
                        ),
                        "request_path": str(request.url.path),
                        "request_method": request.method
                    }
                },
            )
        )

    logger.debug("Registered unified error handlers")
