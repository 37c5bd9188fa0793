"""
Request ID Middleware - Request tracing

Adds an X-Request-ID header to every response and exposes the id to log
records through ``composestore.core.log.request_id_var``.
"""

import logging
import uuid

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from composestore.core.log import request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware to inject X-Request-ID header for request tracking

    Features:
    - Uses client-provided X-Request-ID if present
    - Generates UUID if not provided
    - Adds X-Request-ID to response headers
    - Makes request_id available in log records
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_var.set(request_id)

        logger.debug(
            f"{request.method} {request.url.path} "
            f"from {request.client.host if request.client else 'unknown'}"
        )

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id
            logger.debug(f"Response: {response.status_code}")
            return response
        finally:
            request_id_var.reset(token)


def add_request_id_middleware(app: FastAPI) -> None:
    """Register RequestIDMiddleware with FastAPI app"""
    app.add_middleware(RequestIDMiddleware)
