"""HTTP middleware."""

from composestore.webui.middleware.request_id import (
    RequestIDMiddleware,
    add_request_id_middleware,
)

__all__ = [
    "RequestIDMiddleware",
    "add_request_id_middleware",
]
