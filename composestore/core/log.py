"""
Logging setup

All modules log through ``logging.getLogger(__name__)``. Entry points (the CLI
and the ASGI app factory) call ``configure_logging`` once. Records carry the
current HTTP request id so concurrent requests can be told apart in the log.
"""

import contextvars
import logging
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s [%(request_id)s] %(name)s - %(levelname)s - %(message)s"

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "request_id", default="-"
)


class RequestIDFilter(logging.Filter):
    """Add ``request_id`` to every log record from the current context."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "request_id"):
            record.request_id = request_id_var.get()
        return True


def configure_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
) -> None:
    """
    Configure the root logger

    Args:
        level: Logging level name or number
        log_file: Optional file receiving the same records as the console
    """
    root = logging.getLogger()
    root.setLevel(level)

    # Replace handlers installed by an earlier call
    for handler in list(root.handlers):
        if getattr(handler, "_composestore", False):
            root.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(LOG_FORMAT)
    handlers = [logging.StreamHandler()]

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler._composestore = True
        handler.setFormatter(formatter)
        handler.addFilter(RequestIDFilter())
        root.addHandler(handler)
