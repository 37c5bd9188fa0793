"""Cancellable background registration tasks"""

import enum
import threading
import time
from concurrent.futures import CancelledError, Future
from typing import Optional

from composestore.appstore.exceptions import RegistrationCancelledError


class CancelToken:
    """
    Cancellation signal handed to long-running work

    The token is cancelled explicitly through ``cancel()``, through an
    external ``threading.Event`` supplied by the caller, or implicitly once
    its deadline passes.
    """

    def __init__(self, timeout: Optional[float] = None, event: Optional[threading.Event] = None):
        self._event = event or threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, None without a deadline"""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RegistrationCancelledError("registration cancelled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise RegistrationCancelledError("registration timed out")


class TaskStatus(str, enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class RegistrationTask:
    """Handle of one background app store registration"""

    def __init__(self, url: str, token: CancelToken):
        self.url = url
        self.token = token
        self.status = TaskStatus.PENDING
        self.error: Optional[BaseException] = None
        self._future: Optional[Future] = None

    def attach(self, future: Future) -> None:
        self._future = future

    def cancel(self) -> None:
        self.token.cancel()
        # A task that never started will not record its own status
        if self._future is not None and self._future.cancel():
            self.status = TaskStatus.CANCELLED

    @property
    def done(self) -> bool:
        return self.status is not TaskStatus.PENDING

    def wait(self, timeout: Optional[float] = None) -> TaskStatus:
        """Block until the task finishes; returns its final status

        Raises:
            concurrent.futures.TimeoutError: If the task still runs after ``timeout``
        """
        if self._future is not None:
            try:
                self._future.result(timeout=timeout)
            except CancelledError:
                self.status = TaskStatus.CANCELLED
        return self.status

    def __repr__(self) -> str:
        return f"RegistrationTask(url={self.url!r}, status={self.status.value})"
