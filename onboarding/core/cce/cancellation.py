"""Cooperative cancellation for blocking waits."""
from __future__ import annotations
import threading
import time
from typing import Optional

from .exceptions import OperationCanceledError


class CancellationToken:
    """Cancellation signal with an optional deadline.

    Every blocking wait in the retry and scan-polling loops goes through
    ``wait()``, so a caller on another thread can abort a workflow promptly
    with ``cancel()``.

    Usage:
        token = CancellationToken(timeout=120)
        service.add_organization_account_sync(request, cancel_token=token)
    """

    def __init__(self, timeout: Optional[float] = None):
        """Initialize token.

        Args:
            timeout: Seconds from now after which waits fail (None for no deadline)
        """
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def remaining(self) -> Optional[float]:
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCanceledError("operation canceled")
        if self._deadline is not None and time.monotonic() >= self._deadline:
            raise OperationCanceledError("operation deadline exceeded")

    def wait(self, seconds: float) -> None:
        """Block for ``seconds`` unless cancelled or past the deadline first."""
        self.raise_if_cancelled()
        remaining = self.remaining()
        if remaining is not None and remaining < seconds:
            self._event.wait(remaining)
            self.raise_if_cancelled()
            raise OperationCanceledError("operation deadline exceeded")
        if self._event.wait(seconds):
            raise OperationCanceledError("operation canceled")
