"""Per-push cancellation and deadline handling."""

from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional

from .errors import TransportError


class PushContext:
    """Cancellation signal plus optional deadline supplied by the caller."""

    def __init__(self, timeout: Optional[float] = None):
        """Initialize the context.

        Args:
            timeout: Seconds from now after which the push is abandoned
        """
        self._cancelled = threading.Event()
        self._deadline: Optional[float] = time.monotonic() + timeout if timeout is not None else None
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    def cancel(self) -> None:
        """Signal every stage working under this context to stop."""
        with self._lock:
            self._cancelled.set()
            callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            callback()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Run ``callback`` when the context is cancelled.

        The callback runs immediately if the context is already cancelled.

        Returns:
            A function that unregisters the callback
        """
        with self._lock:
            if not self._cancelled.is_set():
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)
        callback()
        return lambda: None

    def _unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline, or None without a deadline."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def check(self) -> None:
        """Raise a retryable error if the context is done."""
        if self.cancelled:
            raise TransportError("context cancelled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise TransportError("context deadline exceeded")


def background() -> PushContext:
    """Return a context that is never cancelled and has no deadline."""
    return PushContext()
