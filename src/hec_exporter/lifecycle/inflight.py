"""In-flight push tracking for graceful shutdown."""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, Optional

from loguru import logger

from ..core.errors import PermanentError


class LifecycleState(str, Enum):
    """Lifecycle states of the exporter."""

    IDLE = "idle"
    ACTIVE = "active"
    DRAINING = "draining"
    STOPPED = "stopped"


class InFlightTracker:
    """Counts outstanding pushes and lets shutdown wait for them to drain."""

    def __init__(self):
        self._lock = threading.Lock()
        self._drained = threading.Condition(self._lock)
        self._in_flight = 0
        self._stop_requested = False
        self._stopped = False

    @property
    def state(self) -> LifecycleState:
        with self._lock:
            if self._stopped:
                return LifecycleState.STOPPED
            if self._stop_requested:
                return LifecycleState.DRAINING
            return LifecycleState.ACTIVE if self._in_flight else LifecycleState.IDLE

    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight

    def enter(self) -> None:
        """Register one push as in flight.

        Raises:
            PermanentError: If shutdown has already been requested
        """
        with self._lock:
            if self._stop_requested:
                raise PermanentError("exporter is stopped")
            self._in_flight += 1

    def leave(self) -> None:
        """Mark one push as finished, waking shutdown when none remain."""
        with self._lock:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._drained.notify_all()

    @contextmanager
    def track(self) -> Iterator[None]:
        """Register a push as in flight for the duration of the block."""
        self.enter()
        try:
            yield
        finally:
            self.leave()

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no push is in flight.

        Returns:
            True if drained, False if ``timeout`` elapsed first
        """
        with self._lock:
            return self._drained.wait_for(lambda: self._in_flight == 0, timeout=timeout)

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Refuse new pushes and wait for outstanding ones to finish.

        Returns:
            True once stopped, False if ``timeout`` elapsed while draining
        """
        with self._lock:
            if self._stopped:
                return True
            self._stop_requested = True
            pending = self._in_flight

        if pending:
            logger.info(f"Waiting for {pending} in-flight pushes to finish")

        started = time.monotonic()
        if not self.wait_idle(timeout):
            logger.warning(f"Stop timed out with {self.in_flight()} pushes still in flight")
            return False

        with self._lock:
            self._stopped = True

        logger.info(f"Exporter drained in {time.monotonic() - started:.2f}s")
        return True
