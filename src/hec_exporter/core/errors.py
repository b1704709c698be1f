"""Error taxonomy for delivery failures.

Every failure the exporter reports is one of three variants:

- ``PermanentError``: a data or programming defect (encoding, request
  construction). Retrying the same data can never succeed.
- ``TransportError``: a network failure or a non-2xx HTTP response. The
  caller may retry.
- ``PartialLogsError``: a logs push where only a strict subset of records
  left the process. Carries the exact undelivered remainder.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .events import RecordBatch


class ExporterError(Exception):
    """Base class for all exporter delivery errors."""

    retryable: bool = False


class PermanentError(ExporterError):
    """Failure that will never succeed on retry."""

    retryable = False


class TransportError(ExporterError):
    """Network-level failure or non-2xx response from the endpoint."""

    retryable = True

    def __init__(self, message: str, status_code: Optional[int] = None, reason: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason

    @classmethod
    def from_status(cls, status_code: int, reason: str) -> TransportError:
        """Build the error reported for a non-2xx response."""
        return cls(f'HTTP {status_code} "{reason}"', status_code=status_code, reason=reason)


class PartialLogsError(ExporterError):
    """Logs push failure scoped to the records that were not delivered."""

    retryable = True

    def __init__(self, cause: ExporterError, dropped: int, remainder: RecordBatch):
        super().__init__(f"{dropped} log records not delivered: {cause}")
        self.cause = cause
        self.dropped = dropped
        self.remainder = remainder


def is_permanent(error: Optional[BaseException]) -> bool:
    """Return True if ``error`` must not be retried."""
    return isinstance(error, PermanentError)


def is_retryable(error: Optional[BaseException]) -> bool:
    """Return True if the caller may retry after ``error``."""
    return isinstance(error, ExporterError) and error.retryable
