"""Core HEC exporter data model, errors and push context."""

from .context import PushContext, background
from .errors import ExporterError, PartialLogsError, PermanentError, TransportError, is_permanent, is_retryable
from .events import HecEvent, RecordBatch, TelemetryKind

__all__ = [
    # Data model
    "HecEvent",
    "RecordBatch",
    "TelemetryKind",
    # Errors
    "ExporterError",
    "PermanentError",
    "TransportError",
    "PartialLogsError",
    "is_permanent",
    "is_retryable",
    # Context
    "PushContext",
    "background",
]
