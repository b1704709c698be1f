"""HEC Exporter - reliable delivery of telemetry batches to an HTTP Event Collector."""

from .config import ExporterConfig, setup_logging
from .core import ExporterError, HecEvent, PartialLogsError, PermanentError, PushContext, RecordBatch, TelemetryKind, TransportError
from .exporter import HecClient, PushResult, create_default_client

__version__ = "1.0.0"

__all__ = [
    "ExporterConfig",
    "ExporterError",
    "HecClient",
    "HecEvent",
    "PartialLogsError",
    "PermanentError",
    "PushContext",
    "PushResult",
    "RecordBatch",
    "TelemetryKind",
    "TransportError",
    "create_default_client",
    "setup_logging",
]
