"""Built-in record to HEC event converters.

Conversion is a collaborator of the exporter: any callable with the same
shape can be injected into ``HecClient``. These defaults accept records that
are already ``HecEvent`` instances or plain dicts and drop anything else.
"""

from __future__ import annotations

import dataclasses
import time
from typing import Any, Callable, Dict, List, Tuple

from loguru import logger

from ..config.settings import ExporterConfig
from ..core.events import HecEvent, RecordBatch

BatchConverter = Callable[[RecordBatch], Tuple[List[HecEvent], int]]
LogConverter = Callable[[Any], HecEvent]


def _record_time(record: Dict[str, Any]) -> float:
    value = record.get("time", record.get("timestamp"))
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return time.time()


def record_to_event(record: Any, config: ExporterConfig) -> HecEvent:
    """Turn one record into a HecEvent, filling in configured defaults.

    Raises:
        TypeError: If the record is neither a HecEvent nor a dict
    """
    if isinstance(record, HecEvent):
        event = dataclasses.replace(record, fields=dict(record.fields))
    elif isinstance(record, dict):
        body = {k: v for k, v in record.items() if k not in ("time", "timestamp", "fields")}
        event = HecEvent(event=body, time=_record_time(record), fields=dict(record.get("fields") or {}))
    else:
        raise TypeError(f"Unsupported record type: {type(record).__name__}")

    event.host = event.host or config.host
    event.source = event.source or config.source
    event.sourcetype = event.sourcetype or config.sourcetype
    event.index = event.index or config.index
    return event


def make_batch_converter(config: ExporterConfig) -> BatchConverter:
    """Create a metrics/traces converter that drops unsupported records."""

    def convert(batch: RecordBatch) -> Tuple[List[HecEvent], int]:
        events: List[HecEvent] = []
        dropped = 0
        for record in batch.records:
            try:
                events.append(record_to_event(record, config))
            except TypeError as e:
                dropped += 1
                logger.debug(f"Dropping {batch.kind.value} record: {e}")
        return events, dropped

    return convert


def make_log_converter(config: ExporterConfig) -> LogConverter:
    """Create a per-record log converter."""

    def convert(record: Any) -> HecEvent:
        return record_to_event(record, config)

    return convert
