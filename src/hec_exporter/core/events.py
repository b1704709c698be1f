"""Event models for the HEC exporter.

This module defines the structures that flow through the delivery pipeline:
Records → Converter → HecEvent → Encoder/Chunker → Transport → HEC endpoint
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class TelemetryKind(str, Enum):
    """Kinds of telemetry the exporter can push."""

    METRICS = "metrics"
    TRACES = "traces"
    LOGS = "logs"


@dataclass
class HecEvent:
    """A single HEC event, serialized as one self-contained JSON object."""

    event: Any = None
    time: Optional[float] = None  # Epoch seconds
    host: str = ""
    source: str = ""
    sourcetype: str = ""
    index: str = ""
    fields: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to the HEC JSON shape, omitting unset fields."""
        data: Dict[str, Any] = {}
        if self.time is not None:
            data["time"] = self.time
        if self.host:
            data["host"] = self.host
        if self.source:
            data["source"] = self.source
        if self.sourcetype:
            data["sourcetype"] = self.sourcetype
        if self.index:
            data["index"] = self.index
        data["event"] = self.event
        if self.fields:
            data["fields"] = self.fields
        return data


@dataclass
class RecordBatch:
    """An ordered batch of telemetry records handed to a single push."""

    records: List[Any] = field(default_factory=list)
    kind: TelemetryKind = TelemetryKind.LOGS
    batch_id: str = field(default_factory=lambda: f"batch_{int(time.time() * 1000)}")

    def size(self) -> int:
        """Return the number of records in this batch."""
        return len(self.records)

    def remaining(self, index: int) -> int:
        """Return how many records sit at or after ``index``."""
        return max(0, len(self.records) - index)

    def slice_from(self, index: int) -> RecordBatch:
        """Return a new batch holding the records from ``index`` onward."""
        return RecordBatch(records=list(self.records[index:]), kind=self.kind, batch_id=f"{self.batch_id}@{index}")

    def __len__(self) -> int:
        return len(self.records)
