"""HEC client coordinating conversion, encoding, compression and delivery.

Each push runs the pipeline:
Records → Converter → Encoder / Chunker → Compression decision → Transport

and reports how many records failed to leave the process, so the caller can
retry precisely what was not delivered.
"""

from __future__ import annotations

import threading
import time
from contextlib import ExitStack
from datetime import datetime
from typing import Any, Callable, Dict, NamedTuple, Optional

from loguru import logger

from ..chunker import LogChunkProducer
from ..config.settings import ExporterConfig, create_config
from ..converter import BatchConverter, LogConverter, make_batch_converter, make_log_converter
from ..core.context import PushContext, background
from ..core.errors import ExporterError, PartialLogsError, PermanentError, TransportError
from ..core.events import RecordBatch
from ..encoder import CompressorPool, GzipEngine, compress_body, encode_events, gzip_with, should_compress
from ..lifecycle import InFlightTracker, LifecycleState
from ..sender import HecTransport


class PushResult(NamedTuple):
    """Outcome of one push: records dropped or failed, and the error if any."""

    dropped: int
    error: Optional[ExporterError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class HecClient:
    """Delivers telemetry batches to an HTTP Event Collector endpoint."""

    def __init__(
        self,
        config: ExporterConfig,
        metrics_converter: Optional[BatchConverter] = None,
        traces_converter: Optional[BatchConverter] = None,
        log_converter: Optional[LogConverter] = None,
        transport: Optional[HecTransport] = None,
    ):
        """Initialize the client.

        Args:
            config: Exporter configuration
            metrics_converter: Converts a metrics batch to (events, dropped)
            traces_converter: Converts a traces batch to (events, dropped)
            log_converter: Converts a single log record to a HecEvent
            transport: HTTP transport, built from config when omitted
        """
        self.config = config
        self.metrics_converter = metrics_converter or make_batch_converter(config)
        self.traces_converter = traces_converter or make_batch_converter(config)
        self.log_converter = log_converter or make_log_converter(config)
        self.transport = transport or HecTransport(config)
        self.pool = CompressorPool(level=config.compression_level, max_idle=config.max_idle_compressors)
        self._tracker = InFlightTracker()

        # Statistics
        self._stats_lock = threading.Lock()
        self._total_requests_sent = 0
        self._total_requests_failed = 0
        self._total_compressed_requests = 0
        self._total_events_sent = 0
        self._total_bytes_sent = 0
        self._last_successful_send: Optional[datetime] = None
        self._last_error: Optional[str] = None

    @property
    def state(self) -> LifecycleState:
        return self._tracker.state

    def start(self) -> bool:
        """Start the client. No connections are pre-established."""
        logger.info(f"HEC exporter ready for {self.config.endpoint}")
        return True

    def stop(self, ctx: Optional[PushContext] = None) -> bool:
        """Block until every in-flight push has finished.

        Args:
            ctx: Optional context whose deadline bounds the wait

        Returns:
            True once drained and stopped, False if the deadline passed first
        """
        timeout = ctx.remaining() if ctx is not None else None
        return self._tracker.stop(timeout)

    def push_metrics(self, batch: RecordBatch, ctx: Optional[PushContext] = None) -> PushResult:
        """Convert and send a metrics batch as a single request."""
        return self._tracked(batch, lambda: self._push_events(batch, self.metrics_converter, ctx or background()))

    def push_traces(self, batch: RecordBatch, ctx: Optional[PushContext] = None) -> PushResult:
        """Convert and send a traces batch as a single request."""
        return self._tracked(batch, lambda: self._push_events(batch, self.traces_converter, ctx or background()))

    def push_logs(self, batch: RecordBatch, ctx: Optional[PushContext] = None) -> PushResult:
        """Stream a log batch as size-bounded chunks.

        On a delivery failure the returned error is a ``PartialLogsError``
        whose ``remainder`` holds exactly the records that were not delivered.
        """
        return self._tracked(batch, lambda: self._push_logs(batch, ctx or background()))

    def get_stats(self) -> Dict[str, Any]:
        """Get client statistics.

        Returns:
            Dictionary with client statistics
        """
        with self._stats_lock:
            attempts = self._total_requests_sent + self._total_requests_failed
            return {
                "state": self._tracker.state.value,
                "in_flight": self._tracker.in_flight(),
                "total_requests_sent": self._total_requests_sent,
                "total_requests_failed": self._total_requests_failed,
                "total_compressed_requests": self._total_compressed_requests,
                "total_events_sent": self._total_events_sent,
                "total_bytes_sent": self._total_bytes_sent,
                "success_rate": self._total_requests_sent / max(1, attempts),
                "idle_compressors": self.pool.idle_count(),
                "last_successful_send": self._last_successful_send.isoformat() if self._last_successful_send else None,
                "last_error": self._last_error,
            }

    def _tracked(self, batch: RecordBatch, push: Callable[[], PushResult]) -> PushResult:
        try:
            with self._tracker.track():
                return push()
        except PermanentError as e:
            # Push failures come back in the result, so this is the tracker refusing after stop
            logger.warning(f"Refusing {batch.kind.value} batch {batch.batch_id}: {e}")
            return PushResult(batch.size(), e)

    def _push_events(self, batch: RecordBatch, convert: BatchConverter, ctx: PushContext) -> PushResult:
        start_time = time.time()

        try:
            events, pre_dropped = convert(batch)
        except Exception as e:
            error = PermanentError(f"Failed to convert {batch.kind.value} batch: {e}")
            self._record_failure(batch, error)
            return PushResult(batch.size(), error)

        if not events:
            logger.debug(f"Nothing to send for {batch.kind.value} batch {batch.batch_id} ({pre_dropped} dropped)")
            return PushResult(pre_dropped, None)

        try:
            body = encode_events(events)
            wire, compressed = compress_body(self.pool, body, self.config.disable_compression)
            self.transport.post(wire, compressed, ctx)
        except ExporterError as e:
            self._record_failure(batch, e)
            return PushResult(batch.size(), e)

        self._record_success(len(events), len(wire), compressed)
        logger.info(f"Sent {batch.kind.value} batch {batch.batch_id} with {len(events)} events ({len(body)} bytes, compressed={compressed}) in {time.time() - start_time:.2f}s")
        return PushResult(pre_dropped, None)

    def _push_logs(self, batch: RecordBatch, ctx: PushContext) -> PushResult:
        with ExitStack() as stack:
            producer = stack.enter_context(
                LogChunkProducer(batch, self.log_converter, self.config.max_content_length, queue_size=self.config.chunk_queue_size, ctx=ctx)
            )
            # One engine serves every compressed chunk of this push, borrowed on first use
            engine: Optional[GzipEngine] = None

            for chunk in producer:
                dropped = batch.remaining(chunk.index)

                if chunk.error is not None:
                    error: ExporterError = chunk.error
                    if error.retryable:
                        error = PartialLogsError(error, dropped, batch.slice_from(chunk.index))
                    self._record_failure(batch, error)
                    return PushResult(dropped, error)

                if not chunk.buf:
                    continue

                compressed = should_compress(len(chunk.buf), self.config.disable_compression)
                try:
                    if compressed:
                        if engine is None:
                            engine = stack.enter_context(self.pool.acquire())
                        body = gzip_with(engine, chunk.buf)
                    else:
                        body = chunk.buf
                    self.transport.post(body, compressed, ctx)
                except TransportError as e:
                    error = PartialLogsError(e, dropped, batch.slice_from(chunk.index))
                    self._record_failure(batch, error)
                    return PushResult(dropped, error)
                except PermanentError as e:
                    self._record_failure(batch, e)
                    return PushResult(dropped, e)

                self._record_success(chunk.count, len(body), compressed)
                logger.debug(f"Sent log chunk at record {chunk.index} of batch {batch.batch_id} ({chunk.count} records, {len(chunk.buf)} bytes, compressed={compressed})")

        return PushResult(0, None)

    def _record_success(self, events: int, wire_bytes: int, compressed: bool) -> None:
        with self._stats_lock:
            self._total_requests_sent += 1
            self._total_events_sent += events
            self._total_bytes_sent += wire_bytes
            if compressed:
                self._total_compressed_requests += 1
            self._last_successful_send = datetime.now()
            self._last_error = None

    def _record_failure(self, batch: RecordBatch, error: ExporterError) -> None:
        with self._stats_lock:
            self._total_requests_failed += 1
            self._last_error = str(error)
        kind = "retryable" if error.retryable else "permanent"
        logger.error(f"Failed to send {batch.kind.value} batch {batch.batch_id} ({kind}): {error}")


def create_default_client(endpoint: str, token: str, **overrides) -> HecClient:
    """Create a HEC client with default converters.

    Args:
        endpoint: Full HEC collector URL
        token: HEC token
        **overrides: Any other ExporterConfig field

    Returns:
        Configured HEC client
    """
    return HecClient(create_config(endpoint, token, **overrides))

