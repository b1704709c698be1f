"""Streaming chunk producer for log batches.

Log batches can be arbitrarily large, so they are never encoded as a single
body. A background thread converts and encodes records one at a time and
cuts a chunk whenever the next record would push the body past the
configured maximum content length. Chunks are handed to the consumer through
a bounded queue, so the next chunk is serialized while the current one is in
flight without unbounded buffering.
"""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterator, List, Optional

from loguru import logger

from ..core.context import PushContext, background
from ..core.errors import ExporterError, PermanentError, TransportError
from ..core.events import HecEvent, RecordBatch
from ..encoder.event_encoder import encode_event

_DONE = object()  # End-of-stream marker
_PUT_POLL_SECONDS = 0.1


@dataclass
class Chunk:
    """A contiguous, size-bounded slice of a log batch."""

    index: int  # Position of the first record in the batch
    buf: bytes = b""
    count: int = 0
    error: Optional[ExporterError] = None

    def __len__(self) -> int:
        return len(self.buf)


class LogChunkProducer:
    """Lazily produces chunks of a log batch on a background thread."""

    def __init__(
        self,
        batch: RecordBatch,
        convert: Callable[[Any], HecEvent],
        max_content_length: int,
        queue_size: int = 1,
        ctx: Optional[PushContext] = None,
    ):
        """Initialize the producer.

        Args:
            batch: Log records to chunk
            convert: Per-record converter to HecEvent
            max_content_length: Upper bound on a chunk's body, 0 for unlimited
            queue_size: Chunks that may wait between producer and consumer
            ctx: Push context whose cancellation stops production
        """
        self.batch = batch
        self.convert = convert
        self.max_content_length = max_content_length
        self.ctx = ctx or background()

        self._queue: queue.Queue = queue.Queue(maxsize=max(1, queue_size))
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._consumed = False
        self._start = 0

    def __enter__(self) -> LogChunkProducer:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cancel()

    def start(self) -> None:
        """Start the background producer thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self._run, name=f"chunker-{self.batch.batch_id}", daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        """Stop the producer and wait for its thread to exit."""
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join()

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def __iter__(self) -> Iterator[Chunk]:
        if self._consumed:
            raise RuntimeError("Chunk stream can only be consumed once")
        self._consumed = True
        self.start()

        while True:
            item = self._queue.get()
            if item is _DONE:
                return
            yield item
            if item.error is not None:
                return

    def _run(self) -> None:
        try:
            self._produce()
        except Exception as e:
            # The consumer blocks on the queue, so any failure must become a terminal chunk
            logger.error(f"Chunk producer for {self.batch.batch_id} failed: {e}")
            self._put(Chunk(index=self._start, error=PermanentError(f"Chunk production failed: {e}")))
            return
        self._put(_DONE)

    def _produce(self) -> None:
        parts: List[bytes] = []
        size = 0

        for i, record in enumerate(self.batch.records):
            if self._stop.is_set():
                return

            try:
                self.ctx.check()
            except TransportError as e:
                self._put(Chunk(index=self._start, error=e))
                return

            try:
                data = encode_event(self.convert(record))
            except (PermanentError, TypeError, ValueError) as e:
                error = e if isinstance(e, PermanentError) else PermanentError(f"Failed to encode log record {i}: {e}")
                # Records already accumulated are still delivered ahead of the failure
                if parts and not self._put(Chunk(index=self._start, buf=b"".join(parts), count=len(parts))):
                    return
                self._start = i
                self._put(Chunk(index=i, error=error))
                return

            if parts and self.max_content_length > 0 and size + len(data) > self.max_content_length:
                if not self._put(Chunk(index=self._start, buf=b"".join(parts), count=len(parts))):
                    return
                parts = []
                size = 0
                self._start = i

            if not parts and self.max_content_length > 0 and len(data) > self.max_content_length:
                logger.warning(f"Log record {i} encodes to {len(data)} bytes, over the {self.max_content_length} byte limit")

            parts.append(data)
            size += len(data)

        if parts:
            self._put(Chunk(index=self._start, buf=b"".join(parts), count=len(parts)))

    def _put(self, item: Any) -> bool:
        """Hand an item to the consumer unless the producer was cancelled."""
        while not self._stop.is_set():
            try:
                self._queue.put(item, timeout=_PUT_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False


def iter_chunks(batch: RecordBatch, convert: Callable[[Any], HecEvent], max_content_length: int) -> List[Chunk]:
    """Produce every chunk of ``batch`` synchronously."""
    with LogChunkProducer(batch, convert, max_content_length) as producer:
        return list(producer)
