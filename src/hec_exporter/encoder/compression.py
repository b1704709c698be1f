"""Size-aware gzip compression with a reusable engine pool.

Bodies that fit into a single Ethernet frame are sent as-is; anything larger
is gzipped whole. Engines are borrowed from a shared pool, reset before use
and always returned, so sustained throughput does not re-allocate buffers.
"""

from __future__ import annotations

import gzip
import io
import threading
from collections import deque
from contextlib import contextmanager
from typing import Iterator, Optional, Tuple

from loguru import logger

from ..core.errors import PermanentError

COMPRESSION_THRESHOLD = 1500  # One Ethernet frame


def should_compress(size: int, disable_compression: bool) -> bool:
    """Return True if a body of ``size`` bytes should be gzipped."""
    return not disable_compression and size > COMPRESSION_THRESHOLD


class GzipEngine:
    """Reusable gzip writer over an owned in-memory buffer."""

    def __init__(self, level: int = 6):
        self.level = level
        self._buffer = io.BytesIO()
        self._writer: Optional[gzip.GzipFile] = None

    def reset(self) -> None:
        """Start a fresh gzip member, discarding any previous output."""
        self.discard()
        self._buffer.seek(0)
        self._buffer.truncate()
        self._writer = gzip.GzipFile(fileobj=self._buffer, mode="wb", compresslevel=self.level, mtime=0)

    def write(self, data: bytes) -> None:
        if self._writer is None:
            raise RuntimeError("GzipEngine used without reset()")
        self._writer.write(data)

    def finish(self) -> bytes:
        """Flush and close the current member and return the compressed bytes."""
        if self._writer is None:
            raise RuntimeError("GzipEngine used without reset()")
        self._writer.close()
        self._writer = None
        return self._buffer.getvalue()

    def discard(self) -> None:
        """Drop any half-written member."""
        if self._writer is not None:
            writer, self._writer = self._writer, None
            writer.close()


class CompressorPool:
    """Thread-safe pool of gzip engines with borrow/return semantics."""

    def __init__(self, level: int = 6, max_idle: int = 8):
        """Initialize the pool.

        Args:
            level: gzip compression level for new engines
            max_idle: Maximum idle engines retained between uses
        """
        self.level = level
        self.max_idle = max_idle
        self._idle: deque[GzipEngine] = deque()
        self._lock = threading.Lock()
        self._created = 0

    @contextmanager
    def acquire(self) -> Iterator[GzipEngine]:
        """Borrow a freshly reset engine for the duration of the block."""
        engine = self._take()
        try:
            engine.reset()
            yield engine
        finally:
            engine.discard()
            self._give_back(engine)

    def idle_count(self) -> int:
        with self._lock:
            return len(self._idle)

    def created_count(self) -> int:
        with self._lock:
            return self._created

    def _take(self) -> GzipEngine:
        with self._lock:
            if self._idle:
                return self._idle.pop()
            self._created += 1
        logger.debug("Created new gzip engine")
        return GzipEngine(self.level)

    def _give_back(self, engine: GzipEngine) -> None:
        with self._lock:
            if len(self._idle) < self.max_idle:
                self._idle.append(engine)


def gzip_with(engine: GzipEngine, body: bytes) -> bytes:
    """Compress ``body`` as one complete gzip member using ``engine``.

    Raises:
        PermanentError: If compression fails
    """
    try:
        engine.reset()
        engine.write(body)
        return engine.finish()
    except (OSError, ValueError, RuntimeError) as e:
        raise PermanentError(f"Failed to compress body: {e}") from e


def compress_body(pool: CompressorPool, body: bytes, disable_compression: bool) -> Tuple[bytes, bool]:
    """Apply the compression decision to a wire body.

    Args:
        pool: Engine pool to borrow from
        body: Raw encoded body
        disable_compression: Compression switch from configuration

    Returns:
        Tuple of (wire_body, compressed)
    """
    if not should_compress(len(body), disable_compression):
        return body, False

    with pool.acquire() as engine:
        return gzip_with(engine, body), True
