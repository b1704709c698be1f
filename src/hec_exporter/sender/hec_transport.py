"""HTTP transport for posting wire bodies to the HEC endpoint.

One call, one request, one classified outcome. The transport has no retry
logic: it reports what happened and leaves the decision to the caller.
"""

from __future__ import annotations

import socket
import threading
from http import HTTPStatus
from http.client import HTTPConnection, HTTPException, HTTPSConnection
from typing import Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import HTTPHandler, HTTPSHandler, Request, build_opener

from loguru import logger

from ..config.settings import ExporterConfig
from ..core.context import PushContext, background
from ..core.errors import ExporterError, PermanentError, TransportError


def status_text(status_code: int, fallback: str = "") -> str:
    """Return the standard reason phrase for a status code."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return fallback


def _drain(response) -> None:
    """Read and release the response body."""
    try:
        response.read()
    except (OSError, HTTPException) as e:
        logger.debug(f"Failed to drain response body: {e}")
    finally:
        response.close()


def _network_error(error: Exception, timeout: float) -> ExporterError:
    if isinstance(error, URLError):
        if isinstance(error.reason, ValueError):
            return PermanentError(f"Failed to build request: {error.reason}")
        return TransportError(f"Network error: {error.reason}")
    if isinstance(error, (socket.timeout, TimeoutError)):
        return TransportError(f"Request timed out after {timeout:.1f}s")
    return TransportError(f"Request error: {error}")


class _RequestAbort:
    """Shuts down the sockets of one request when its push is cancelled."""

    def __init__(self):
        self._lock = threading.Lock()
        self._connections: List[HTTPConnection] = []
        self.aborted = False

    def connection_class(self, base: type) -> type:
        """Subclass ``base`` so every connection it opens can be aborted."""
        abort = self

        class AbortableConnection(base):
            def connect(self):
                super().connect()
                abort._attach(self)

        return AbortableConnection

    def _attach(self, conn: HTTPConnection) -> None:
        with self._lock:
            self._connections.append(conn)
            aborted = self.aborted
        if aborted:
            _shutdown(conn)

    def abort(self) -> None:
        with self._lock:
            self.aborted = True
            connections = list(self._connections)
        for conn in connections:
            _shutdown(conn)


def _shutdown(conn: HTTPConnection) -> None:
    sock = conn.sock
    if sock is None:
        return
    try:
        # Wakes a read blocked in another thread, unlike close()
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as e:
        logger.debug(f"Socket already closed while aborting request: {e}")


class _AbortableHTTPHandler(HTTPHandler):
    def __init__(self, abort: _RequestAbort):
        super().__init__()
        self._connection = abort.connection_class(HTTPConnection)

    def http_open(self, req):
        return self.do_open(self._connection, req)


class _AbortableHTTPSHandler(HTTPSHandler):
    def __init__(self, abort: _RequestAbort):
        super().__init__()
        self._connection = abort.connection_class(HTTPSConnection)

    def https_open(self, req):
        return self.do_open(self._connection, req, context=self._context)


class HecTransport:
    """Posts encoded bodies to the configured HEC endpoint."""

    def __init__(self, config: ExporterConfig):
        """Initialize the transport.

        Args:
            config: Exporter configuration (endpoint, headers, timeout)
        """
        self.config = config
        self.url = config.endpoint
        self.headers: Dict[str, str] = config.build_headers()

    def build_request(self, body: bytes, compressed: bool) -> Request:
        """Build the POST request for a wire body.

        Raises:
            PermanentError: If the request cannot be constructed
        """
        headers = dict(self.headers)
        if compressed:
            headers["Content-Encoding"] = "gzip"
        try:
            return Request(self.url, data=body, headers=headers, method="POST")
        except (ValueError, TypeError) as e:
            raise PermanentError(f"Failed to build request: {e}") from e

    def post(self, body: bytes, compressed: bool, ctx: Optional[PushContext] = None) -> int:
        """Send one wire body.

        Args:
            body: Raw or gzip-compressed wire body
            compressed: Whether body is gzip-compressed
            ctx: Push context (cancellation and deadline)

        Returns:
            The 2xx status code returned by the endpoint

        Raises:
            PermanentError: If the request cannot be constructed
            TransportError: On network failure or non-2xx status
        """
        ctx = ctx or background()
        req = self.build_request(body, compressed)

        ctx.check()
        timeout = self.config.timeout_seconds
        remaining = ctx.remaining()
        if remaining is not None:
            timeout = min(timeout, remaining)

        abort = _RequestAbort()
        opener = build_opener(_AbortableHTTPHandler(abort), _AbortableHTTPSHandler(abort))
        unregister = ctx.on_cancel(abort.abort)
        try:
            response = opener.open(req, timeout=timeout)
        except HTTPError as e:
            _drain(e)
            raise TransportError.from_status(e.code, status_text(e.code, str(e.reason))) from e
        except (OSError, HTTPException) as e:
            if abort.aborted:
                raise TransportError("context cancelled") from e
            raise _network_error(e, timeout) from e
        except ValueError as e:
            raise PermanentError(f"Failed to build request: {e}") from e
        finally:
            unregister()

        status = response.status
        _drain(response)

        if ctx.cancelled:
            raise TransportError("context cancelled")

        # HEC accepts all 2XX codes
        if not 200 <= status < 300:
            raise TransportError.from_status(status, status_text(status, response.reason))

        logger.debug(f"Posted {len(body)} bytes (compressed={compressed}), status {status}")
        return status
