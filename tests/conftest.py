"""Shared fixtures: a local HEC endpoint that records requests."""

import gzip
import socket
import threading
from collections import deque
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, List, Optional

import pytest

from hec_exporter.config import ExporterConfig
from hec_exporter.encoder import decode_body


class RecordedRequest:
    """A request captured by the test endpoint."""

    def __init__(self, path: str, headers: Dict[str, str], body: bytes):
        self.path = path
        self.headers = headers
        self.body = body

    @property
    def compressed(self) -> bool:
        return self.headers.get("content-encoding") == "gzip"

    def raw_body(self) -> bytes:
        return gzip.decompress(self.body) if self.compressed else self.body

    def events(self) -> List[Any]:
        return decode_body(self.raw_body())


class HecTestServer:
    """Threaded HTTP server that plays back scripted status codes."""

    def __init__(self):
        self.requests: List[RecordedRequest] = []
        self.statuses: deque = deque()
        self.hold: Optional[threading.Event] = None
        self.received = threading.Event()
        self._lock = threading.Lock()

        server = self

        class Handler(BaseHTTPRequestHandler):
            def do_POST(self):
                length = int(self.headers.get("Content-Length", 0))
                body = self.rfile.read(length)
                headers = {k.lower(): v for k, v in self.headers.items()}
                status = server._record(RecordedRequest(self.path, headers, body))

                if server.hold is not None:
                    server.hold.wait(10)

                payload = b'{"text":"Success","code":0}' if status < 300 else b'{"text":"Failure"}'
                if status == 204:
                    payload = b""
                self.send_response(status)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(payload)))
                self.end_headers()
                self.wfile.write(payload)

            def log_message(self, format, *args):
                pass

        self._httpd = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self._httpd.daemon_threads = True
        self._thread = threading.Thread(target=self._httpd.serve_forever, daemon=True)

    @property
    def url(self) -> str:
        host, port = self._httpd.server_address[:2]
        return f"http://{host}:{port}/services/collector"

    def _record(self, request: RecordedRequest) -> int:
        with self._lock:
            self.requests.append(request)
            status = self.statuses.popleft() if self.statuses else 200
        self.received.set()
        return status

    def start(self) -> None:
        self._thread.start()

    def close(self) -> None:
        if self.hold is not None:
            self.hold.set()
        self._httpd.shutdown()
        self._httpd.server_close()


@pytest.fixture
def hec_server():
    server = HecTestServer()
    server.start()
    try:
        yield server
    finally:
        server.close()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("HEC_ENDPOINT", "HEC_TOKEN", "HEC_DISABLE_COMPRESSION", "HEC_MAX_CONTENT_LENGTH", "HEC_TIMEOUT", "HEC_INDEX"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config(hec_server) -> ExporterConfig:
    return ExporterConfig(endpoint=hec_server.url, token="00000000-0000-0000-0000-000000000000", host="test-host", timeout_seconds=5.0)


@pytest.fixture
def unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
