"""Wire body encoding and compression."""

from .compression import COMPRESSION_THRESHOLD, CompressorPool, GzipEngine, compress_body, gzip_with, should_compress
from .event_encoder import EVENT_SEPARATOR, decode_body, encode_event, encode_events

__all__ = [
    "EVENT_SEPARATOR",
    "encode_event",
    "encode_events",
    "decode_body",
    "COMPRESSION_THRESHOLD",
    "CompressorPool",
    "GzipEngine",
    "compress_body",
    "gzip_with",
    "should_compress",
]
