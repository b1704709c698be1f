"""Tests for event encoding and the compression decision."""

import gzip
import threading

import pytest
from loguru import logger

from hec_exporter.core import HecEvent, PermanentError
from hec_exporter.encoder import COMPRESSION_THRESHOLD, CompressorPool, compress_body, decode_body, encode_event, encode_events, should_compress


def test_encode_events_framing():
    """Each event is one JSON object followed by two CRLFs, in input order."""
    events = [HecEvent(event={"n": i}, time=1600000000.5, host="h", source="s", sourcetype="st") for i in range(3)]

    body = encode_events(events)

    assert body.count(b"\r\n\r\n") == 3
    assert body.endswith(b"\r\n\r\n")
    assert body.startswith(b'{"time":1600000000.5,"host":"h","source":"s","sourcetype":"st","event":{"n":0}}\r\n\r\n')
    logger.info("✓ Events framed with CRLF separators")


def test_round_trip_preserves_order():
    """Decoding a wire body yields the original ordered events."""
    events = [HecEvent(event=f"line {i}", index="main", fields={"k": i}) for i in range(50)]

    body = encode_events(events)
    wire, compressed = compress_body(CompressorPool(), body, disable_compression=False)

    assert compressed
    decoded = decode_body(gzip.decompress(wire))
    assert decoded == [e.to_dict() for e in events]


def test_unset_fields_are_omitted():
    data = HecEvent(event="x").to_dict()
    assert data == {"event": "x"}


@pytest.mark.parametrize("payload", [{"bad": {1, 2}}, {"nan": float("nan")}, {"obj": object()}, {"surrogate": "\ud800"}])
def test_unserializable_event_is_permanent(payload):
    """Serialization failures are data defects and never retryable."""
    events = [HecEvent(event="ok"), HecEvent(event=payload)]

    with pytest.raises(PermanentError) as exc_info:
        encode_events(events)

    assert not exc_info.value.retryable


def test_encode_event_accepts_plain_dicts():
    assert encode_event({"event": "x"}) == b'{"event":"x"}\r\n\r\n'


def test_threshold_boundary():
    """A body of exactly 1500 bytes is never compressed; 1501 is."""
    pool = CompressorPool()

    exact = b"a" * COMPRESSION_THRESHOLD
    over = b"a" * (COMPRESSION_THRESHOLD + 1)

    assert compress_body(pool, exact, disable_compression=False) == (exact, False)

    wire, compressed = compress_body(pool, over, disable_compression=False)
    assert compressed
    assert gzip.decompress(wire) == over

    assert compress_body(pool, over, disable_compression=True) == (over, False)
    assert not should_compress(0, False)
    logger.info("✓ Compression threshold honored")


def test_metrics_scenario_2000_byte_body_is_gzipped():
    body = b"x" * 2000
    wire, compressed = compress_body(CompressorPool(), body, disable_compression=False)

    assert compressed
    assert wire[:2] == b"\x1f\x8b"
    assert gzip.decompress(wire) == body


def test_pool_reuses_engines():
    """Engines are returned after use and reset before the next borrower."""
    pool = CompressorPool(max_idle=2)

    for i in range(5):
        body = bytes([65 + i]) * 3000
        wire, _ = compress_body(pool, body, disable_compression=False)
        assert gzip.decompress(wire) == body

    assert pool.created_count() == 1
    assert pool.idle_count() == 1


def test_pool_returns_engine_on_failure():
    pool = CompressorPool()

    with pytest.raises(RuntimeError):
        with pool.acquire() as engine:
            engine.write(b"partial")
            raise RuntimeError("boom")

    assert pool.idle_count() == 1
    with pool.acquire() as engine:
        engine.write(b"fresh")
        assert gzip.decompress(engine.finish()) == b"fresh"


def test_pool_concurrent_borrowers():
    pool = CompressorPool(max_idle=4)
    errors = []

    def worker(seed):
        try:
            for i in range(20):
                body = f"{seed}-{i}-".encode() * 400
                wire, compressed = compress_body(pool, body, disable_compression=False)
                assert compressed
                assert gzip.decompress(wire) == body
        except AssertionError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert not errors
    assert pool.idle_count() <= 4
