"""Newline-delimited JSON encoding of HEC events."""

from __future__ import annotations

import json
from typing import Any, Iterable

from ..core.errors import PermanentError
from ..core.events import HecEvent

EVENT_SEPARATOR = b"\r\n\r\n"


def encode_event(event: Any) -> bytes:
    """Serialize one event followed by the separator.

    Args:
        event: HecEvent or plain JSON-serializable dict

    Returns:
        Encoded bytes for this event

    Raises:
        PermanentError: If the event cannot be serialized
    """
    payload = event.to_dict() if isinstance(event, HecEvent) else event
    try:
        text = json.dumps(payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        # Lone surrogates survive json.dumps and only fail here
        data = text.encode("utf-8")
    except (TypeError, ValueError) as e:
        raise PermanentError(f"Failed to encode event: {e}") from e
    return data + EVENT_SEPARATOR


def encode_events(events: Iterable[Any]) -> bytes:
    """Serialize events, in order, into a single wire body.

    Nothing is returned unless every event encodes.

    Raises:
        PermanentError: If any event cannot be serialized
    """
    return b"".join([encode_event(event) for event in events])


def decode_body(body: bytes) -> list[Any]:
    """Split a wire body back into its JSON objects."""
    return [json.loads(part) for part in body.split(EVENT_SEPARATOR) if part.strip()]
