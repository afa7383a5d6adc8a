# =============================================================================
# AIS Bridge -- Frame Classifier
# =============================================================================
#
# Incoming (upstream -> bridge), first match wins:
#   3probe   upgrade acknowledgment       reply "5"
#   2        heartbeat ping               reply "3"
#   6        no-op
#   3        heartbeat pong
#   42[...]  application event [name, ...payload]
#   *        unclassified
# =============================================================================

from __future__ import annotations

import json
from typing import Any

from .constants import (
    PACKET_EVENT,
    PACKET_NOOP,
    PACKET_PING,
    PACKET_PONG,
    PACKET_UPGRADE,
    PROBE_ACK,
)
from .errors import FrameParseError
from .types import Frame, FrameKind

# Exact-match control frames
_CONTROL_FRAMES: dict[str, tuple[FrameKind, str | None]] = {
    PROBE_ACK: (FrameKind.UPGRADE_PROBE_ACK, PACKET_UPGRADE),
    PACKET_PING: (FrameKind.HEARTBEAT_PING, PACKET_PONG),
    PACKET_NOOP: (FrameKind.NOOP, None),
    PACKET_PONG: (FrameKind.HEARTBEAT_PONG, None),
}


def parse_event(raw: str) -> tuple[str, tuple[Any, ...]]:
    """Split a ``42[name, ...]`` frame into its name and payload.

    Raises:
        FrameParseError: If the body is not a JSON array starting with a
            string event name.
    """
    body = raw[len(PACKET_EVENT):]
    try:
        data = json.loads(body)
    except (ValueError, RecursionError) as exc:
        raise FrameParseError(f"Invalid event JSON: {exc}", raw) from exc

    if not isinstance(data, list):
        raise FrameParseError("Event body is not an array", raw)
    if not data:
        raise FrameParseError("Event array has no name", raw)
    name = data[0]
    if not isinstance(name, str):
        raise FrameParseError(f"Event name is not a string: {name!r}", raw)
    return name, tuple(data[1:])


def classify(raw: str) -> Frame:
    """Classify one upstream text frame.

    Never raises: a broken application event comes back as a
    ``MALFORMED`` frame carrying the parse error.
    """
    control = _CONTROL_FRAMES.get(raw)
    if control is not None:
        kind, reply = control
        return Frame(kind=kind, raw=raw, reply=reply)

    if raw.startswith(PACKET_EVENT):
        try:
            name, payload = parse_event(raw)
        except FrameParseError as exc:
            return Frame(kind=FrameKind.MALFORMED, raw=raw, error=str(exc))
        return Frame(
            kind=FrameKind.APPLICATION_EVENT,
            raw=raw,
            event=name,
            payload=payload,
        )

    return Frame(kind=FrameKind.UNCLASSIFIED, raw=raw)
