# =============================================================================
# AIS Bridge -- Type Definitions
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class BridgeState(str, Enum):
    """Upstream connection lifecycle state.

    Typical flow: IDLE -> CONNECTING -> CONNECTED -> DISCONNECTED ->
    CONNECTING -> ...  There is no terminal state other than STOPPED,
    which is only entered on an explicit shutdown.
    """

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    STOPPED = "stopped"


class FrameKind(str, Enum):
    """Classification of a text frame received from upstream."""

    HEARTBEAT_PING = "heartbeat-ping"
    HEARTBEAT_PONG = "heartbeat-pong"
    NOOP = "no-op"
    UPGRADE_PROBE_ACK = "upgrade-probe-ack"
    APPLICATION_EVENT = "application-event"
    MALFORMED = "malformed"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True, slots=True)
class Frame:
    """A classified upstream frame.

    Attributes:
        kind: What the frame is.
        raw: The original frame text, exactly as received.
        event: Event name for ``APPLICATION_EVENT`` frames.
        payload: Remaining array elements for ``APPLICATION_EVENT`` frames.
        reply: Text that must be sent back upstream, if any.
        error: Parse failure message for ``MALFORMED`` frames.
    """

    kind: FrameKind
    raw: str
    event: str | None = None
    payload: tuple[Any, ...] = ()
    reply: str | None = None
    error: str | None = None

    @property
    def is_event(self) -> bool:
        return self.kind is FrameKind.APPLICATION_EVENT


@dataclass
class BridgeStats:
    """Counters for a running bridge."""

    frames_received: int = 0
    events_received: int = 0
    events_forwarded: int = 0
    deliveries: int = 0
    malformed_frames: int = 0
    connect_attempts: int = 0
    reconnect_count: int = 0
    subscribers: int = 0
    connected_since: float | None = None
