"""Socket.IO to WebSocket bridge for Comar AIS units.

Performs the Engine.IO v4 polling handshake and probe upgrade against the
unit, answers its heartbeats, and relays ``vesselPositions-*`` events
verbatim to any number of local WebSocket clients.  The upstream side
reconnects forever with a fixed delay; local clients never notice.

Usage::

    from ais_bridge import AISBridge, BridgeConfig

    async with AISBridge(BridgeConfig(upstream_host="192.168.1.168")) as bridge:
        await bridge.wait_stopped()

Or from the shell::

    python -m ais_bridge --host 192.168.1.168 --port 8080
"""

from ._version import __version__
from .bridge import AISBridge
from .config import BridgeConfig
from .errors import (
    BridgeError,
    ConnectError,
    FrameParseError,
    HandshakeError,
    TransportError,
)
from .fanout import FanoutServer
from .handshake import HandshakeClient
from .protocol import classify, parse_event
from .supervisor import ReconnectSupervisor
from .types import BridgeState, BridgeStats, Frame, FrameKind
from .upstream import UpgradeNegotiator

__all__ = [
    "__version__",
    "AISBridge",
    "BridgeConfig",
    "BridgeState",
    "BridgeStats",
    "Frame",
    "FrameKind",
    "classify",
    "parse_event",
    "HandshakeClient",
    "UpgradeNegotiator",
    "ReconnectSupervisor",
    "FanoutServer",
    "BridgeError",
    "HandshakeError",
    "TransportError",
    "ConnectError",
    "FrameParseError",
]
