# =============================================================================
# AIS Bridge -- Error Types
# =============================================================================


class BridgeError(Exception):
    """Base exception for all bridge errors."""


class HandshakeError(BridgeError):
    """Polling handshake failed (bad response, HTTP error, network error)."""


class TransportError(BridgeError):
    """Upstream WebSocket failed mid-session or closed unexpectedly."""


class ConnectError(TransportError):
    """Upstream WebSocket could not be opened."""


class FrameParseError(BridgeError):
    """Application-event frame payload is not a ``[name, ...]`` JSON array."""

    def __init__(self, message: str, raw: str = "") -> None:
        self.raw = raw
        super().__init__(message)
