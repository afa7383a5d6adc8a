# =============================================================================
# AIS Bridge -- Configuration
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field

from .constants import (
    DEFAULT_LOCAL_HOST,
    DEFAULT_LOCAL_PORT,
    DEFAULT_UPSTREAM_HOST,
    ENGINE_IO_VERSION,
    FORWARDED_EVENTS,
    QUIET_EVENTS,
    RECONNECT_DELAY,
    REFERER_PATH,
    SOCKET_PATH,
    USER_AGENT,
)


@dataclass
class BridgeConfig:
    """Bridge configuration.

    Attributes:
        upstream_host: Host (optionally ``host:port``) of the AIS unit.
        local_host: Interface the local fan-out server binds to.
        local_port: Port the local fan-out server listens on.
        reconnect_delay: Fixed wait in seconds between reconnect attempts.
        forwarded_events: Event names relayed to local subscribers.
        quiet_events: Event names not logged per message.
        user_agent: ``User-Agent`` header sent during the polling handshake.
    """

    upstream_host: str = DEFAULT_UPSTREAM_HOST
    local_host: str = DEFAULT_LOCAL_HOST
    local_port: int = DEFAULT_LOCAL_PORT
    reconnect_delay: float = RECONNECT_DELAY
    forwarded_events: frozenset[str] = field(default=FORWARDED_EVENTS)
    quiet_events: frozenset[str] = field(default=QUIET_EVENTS)
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        if self.reconnect_delay < 0:
            raise ValueError("reconnect_delay must be >= 0")
        self.forwarded_events = frozenset(self.forwarded_events)
        self.quiet_events = frozenset(self.quiet_events)

    @property
    def http_base(self) -> str:
        return f"http://{self.upstream_host}"

    @property
    def polling_url(self) -> str:
        """Polling endpoint without query parameters."""
        return f"{self.http_base}{SOCKET_PATH}"

    @property
    def referer(self) -> str:
        return f"{self.http_base}{REFERER_PATH}"

    def websocket_url(self, sid: str) -> str:
        """Upstream WebSocket URL bound to a session identifier."""
        return (
            f"ws://{self.upstream_host}{SOCKET_PATH}"
            f"?EIO={ENGINE_IO_VERSION}&transport=websocket&sid={sid}"
        )
