# =============================================================================
# AIS Bridge -- Local Fan-out Server
# =============================================================================
#
# Accepts local WebSocket subscribers and relays selected upstream frames
# to them verbatim.  Lives for the whole process; upstream reconnects never
# touch it.
# =============================================================================

from __future__ import annotations

from typing import Any

import websockets.asyncio.server
from websockets.asyncio.server import broadcast
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from ._logging import logger
from .constants import DEFAULT_LOCAL_HOST, DEFAULT_LOCAL_PORT


class FanoutServer:
    """Best-effort broadcast server for local subscribers.

    Args:
        host: Interface to bind.
        port: Port to listen on.  ``0`` picks a free port.
    """

    def __init__(
        self,
        host: str = DEFAULT_LOCAL_HOST,
        port: int = DEFAULT_LOCAL_PORT,
    ) -> None:
        self._host = host
        self._port = port
        self._server: websockets.asyncio.server.Server | None = None
        self._subscribers: set[Any] = set()

    # -- Properties -----------------------------------------------------------

    @property
    def is_serving(self) -> bool:
        return self._server is not None

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def port(self) -> int:
        """Bound port (the real one when started with ``port=0``)."""
        if self._server is not None:
            for sock in self._server.sockets:
                return sock.getsockname()[1]
        return self._port

    # -- Lifecycle ------------------------------------------------------------

    async def start(self) -> None:
        """Start listening.  No-op if already started."""
        if self._server is not None:
            return
        self._server = await websockets.asyncio.server.serve(
            self._handle_subscriber, self._host, self._port
        )
        logger.info(
            "Local WebSocket proxy running on ws://%s:%d", self._host, self.port
        )

    async def stop(self) -> None:
        """Close the listening socket and all subscriber connections."""
        server = self._server
        self._server = None
        if server is None:
            return
        server.close()
        await server.wait_closed()
        self._subscribers.clear()
        logger.info("Local WebSocket proxy stopped")

    # -- Subscribers ----------------------------------------------------------

    async def _handle_subscriber(
        self, websocket: websockets.asyncio.server.ServerConnection
    ) -> None:
        self.add_subscriber(websocket)
        try:
            # Subscribers have nothing to say; drain so close frames are seen
            async for _ in websocket:
                pass
        except ConnectionClosed:
            pass
        finally:
            self.remove_subscriber(websocket)

    def add_subscriber(self, websocket: Any) -> None:
        self._subscribers.add(websocket)
        logger.info("Local client connected (%d total)", len(self._subscribers))

    def remove_subscriber(self, websocket: Any) -> None:
        self._subscribers.discard(websocket)
        logger.info("Local client disconnected (%d total)", len(self._subscribers))

    # -- Forwarding -----------------------------------------------------------

    async def forward(self, text: str) -> int:
        """Send *text* to every open subscriber without waiting on any of them.

        Subscribers that are not open are skipped.  Frames are queued on
        each connection's transport, so a subscriber that stops reading
        never holds up the others or the caller.  Returns the number of
        subscribers the frame was queued for.
        """
        targets = [ws for ws in self._subscribers if ws.state is State.OPEN]
        if not targets:
            return 0
        try:
            broadcast(targets, text, raise_exceptions=True)
        except ExceptionGroup as group:
            # Reaped by their own close handlers
            for exc in group.exceptions:
                logger.debug("Forward skipped: %s", exc)
            return len(targets) - len(group.exceptions)
        return len(targets)
