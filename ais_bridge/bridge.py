# =============================================================================
# AIS Bridge -- Bridge
# =============================================================================
#
# Wires the handshake, upgrade negotiator, supervisor and fan-out server
# together and decides which upstream events reach local subscribers.
# =============================================================================

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from ._logging import logger
from .config import BridgeConfig
from .fanout import FanoutServer
from .handshake import HandshakeClient
from .supervisor import ReconnectSupervisor
from .types import BridgeState, BridgeStats, Frame, FrameKind
from .upstream import UpgradeNegotiator


class AISBridge:
    """Relays selected AIS events from the upstream unit to local clients.

    Args:
        config: Bridge configuration.  Defaults to :class:`BridgeConfig`.
        http: Optional ``httpx.AsyncClient`` for the polling handshake.

    Example::

        async with AISBridge(BridgeConfig(upstream_host="10.0.0.5")) as bridge:
            await bridge.wait_stopped()
    """

    def __init__(
        self,
        config: BridgeConfig | None = None,
        *,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or BridgeConfig()
        self._stats = BridgeStats()
        self._stop_event = asyncio.Event()

        self._fanout = FanoutServer(self._config.local_host, self._config.local_port)
        self._handshake = HandshakeClient(self._config, http=http)
        self._negotiator = UpgradeNegotiator(self._config)
        self._supervisor = ReconnectSupervisor(
            self._handshake,
            self._negotiator,
            reconnect_delay=self._config.reconnect_delay,
            on_frame=self.handle_frame,
            on_attempt=self._fanout.start,
            stats=self._stats,
        )

    # -- Properties -----------------------------------------------------------

    @property
    def config(self) -> BridgeConfig:
        return self._config

    @property
    def state(self) -> BridgeState:
        return self._supervisor.state

    @property
    def fanout(self) -> FanoutServer:
        return self._fanout

    @property
    def supervisor(self) -> ReconnectSupervisor:
        return self._supervisor

    @property
    def stats(self) -> BridgeStats:
        self._stats.subscribers = self._fanout.subscriber_count
        return self._stats

    # -- Lifecycle ------------------------------------------------------------

    async def start(self) -> None:
        """Start the local server, then the first upstream attempt."""
        await self._fanout.start()
        await self._supervisor.start()

    async def stop(self) -> None:
        """Stop upstream and local sides.  Safe to call more than once."""
        await self._supervisor.stop()
        await self._fanout.stop()
        await self._handshake.aclose()
        self._stop_event.set()

    async def wait_stopped(self) -> None:
        await self._stop_event.wait()

    async def run_forever(self) -> None:
        """Start and run until :meth:`stop` is called."""
        await self.start()
        try:
            await self.wait_stopped()
        finally:
            await self.stop()

    async def __aenter__(self) -> AISBridge:
        await self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

    # -- Frame routing --------------------------------------------------------

    async def handle_frame(self, frame: Frame) -> None:
        """Log *frame* and forward it when it is an allow-listed event."""
        if frame.kind is FrameKind.APPLICATION_EVENT:
            self._stats.events_received += 1
            if frame.event not in self._config.quiet_events:
                logger.info("AIS message: %s", frame.raw)
            if frame.event in self._config.forwarded_events:
                delivered = await self._fanout.forward(frame.raw)
                self._stats.events_forwarded += 1
                self._stats.deliveries += delivered
            return

        if frame.kind is FrameKind.MALFORMED:
            self._stats.malformed_frames += 1
            logger.warning("Failed to parse Socket.IO event: %s", frame.error)
        elif frame.kind is FrameKind.UNCLASSIFIED:
            logger.info("AIS non-event message: %s", frame.raw)
        else:
            logger.debug("Control frame: %s", frame.kind.value)
