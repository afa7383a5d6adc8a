# =============================================================================
# AIS Bridge -- Reconnect Supervisor
# =============================================================================
#
# Owns the single upstream connection: handshake -> upgrade -> receive loop,
# and a fixed-delay reconnect whenever any stage fails or the socket drops.
# =============================================================================

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Any, Awaitable, Callable

from websockets.exceptions import ConnectionClosed

from ._logging import logger
from .constants import RECONNECT_DELAY
from .errors import BridgeError
from .protocol import classify
from .types import BridgeState, BridgeStats, Frame

if TYPE_CHECKING:
    from websockets.asyncio.client import ClientConnection

    from .handshake import HandshakeClient
    from .upstream import UpgradeNegotiator

FrameHandler = Callable[[Frame], Awaitable[Any]]


class ReconnectSupervisor:
    """Runs connection attempts and keeps the upstream alive forever.

    There is no attempt limit and no backoff: every failure waits
    ``reconnect_delay`` seconds and starts over with a fresh session.
    At most one attempt is in flight and at most one reconnect timer is
    armed at any time.

    Args:
        handshake: Polling handshake client.
        negotiator: Opens the upstream WebSocket for a session.
        reconnect_delay: Fixed wait between attempts, in seconds.
        on_frame: Awaited with every classified upstream frame.
        on_attempt: Awaited at the start of every attempt.  Must be
            idempotent.
        on_state_change: Called with the new state on every transition.
        stats: Counters to update; a private instance when omitted.
    """

    def __init__(
        self,
        handshake: HandshakeClient,
        negotiator: UpgradeNegotiator,
        *,
        reconnect_delay: float = RECONNECT_DELAY,
        on_frame: FrameHandler | None = None,
        on_attempt: Callable[[], Awaitable[Any]] | None = None,
        on_state_change: Callable[[BridgeState], Any] | None = None,
        stats: BridgeStats | None = None,
    ) -> None:
        self._handshake = handshake
        self._negotiator = negotiator
        self._reconnect_delay = reconnect_delay
        self._on_frame = on_frame
        self._on_attempt = on_attempt
        self._on_state_change = on_state_change
        self._stats = stats if stats is not None else BridgeStats()

        # State
        self._ws: ClientConnection | None = None
        self._sid: str | None = None
        self._state = BridgeState.IDLE
        self._is_connecting = False
        self._stopped = False

        # Tasks
        self._recv_task: asyncio.Task[None] | None = None
        self._reconnect_task: asyncio.Task[None] | None = None
        self._background_tasks: set[asyncio.Task[Any]] = set()

    def _fire_task(self, coro: Any) -> None:
        """Schedule a coroutine with a strong reference to prevent GC."""
        task = asyncio.ensure_future(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    # -- Properties -----------------------------------------------------------

    @property
    def state(self) -> BridgeState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._ws is not None and self._state == BridgeState.CONNECTED

    @property
    def session_id(self) -> str | None:
        return self._sid

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_task is not None and not self._reconnect_task.done()

    # -- Lifecycle ------------------------------------------------------------

    async def start(self) -> None:
        """Run the first attempt.  A failed attempt schedules a retry."""
        if self._stopped:
            raise BridgeError("Supervisor has been stopped")
        await self.connect()

    async def connect(self) -> bool:
        """Run one full attempt: session, confirm, upgrade.

        Returns True when the upstream connection is up.  Returns False
        without doing anything if an attempt is already running or a
        connection is already live.
        """
        if self._stopped or self._is_connecting or self._ws is not None:
            return False

        self._is_connecting = True
        self._stats.connect_attempts += 1
        self._set_state(BridgeState.CONNECTING)
        try:
            if self._on_attempt is not None:
                await self._on_attempt()
            sid = await self._handshake.obtain_session()
            await self._handshake.confirm_session(sid)
            ws = await self._negotiator.open_upstream(sid)
        except BridgeError as exc:
            logger.error("Connection attempt failed: %s", exc)
            self._set_state(BridgeState.DISCONNECTED)
            self._schedule_reconnect()
            return False
        except Exception:
            logger.exception("Connection attempt failed unexpectedly")
            self._set_state(BridgeState.DISCONNECTED)
            self._schedule_reconnect()
            return False
        finally:
            self._is_connecting = False

        if self._stopped:
            await ws.close()
            return False

        self._ws = ws
        self._sid = sid
        self._stats.connected_since = time.monotonic()
        self._set_state(BridgeState.CONNECTED)
        self._recv_task = asyncio.create_task(self._recv_loop(ws))
        return True

    async def stop(self) -> None:
        """Tear down the upstream side for good.  No reconnect follows."""
        self._stopped = True

        tasks_to_await: list[asyncio.Task[Any]] = []
        if self._reconnect_task:
            self._reconnect_task.cancel()
            tasks_to_await.append(self._reconnect_task)
            self._reconnect_task = None
        if self._recv_task:
            self._recv_task.cancel()
            tasks_to_await.append(self._recv_task)
            self._recv_task = None
        tasks_to_await.extend(self._background_tasks)
        if tasks_to_await:
            await asyncio.gather(*tasks_to_await, return_exceptions=True)

        ws = self._ws
        self._ws = None
        self._sid = None
        self._stats.connected_since = None
        if ws is not None:
            await ws.close()

        self._set_state(BridgeState.STOPPED)

    # -- Internal: receive loop -----------------------------------------------

    async def _recv_loop(self, ws: ClientConnection) -> None:
        """Read frames until the connection closes or fails."""
        error: BaseException | None = None
        try:
            async for message in ws:
                await self._handle_message(ws, message)
        except Exception as exc:
            error = exc

        if error is not None:
            logger.error("WebSocket error: %s", error)
            # Close explicitly so the failure is reported once
            self._fire_task(ws.close())
        else:
            logger.warning("WebSocket closed by AIS unit")
        self._handle_disconnect(ws)

    async def _handle_message(self, ws: ClientConnection, message: str | bytes) -> None:
        if isinstance(message, bytes):
            message = message.decode("utf-8", errors="replace")

        frame = classify(message)
        self._stats.frames_received += 1

        if frame.reply is not None:
            try:
                await ws.send(frame.reply)
                logger.debug("Replied %s to %s", frame.reply, frame.kind.value)
            except ConnectionClosed:
                logger.debug("Reply %s dropped: connection closed", frame.reply)

        if self._on_frame is not None:
            try:
                await self._on_frame(frame)
            except Exception:
                logger.exception("Frame handler failed for %r", frame.raw[:200])

    # -- Internal: reconnection -----------------------------------------------

    def _handle_disconnect(self, ws: ClientConnection) -> None:
        """React to close/error of *ws*.  Stale connections are ignored."""
        if ws is not self._ws:
            return
        self._ws = None
        self._sid = None
        self._recv_task = None
        self._stats.connected_since = None
        if self._stopped:
            return
        self._set_state(BridgeState.DISCONNECTED)
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        """Arm the reconnect timer unless one is already armed."""
        if self._stopped:
            return
        # The running attempt may arm its own successor
        current = asyncio.current_task()
        if self.reconnect_pending and self._reconnect_task is not current:
            logger.debug("Reconnect already scheduled")
            return

        logger.info("Reconnecting in %.1fs", self._reconnect_delay)
        self._reconnect_task = asyncio.ensure_future(
            self._reconnect_after(self._reconnect_delay)
        )

    async def _reconnect_after(self, delay: float) -> None:
        """Wait, then try to reconnect."""
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            return

        # Stays referenced while the attempt runs so stop() can cancel it
        self._stats.reconnect_count += 1
        try:
            await self.connect()
        finally:
            if self._reconnect_task is asyncio.current_task():
                self._reconnect_task = None

    # -- State management -----------------------------------------------------

    def _set_state(self, new_state: BridgeState) -> None:
        if new_state == self._state:
            return
        old = self._state
        self._state = new_state
        logger.debug("State: %s -> %s", old.value, new_state.value)
        if self._on_state_change:
            self._on_state_change(new_state)
