# =============================================================================
# AIS Bridge -- Upgrade Negotiator
# =============================================================================
#
# Opens the upstream WebSocket for a session and starts the probe upgrade.
# The 3probe -> 5 completion is handled by the classifier once frames flow.
# =============================================================================

from __future__ import annotations

import websockets.asyncio.client
from websockets.exceptions import ConnectionClosed

from ._logging import logger
from .config import BridgeConfig
from .constants import PROBE_REQUEST
from .errors import ConnectError


class UpgradeNegotiator:
    """Opens the persistent upstream connection for a session id."""

    def __init__(self, config: BridgeConfig) -> None:
        self._config = config

    async def open_upstream(
        self, sid: str
    ) -> websockets.asyncio.client.ClientConnection:
        """Connect with *sid* and send ``2probe``.

        Does not wait for the ``3probe`` acknowledgment.

        Raises:
            ConnectError: If the connection cannot be opened or the probe
                cannot be sent.
        """
        url = self._config.websocket_url(sid)
        logger.info("Connecting to upstream WebSocket: %s", url)
        try:
            ws = await websockets.asyncio.client.connect(url)
        except Exception as exc:
            raise ConnectError(f"Failed to connect: {exc}") from exc

        logger.info("WebSocket connected to AIS unit")
        try:
            await ws.send(PROBE_REQUEST)
        except ConnectionClosed as exc:
            await ws.close()
            raise ConnectError(f"Closed before probe: {exc}") from exc

        logger.debug("Sent probe (%s)", PROBE_REQUEST)
        return ws
