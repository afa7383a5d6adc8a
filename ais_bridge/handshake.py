# =============================================================================
# AIS Bridge -- Polling Handshake
# =============================================================================
#
# Two-phase Engine.IO session negotiation over HTTP long-polling:
#   GET  ?EIO=4&transport=polling&t=<ts>   -> 0{"sid": ...}
#   POST ?EIO=4&transport=polling&sid=<id> <- 40
# =============================================================================

from __future__ import annotations

import json
import time

import httpx

from ._logging import logger
from .config import BridgeConfig
from .constants import ENGINE_IO_VERSION, PACKET_CONNECT, PACKET_OPEN
from .errors import HandshakeError


def parse_open_packet(body: str) -> str:
    """Extract the session id from an Engine.IO open packet (``0{...}``).

    Raises:
        HandshakeError: If *body* is not an open packet carrying a ``sid``.
    """
    if not isinstance(body, str) or not body.startswith(PACKET_OPEN + "{"):
        raise HandshakeError(f"Unexpected response from polling: {body!r:.200}")
    try:
        data = json.loads(body[len(PACKET_OPEN):])
    except (ValueError, RecursionError) as exc:
        raise HandshakeError(f"Open packet is not valid JSON: {exc}") from exc

    sid = data.get("sid") if isinstance(data, dict) else None
    if not isinstance(sid, str) or not sid:
        raise HandshakeError("Open packet has no sid")
    return sid


class HandshakeClient:
    """Obtains and confirms a fresh upstream session.

    No retries happen here; a failed call raises :class:`HandshakeError`
    and the supervisor decides when to try again.

    Args:
        config: Bridge configuration (upstream host, user agent).
        http: Optional ``httpx.AsyncClient``.  When omitted the client is
            created on first use and closed by :meth:`aclose`.
    """

    def __init__(
        self,
        config: BridgeConfig,
        *,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config
        self._http = http
        self._owns_http = http is None
        self._closed = False

    def _client(self) -> httpx.AsyncClient:
        if self._closed:
            raise HandshakeError("Handshake client is closed")
        if self._http is None:
            self._http = httpx.AsyncClient()
        return self._http

    async def obtain_session(self) -> str:
        """GET the polling endpoint and return the issued ``sid``."""
        logger.info("Requesting SID via polling...")
        params = {
            "EIO": ENGINE_IO_VERSION,
            "transport": "polling",
            "t": int(time.time() * 1000),
        }
        headers = {
            "Accept": "*/*",
            "User-Agent": self._config.user_agent,
            "Referer": self._config.referer,
        }
        try:
            resp = await self._client().get(
                self._config.polling_url, params=params, headers=headers
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise HandshakeError(f"Polling request failed: {exc}") from exc

        sid = parse_open_packet(resp.text)
        logger.info("Got SID: %s", sid)
        return sid

    async def confirm_session(self, sid: str) -> None:
        """POST the ``40`` connect packet for *sid*."""
        params = {
            "EIO": ENGINE_IO_VERSION,
            "transport": "polling",
            "sid": sid,
        }
        headers = {
            "Content-Type": "text/plain",
            "User-Agent": self._config.user_agent,
        }
        try:
            resp = await self._client().post(
                self._config.polling_url,
                params=params,
                content=PACKET_CONNECT,
                headers=headers,
            )
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise HandshakeError(f"Connect packet failed: {exc}") from exc

        logger.info('Sent Socket.IO "40" connect packet')

    async def aclose(self) -> None:
        self._closed = True
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None
