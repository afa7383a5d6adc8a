"""Tests for frame routing and the bridge lifecycle."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from websockets.protocol import State

from ais_bridge.bridge import AISBridge
from ais_bridge.protocol import classify
from ais_bridge.types import BridgeState

UPDATE = '42["vesselPositions-update",{"mmsi":257000000,"sog":12.3}]'
INIT = '42["vesselPositions-init",[{"mmsi":257000000}]]'
STATS = '42["realtimeStats-counters",{"total":812}]'


def _subscriber(state: State = State.OPEN) -> MagicMock:
    ws = MagicMock()
    ws.state = state
    return ws


@pytest.fixture
def bridge(config):
    return AISBridge(config)


class TestRouting:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", [UPDATE, INIT])
    async def test_allowed_events_forwarded_verbatim(self, bridge, fanout_broadcast, raw):
        open_ws, closed_ws = _subscriber(), _subscriber(State.CLOSED)
        bridge.fanout.add_subscriber(open_ws)
        bridge.fanout.add_subscriber(closed_ws)

        await bridge.handle_frame(classify(raw))

        fanout_broadcast.assert_called_once_with([open_ws], raw, raise_exceptions=True)
        assert bridge.stats.events_forwarded == 1
        assert bridge.stats.deliveries == 1

    @pytest.mark.asyncio
    async def test_other_events_not_forwarded(self, bridge, fanout_broadcast):
        ws = _subscriber()
        bridge.fanout.add_subscriber(ws)

        await bridge.handle_frame(classify(STATS))

        fanout_broadcast.assert_not_called()
        assert bridge.stats.events_received == 1
        assert bridge.stats.events_forwarded == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["2", "3", "6", "3probe", "42not-json", "1"])
    async def test_non_events_never_forwarded(self, bridge, fanout_broadcast, raw):
        ws = _subscriber()
        bridge.fanout.add_subscriber(ws)
        await bridge.handle_frame(classify(raw))
        fanout_broadcast.assert_not_called()

    @pytest.mark.asyncio
    async def test_malformed_counted(self, bridge):
        await bridge.handle_frame(classify("42not-json"))
        assert bridge.stats.malformed_frames == 1

    @pytest.mark.asyncio
    async def test_quiet_events_not_logged(self, bridge, caplog):
        caplog.set_level("INFO", logger="ais_bridge")
        await bridge.handle_frame(classify(STATS))
        await bridge.handle_frame(classify(UPDATE))
        await bridge.handle_frame(classify(INIT))
        messages = [r.getMessage() for r in caplog.records]
        assert not any("realtimeStats-counters" in m for m in messages)
        assert not any("vesselPositions-update" in m for m in messages)
        assert any("vesselPositions-init" in m for m in messages)

    @pytest.mark.asyncio
    async def test_malformed_logged_as_warning(self, bridge, caplog):
        caplog.set_level("WARNING", logger="ais_bridge")
        await bridge.handle_frame(classify("42not-json"))
        assert any(r.levelname == "WARNING" for r in caplog.records)


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_reconnect_leaves_subscribers_alone(
        self, bridge, handshake, upstream_factory, wait_until, fanout_broadcast
    ):
        first, second = upstream_factory(), upstream_factory()
        bridge.supervisor._handshake = handshake
        bridge.supervisor._negotiator = MagicMock()
        bridge.supervisor._negotiator.open_upstream = AsyncMock(
            side_effect=[first, second]
        )

        await bridge.start()
        try:
            server = bridge.fanout._server
            ws = _subscriber()
            bridge.fanout.add_subscriber(ws)

            first.drop()
            await wait_until(lambda: bridge.supervisor.session_id == "sid-2")

            assert bridge.state == BridgeState.CONNECTED
            assert bridge.fanout._server is server
            assert bridge.fanout.subscriber_count == 1

            second.feed(UPDATE)
            await wait_until(lambda: fanout_broadcast.call_count == 1)
            fanout_broadcast.assert_called_once_with([ws], UPDATE, raise_exceptions=True)
        finally:
            await bridge.stop()

        assert bridge.state == BridgeState.STOPPED
        assert not bridge.fanout.is_serving

    @pytest.mark.asyncio
    async def test_context_manager_stops(self, config, handshake, upstream_factory):
        bridge = AISBridge(config)
        bridge.supervisor._handshake = handshake
        bridge.supervisor._negotiator = MagicMock()
        bridge.supervisor._negotiator.open_upstream = AsyncMock(
            return_value=upstream_factory()
        )
        async with bridge:
            assert bridge.supervisor.is_connected
            assert bridge.fanout.is_serving
        assert bridge.state == BridgeState.STOPPED
        await bridge.wait_stopped()

    @pytest.mark.asyncio
    async def test_stop_twice(self, bridge, handshake, upstream_factory):
        bridge.supervisor._handshake = handshake
        bridge.supervisor._negotiator = MagicMock()
        bridge.supervisor._negotiator.open_upstream = AsyncMock(
            return_value=upstream_factory()
        )
        await bridge.start()
        await bridge.stop()
        await bridge.stop()
        assert bridge.state == BridgeState.STOPPED
