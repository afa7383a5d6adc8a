"""Shared fixtures for bridge tests."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ais_bridge.config import BridgeConfig

_CLOSE = object()


class FakeUpstream:
    """Stands in for a ``websockets`` client connection.

    Frames fed with :meth:`feed` come out of ``async for``; :meth:`drop`
    ends iteration cleanly (server close) or with an exception.
    """

    def __init__(self, *frames: str) -> None:
        self._queue: asyncio.Queue = asyncio.Queue()
        for frame in frames:
            self._queue.put_nowait(frame)
        self.sent: list[str] = []
        self.closed = False

    def feed(self, frame: str) -> None:
        self._queue.put_nowait(frame)

    def drop(self, error: BaseException | None = None) -> None:
        self._queue.put_nowait(error if error is not None else _CLOSE)

    async def send(self, data: str) -> None:
        self.sent.append(data)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(_CLOSE)

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self._queue.get()
        if item is _CLOSE:
            raise StopAsyncIteration
        if isinstance(item, BaseException):
            raise item
        return item


async def _wait_until(predicate, timeout: float = 1.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.005)


@pytest.fixture
def wait_until():
    return _wait_until


@pytest.fixture
def upstream_factory():
    return FakeUpstream


@pytest.fixture
def config():
    return BridgeConfig(
        upstream_host="ais.test",
        local_host="127.0.0.1",
        local_port=0,
        reconnect_delay=0.02,
    )


@pytest.fixture
def handshake():
    """Handshake mock issuing sid-1, sid-2, ... on successive calls."""
    hs = MagicMock()
    counter = {"n": 0}

    async def _obtain():
        counter["n"] += 1
        return f"sid-{counter['n']}"

    hs.obtain_session = AsyncMock(side_effect=_obtain)
    hs.confirm_session = AsyncMock()
    hs.aclose = AsyncMock()
    return hs


@pytest.fixture
def fanout_broadcast():
    """Replace the fan-out server's ``broadcast`` with a mock."""
    with patch("ais_bridge.fanout.broadcast") as mock:
        yield mock
