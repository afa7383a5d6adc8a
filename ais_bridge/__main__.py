"""Command-line entry point.

    python -m ais_bridge --host 192.168.1.168 --port 8080
"""

import argparse
import asyncio
import logging
import signal

from .bridge import AISBridge
from .config import BridgeConfig
from .constants import (
    DEFAULT_LOCAL_HOST,
    DEFAULT_LOCAL_PORT,
    DEFAULT_UPSTREAM_HOST,
    RECONNECT_DELAY,
)


async def run(config: BridgeConfig) -> None:
    bridge = AISBridge(config)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, lambda: asyncio.ensure_future(bridge.stop()))
    await bridge.run_forever()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ais-bridge",
        description="Relay AIS vessel position events to local WebSocket clients",
    )
    parser.add_argument("--host", default=DEFAULT_UPSTREAM_HOST, help="AIS unit host")
    parser.add_argument("--local-host", default=DEFAULT_LOCAL_HOST)
    parser.add_argument("--port", type=int, default=DEFAULT_LOCAL_PORT, help="Local port")
    parser.add_argument(
        "--reconnect-delay",
        type=float,
        default=RECONNECT_DELAY,
        help=f"Seconds between reconnect attempts (default: {RECONNECT_DELAY})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    )
    config = BridgeConfig(
        upstream_host=args.host,
        local_host=args.local_host,
        local_port=args.port,
        reconnect_delay=args.reconnect_delay,
    )
    asyncio.run(run(config))


if __name__ == "__main__":
    main()
