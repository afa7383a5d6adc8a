"""Local subscriber for the AIS bridge.

Connects to the bridge's fan-out port and prints every vessel position
event it relays.  Frames arrive in Socket.IO wire format (``42[...]``).

    python -m ais_bridge --host 192.168.1.168
    python examples/subscriber.py --url ws://localhost:8080
"""

import argparse
import asyncio
import json
import signal

import websockets


async def main(url: str):
    stop = asyncio.Event()
    loop = asyncio.get_event_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    async with websockets.connect(url) as ws:
        print(f"Connected to {url}")
        print("Listening for vessel positions... (Ctrl+C to stop)\n")

        async for message in ws:
            name, *payload = json.loads(message[2:])
            print(f"[{name}] {payload}")

            if stop.is_set():
                break


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="AIS bridge subscriber")
    parser.add_argument("--url", default="ws://localhost:8080")
    args = parser.parse_args()

    asyncio.run(main(args.url))
