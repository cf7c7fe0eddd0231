"""UDP game server: registers clients and streams periodic updates back to them."""

from __future__ import annotations

import argparse
import asyncio
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any

from .transform import Transform

log = logging.getLogger(__name__)

DEFAULT_PORT = 6969
UPDATE_INTERVAL = 0.01
MAX_PLAYERS = 10
RECEIVE_BUFFER = 2048
UPDATE_PAYLOAD = b"fucking hell\x00"


@dataclass
class PlayerState:
    """What the server knows about one connected client."""

    id: int = 0
    transform: Transform = field(default_factory=Transform)
    messages: int = 0
    last_message: bytes = b""


@dataclass
class GameUpdate:
    """The state of the game as sent to one client."""

    my_id: int
    players: list[PlayerState] = field(default_factory=list)
    num_enemies: int = 0

    def __post_init__(self) -> None:
        if len(self.players) > MAX_PLAYERS:
            raise ValueError(f"an update holds at most {MAX_PLAYERS} players")
        if self.num_enemies < 0:
            raise ValueError("number of enemies cannot be negative")


class GameServer(asyncio.DatagramProtocol):
    """Registers each new client address and sends it updates at a fixed rate."""

    def __init__(self, port: int = DEFAULT_PORT, interval: float = UPDATE_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError("update interval must be positive")
        self.port = port
        self.interval = interval
        self.players: dict[str, PlayerState] = {}
        self.transport: Any = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._ids = itertools.count()

    def connection_made(self, transport: Any) -> None:
        self.transport = transport

    def datagram_received(self, data: bytes, addr: tuple[Any, ...]) -> None:
        data = data[:RECEIVE_BUFFER]
        host = addr[0]
        if host in self.players:
            self.handle_message(data, addr)
            return
        self.players[host] = PlayerState(id=next(self._ids))
        log.info("player %d joined from %s", self.players[host].id, host)
        task = asyncio.get_running_loop().create_task(self._send_updates(host))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def error_received(self, exc: Exception) -> None:
        log.warning("datagram error: %s", exc)

    def handle_message(self, data: bytes, addr: tuple[Any, ...]) -> None:
        """Record a message from a registered client."""
        player = self.players[addr[0]]
        player.messages += 1
        player.last_message = bytes(data)

    async def _send_updates(self, host: str) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self.transport is None or self.transport.is_closing():
                return
            self.transport.sendto(UPDATE_PAYLOAD, (host, self.port))

    def close(self) -> None:
        """Stop all update streams and release the socket."""
        for task in list(self._tasks):
            task.cancel()
        if self.transport is not None:
            self.transport.close()


async def serve(
    host: str = "0.0.0.0", port: int = DEFAULT_PORT, interval: float = UPDATE_INTERVAL
) -> GameServer:
    """Bind a game server to ``host``:``port`` on the running loop and return it."""
    loop = asyncio.get_running_loop()
    server = GameServer(port, interval)
    await loop.create_datagram_endpoint(lambda: server, local_addr=(host, port))
    return server


async def _run(host: str, port: int, interval: float) -> None:
    server = await serve(host, port, interval)
    try:
        await asyncio.Future()
    finally:
        server.close()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run the UDP game server.")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--interval", type=float, default=UPDATE_INTERVAL)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO)
    try:
        asyncio.run(_run(args.host, args.port, args.interval))
    except KeyboardInterrupt:
        pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())