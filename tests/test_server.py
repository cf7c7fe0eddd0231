import asyncio
import socket

import pytest

from fpsengine.server import (
    MAX_PLAYERS,
    RECEIVE_BUFFER,
    UPDATE_PAYLOAD,
    GameServer,
    GameUpdate,
    PlayerState,
    main,
    serve,
)


class FakeTransport:
    def __init__(self):
        self.sent = []
        self.closed = False

    def sendto(self, data, addr):
        self.sent.append((data, addr))

    def close(self):
        self.closed = True

    def is_closing(self):
        return self.closed


def free_udp_port():
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def test_payload_is_null_terminated():
    assert UPDATE_PAYLOAD.endswith(b"\x00")


def test_game_update_limits_players():
    with pytest.raises(ValueError):
        GameUpdate(my_id=0, players=[PlayerState(id=i) for i in range(MAX_PLAYERS + 1)])


def test_game_update_rejects_negative_enemies():
    with pytest.raises(ValueError):
        GameUpdate(my_id=0, num_enemies=-1)


def test_game_update_keeps_players():
    players = [PlayerState(id=i) for i in range(MAX_PLAYERS)]
    update = GameUpdate(my_id=3, players=players, num_enemies=2)
    assert [p.id for p in update.players] == list(range(MAX_PLAYERS))
    assert update.my_id == 3


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        GameServer(interval=0)


@pytest.mark.asyncio
async def test_new_client_receives_updates():
    server = GameServer(port=7000, interval=0.001)
    transport = FakeTransport()
    server.connection_made(transport)
    server.datagram_received(b"join", ("10.0.0.1", 5555))
    await asyncio.sleep(0.05)
    server.close()
    assert transport.sent
    assert all(data == UPDATE_PAYLOAD for data, _ in transport.sent)
    assert all(addr == ("10.0.0.1", 7000) for _, addr in transport.sent)
    assert transport.closed is True


@pytest.mark.asyncio
async def test_first_datagram_registers_later_ones_are_handled():
    server = GameServer(interval=1.0)
    server.connection_made(FakeTransport())
    server.datagram_received(b"join", ("10.0.0.1", 5555))
    assert server.players["10.0.0.1"].messages == 0
    server.datagram_received(b"move", ("10.0.0.1", 6000))
    server.close()
    assert server.players["10.0.0.1"].messages == 1
    assert server.players["10.0.0.1"].last_message == b"move"
    assert len(server.players) == 1


@pytest.mark.asyncio
async def test_players_get_distinct_ids():
    server = GameServer(interval=1.0)
    server.connection_made(FakeTransport())
    server.datagram_received(b"a", ("10.0.0.1", 1))
    server.datagram_received(b"b", ("10.0.0.2", 1))
    server.close()
    ids = [p.id for p in server.players.values()]
    assert len(set(ids)) == 2
    assert sorted(ids) == [0, 1]


@pytest.mark.asyncio
async def test_long_datagrams_are_truncated():
    server = GameServer(interval=1.0)
    server.connection_made(FakeTransport())
    server.datagram_received(b"a", ("10.0.0.1", 1))
    server.datagram_received(b"x" * (RECEIVE_BUFFER * 2), ("10.0.0.1", 1))
    server.close()
    assert len(server.players["10.0.0.1"].last_message) == RECEIVE_BUFFER


@pytest.mark.asyncio
async def test_close_stops_updates():
    server = GameServer(interval=0.001)
    transport = FakeTransport()
    server.connection_made(transport)
    server.datagram_received(b"join", ("10.0.0.1", 1))
    server.close()
    count = len(transport.sent)
    await asyncio.sleep(0.02)
    assert len(transport.sent) == count


@pytest.mark.asyncio
async def test_serve_registers_real_client():
    port = free_udp_port()
    server = await serve("127.0.0.1", port, 0.005)
    loop = asyncio.get_running_loop()
    client, _ = await loop.create_datagram_endpoint(
        asyncio.DatagramProtocol, remote_addr=("127.0.0.1", port)
    )
    try:
        client.sendto(b"join")
        for _ in range(200):
            if "127.0.0.1" in server.players:
                break
            await asyncio.sleep(0.005)
    finally:
        client.close()
        server.close()
    assert "127.0.0.1" in server.players
    assert server.players["127.0.0.1"].id == 0


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit):
        main(["--port", "not-a-port"])