import asyncio
import json
import socket

import pytest
import pytest_asyncio

from udpcorrelate import CorrelatingDatagramClient


def encode(request_id, **fields) -> bytes:
    """Build a JSON request payload"""
    return json.dumps({"id": request_id, **fields}).encode()


def has_id(request_id):
    return lambda msg: msg.get("id") == request_id


class EchoServerProtocol(asyncio.DatagramProtocol):
    """
    Loopback UDP echo server.

    - prefix: datagrams sent to the client before each echo
    - hold: collect this many requests, then echo them back in reverse order
    - silent: receive but never reply
    """

    def __init__(self):
        self.transport = None
        self.address = None
        self.received: list[bytes] = []
        self.prefix: list[bytes] = []
        self.hold = 0
        self.silent = False
        self._held = []

    def connection_made(self, transport):
        self.transport = transport
        self.address = transport.get_extra_info("sockname")

    def datagram_received(self, data, addr):
        self.received.append(data)
        if self.silent:
            return
        if self.hold:
            self._held.append((data, addr))
            if len(self._held) >= self.hold:
                for held_data, held_addr in reversed(self._held):
                    self.transport.sendto(held_data, held_addr)
                self._held.clear()
            return
        for extra in self.prefix:
            self.transport.sendto(extra, addr)
        self.transport.sendto(data, addr)


@pytest_asyncio.fixture
async def echo_server():
    loop = asyncio.get_running_loop()
    transport, protocol = await loop.create_datagram_endpoint(
        EchoServerProtocol,
        local_addr=("127.0.0.1", 0),
    )
    yield protocol
    transport.close()


@pytest_asyncio.fixture
async def client(echo_server):
    host, port = echo_server.address
    client = CorrelatingDatagramClient(host, port)
    yield client
    await client.close()


@pytest.fixture
def free_udp_port():
    """A loopback UDP port nothing is listening on"""
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
