"""
Correlating UDP client.

This module sends datagrams to a single remote endpoint and waits for the
matching response using asyncio. Because UDP responses may arrive in any
order (or not at all), each request supplies a parse function and a match
predicate, and resolves with the first inbound datagram that satisfies both.

Terms:
- Request = A datagram sent by the client to the server
- Response = An inbound datagram that matches a request
- Listener = A per-request callback that sees every inbound datagram

Example usage:
async def main():
    async with CorrelatingDatagramClient("192.0.2.10", 9999) as client:
        reply = await client.send(
            b'{"id": 1}',
            parse=json.loads,
            match=lambda msg: msg["id"] == 1,
            timeout=2.0,
        )
        print("Reply:", reply)

asyncio.run(main())
"""

import asyncio
import socket
import logging
import time
from typing import Callable, Optional, Self, Tuple, TypeVar, TYPE_CHECKING
from colorama import Fore, Style

from ..exceptions import UdpTransportError, UdpConnectionError, UdpTimeoutError, UdpClosedError
from ..utils import reuse_pending

if TYPE_CHECKING:
    from ..config import ClientConfig

T = TypeVar("T")

Listener = Callable[[bytes, Tuple[str, int]], None]

# Constants
class ClientConst:
    """Constants for the CorrelatingDatagramClient"""
    DEFAULT_TIMEOUT = 5.0

# Protocol classes
class DatagramDispatchProtocol(asyncio.DatagramProtocol):
    """Broadcasts every inbound datagram to all registered listeners"""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)
        self.transport: Optional[asyncio.DatagramTransport] = None
        self._listeners: list[Listener] = []
        self._closed: Optional[asyncio.Future] = None
        self._sending = False
        self._send_error: Optional[Exception] = None

    def connection_made(self, transport):
        self.transport = transport
        self._closed = asyncio.get_running_loop().create_future()

    def datagram_received(self, data, addr):
        # Listeners may remove themselves while we iterate
        for listener in tuple(self._listeners):
            listener(data, addr)

    def error_received(self, exc):
        # The transport reports a failed write through here, while send() is still on the stack
        if self._sending:
            self._send_error = exc
            return
        self.logger.warning(f"Datagram protocol error: {exc}")

    def connection_lost(self, exc):
        if exc:
            self.logger.error(f"Datagram connection lost: {exc}")
        else:
            self.logger.info("Datagram connection closed")
        if self._closed and not self._closed.done():
            self._closed.set_result(None)

    def add_listener(self, listener: Listener):
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener):
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    def listener_count(self) -> int:
        return len(self._listeners)

    def send(self, data: bytes):
        """Transmit data, raising the OSError if the transport fails to write it"""
        self._send_error = None
        self._sending = True
        try:
            self.transport.sendto(data)
        finally:
            self._sending = False
        exc, self._send_error = self._send_error, None
        if exc is not None:
            raise exc

    async def wait_closed(self):
        if self._closed is not None:
            await self._closed

class CorrelatingDatagramClient:
    """
    UDP client bound to one remote endpoint.

    The socket is created up front but only connected (remote peer fixed) on
    the first send. Concurrent sends share a single connect attempt.
    Every send registers its own listener, so concurrent requests each pick
    their own response out of the shared inbound stream.
    """

    def __init__(self,
                 host: str,
                 port: int,
                 *,
                 timeout: float = ClientConst.DEFAULT_TIMEOUT,
                 logger: Optional[logging.Logger] = None,
                 print_traffic: bool = False):
        self._server: Tuple[str, int] = (host, port)
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self.print_traffic = print_traffic
        self._sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self._sock.setblocking(False)
        self._protocol = DatagramDispatchProtocol(self.logger)
        self._transport: Optional[asyncio.DatagramTransport] = None
        self._in_flight: set[asyncio.Future] = set()
        self._closed = False

    @classmethod
    def from_config(cls, config: "ClientConfig", logger: Optional[logging.Logger] = None) -> Self:
        return cls(config.host,
                   config.port,
                   timeout=config.timeout,
                   logger=logger,
                   print_traffic=config.print_traffic)

    @property
    def host(self) -> str:
        return self._server[0]

    @property
    def port(self) -> int:
        return self._server[1]

    @property
    def server(self) -> Tuple[str, int]:
        return self._server

    @property
    def in_flight(self) -> int:
        """Number of sends currently waiting for a response"""
        return self._protocol.listener_count()

    def is_connected(self) -> bool:
        """Check if the socket has its remote peer fixed"""
        if self._closed or self._transport is None or self._transport.is_closing():
            return False
        try:
            self._sock.getpeername()
        except OSError:
            return False
        return True

    @reuse_pending
    async def _connect(self):
        """Fix the remote peer on the socket and start receiving datagrams"""
        if self._closed:
            raise UdpClosedError("Client is closed")
        loop = asyncio.get_running_loop()
        try:
            await loop.sock_connect(self._sock, self._server)
            if self._closed:
                raise UdpClosedError("Client closed while connecting")
            if self._transport is None:
                self._transport, _ = await loop.create_datagram_endpoint(
                    lambda: self._protocol,
                    sock=self._sock,
                )
        except OSError as e:
            self.logger.error(f"Failed to connect to {self.host}:{self.port}: {e}")
            raise UdpConnectionError(f"Failed to connect to {self.host}:{self.port}: {e}") from e
        if self._closed:
            # close() ran while we were connecting
            self._transport.close()
            raise UdpClosedError("Client closed while connecting")
        self.logger.info(f"Connected to {self.host}:{self.port}")

    async def send(self,
                   data: bytes,
                   parse: Callable[[bytes], T],
                   match: Callable[[T], bool],
                   timeout: Optional[float] = None) -> T:
        """
        Send data and wait for the first response that parses and matches.

        Args:
            data: Payload to transmit
            parse: Turns raw inbound bytes into a response value. Datagrams it
                raises on are ignored.
            match: Returns True for the response this request is waiting for
            timeout: Seconds to wait. None uses the client default, 0 waits forever.

        Raises:
            UdpTimeoutError: No matching response arrived in time
            UdpTransportError: The datagram could not be sent
            UdpConnectionError: The socket could not be connected
            UdpClosedError: The client is (or was while waiting) closed
        """
        if self._closed: raise UdpClosedError("Client is closed")
        if timeout is None: timeout = self.timeout

        if not self.is_connected():
            await self._connect()
            # close() may have run after the shared connect finished
            if self._closed: raise UdpClosedError("Client closed while connecting")

        loop = asyncio.get_running_loop()
        fut: asyncio.Future = loop.create_future()
        sent_at = time.time()

        def on_datagram(datagram: bytes, addr: Tuple[str, int]):
            if fut.done():
                return
            try:
                parsed = parse(datagram)
            except Exception as e:
                self.logger.debug(f"Ignoring datagram from {addr[0]}:{addr[1]} that failed to parse: {e}")
                return
            try:
                matched = match(parsed)
            except Exception as e:
                fut.set_exception(e)
                return
            if matched:
                if self.print_traffic:
                    self._print_exchange(data, datagram, sent_at)
                fut.set_result(parsed)

        self._protocol.add_listener(on_datagram)
        self._in_flight.add(fut)
        try:
            try:
                self._protocol.send(data)
            except OSError as e:
                self.logger.error(f"Failed to send to {self.host}:{self.port}: {e}")
                raise UdpTransportError(f"Failed to send to {self.host}:{self.port}: {e}") from e

            if not timeout:
                return await fut
            try:
                return await asyncio.wait_for(fut, timeout=timeout)
            except asyncio.TimeoutError:
                if self.print_traffic:
                    self._print_exchange(data, None, sent_at)
                raise UdpTimeoutError(f"No matching response from {self.host}:{self.port} after {timeout * 1000:.0f}ms") from None
        finally:
            self._protocol.remove_listener(on_datagram)
            self._in_flight.discard(fut)
            if not fut.done():
                fut.cancel()

    def _print_exchange(self, sent: bytes, received: Optional[bytes], sent_at: float):
        rtt_ms = (time.time() - sent_at) * 1000
        request = Fore.MAGENTA + f"REQUEST: [{', '.join(f'0x{b:02X}' for b in sent)}]  "
        if received is None:
            print(request + Fore.RED + f"TIMEOUT after {rtt_ms:.0f}ms" + Style.RESET_ALL)
            return
        print(request
              + Fore.WHITE + Style.DIM + f"RTT: {rtt_ms:.0f}ms".ljust(10)
              + Style.BRIGHT + Fore.CYAN + f"  RESPONSE: [{', '.join(f'0x{b:02X}' for b in received)}]"
              + Style.RESET_ALL)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the client, failing any sends still waiting"""
        if self._closed:
            return
        self._closed = True
        for fut in tuple(self._in_flight):
            if not fut.done():
                fut.set_exception(UdpClosedError("Client closed while waiting for a response"))
        if self._transport is not None:
            self._transport.close()
            await self._protocol.wait_closed()
            self._transport = None
        else:
            self._sock.close()
        self.logger.info(f"Closed client for {self.host}:{self.port}")
