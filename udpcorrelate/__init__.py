"""
udpcorrelate Python Library

A small asyncio UDP client that sends a datagram and waits for the response
that matches it, coping with UDP's reordering and loss.

Example usage:
    import json
    import udpcorrelate

    async with udpcorrelate.CorrelatingDatagramClient("127.0.0.1", 9999) as client:
        reply = await client.send(
            b'{"id": 1}',
            parse=json.loads,
            match=lambda msg: msg["id"] == 1,
        )
"""

# Client
from .io import CorrelatingDatagramClient, DatagramDispatchProtocol, ClientConst

# Configuration
from .config import ClientConfig, load_config

# Exceptions
from .exceptions import (
    UdpError,
    UdpTransportError,
    UdpConnectionError,
    UdpTimeoutError,
    UdpClosedError,
    UdpConfigurationError,
)

# Utilities
from .utils import run_with_keyboard_interrupt, reuse_pending

__version__ = "0.0.0"

# Public API
__all__ = [
    # Client
    "CorrelatingDatagramClient",
    "DatagramDispatchProtocol",
    "ClientConst",

    # Configuration
    "ClientConfig",
    "load_config",

    # Exceptions
    "UdpError",
    "UdpTransportError",
    "UdpConnectionError",
    "UdpTimeoutError",
    "UdpClosedError",
    "UdpConfigurationError",

    # Utilities
    "run_with_keyboard_interrupt",
    "reuse_pending",
]
