"""
Wire-level datagram implementation.

This module contains the lowest-level communication components:
- CorrelatingDatagramClient - UDP request/response correlation
- DatagramDispatchProtocol - Fan-out of inbound datagrams to listeners
- Connection management
"""

from .client import CorrelatingDatagramClient, DatagramDispatchProtocol, ClientConst

__all__ = [
    "CorrelatingDatagramClient",
    "DatagramDispatchProtocol",
    "ClientConst",
]
