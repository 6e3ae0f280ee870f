"""
udpcorrelate library exceptions.

This module defines all custom exceptions used throughout the library.
"""


class UdpError(Exception):
    """Base exception for udpcorrelate errors"""
    pass


class UdpTransportError(UdpError):
    """Raised when the OS reports a failure sending a datagram"""
    pass


class UdpConnectionError(UdpTransportError):
    """Raised when fixing the remote peer on the socket fails"""
    pass


class UdpTimeoutError(UdpError, TimeoutError):
    """Raised when no matching response arrives in time"""
    pass


class UdpClosedError(UdpError):
    """Raised when a closed client is used"""
    pass


class UdpConfigurationError(UdpError):
    """Raised when configuration is invalid"""
    pass
