"""
Transport Module
================

Request/response exchange of protocol messages with the VR server.
"""

from fovstream.transport.client import Transport, TransportError, WebSocketTransport

__all__ = [
    "Transport",
    "TransportError",
    "WebSocketTransport",
]
