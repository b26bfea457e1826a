"""
Protocol Transport
==================

Blocking request/response exchange with the VR server over one persistent
WebSocket connection.

This client:
    - Connects lazily on first use to ws://host:port/
    - Reuses the connection for every segment of the session
    - Serializes pydantic messages as JSON text frames
    - Validates replies against the expected response model

Example:
    from fovstream.transport import WebSocketTransport
    from fovstream.models import DecisionMessage, KeyFrameRequest

    with WebSocketTransport("localhost", 1988) as transport:
        reply = transport.request(request, DecisionMessage)

Design Rules:
    - One in-flight request at a time; no pipelining or multiplexing
    - No automatic reconnection: any connection failure raises TransportError
    - Malformed replies raise ProtocolViolationError
"""

import logging
from typing import Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError
from websockets.exceptions import WebSocketException
from websockets.sync.client import ClientConnection, connect

from fovstream.models.protocol import ProtocolViolationError


logger = logging.getLogger(__name__)


ResponseT = TypeVar("ResponseT", bound=BaseModel)


class TransportError(Exception):
    """Raised when the connection to the server fails, closes or times out."""
    pass


class Transport(Protocol):
    """
    Protocol for server transports.

    Implemented by:
        - WebSocketTransport (production)
        - in-memory fakes (tests)
    """

    def request(self, message: BaseModel, response_model: Type[ResponseT]) -> ResponseT:
        """Send a message and block until the reply arrives."""
        ...

    def send(self, message: BaseModel) -> None:
        """Send a message that expects no reply."""
        ...

    def close(self) -> None:
        """Release the connection."""
        ...


class WebSocketTransport:
    """
    Persistent WebSocket connection to one fixed (host, port) peer.

    Attributes:
        host: Server host
        port: Server port
        open_timeout: Seconds allowed for the opening handshake
        response_timeout: Seconds allowed for each reply
    """

    def __init__(
        self,
        host: str,
        port: int,
        open_timeout: float = 10.0,
        response_timeout: float = 30.0,
        path: str = "/",
    ) -> None:
        """
        Initialize transport. No connection is made until first use.

        Args:
            host: Server host
            port: Server port
            open_timeout: Handshake timeout in seconds
            response_timeout: Reply timeout in seconds
            path: WebSocket resource path
        """
        self.host = host
        self.port = port
        self.open_timeout = open_timeout
        self.response_timeout = response_timeout
        self.path = path

        self._connection: Optional[ClientConnection] = None

    @property
    def uri(self) -> str:
        return f"ws://{self.host}:{self.port}{self.path}"

    @property
    def connected(self) -> bool:
        """Whether a connection has been opened and not yet closed."""
        return self._connection is not None

    def _ensure_connected(self) -> ClientConnection:
        if self._connection is None:
            try:
                self._connection = connect(self.uri, open_timeout=self.open_timeout)
            except (OSError, WebSocketException) as e:
                raise TransportError(f"Cannot connect to {self.uri}: {e}") from e
            logger.info(f"Connected to VR server: {self.uri}")
        return self._connection

    def send(self, message: BaseModel) -> None:
        """
        Send a message without waiting for a reply.

        Raises:
            TransportError: If the connection fails
        """
        connection = self._ensure_connected()
        payload = message.model_dump_json(by_alias=True)
        try:
            connection.send(payload)
        except (OSError, WebSocketException) as e:
            self._drop()
            raise TransportError(f"Send to {self.uri} failed: {e}") from e
        logger.debug(f"-> {payload}")

    def request(self, message: BaseModel, response_model: Type[ResponseT]) -> ResponseT:
        """
        Send a message and block until the reply arrives.

        Args:
            message: Request message
            response_model: Model the reply must validate against

        Returns:
            The validated reply

        Raises:
            TransportError: If the connection fails, closes or times out
            ProtocolViolationError: If the reply does not match response_model
        """
        self.send(message)
        try:
            raw = self._connection.recv(timeout=self.response_timeout)
        except (OSError, WebSocketException) as e:
            self._drop()
            raise TransportError(f"No reply from {self.uri}: {e}") from e
        logger.debug(f"<- {raw}")

        try:
            return response_model.model_validate_json(raw)
        except ValidationError as e:
            raise ProtocolViolationError(
                f"Unexpected reply for {response_model.__name__}: {e}"
            ) from e

    def _drop(self) -> None:
        connection, self._connection = self._connection, None
        if connection is not None:
            connection.close()

    def close(self) -> None:
        """Close the connection if open."""
        if self._connection is not None:
            self._drop()
            logger.info(f"Disconnected from VR server: {self.uri}")

    def __enter__(self) -> "WebSocketTransport":
        return self

    def __exit__(self, *args) -> None:
        self.close()
