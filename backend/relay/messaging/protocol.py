"""Abstract connection protocol for JSON text communication."""

from abc import ABC, abstractmethod
from typing import Any

from relay.messaging.encoder import decode, encode


class ConnectionProtocol(ABC):
    """
    Abstract interface for a player or controller connection.

    Room and session logic only ever talks to this interface, so it can be
    tested without real WebSocket connections.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Unique identifier for this connection."""
        ...

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the connection is currently able to send."""
        ...

    @abstractmethod
    async def send_text(self, data: str) -> None:
        """
        Send a text frame to the peer.
        """
        ...

    @abstractmethod
    async def receive_frame(self) -> str | bytes:
        """
        Receive one frame from the peer, text or binary, without decoding it.
        """
        ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """
        Close the connection.
        """
        ...

    async def send_message(self, data: dict[str, Any]) -> None:
        """
        Send a message to the peer as a JSON object.
        """
        await self.send_text(encode(data))

    async def receive_message(self) -> dict[str, Any]:
        """
        Receive a message from the peer and decode it from JSON.

        Raises DecodeError for frames that are not a valid JSON object.
        """
        raw = await self.receive_frame()
        return decode(raw)
