from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from relay.messaging.types import ControllerAttachMessage, JoinMessage, parse_client_message

if TYPE_CHECKING:
    from relay.messaging.protocol import ConnectionProtocol
    from relay.session.manager import SessionManager

logger = structlog.get_logger()


class MessageRouter:
    """
    Routes decoded client messages to the session manager.

    This class contains no transport code and can be tested
    without real WebSocket connections.
    """

    def __init__(self, session_manager: SessionManager) -> None:
        self._session_manager = session_manager

    async def handle_message(
        self,
        connection: ConnectionProtocol,
        raw_message: dict[str, Any],
    ) -> None:
        try:
            message = parse_client_message(raw_message)
        except (ValidationError, TypeError, ValueError) as e:
            # Invalid messages are dropped without a reply.
            logger.warning("invalid message dropped", connection_id=connection.connection_id, error=str(e))
            return

        if isinstance(message, JoinMessage):
            await self._session_manager.join(connection, message.room_code, message.name)
        elif isinstance(message, ControllerAttachMessage):
            await self._session_manager.attach_controller(connection, message.room_code)

    async def handle_connect(self, connection: ConnectionProtocol) -> None:
        self._session_manager.register_connection(connection)

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        await self._session_manager.unregister_connection(connection)
        await self._session_manager.handle_disconnect(connection)
