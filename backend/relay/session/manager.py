from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from relay.messaging.types import (
    AvatarSelectedMessage,
    ErrorMessage,
    JoinConfirmationMessage,
    PlayerJoinedMessage,
    PlayerLeftMessage,
    ReconnectionConfirmationMessage,
    RelayErrorCode,
)
from relay.session.liveness import LIVENESS_INTERVAL_SECONDS, LivenessMonitor
from relay.session.registry import RoomRegistry

if TYPE_CHECKING:
    from pydantic import BaseModel

    from relay.messaging.protocol import ConnectionProtocol
    from relay.messaging.types import ControllerEvent
    from relay.session.players import Player
    from relay.session.room import Room

logger = structlog.get_logger()

# Errors a send to a closing or closed connection may raise.
SEND_ERRORS = (ConnectionError, RuntimeError, OSError)


def compose_catch_up(pending: list[ControllerEvent], active_players: list[Player]) -> list[ControllerEvent]:
    """Build the batch of events a newly attached controller receives.

    Queued events keep their order, except avatar selections of players that
    are still active: the roster replay carries their current avatar instead.
    The replay then announces every active player whose presence the flushed
    events do not already establish, each followed by its avatar if set.
    """
    active_ids = {p.player_id for p in active_players}
    batch: list[ControllerEvent] = []
    announced: set[int] = set()

    for event in pending:
        if isinstance(event, AvatarSelectedMessage) and event.id in active_ids:
            continue
        if isinstance(event, PlayerJoinedMessage):
            announced.add(event.id)
        elif isinstance(event, PlayerLeftMessage):
            announced.discard(event.id)
        batch.append(event)

    for player in active_players:
        if player.player_id not in announced:
            batch.append(PlayerJoinedMessage(id=player.player_id, name=player.display_name))
        if player.avatar:
            batch.append(AvatarSelectedMessage(id=player.player_id, avatar=player.avatar))

    return batch


class SessionManager:
    """Room, player and controller state machine for the relay.

    Every handler that touches a room runs under that room's lock, from the
    first mutation to the last send, so controller-bound events keep the order
    in which they were produced.
    """

    def __init__(
        self,
        registry: RoomRegistry | None = None,
        liveness_interval: float = LIVENESS_INTERVAL_SECONDS,
    ) -> None:
        self._registry = registry if registry is not None else RoomRegistry()
        self._connections: dict[str, ConnectionProtocol] = {}
        self._connection_rooms: dict[str, list[str]] = {}  # connection_id -> codes joined or attached
        self._liveness = LivenessMonitor(interval=liveness_interval)

    @property
    def registry(self) -> RoomRegistry:
        return self._registry

    @property
    def room_count(self) -> int:
        return self._registry.room_count

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def register_connection(self, connection: ConnectionProtocol) -> None:
        self._connections[connection.connection_id] = connection
        self._liveness.start(connection)

    async def unregister_connection(self, connection: ConnectionProtocol) -> None:
        self._connections.pop(connection.connection_id, None)
        await self._liveness.stop(connection.connection_id)

    def create_room(self) -> Room:
        return self._registry.create_room()

    def get_room(self, code: str) -> Room | None:
        return self._registry.get_room(code)

    async def shutdown(self) -> None:
        await self._liveness.stop_all()

    def _bind(self, connection: ConnectionProtocol, room_code: str) -> None:
        codes = self._connection_rooms.setdefault(connection.connection_id, [])
        if room_code not in codes:
            codes.append(room_code)

    async def _reply(self, connection: ConnectionProtocol, message: BaseModel) -> None:
        try:
            await connection.send_message(message.model_dump())
        except SEND_ERRORS as e:
            logger.warning("reply not delivered", connection_id=connection.connection_id, error=str(e))

    async def _send_error(self, connection: ConnectionProtocol, code: RelayErrorCode, message: str) -> None:
        logger.info("relay error sent to client", error_code=code, error_message=message)
        await self._reply(connection, ErrorMessage(code=code, message=message))

    async def join(self, connection: ConnectionProtocol, room_code: str, name: str) -> None:
        """Join a room as a new player, or take over the player registered under ``name``."""
        room = self._registry.get_room(room_code)
        if room is None:
            await self._send_error(connection, RelayErrorCode.ROOM_NOT_FOUND, "Room not found")
            return

        log = logger.bind(room_code=room.code, player_name=name, connection_id=connection.connection_id)
        async with room.lock:
            self._bind(connection, room.code)

            existing = room.players.find_by_name(name)
            if existing is not None:
                existing.connection = connection
                existing.active = True
                log.info("player reconnected", player_id=existing.player_id, active_players=room.players.active_count)
                await self._reply(
                    connection,
                    ReconnectionConfirmationMessage(id=existing.player_id, avatar=existing.avatar),
                )
                return

            avatar: str | None = None
            inherited = self._registry.find_avatar(name, exclude_code=room.code)
            if inherited is not None:
                source_code, avatar = inherited
                log.info("avatar inherited", source_room_code=source_code, avatar=avatar)

            player = room.players.add(name, connection, avatar=avatar)
            log.info(
                "player joined room",
                player_id=player.player_id,
                player_count=room.player_count,
                active_players=room.players.active_count,
            )

            await self._enqueue_and_drain(room, PlayerJoinedMessage(id=player.player_id, name=name))
            if avatar:
                await self._enqueue_and_drain(room, AvatarSelectedMessage(id=player.player_id, avatar=avatar))

            await self._reply(connection, JoinConfirmationMessage(id=player.player_id, avatar=avatar))

    async def attach_controller(self, connection: ConnectionProtocol, room_code: str) -> None:
        """Make ``connection`` the room's controller and bring it up to date."""
        room = self._registry.get_room(room_code)
        if room is None:
            await self._send_error(connection, RelayErrorCode.ROOM_NOT_FOUND, "Room not found")
            return

        log = logger.bind(room_code=room.code, connection_id=connection.connection_id)
        async with room.lock:
            self._bind(connection, room.code)

            previous = room.controller
            if previous is not None and previous.connection_id != connection.connection_id:
                log.info("controller replaced", previous_connection_id=previous.connection_id)
            room.controller = connection

            queued = room.pending.take_all()
            room.pending.replace(compose_catch_up(queued, room.players.active()))
            log.info("controller attached", queued=len(queued), catch_up=len(room.pending))

            await self._drain(room)

    async def select_avatar(self, player_id: int, avatar: str) -> Player | None:
        """Set the avatar of the first player with ``player_id`` in any room.

        Returns the updated player, or None when no room has that id.
        """
        found = self._registry.find_player(player_id)
        if found is None:
            logger.info("avatar selection for unknown player", player_id=player_id)
            return None

        room, player = found
        async with room.lock:
            player.avatar = avatar
            logger.info("avatar selected", room_code=room.code, player_id=player_id, avatar=avatar)
            await self._enqueue_and_drain(room, AvatarSelectedMessage(id=player.player_id, avatar=avatar))
        return player

    async def handle_disconnect(self, connection: ConnectionProtocol) -> None:
        """Detach a closed connection from every room it joined or controlled."""
        room_codes = self._connection_rooms.pop(connection.connection_id, [])
        for code in room_codes:
            room = self._registry.get_room(code)
            if room is None:
                continue
            log = logger.bind(room_code=room.code, connection_id=connection.connection_id)
            async with room.lock:
                if room.is_controller(connection):
                    room.controller = None
                    log.info("controller detached", pending=len(room.pending))

                for player in room.players.bound_to(connection.connection_id):
                    if not player.active:
                        continue
                    player.active = False
                    log.info(
                        "player disconnected",
                        player_id=player.player_id,
                        active_players=room.players.active_count,
                    )
                    await self._enqueue_and_drain(room, PlayerLeftMessage(id=player.player_id))

    async def deliver_or_queue(self, room: Room, event: ControllerEvent) -> None:
        """Send ``event`` to the room's controller, or queue it until one is ready."""
        async with room.lock:
            await self._enqueue_and_drain(room, event)

    async def _enqueue_and_drain(self, room: Room, event: ControllerEvent) -> None:
        # Caller holds room.lock.
        room.pending.append(event)
        if not room.controller_ready:
            logger.debug("controller not ready, event queued", room_code=room.code, event_type=event.type)
            return
        await self._drain(room)

    async def _drain(self, room: Room) -> None:
        # Caller holds room.lock. An event leaves the queue only once sent.
        controller = room.controller
        while room.pending and controller is not None and controller.is_open:
            event = room.pending.peek()
            try:
                await controller.send_message(event.model_dump())
            except SEND_ERRORS as e:
                logger.warning(
                    "controller send failed, event kept queued",
                    room_code=room.code,
                    event_type=event.type,
                    pending=len(room.pending),
                    error=str(e),
                )
                return
            room.pending.popleft()
