"""Room registry: code issuance and lookups across rooms."""

from __future__ import annotations

import secrets
import string
from typing import TYPE_CHECKING

import structlog

from relay.session.room import Room

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from relay.session.players import Player

logger = structlog.get_logger()

ROOM_CODE_ALPHABET = string.ascii_uppercase
ROOM_CODE_LENGTH = 4
ROOM_CODE_SPACE = len(ROOM_CODE_ALPHABET) ** ROOM_CODE_LENGTH


def generate_room_code() -> str:
    """Draw a random code of ROOM_CODE_LENGTH uppercase letters."""
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


class RegistryFullError(Exception):
    """Every possible room code is in use."""


class RoomRegistry:
    """Map of room code to Room for every room created in this process.

    Rooms are kept in creation order, which is also the order of the
    cross-room scans (avatar inheritance, player-by-id lookup).
    """

    def __init__(self, code_factory: Callable[[], str] = generate_room_code) -> None:
        self._rooms: dict[str, Room] = {}
        self._code_factory = code_factory

    def __iter__(self) -> Iterator[Room]:
        return iter(list(self._rooms.values()))

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def create_room(self) -> Room:
        """Create an empty room under a code no held room uses."""
        if len(self._rooms) >= ROOM_CODE_SPACE:
            raise RegistryFullError("All room codes are in use")
        code = self._code_factory()
        while code in self._rooms:
            code = self._code_factory()
        room = Room(code=code)
        self._rooms[code] = room
        logger.info("room created", room_code=code)
        return room

    def get_room(self, code: str) -> Room | None:
        return self._rooms.get(code)

    def find_avatar(self, display_name: str, exclude_code: str) -> tuple[str, str] | None:
        """Return (room_code, avatar) of the first player elsewhere with this name and an avatar."""
        for room in self._rooms.values():
            if room.code == exclude_code:
                continue
            player = room.players.find_by_name(display_name)
            if player is not None and player.avatar:
                return room.code, player.avatar
        return None

    def find_player(self, player_id: int) -> tuple[Room, Player] | None:
        """Return the first (room, player) with this id.

        Ids are only unique within a room, so the earliest-created room
        holding that id wins.
        """
        for room in self._rooms.values():
            player = room.players.get(player_id)
            if player is not None:
                return room, player
        return None
