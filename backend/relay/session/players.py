"""Player bookkeeping for a single room."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

    from relay.messaging.protocol import ConnectionProtocol


@dataclass
class Player:
    """A participant registered in a room under a display name.

    Lifecycle:
    - Created on the first join of its display name; player_id is the
      player's position in join order and never changes
    - On disconnect: active is cleared, everything else is kept
    - On rejoin under the same name: connection is replaced, active is set
    A Player is never removed from its room.
    """

    player_id: int
    display_name: str
    connection: ConnectionProtocol
    avatar: str | None = None
    active: bool = True

    @property
    def connection_id(self) -> str:
        return self.connection.connection_id


class PlayerRegistry:
    """Ordered players of a room, addressable by id and by display name."""

    def __init__(self) -> None:
        self._players: list[Player] = []
        self._by_name: dict[str, Player] = {}

    def __len__(self) -> int:
        return len(self._players)

    def __iter__(self) -> Iterator[Player]:
        return iter(list(self._players))

    def add(self, display_name: str, connection: ConnectionProtocol, avatar: str | None = None) -> Player:
        """Register a new active player with the next ordinal id."""
        if display_name in self._by_name:
            raise ValueError(f"Player {display_name!r} already exists")
        player = Player(
            player_id=len(self._players),
            display_name=display_name,
            connection=connection,
            avatar=avatar,
        )
        self._players.append(player)
        self._by_name[display_name] = player
        return player

    def get(self, player_id: int) -> Player | None:
        if 0 <= player_id < len(self._players):
            return self._players[player_id]
        return None

    def find_by_name(self, display_name: str) -> Player | None:
        return self._by_name.get(display_name)

    def active(self) -> list[Player]:
        return [p for p in self._players if p.active]

    def bound_to(self, connection_id: str) -> list[Player]:
        """Return players whose current connection is the given one."""
        return [p for p in self._players if p.connection_id == connection_id]

    @property
    def active_count(self) -> int:
        return sum(1 for p in self._players if p.active)
