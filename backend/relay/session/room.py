"""Room model: players, pending controller events, and the controller handle."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from relay.session.pending import PendingQueue
from relay.session.players import PlayerRegistry

if TYPE_CHECKING:
    from relay.messaging.protocol import ConnectionProtocol


@dataclass
class Room:
    """Session identified by a short code, shared by players and one controller.

    At most one controller is attached at a time. While it is absent (or not
    ready), controller-bound events accumulate in ``pending``. Every handler
    that mutates the room holds ``lock`` until its sends are done, so room
    updates from different connections never interleave.
    """

    code: str
    controller: ConnectionProtocol | None = None
    players: PlayerRegistry = field(default_factory=PlayerRegistry)
    pending: PendingQueue = field(default_factory=PendingQueue)
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @property
    def controller_ready(self) -> bool:
        return self.controller is not None and self.controller.is_open

    @property
    def player_count(self) -> int:
        return len(self.players)

    def is_controller(self, connection: ConnectionProtocol) -> bool:
        return self.controller is not None and self.controller.connection_id == connection.connection_id
