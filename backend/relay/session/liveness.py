"""Advertise connection liveness with a periodic one-way ping."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING

import structlog

from relay.messaging.types import PingMessage

if TYPE_CHECKING:
    from relay.messaging.protocol import ConnectionProtocol

LIVENESS_INTERVAL_SECONDS = 15.0

logger = structlog.get_logger()


class LivenessMonitor:
    """Run one ping loop per connection.

    Pings are advisory: no reply is expected and a silent peer is never
    disconnected. A loop ends on its own once its connection stops being
    open or a ping fails to send, and is cancelled by stop() on closure.
    """

    def __init__(self, interval: float = LIVENESS_INTERVAL_SECONDS) -> None:
        self._interval = interval
        self._tasks: dict[str, asyncio.Task[None]] = {}  # connection_id -> probe task

    @property
    def probe_count(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def is_probing(self, connection_id: str) -> bool:
        task = self._tasks.get(connection_id)
        return task is not None and not task.done()

    def start(self, connection: ConnectionProtocol) -> None:
        """Start (or restart) the ping loop for a connection."""
        existing = self._tasks.get(connection.connection_id)
        if existing is not None and not existing.done():
            existing.cancel()
        self._tasks[connection.connection_id] = asyncio.create_task(self._probe_loop(connection))

    async def stop(self, connection_id: str) -> None:
        task = self._tasks.pop(connection_id, None)
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def stop_all(self) -> None:
        for connection_id in list(self._tasks):
            await self.stop(connection_id)

    async def _probe_loop(self, connection: ConnectionProtocol) -> None:
        ping = PingMessage().model_dump()
        while True:
            await asyncio.sleep(self._interval)
            if not connection.is_open:
                return
            try:
                await connection.send_message(ping)
            except (ConnectionError, RuntimeError, OSError) as e:
                logger.debug("liveness ping failed", connection_id=connection.connection_id, error=str(e))
                return
