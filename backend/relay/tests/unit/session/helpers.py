from __future__ import annotations

from typing import TYPE_CHECKING

from relay.tests.mocks import MockConnection

if TYPE_CHECKING:
    from relay.session.manager import SessionManager


async def join_player(manager: SessionManager, room_code: str, name: str) -> MockConnection:
    """Register a fresh connection and join it to a room as ``name``."""
    conn = MockConnection()
    manager.register_connection(conn)
    await manager.join(conn, room_code, name)
    return conn


async def attach_controller(manager: SessionManager, room_code: str) -> MockConnection:
    """Register a fresh connection and attach it as the room's controller."""
    conn = MockConnection()
    manager.register_connection(conn)
    await manager.attach_controller(conn, room_code)
    return conn


async def disconnect(manager: SessionManager, conn: MockConnection) -> None:
    """Close a connection and run the same cleanup the WebSocket endpoint runs."""
    await conn.close()
    await manager.unregister_connection(conn)
    await manager.handle_disconnect(conn)


def event_summary(conn: MockConnection) -> list[tuple]:
    """Compact (type, id) view of everything a connection received."""
    return [(m["type"], m.get("id")) for m in conn.sent_messages]
