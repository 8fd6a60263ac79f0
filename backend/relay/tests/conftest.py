import pytest

from relay.messaging.router import MessageRouter
from relay.server.settings import RelayServerSettings
from relay.session.manager import SessionManager
from relay.session.registry import RoomRegistry
from relay.tests.mocks import MockConnection

# Long enough that no ping lands in the middle of a unit test.
QUIET_LIVENESS_INTERVAL = 3600.0


@pytest.fixture
def registry():
    return RoomRegistry()


@pytest.fixture
async def session_manager(registry):
    manager = SessionManager(registry, liveness_interval=QUIET_LIVENESS_INTERVAL)
    yield manager
    await manager.shutdown()


@pytest.fixture
def message_router(session_manager):
    return MessageRouter(session_manager)


@pytest.fixture
def mock_connection():
    return MockConnection()


@pytest.fixture
def settings():
    return RelayServerSettings(cors_origins=["http://localhost:3000"])
