import pytest
import pytest_asyncio
from fakes import FakeGateway, FakeResolver

from guild_audio.domain.music.value_objects import Platform
from guild_audio.domain.shared.events import EventBus

# ============================================================================
# Core Fixtures
# ============================================================================


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def youtube_resolver():
    return FakeResolver(Platform.YOUTUBE)


@pytest.fixture
def soundcloud_resolver():
    return FakeResolver(Platform.SOUNDCLOUD)


@pytest.fixture
def router(youtube_resolver, soundcloud_resolver):
    from guild_audio.application.services.platform_router import PlatformRouter

    return PlatformRouter((youtube_resolver, soundcloud_resolver))


@pytest.fixture
def fake_gateway():
    return FakeGateway()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def in_memory_database():
    """Create an in-memory SQLite database for testing."""
    from guild_audio.infrastructure.persistence.database import Database

    db = Database(":memory:")
    await db.initialize()
    yield db
    await db.close()
