"""
Pytest Configuration and Fixtures.

Provides reusable fixtures for testing the portal core.
"""

import os
import random
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

# Set testing mode before importing the portal
os.environ["ENVIRONMENT"] = "testing"
os.environ["MOCK_DELAY_MS"] = "0"

from portal.auth.credentials import CredentialStore
from portal.auth.session import SessionManager
from portal.auth.storage import MemoryStorage
from portal.core.config import Settings
from portal.data.backends.base import DataBackend
from portal.data.backends.simulated import SimulatedBackend
from portal.data.facade import DataAccessFacade
from portal.data.fixtures import build_fixtures


# ============================================================================
# CLOCK
# ============================================================================


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    """Clock fixed at a known instant."""
    return FakeClock(datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc))


# ============================================================================
# SETTINGS / STORAGE
# ============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no artificial latency."""
    return Settings(
        environment="testing",
        mock_delay_ms=0,
        session_ttl_hours=8,
        default_simulated_mode=True,
        enforce_permissions=True,
    )


@pytest.fixture
def storage() -> MemoryStorage:
    """Empty client storage."""
    return MemoryStorage()


# ============================================================================
# SESSION
# ============================================================================


@pytest.fixture
def session_manager(storage, test_settings, clock) -> SessionManager:
    """Session manager in simulated mode with no session."""
    return SessionManager(
        storage=storage,
        credentials=CredentialStore(),
        settings=test_settings,
        clock=clock,
    )


@pytest_asyncio.fixture
async def admin_session(session_manager) -> SessionManager:
    """Session manager logged in as the demo admin."""
    result = await session_manager.login("admin@demo.local", "Admin@1234")
    assert result.success
    return session_manager


# ============================================================================
# DATA
# ============================================================================


@pytest.fixture
def simulated_backend(clock) -> SimulatedBackend:
    """Simulated backend over fresh fixtures, no delay, seeded randomness."""
    return SimulatedBackend(
        delay_seconds=0,
        fixtures=build_fixtures(clock()),
        clock=clock,
        rng=random.Random(42),
    )


@pytest.fixture
def live_stub():
    """A live backend that must never be reached in simulated mode."""
    stub = AsyncMock(spec=DataBackend)
    stub.name = "live"
    return stub


@pytest.fixture
def facade(session_manager, simulated_backend, live_stub) -> DataAccessFacade:
    """Façade over the simulated backend and a stubbed live backend."""
    return DataAccessFacade(
        session_manager,
        simulated_backend,
        live_stub,
        enforce_permissions=True,
    )
