"""
Authority Portal core wiring.

Builds the session manager, both backends, the data-access façade and the
event simulator from settings, and owns their start/stop.
"""

import random
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, AsyncIterator

import httpx
import structlog

from portal.auth.session import SessionManager
from portal.auth.storage import ClientStorage, FileStorage, MemoryStorage
from portal.core.config import Settings, get_settings
from portal.core.logging import configure_logging
from portal.data.backends.live import LiveBackend, LiveBackendConfig
from portal.data.backends.simulated import SimulatedBackend
from portal.data.facade import DataAccessFacade
from portal.data.simulator import EventSimulator

logger = structlog.get_logger(__name__)


@dataclass
class Portal:
    """Running portal core."""

    settings: Settings
    storage: ClientStorage
    session: SessionManager
    simulated: SimulatedBackend
    live: LiveBackend
    facade: DataAccessFacade
    simulator: EventSimulator

    async def start(self) -> None:
        self.simulator.start()
        logger.info(
            "portal_started",
            version=self.settings.app_version,
            mode=self.session.current_mode().value,
            authenticated=self.session.is_authenticated(),
        )

    async def close(self) -> None:
        logger.info("portal_shutting_down")
        await self.simulator.stop()
        await self.simulated.aclose()
        await self.live.aclose()
        logger.info("portal_closed")


def build_storage(settings: Settings) -> ClientStorage:
    """File-backed storage when ``STORAGE_PATH`` is set, else in-memory."""
    if settings.storage_path:
        return FileStorage(Path(settings.storage_path))
    return MemoryStorage()


def create_portal(
    settings: Optional[Settings] = None,
    storage: Optional[ClientStorage] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    rng: Optional[random.Random] = None,
) -> Portal:
    """Assemble the core and restore any persisted session."""
    settings = settings or get_settings()
    storage = storage if storage is not None else build_storage(settings)

    session = SessionManager(storage=storage, settings=settings)
    live = LiveBackend(
        LiveBackendConfig(
            base_url=settings.live_api_url,
            timeout_seconds=settings.live_timeout_seconds,
        ),
        token_provider=session.current_token,
        transport=transport,
    )
    session.attach_authenticator(live)
    session.restore()

    simulated = SimulatedBackend(delay_seconds=settings.mock_delay_seconds, rng=rng)
    facade = DataAccessFacade(
        session,
        simulated,
        live,
        enforce_permissions=settings.enforce_permissions,
    )
    simulator = EventSimulator(session, rng=rng, settings=settings)

    return Portal(
        settings=settings,
        storage=storage,
        session=session,
        simulated=simulated,
        live=live,
        facade=facade,
        simulator=simulator,
    )


@asynccontextmanager
async def portal_lifespan(
    settings: Optional[Settings] = None,
    storage: Optional[ClientStorage] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[Portal]:
    """Configure logging, start the core, and close it on exit."""
    settings = settings or get_settings()
    configure_logging(settings)

    portal = create_portal(settings, storage=storage, transport=transport)
    await portal.start()
    try:
        yield portal
    finally:
        await portal.close()
