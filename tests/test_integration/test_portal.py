"""
Integration tests for the assembled portal core.

Wires settings, storage, session, both backends, façade and simulator the way
``create_portal`` does and exercises them end to end.
"""

import httpx
import pytest

from portal.auth.schemas import BackendMode, Role
from portal.auth.storage import FileStorage, MemoryStorage
from portal.core.config import Settings
from portal.main import build_storage, create_portal, portal_lifespan


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        mock_delay_ms=0,
        simulator_interval_seconds=60,
        live_api_url="http://portal.test",
    )


def live_api(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/login":
        return httpx.Response(
            200,
            json={
                "user": {
                    "id": "police-42",
                    "email": "officer@portal.gov",
                    "role": "police",
                    "name": "Officer Live",
                    "permissions": ["incidents.read", "zones.read"],
                },
                "token": "live-token",
            },
        )
    if request.url.path == "/api/zones":
        assert request.headers["Authorization"] == "Bearer live-token"
        return httpx.Response(200, json={"success": True, "data": []})
    return httpx.Response(404, json={"message": "unknown route"})


class TestStorageSelection:
    """Tests for build_storage()."""

    def test_memory_by_default(self, settings):
        assert isinstance(build_storage(settings), MemoryStorage)

    def test_file_when_path_set(self, tmp_path):
        settings = Settings(_env_file=None, storage_path=str(tmp_path / "portal.json"))

        assert isinstance(build_storage(settings), FileStorage)


class TestPortal:
    """End-to-end tests through the public surface."""

    @pytest.mark.asyncio
    async def test_simulated_flow(self, settings):
        async with portal_lifespan(settings, storage=MemoryStorage()) as portal:
            assert portal.simulator.running is True

            await portal.session.login("police1@demo.local", "Police@1234")
            result = await portal.facade.verify_digital_identity("DID-54321")

            assert result.success is True
            assert result.data.verification_count == 1

        assert portal.simulator.running is False

    @pytest.mark.asyncio
    async def test_live_flow_uses_token(self, settings):
        portal = create_portal(
            settings,
            storage=MemoryStorage(),
            transport=httpx.MockTransport(live_api),
        )
        try:
            await portal.session.set_mode(BackendMode.LIVE)
            login = await portal.session.login("officer@portal.gov", "pw")
            zones = await portal.facade.list_zones()
        finally:
            await portal.close()

        assert login.success is True
        assert portal.session.current_identity().role == Role.POLICE
        assert zones.success is True
        assert zones.data == []

    @pytest.mark.asyncio
    async def test_session_restored_from_file(self, settings, tmp_path):
        storage = FileStorage(tmp_path / "portal.json")

        first = create_portal(settings, storage=storage)
        await first.session.login("tourism1@demo.local", "Tourism@1234")
        await first.close()

        second = create_portal(settings, storage=FileStorage(tmp_path / "portal.json"))
        try:
            assert second.session.current_identity().role == Role.TOURISM
        finally:
            await second.close()

    @pytest.mark.asyncio
    async def test_live_not_found_route(self, settings):
        portal = create_portal(
            settings,
            storage=MemoryStorage(),
            transport=httpx.MockTransport(live_api),
        )
        try:
            await portal.session.set_mode(False)
            result = await portal.facade.get_incident("INC-1")
        finally:
            await portal.close()

        assert result.success is False
        assert "not found" in result.error
