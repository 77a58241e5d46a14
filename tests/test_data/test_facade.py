"""
Tests for the Data Access Façade.

Tests:
- Envelope shape for success and failure
- Per-call routing on the session's mode flag
- Capability guard on mutations
- Defaults taken from the current identity
- Containment of unexpected errors
"""

import pytest

from portal.common.exceptions import BackendUnavailable
from portal.data.facade import DataAccessFacade
from portal.data.schemas import CallStatus, Envelope, IncidentStatus


# ============================================================================
# ENVELOPES
# ============================================================================


class TestEnvelopes:
    """Tests for envelope results."""

    @pytest.mark.asyncio
    async def test_success_envelope(self, facade):
        result = await facade.list_zones()

        assert isinstance(result, Envelope)
        assert result.success is True
        assert result.error is None
        assert len(result.data) == 3

    @pytest.mark.asyncio
    async def test_unknown_digital_id(self, facade):
        """Not-found comes back as a failure envelope, not an exception."""
        result = await facade.get_digital_identity("DID-00000")

        assert result.success is False
        assert result.data is None
        assert result.error is not None
        assert "not found" in result.error

    @pytest.mark.asyncio
    async def test_filters_pass_through(self, facade):
        result = await facade.list_operator_calls(status="incoming")

        assert [c.id for c in result.data] == ["CALL-002"]

    @pytest.mark.asyncio
    async def test_search_passes_through(self, facade):
        incidents = await facade.list_incidents(search="pickpocket")
        identities = await facade.list_digital_identities(search="brazil")

        assert [i.id for i in incidents.data] == ["INC-2024-002"]
        assert [d.digital_id for d in identities.data] == ["DID-98765"]

    @pytest.mark.asyncio
    async def test_search_reaches_live_backend(self, admin_session, facade, live_stub):
        live_stub.list_incidents.return_value = []

        await admin_session.set_mode(False)
        await facade.list_incidents(status="reported", search="fort")

        live_stub.list_incidents.assert_awaited_once_with(
            status="reported",
            priority=None,
            search="fort",
        )

    @pytest.mark.asyncio
    async def test_reads_do_not_need_a_session(self, facade):
        result = await facade.list_incidents(status="all")

        assert result.success is True
        assert len(result.data) == 4


# ============================================================================
# MUTATIONS
# ============================================================================


class TestMutations:
    """Tests for mutations through the façade."""

    @pytest.mark.asyncio
    async def test_verify_increments_count(self, admin_session, facade):
        before = await facade.get_digital_identity("DID-12345")

        result = await facade.verify_digital_identity("DID-12345")

        assert result.success is True
        assert result.data.verification_count == before.data.verification_count + 1

    @pytest.mark.asyncio
    async def test_assign_defaults_to_current_identity(self, facade, session_manager):
        await session_manager.login("police1@demo.local", "Police@1234")

        result = await facade.assign_incident("INC-2024-004")

        assert result.success is True
        assert result.data.assigned_to == "Officer Sarah Chen"
        assert result.data.status == IncidentStatus.DISPATCHED

    @pytest.mark.asyncio
    async def test_assign_explicit_assignee(self, admin_session, facade):
        result = await facade.assign_incident("INC-2024-002", "Unit 12")

        assert result.data.assigned_to == "Unit 12"

    @pytest.mark.asyncio
    async def test_invalid_state_is_a_failure(self, admin_session, facade):
        result = await facade.accept_call("CALL-003")

        assert result.success is False
        assert "Cannot accept" in result.error

    @pytest.mark.asyncio
    async def test_call_lifecycle(self, facade, session_manager):
        await session_manager.login("operator112@demo.local", "Operator@1234")

        accepted = await facade.accept_call("CALL-002")
        ended = await facade.end_call("CALL-002", summary="Escorted to station")

        assert accepted.data.status == CallStatus.ACTIVE
        assert ended.data.status == CallStatus.COMPLETED
        assert ended.data.summary == "Escorted to station"

    @pytest.mark.asyncio
    async def test_audit_user_is_current_identity(self, admin_session, facade):
        result = await facade.append_audit_entry("PII_ACCESS", "DID-67890")

        assert result.success is True
        assert result.data.user == "Admin User"
        assert result.data.status.value == "completed"


# ============================================================================
# CAPABILITY GUARD
# ============================================================================


class TestCapabilityGuard:
    """Tests for the mutation capability guard."""

    @pytest.mark.asyncio
    async def test_anonymous_mutation_is_denied(self, facade, simulated_backend):
        result = await facade.verify_digital_identity("DID-12345")

        assert result.success is False
        assert result.error == "Not authenticated"
        record = await simulated_backend.get_digital_identity("DID-12345")
        assert record.verification_count == 12

    @pytest.mark.asyncio
    async def test_missing_capability_is_denied(self, facade, session_manager):
        await session_manager.login("hotel1@demo.local", "Hotel@1234")

        result = await facade.accept_call("CALL-002")

        assert result.success is False
        assert "calls.handle" in result.error

    @pytest.mark.asyncio
    async def test_tourism_cannot_write_audit(self, facade, session_manager):
        await session_manager.login("tourism1@demo.local", "Tourism@1234")

        result = await facade.append_audit_entry("PII_ACCESS", "DID-12345")

        assert result.success is False

    @pytest.mark.asyncio
    async def test_guard_can_be_disabled(self, session_manager, simulated_backend, live_stub):
        facade = DataAccessFacade(
            session_manager,
            simulated_backend,
            live_stub,
            enforce_permissions=False,
        )

        result = await facade.append_audit_entry("SYSTEM_CHECK", "portal")

        assert result.success is True
        assert result.data.user == "system"


# ============================================================================
# ROUTING
# ============================================================================


class TestRouting:
    """Tests for backend routing."""

    @pytest.mark.asyncio
    async def test_simulated_mode_never_reaches_live(self, facade, live_stub):
        await facade.list_incidents()

        live_stub.list_incidents.assert_not_called()

    @pytest.mark.asyncio
    async def test_mode_change_reroutes_next_call(self, admin_session, facade, live_stub):
        live_stub.list_zones.return_value = []

        await admin_session.set_mode(False)
        result = await facade.list_zones(status="safe")

        assert result.success is True
        assert result.data == []
        live_stub.list_zones.assert_awaited_once_with(status="safe")

        await admin_session.set_mode(True)
        result = await facade.list_zones()

        assert len(result.data) == 3
        assert live_stub.list_zones.await_count == 1

    @pytest.mark.asyncio
    async def test_live_unavailable_is_a_failure(self, admin_session, facade, live_stub):
        live_stub.get_heatmap.side_effect = BackendUnavailable()
        await admin_session.set_mode(False)

        result = await facade.get_heatmap()

        assert result.success is False
        assert result.error == "Backend unavailable"

    @pytest.mark.asyncio
    async def test_unexpected_error_is_contained(self, admin_session, facade, live_stub):
        live_stub.list_alerts.side_effect = KeyError("boom")
        await admin_session.set_mode(False)

        result = await facade.list_alerts()

        assert result.success is False
        assert result.error == "Internal error"
