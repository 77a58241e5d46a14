"""
Tests for the Live Backend.

Uses httpx.MockTransport in place of the real portal API.
"""

import json
from datetime import datetime, timezone
from typing import Tuple

import httpx
import pytest

from portal.auth.schemas import Role
from portal.common.exceptions import (
    AuthenticationRejected,
    BackendError,
    BackendUnavailable,
    ResourceNotFound,
)
from portal.data.backends.live import LiveBackend, LiveBackendConfig
from portal.data.schemas import CallStatus, DigitalIdStatus


INCIDENT = {
    "id": "INC-9",
    "title": "Lost passport",
    "description": "Tourist lost passport near Red Fort",
    "type": "lost_item",
    "priority": "medium",
    "status": "reported",
    "location": "Red Fort",
    "coordinates": [28.6562, 77.2410],
    "reportedBy": "Tourist",
    "reportedAt": "2024-06-01T11:00:00Z",
}

DIGITAL_ID = {
    "digitalId": "DID-12345",
    "name": "John Smith",
    "nationality": "USA",
    "status": "verified",
    "issueDate": "2024-01-15T00:00:00Z",
    "expiryDate": "2024-12-15T00:00:00Z",
    "lastSeen": "2024-06-01T11:30:00Z",
    "location": "Red Fort",
    "verificationCount": 13,
    "blockchainTx": "0xabc",
    "consentScope": ["location"],
}


class Recorder:
    """Mock transport handler that records requests."""

    def __init__(self, respond):
        self.respond = respond
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


def make_backend(respond, token=None) -> Tuple[LiveBackend, Recorder]:
    recorder = Recorder(respond)
    backend = LiveBackend(
        LiveBackendConfig(base_url="http://portal.test"),
        token_provider=lambda: token,
        transport=httpx.MockTransport(recorder),
    )
    return backend, recorder


# ============================================================================
# RESOURCE CALLS
# ============================================================================


class TestResourceCalls:
    """Tests for resource requests."""

    @pytest.mark.asyncio
    async def test_raw_list_payload(self):
        backend, recorder = make_backend(lambda r: httpx.Response(200, json=[INCIDENT]))

        async with backend:
            incidents = await backend.list_incidents(status="reported", priority="all")

        assert [i.id for i in incidents] == ["INC-9"]
        request = recorder.requests[0]
        assert request.method == "GET"
        assert request.url.path == "/api/incidents"
        assert dict(request.url.params) == {"status": "reported"}

    @pytest.mark.asyncio
    async def test_search_sent_as_query_param(self):
        def respond(request: httpx.Request) -> httpx.Response:
            record = INCIDENT if request.url.path == "/api/incidents" else DIGITAL_ID
            return httpx.Response(200, json={"success": True, "data": [record]})

        backend, recorder = make_backend(respond)

        async with backend:
            await backend.list_incidents(search=" red fort ")
            await backend.list_digital_identities(status="verified", search="smith")
            await backend.list_incidents(search="")

        assert dict(recorder.requests[0].url.params) == {"search": "red fort"}
        assert dict(recorder.requests[1].url.params) == {
            "status": "verified",
            "search": "smith",
        }
        assert dict(recorder.requests[2].url.params) == {}

    @pytest.mark.asyncio
    async def test_envelope_payload(self):
        backend, _ = make_backend(
            lambda r: httpx.Response(200, json={"success": True, "data": DIGITAL_ID})
        )

        record = await backend.get_digital_identity("DID-12345")
        await backend.aclose()

        assert record.digital_id == "DID-12345"
        assert record.status == DigitalIdStatus.VERIFIED
        assert record.verification_count == 13

    @pytest.mark.asyncio
    async def test_bearer_token_attached(self):
        backend, recorder = make_backend(lambda r: httpx.Response(200, json=[]), token="tok-1")

        async with backend:
            await backend.list_zones()

        assert recorder.requests[0].headers["Authorization"] == "Bearer tok-1"

    @pytest.mark.asyncio
    async def test_no_token_no_header(self):
        backend, recorder = make_backend(lambda r: httpx.Response(200, json=[]))

        async with backend:
            await backend.list_alerts()

        assert "Authorization" not in recorder.requests[0].headers

    @pytest.mark.asyncio
    async def test_heatmap_wrapped_in_zones(self):
        zone = {
            "id": "zone-1",
            "name": "Connaught Place",
            "coordinates": [[28.63, 77.21]],
            "riskLevel": "high",
            "incidentCount": 4,
            "color": "#dc2626",
        }
        backend, _ = make_backend(lambda r: httpx.Response(200, json={"zones": [zone]}))

        async with backend:
            heatmap = await backend.get_heatmap()

        assert heatmap[0].incident_count == 4

    @pytest.mark.asyncio
    async def test_mutation_request(self):
        call = {
            "id": "CALL-002",
            "incidentId": "INC-2024-004",
            "callerId": "caller-1",
            "callerLocation": "Chandni Chowk",
            "callType": "Harassment",
            "priority": "medium",
            "status": "completed",
            "startTime": "2024-06-01T11:59:00Z",
            "endTime": "2024-06-01T12:03:00Z",
            "durationSeconds": 240,
            "operatorId": "operator-1",
            "operatorName": "112 Operator Maya Singh",
            "summary": "Resolved",
            "outcome": "Call completed successfully",
        }
        backend, recorder = make_backend(lambda r: httpx.Response(200, json=call))

        async with backend:
            result = await backend.end_call("CALL-002", summary="Resolved")

        request = recorder.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/api/calls/CALL-002/end"
        assert json.loads(request.content) == {"summary": "Resolved"}
        assert result.status == CallStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_audit_append_body(self):
        entry = {
            "id": "AUDIT-9",
            "action": "PII_ACCESS",
            "user": "Admin User",
            "resource": "DID-1",
            "timestamp": "2024-06-01T12:00:00Z",
            "status": "pending",
        }
        backend, recorder = make_backend(lambda r: httpx.Response(201, json=entry))

        async with backend:
            result = await backend.append_audit_entry("PII_ACCESS", "DID-1", "Admin User", "pending")

        assert json.loads(recorder.requests[0].content) == {
            "action": "PII_ACCESS",
            "resource": "DID-1",
            "user": "Admin User",
            "status": "pending",
        }
        assert result.id == "AUDIT-9"


# ============================================================================
# ERRORS
# ============================================================================


class TestErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_404_is_not_found(self):
        backend, _ = make_backend(lambda r: httpx.Response(404, json={"message": "nope"}))

        async with backend:
            with pytest.raises(ResourceNotFound):
                await backend.get_incident("INC-404")

    @pytest.mark.asyncio
    async def test_error_envelope_not_found(self):
        backend, _ = make_backend(
            lambda r: httpx.Response(200, json={"success": False, "error": "Digital ID not found"})
        )

        async with backend:
            with pytest.raises(ResourceNotFound):
                await backend.get_digital_identity("DID-0")

    @pytest.mark.asyncio
    async def test_client_error_carries_server_message(self):
        backend, _ = make_backend(
            lambda r: httpx.Response(409, json={"message": "Incident already resolved"})
        )

        async with backend:
            with pytest.raises(BackendError) as exc_info:
                await backend.assign_incident("INC-1", "Unit 1")

        assert exc_info.value.message == "Incident already resolved"
        assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_server_error_is_unavailable(self):
        backend, _ = make_backend(lambda r: httpx.Response(503))

        async with backend:
            with pytest.raises(BackendUnavailable):
                await backend.list_zones()

    @pytest.mark.asyncio
    async def test_transport_error_is_unavailable(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend, _ = make_backend(refuse)

        async with backend:
            with pytest.raises(BackendUnavailable):
                await backend.list_incidents()

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        backend, _ = make_backend(lambda r: httpx.Response(200, content=b"<html>"))

        async with backend:
            with pytest.raises(BackendError) as exc_info:
                await backend.list_zones()

        assert "Malformed" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_invalid_record(self):
        backend, _ = make_backend(lambda r: httpx.Response(200, json=[{"id": "zone-1"}]))

        async with backend:
            with pytest.raises(BackendError):
                await backend.list_zones()


# ============================================================================
# AUTHENTICATION
# ============================================================================


class TestAuthenticate:
    """Tests for the live login call."""

    @pytest.mark.asyncio
    async def test_success(self):
        body = {
            "user": {
                "id": "police-9",
                "email": "officer@portal.gov",
                "role": "police",
                "name": "Officer Nine",
                "permissions": ["incidents.read"],
            },
            "token": "jwt-abc",
            "expiresAt": "2024-06-01T20:00:00Z",
        }
        backend, recorder = make_backend(lambda r: httpx.Response(200, json=body))

        async with backend:
            login = await backend.authenticate("officer@portal.gov", "pw")

        assert json.loads(recorder.requests[0].content) == {
            "email": "officer@portal.gov",
            "password": "pw",
        }
        assert recorder.requests[0].url.path == "/api/login"
        assert login.identity.role == Role.POLICE
        assert login.token == "jwt-abc"
        assert login.expires_at == datetime(2024, 6, 1, 20, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_rejected(self):
        backend, _ = make_backend(
            lambda r: httpx.Response(401, json={"message": "Unknown user officer@portal.gov"})
        )

        async with backend:
            with pytest.raises(AuthenticationRejected) as exc_info:
                await backend.authenticate("officer@portal.gov", "bad")

        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio
    async def test_unreachable(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        backend, _ = make_backend(refuse)

        async with backend:
            with pytest.raises(BackendUnavailable):
                await backend.authenticate("officer@portal.gov", "pw")

    @pytest.mark.asyncio
    async def test_malformed_answer(self):
        backend, _ = make_backend(lambda r: httpx.Response(200, json={"token": "x"}))

        async with backend:
            with pytest.raises(BackendError):
                await backend.authenticate("officer@portal.gov", "pw")
