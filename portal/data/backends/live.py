"""
Live backend for the portal API.

Responsibilities:
- Translate each data-access operation into one HTTP request
- Perform the live authentication call
- Attach the current session's bearer token
- Convert transport failures and non-2xx answers into portal errors

Responses may be envelope-shaped (``{"success", "data", "error"}``) or the
raw payload; both are accepted.
"""

from typing import Optional, Any, Callable, Dict, List, Type, TypeVar

import httpx
import structlog
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from portal.auth.schemas import Identity, LiveLogin
from portal.common.exceptions import (
    AuthenticationRejected,
    BackendError,
    BackendUnavailable,
    ResourceNotFound,
)
from portal.data.backends.base import DataBackend, is_filter
from portal.data.schemas import (
    Alert,
    AuditEntry,
    DigitalIdentity,
    HeatmapZone,
    Incident,
    OperatorCall,
    PortalRecord,
    Zone,
)

logger = structlog.get_logger(__name__)

R = TypeVar("R", bound=PortalRecord)

TokenProvider = Callable[[], Optional[str]]


# ============================================================================
# CONFIGURATION
# ============================================================================


class LiveBackendConfig(BaseModel):
    """Configuration for the live backend."""

    base_url: str = Field(
        default="http://localhost:8001",
        description="Portal API base URL",
    )
    timeout_seconds: float = Field(
        default=30.0,
        description="HTTP request timeout",
    )


# ============================================================================
# LIVE BACKEND
# ============================================================================


class LiveBackend(DataBackend):
    """
    HTTP client for the real portal service.

    Usage:
        async with LiveBackend(config) as backend:
            incidents = await backend.list_incidents(status="reported")

    Error Handling:
        - transport errors and 5xx raise BackendUnavailable
        - 404 raises ResourceNotFound
        - other non-2xx raise BackendError with the server's message
    """

    name = "live"

    def __init__(
        self,
        config: Optional[LiveBackendConfig] = None,
        token_provider: Optional[TokenProvider] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or LiveBackendConfig()
        self._token_provider = token_provider
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "LiveBackend":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False

    def set_token_provider(self, token_provider: TokenProvider) -> None:
        self._token_provider = token_provider

    async def connect(self) -> None:
        """Initialize HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout_seconds),
                headers={
                    "User-Agent": "AuthorityPortal/1.0",
                    "Accept": "application/json",
                },
                transport=self._transport,
            )
            logger.info("live_backend_connected", base_url=self.config.base_url)

    async def aclose(self) -> None:
        """Close HTTP client."""
        if self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None
            logger.info("live_backend_disconnected")

    # ========================================================================
    # TRANSPORT
    # ========================================================================

    async def _request(
        self,
        method: str,
        path: str,
        resource: str,
        key: Optional[str] = None,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        await self.connect()

        headers = {}
        token = self._token_provider() if self._token_provider else None
        if token:
            headers["Authorization"] = f"Bearer {token}"

        logger.debug("live_request", method=method, path=path, params=params)

        try:
            response = await self._http_client.request(
                method,
                path,
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.warning("live_request_failed", method=method, path=path, error=str(e))
            raise BackendUnavailable(details={"error": str(e)})

        if response.status_code == 404 and key is not None:
            raise ResourceNotFound(resource, key)
        if response.status_code >= 500:
            logger.warning("live_server_error", path=path, status_code=response.status_code)
            raise BackendUnavailable(
                details={"status_code": response.status_code},
            )
        if not response.is_success:
            raise BackendError(
                _error_message(response),
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError:
            raise BackendError(
                f"Malformed {resource} response",
                status_code=response.status_code,
            )

        if isinstance(body, dict) and "success" in body:
            if not body.get("success"):
                error = body.get("error") or "Request failed"
                if key is not None and "not found" in str(error).lower():
                    raise ResourceNotFound(resource, key)
                raise BackendError(str(error), status_code=response.status_code)
            return body.get("data")
        return body

    # ========================================================================
    # AUTHENTICATION
    # ========================================================================

    async def authenticate(self, identifier: str, secret: str) -> LiveLogin:
        """
        Exchange credentials for an identity and token.

        Raises:
            AuthenticationRejected: credentials refused (any 4xx)
            BackendUnavailable: network failure or 5xx
        """
        await self.connect()

        try:
            response = await self._http_client.post(
                "/api/login",
                json={"email": identifier, "password": secret},
            )
        except httpx.HTTPError as e:
            logger.warning("live_login_unreachable", error=str(e))
            raise BackendUnavailable(message="Authentication service unavailable")

        if response.status_code >= 500:
            raise BackendUnavailable(
                message="Authentication service unavailable",
                details={"status_code": response.status_code},
            )
        if not response.is_success:
            logger.info(
                "live_login_rejected",
                status_code=response.status_code,
                server_message=_error_message(response),
            )
            raise AuthenticationRejected()

        try:
            body = response.json()
            user = body.get("user") or body.get("identity")
            return LiveLogin(
                identity=Identity.model_validate(user),
                token=body.get("token"),
                expires_at=body.get("expiresAt") or body.get("expires_at"),
            )
        except (ValueError, AttributeError, PydanticValidationError) as e:
            logger.warning("live_login_malformed", error=str(e))
            raise BackendError(
                "Malformed authentication response",
                status_code=response.status_code,
            )

    # ========================================================================
    # PARSING
    # ========================================================================

    def _parse(self, model: Type[R], data: Any, resource: str) -> R:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            logger.warning("live_response_invalid", resource=resource, error=str(e))
            raise BackendError(f"Malformed {resource} response")

    def _parse_list(self, model: Type[R], data: Any, resource: str) -> List[R]:
        if not isinstance(data, list):
            raise BackendError(f"Malformed {resource} list response")
        return [self._parse(model, item, resource) for item in data]

    # ========================================================================
    # INCIDENTS
    # ========================================================================

    async def list_incidents(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Incident]:
        data = await self._request(
            "GET",
            "/api/incidents",
            "incident",
            params=_filters(status=status, priority=priority, search=_search_term(search)),
        )
        return self._parse_list(Incident, data, "incident")

    async def get_incident(self, incident_id: str) -> Incident:
        data = await self._request("GET", f"/api/incidents/{incident_id}", "incident", key=incident_id)
        return self._parse(Incident, data, "incident")

    async def assign_incident(self, incident_id: str, assignee: str) -> Incident:
        data = await self._request(
            "POST",
            f"/api/incidents/{incident_id}/assign",
            "incident",
            key=incident_id,
            json={"assignedTo": assignee},
        )
        return self._parse(Incident, data, "incident")

    # ========================================================================
    # ZONES / HEATMAP / ALERTS
    # ========================================================================

    async def list_zones(self, status: Optional[str] = None) -> List[Zone]:
        data = await self._request("GET", "/api/zones", "zone", params=_filters(status=status))
        return self._parse_list(Zone, data, "zone")

    async def get_zone(self, zone_id: str) -> Zone:
        data = await self._request("GET", f"/api/zones/{zone_id}", "zone", key=zone_id)
        return self._parse(Zone, data, "zone")

    async def get_heatmap(self) -> List[HeatmapZone]:
        data = await self._request("GET", "/api/heatmap", "heatmap")
        # the heatmap endpoint wraps its zones
        if isinstance(data, dict) and "zones" in data:
            data = data["zones"]
        return self._parse_list(HeatmapZone, data, "heatmap")

    async def list_alerts(self, priority: Optional[str] = None) -> List[Alert]:
        data = await self._request("GET", "/api/alerts", "alert", params=_filters(priority=priority))
        return self._parse_list(Alert, data, "alert")

    # ========================================================================
    # DIGITAL IDENTITIES
    # ========================================================================

    async def list_digital_identities(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[DigitalIdentity]:
        data = await self._request(
            "GET",
            "/api/digital-ids",
            "digital identity",
            params=_filters(status=status, search=_search_term(search)),
        )
        return self._parse_list(DigitalIdentity, data, "digital identity")

    async def get_digital_identity(self, digital_id: str) -> DigitalIdentity:
        data = await self._request(
            "GET",
            f"/api/digital-ids/{digital_id}",
            "digital identity",
            key=digital_id,
        )
        return self._parse(DigitalIdentity, data, "digital identity")

    async def verify_digital_identity(self, digital_id: str) -> DigitalIdentity:
        data = await self._request(
            "POST",
            f"/api/digital-ids/{digital_id}/verify",
            "digital identity",
            key=digital_id,
        )
        return self._parse(DigitalIdentity, data, "digital identity")

    # ========================================================================
    # OPERATOR CALLS
    # ========================================================================

    async def list_operator_calls(
        self,
        status: Optional[str] = None,
    ) -> List[OperatorCall]:
        data = await self._request("GET", "/api/calls", "call", params=_filters(status=status))
        return self._parse_list(OperatorCall, data, "call")

    async def get_operator_call(self, call_id: str) -> OperatorCall:
        data = await self._request("GET", f"/api/calls/{call_id}", "call", key=call_id)
        return self._parse(OperatorCall, data, "call")

    async def accept_call(self, call_id: str) -> OperatorCall:
        data = await self._request("POST", f"/api/calls/{call_id}/accept", "call", key=call_id)
        return self._parse(OperatorCall, data, "call")

    async def decline_call(self, call_id: str) -> OperatorCall:
        data = await self._request("POST", f"/api/calls/{call_id}/decline", "call", key=call_id)
        return self._parse(OperatorCall, data, "call")

    async def end_call(self, call_id: str, summary: Optional[str] = None) -> OperatorCall:
        data = await self._request(
            "POST",
            f"/api/calls/{call_id}/end",
            "call",
            key=call_id,
            json={"summary": summary} if summary else None,
        )
        return self._parse(OperatorCall, data, "call")

    # ========================================================================
    # AUDIT
    # ========================================================================

    async def list_audit_entries(
        self,
        action: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[AuditEntry]:
        data = await self._request(
            "GET",
            "/api/audit-logs",
            "audit entry",
            params=_filters(action=action, status=status),
        )
        return self._parse_list(AuditEntry, data, "audit entry")

    async def append_audit_entry(
        self,
        action: str,
        resource: str,
        user: str,
        status: str = "completed",
    ) -> AuditEntry:
        data = await self._request(
            "POST",
            "/api/audit-logs",
            "audit entry",
            json={
                "action": action,
                "resource": resource,
                "user": user,
                "status": status,
            },
        )
        return self._parse(AuditEntry, data, "audit entry")


def _filters(**kwargs: Optional[str]) -> Dict[str, str]:
    return {k: v for k, v in kwargs.items() if is_filter(v)}


def _search_term(search: Optional[str]) -> Optional[str]:
    term = search.strip() if search else ""
    return term or None


def _error_message(response: httpx.Response) -> str:
    """Server-supplied message, falling back to the status line."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for field in ("message", "error", "detail"):
            if body.get(field):
                return str(body[field])
    return f"Request failed with status {response.status_code}"
