"""
Data Access Façade.

The only way surfaces read or change resources. Every operation:
- resolves the backend from the session's mode flag at call time
- checks the capability a mutation needs (when enforcement is on)
- returns an ``Envelope`` and never raises

Consumers cannot tell which backend answered.
"""

from typing import Optional, Any, Awaitable, Callable, List

import structlog

from portal.auth import authorization
from portal.auth.authorization import Capabilities
from portal.auth.session import SessionManager
from portal.common.exceptions import PortalError
from portal.core.config import settings as default_settings
from portal.data.backends.base import DataBackend
from portal.data.schemas import (
    Alert,
    AuditEntry,
    DigitalIdentity,
    Envelope,
    HeatmapZone,
    Incident,
    OperatorCall,
    Zone,
)

logger = structlog.get_logger(__name__)


class DataAccessFacade:
    """
    Uniform async API over the simulated and live backends.

    Usage:
        facade = DataAccessFacade(session, simulated_backend, live_backend)
        result = await facade.get_digital_identity("DID-12345")
        if result.success:
            record = result.data
    """

    def __init__(
        self,
        session: SessionManager,
        simulated: DataBackend,
        live: DataBackend,
        enforce_permissions: Optional[bool] = None,
    ):
        self._session = session
        self._simulated = simulated
        self._live = live
        self._enforce = (
            default_settings.enforce_permissions
            if enforce_permissions is None
            else enforce_permissions
        )

    def _backend(self) -> DataBackend:
        return self._simulated if self._session.is_simulated else self._live

    def _actor_name(self, fallback: str) -> str:
        identity = self._session.current_identity()
        return identity.name if identity else fallback

    async def _call(
        self,
        operation: str,
        invoke: Callable[[DataBackend], Awaitable[Any]],
        capability: Optional[str] = None,
    ) -> Envelope:
        backend = self._backend()
        with structlog.contextvars.bound_contextvars(backend_mode=backend.name):
            try:
                if capability and self._enforce:
                    authorization.require(self._session.current_identity(), capability)
                data = await invoke(backend)
            except PortalError as e:
                logger.info(
                    "data_access_failed",
                    operation=operation,
                    error=e.message,
                    code=e.code.value,
                )
                return Envelope.fail(e.message)
            except Exception as e:
                logger.exception("data_access_error", operation=operation, error=str(e))
                return Envelope.fail("Internal error")

            logger.debug("data_access_succeeded", operation=operation)
            return Envelope.ok(data)

    # ========================================================================
    # INCIDENTS
    # ========================================================================

    async def list_incidents(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Envelope[List[Incident]]:
        return await self._call(
            "list_incidents",
            lambda b: b.list_incidents(status=status, priority=priority, search=search),
        )

    async def get_incident(self, incident_id: str) -> Envelope[Incident]:
        return await self._call("get_incident", lambda b: b.get_incident(incident_id))

    async def assign_incident(
        self,
        incident_id: str,
        assignee: Optional[str] = None,
    ) -> Envelope[Incident]:
        """Assign to ``assignee``, or to the current identity when omitted."""
        return await self._call(
            "assign_incident",
            lambda b: b.assign_incident(
                incident_id,
                assignee or self._actor_name("Current User"),
            ),
            capability=Capabilities.INCIDENTS_ASSIGN,
        )

    # ========================================================================
    # ZONES / HEATMAP / ALERTS
    # ========================================================================

    async def list_zones(self, status: Optional[str] = None) -> Envelope[List[Zone]]:
        return await self._call("list_zones", lambda b: b.list_zones(status=status))

    async def get_zone(self, zone_id: str) -> Envelope[Zone]:
        return await self._call("get_zone", lambda b: b.get_zone(zone_id))

    async def get_heatmap(self) -> Envelope[List[HeatmapZone]]:
        return await self._call("get_heatmap", lambda b: b.get_heatmap())

    async def list_alerts(self, priority: Optional[str] = None) -> Envelope[List[Alert]]:
        return await self._call("list_alerts", lambda b: b.list_alerts(priority=priority))

    # ========================================================================
    # DIGITAL IDENTITIES
    # ========================================================================

    async def list_digital_identities(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> Envelope[List[DigitalIdentity]]:
        return await self._call(
            "list_digital_identities",
            lambda b: b.list_digital_identities(status=status, search=search),
        )

    async def get_digital_identity(self, digital_id: str) -> Envelope[DigitalIdentity]:
        return await self._call(
            "get_digital_identity",
            lambda b: b.get_digital_identity(digital_id),
        )

    async def verify_digital_identity(self, digital_id: str) -> Envelope[DigitalIdentity]:
        return await self._call(
            "verify_digital_identity",
            lambda b: b.verify_digital_identity(digital_id),
            capability=Capabilities.DIGITAL_ID_VERIFY,
        )

    # ========================================================================
    # OPERATOR CALLS
    # ========================================================================

    async def list_operator_calls(
        self,
        status: Optional[str] = None,
    ) -> Envelope[List[OperatorCall]]:
        return await self._call(
            "list_operator_calls",
            lambda b: b.list_operator_calls(status=status),
        )

    async def get_operator_call(self, call_id: str) -> Envelope[OperatorCall]:
        return await self._call("get_operator_call", lambda b: b.get_operator_call(call_id))

    async def accept_call(self, call_id: str) -> Envelope[OperatorCall]:
        return await self._call(
            "accept_call",
            lambda b: b.accept_call(call_id),
            capability=Capabilities.CALLS_HANDLE,
        )

    async def decline_call(self, call_id: str) -> Envelope[OperatorCall]:
        return await self._call(
            "decline_call",
            lambda b: b.decline_call(call_id),
            capability=Capabilities.CALLS_HANDLE,
        )

    async def end_call(
        self,
        call_id: str,
        summary: Optional[str] = None,
    ) -> Envelope[OperatorCall]:
        return await self._call(
            "end_call",
            lambda b: b.end_call(call_id, summary=summary),
            capability=Capabilities.CALLS_HANDLE,
        )

    # ========================================================================
    # AUDIT
    # ========================================================================

    async def list_audit_entries(
        self,
        action: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Envelope[List[AuditEntry]]:
        return await self._call(
            "list_audit_entries",
            lambda b: b.list_audit_entries(action=action, status=status),
        )

    async def append_audit_entry(
        self,
        action: str,
        resource: str,
        status: str = "completed",
    ) -> Envelope[AuditEntry]:
        """Record an action by the current identity ("system" when anonymous)."""
        return await self._call(
            "append_audit_entry",
            lambda b: b.append_audit_entry(
                action,
                resource,
                self._actor_name("system"),
                status=status,
            ),
            capability=Capabilities.AUDIT_WRITE,
        )
