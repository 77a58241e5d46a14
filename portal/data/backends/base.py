"""Abstract data backend interface."""

from abc import ABC, abstractmethod
from typing import Optional, List

from portal.data.schemas import (
    Alert,
    AuditEntry,
    DigitalIdentity,
    HeatmapZone,
    Incident,
    OperatorCall,
    Zone,
)


def is_filter(value: Optional[str]) -> bool:
    """``None`` and ``"all"`` mean no filtering."""
    return value is not None and value != "all"


def matches_search(search: Optional[str], *fields: Optional[str]) -> bool:
    """Case-insensitive substring match on any of ``fields``. Blank search matches all."""
    if not search or not search.strip():
        return True
    needle = search.strip().casefold()
    return any(needle in field.casefold() for field in fields if field)


class DataBackend(ABC):
    """
    Resource operations shared by the simulated and live backends.

    Implementations return records or raise a ``PortalError``; the façade
    converts either into an envelope.
    """

    name: str = "abstract"

    # Incidents

    @abstractmethod
    async def list_incidents(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Incident]:
        pass

    @abstractmethod
    async def get_incident(self, incident_id: str) -> Incident:
        pass

    @abstractmethod
    async def assign_incident(self, incident_id: str, assignee: str) -> Incident:
        pass

    # Zones

    @abstractmethod
    async def list_zones(self, status: Optional[str] = None) -> List[Zone]:
        pass

    @abstractmethod
    async def get_zone(self, zone_id: str) -> Zone:
        pass

    @abstractmethod
    async def get_heatmap(self) -> List[HeatmapZone]:
        pass

    # Alerts

    @abstractmethod
    async def list_alerts(self, priority: Optional[str] = None) -> List[Alert]:
        pass

    # Digital identities

    @abstractmethod
    async def list_digital_identities(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[DigitalIdentity]:
        pass

    @abstractmethod
    async def get_digital_identity(self, digital_id: str) -> DigitalIdentity:
        pass

    @abstractmethod
    async def verify_digital_identity(self, digital_id: str) -> DigitalIdentity:
        pass

    # Operator calls

    @abstractmethod
    async def list_operator_calls(
        self,
        status: Optional[str] = None,
    ) -> List[OperatorCall]:
        pass

    @abstractmethod
    async def get_operator_call(self, call_id: str) -> OperatorCall:
        pass

    @abstractmethod
    async def accept_call(self, call_id: str) -> OperatorCall:
        pass

    @abstractmethod
    async def decline_call(self, call_id: str) -> OperatorCall:
        pass

    @abstractmethod
    async def end_call(self, call_id: str, summary: Optional[str] = None) -> OperatorCall:
        pass

    # Audit

    @abstractmethod
    async def list_audit_entries(
        self,
        action: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[AuditEntry]:
        pass

    @abstractmethod
    async def append_audit_entry(
        self,
        action: str,
        resource: str,
        user: str,
        status: str = "completed",
    ) -> AuditEntry:
        pass

    async def aclose(self) -> None:
        """Release resources. No-op by default."""
        return None
