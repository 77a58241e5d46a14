"""
Simulated backend.

Serves the demo fixture set from memory with artificial latency:
- every call waits ``delay_seconds`` before answering
- filters are applied here, not by the caller
- mutations change the owned fixture in place; later reads see the change
- reads hand out copies so callers cannot edit fixtures behind its back
"""

import asyncio
import random
from datetime import datetime, timezone
from typing import Optional, List, Callable, TypeVar

import structlog

from portal.common.exceptions import (
    InvalidStateError,
    ResourceNotFound,
    ValidationError,
)
from portal.data.backends.base import DataBackend, is_filter, matches_search
from portal.data.fixtures import FixtureSet, build_fixtures
from portal.data.schemas import (
    Alert,
    AuditEntry,
    AuditStatus,
    CallStatus,
    DigitalIdentity,
    DigitalIdStatus,
    HeatmapZone,
    Incident,
    IncidentStatus,
    OperatorCall,
    PortalRecord,
    Zone,
)

logger = structlog.get_logger(__name__)

R = TypeVar("R", bound=PortalRecord)


def _copy(record: R) -> R:
    return record.model_copy(deep=True)


def _copies(records: List[R]) -> List[R]:
    return [_copy(r) for r in records]


def _find(records: List[R], key: Callable[[R], str], value: str, resource: str) -> R:
    for record in records:
        if key(record) == value:
            return record
    raise ResourceNotFound(resource, value)


class SimulatedBackend(DataBackend):
    """
    In-memory backend over a fixture set.

    Usage:
        backend = SimulatedBackend(delay_seconds=0.5)
        incidents = await backend.list_incidents(status="dispatched")
    """

    name = "simulated"

    def __init__(
        self,
        delay_seconds: float = 0.5,
        fixtures: Optional[FixtureSet] = None,
        clock: Optional[Callable[[], datetime]] = None,
        rng: Optional[random.Random] = None,
    ):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._fixtures = fixtures or build_fixtures(self._clock())
        self._rng = rng or random.Random()
        self.delay_seconds = delay_seconds

    @property
    def fixtures(self) -> FixtureSet:
        return self._fixtures

    async def _delay(self) -> None:
        if self.delay_seconds > 0:
            await asyncio.sleep(self.delay_seconds)

    # ========================================================================
    # INCIDENTS
    # ========================================================================

    async def list_incidents(
        self,
        status: Optional[str] = None,
        priority: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[Incident]:
        await self._delay()
        incidents = self._fixtures.incidents
        if is_filter(status):
            incidents = [i for i in incidents if i.status.value == status]
        if is_filter(priority):
            incidents = [i for i in incidents if i.priority.value == priority]
        incidents = [
            i for i in incidents if matches_search(search, i.id, i.title, i.location)
        ]
        return _copies(incidents)

    async def get_incident(self, incident_id: str) -> Incident:
        await self._delay()
        return _copy(self._incident(incident_id))

    async def assign_incident(self, incident_id: str, assignee: str) -> Incident:
        await self._delay()
        incident = self._incident(incident_id)
        if incident.status == IncidentStatus.RESOLVED:
            raise InvalidStateError("incident", incident_id, incident.status.value, "assign")
        incident.assigned_to = assignee
        incident.status = IncidentStatus.DISPATCHED
        logger.info("incident_assigned", incident_id=incident_id, assignee=assignee)
        return _copy(incident)

    def _incident(self, incident_id: str) -> Incident:
        return _find(self._fixtures.incidents, lambda i: i.id, incident_id, "incident")

    # ========================================================================
    # ZONES / HEATMAP / ALERTS
    # ========================================================================

    async def list_zones(self, status: Optional[str] = None) -> List[Zone]:
        await self._delay()
        zones = self._fixtures.zones
        if is_filter(status):
            zones = [z for z in zones if z.status.value == status]
        return _copies(zones)

    async def get_zone(self, zone_id: str) -> Zone:
        await self._delay()
        return _copy(_find(self._fixtures.zones, lambda z: z.id, zone_id, "zone"))

    async def get_heatmap(self) -> List[HeatmapZone]:
        await self._delay()
        return _copies(self._fixtures.heatmap)

    async def list_alerts(self, priority: Optional[str] = None) -> List[Alert]:
        await self._delay()
        alerts = self._fixtures.alerts
        if is_filter(priority):
            alerts = [a for a in alerts if a.priority.value == priority]
        return _copies(alerts)

    # ========================================================================
    # DIGITAL IDENTITIES
    # ========================================================================

    async def list_digital_identities(
        self,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> List[DigitalIdentity]:
        await self._delay()
        records = self._fixtures.digital_identities
        if is_filter(status):
            records = [d for d in records if d.status.value == status]
        records = [
            d
            for d in records
            if matches_search(search, d.digital_id, d.name, d.nationality, d.location)
        ]
        return _copies(records)

    async def get_digital_identity(self, digital_id: str) -> DigitalIdentity:
        await self._delay()
        return _copy(self._digital_identity(digital_id))

    async def verify_digital_identity(self, digital_id: str) -> DigitalIdentity:
        await self._delay()
        record = self._digital_identity(digital_id)
        record.verification_count += 1
        record.last_verified_at = self._clock()
        record.blockchain_tx = f"TX-{self._rng.getrandbits(48):012x}"
        record.status = DigitalIdStatus.VERIFIED
        record.pending_reason = None
        logger.info(
            "digital_identity_verified",
            digital_id=digital_id,
            verification_count=record.verification_count,
        )
        return _copy(record)

    def _digital_identity(self, digital_id: str) -> DigitalIdentity:
        return _find(
            self._fixtures.digital_identities,
            lambda d: d.digital_id,
            digital_id,
            "digital identity",
        )

    # ========================================================================
    # OPERATOR CALLS
    # ========================================================================

    async def list_operator_calls(
        self,
        status: Optional[str] = None,
    ) -> List[OperatorCall]:
        await self._delay()
        calls = self._fixtures.operator_calls
        if is_filter(status):
            calls = [c for c in calls if c.status.value == status]
        return _copies(calls)

    async def get_operator_call(self, call_id: str) -> OperatorCall:
        await self._delay()
        return _copy(self._call(call_id))

    async def accept_call(self, call_id: str) -> OperatorCall:
        await self._delay()
        call = self._transition(call_id, CallStatus.INCOMING, CallStatus.ACTIVE, "accept")
        return _copy(call)

    async def decline_call(self, call_id: str) -> OperatorCall:
        await self._delay()
        call = self._transition(call_id, CallStatus.INCOMING, CallStatus.DECLINED, "decline")
        call.end_time = self._clock()
        return _copy(call)

    async def end_call(self, call_id: str, summary: Optional[str] = None) -> OperatorCall:
        await self._delay()
        call = self._transition(call_id, CallStatus.ACTIVE, CallStatus.COMPLETED, "end")
        now = self._clock()
        call.end_time = now
        call.duration_seconds = max(0, int((now - call.start_time).total_seconds()))
        if summary:
            call.summary = summary
        call.outcome = "Call completed successfully"
        return _copy(call)

    def _call(self, call_id: str) -> OperatorCall:
        return _find(self._fixtures.operator_calls, lambda c: c.id, call_id, "call")

    def _transition(
        self,
        call_id: str,
        expected: CallStatus,
        target: CallStatus,
        action: str,
    ) -> OperatorCall:
        call = self._call(call_id)
        if call.status != expected:
            raise InvalidStateError("call", call_id, call.status.value, action)
        call.status = target
        logger.info("call_transitioned", call_id=call_id, status=target.value)
        return call

    # ========================================================================
    # AUDIT
    # ========================================================================

    async def list_audit_entries(
        self,
        action: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[AuditEntry]:
        await self._delay()
        entries = self._fixtures.audit_entries
        if is_filter(action):
            entries = [e for e in entries if e.action == action]
        if is_filter(status):
            entries = [e for e in entries if e.status.value == status]
        return _copies(entries)

    async def append_audit_entry(
        self,
        action: str,
        resource: str,
        user: str,
        status: str = "completed",
    ) -> AuditEntry:
        await self._delay()
        try:
            audit_status = AuditStatus(status)
        except ValueError:
            raise ValidationError(f"Unknown audit status: {status}", field="status")
        entries = self._fixtures.audit_entries
        entry = AuditEntry(
            id=f"AUDIT-{len(entries) + 1:03d}",
            action=action,
            user=user,
            resource=resource,
            timestamp=self._clock(),
            status=audit_status,
        )
        entries.append(entry)
        logger.info("audit_entry_appended", audit_id=entry.id, action=action)
        return _copy(entry)
