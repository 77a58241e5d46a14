"""
Demo fixtures for the simulated backend.

Timestamps are relative to the time the fixture set is built, so a fresh
process always sees "recent" incidents and calls.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

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
    Priority,
    RiskLevel,
    Zone,
    ZoneStatus,
)


@dataclass
class FixtureSet:
    """Mutable in-memory records owned by one simulated backend."""

    incidents: List[Incident] = field(default_factory=list)
    zones: List[Zone] = field(default_factory=list)
    heatmap: List[HeatmapZone] = field(default_factory=list)
    alerts: List[Alert] = field(default_factory=list)
    digital_identities: List[DigitalIdentity] = field(default_factory=list)
    operator_calls: List[OperatorCall] = field(default_factory=list)
    audit_entries: List[AuditEntry] = field(default_factory=list)


_CONNAUGHT_PLACE = [(28.6328, 77.2197), (28.6340, 77.2210), (28.6320, 77.2220), (28.6308, 77.2207)]
_INDIA_GATE = [(28.6129, 77.2295), (28.6140, 77.2310), (28.6120, 77.2320), (28.6108, 77.2305)]
_RED_FORT = [(28.6562, 77.2410), (28.6580, 77.2430), (28.6560, 77.2440), (28.6542, 77.2420)]
_LODHI_GARDENS = [(28.5934, 77.2157), (28.5950, 77.2180), (28.5920, 77.2190), (28.5904, 77.2167)]


def build_fixtures(now: Optional[datetime] = None) -> FixtureSet:
    """Build a fresh demo fixture set."""
    now = now or datetime.now(timezone.utc)

    def ago(**kwargs) -> datetime:
        return now - timedelta(**kwargs)

    incidents = [
        Incident(
            id="INC-2024-001",
            title="Tourist Harassment at Red Fort",
            description="Foreign tourist reports harassment by local vendors. Immediate assistance requested.",
            type="harassment",
            priority=Priority.HIGH,
            status=IncidentStatus.DISPATCHED,
            location="Red Fort, Delhi",
            coordinates=(28.6562, 77.2410),
            reported_by="Tourist (DID-12345)",
            reported_at=ago(minutes=15),
            assigned_to="Officer Sarah Chen",
            digital_id="DID-12345",
            estimated_response="8 minutes",
        ),
        Incident(
            id="INC-2024-002",
            title="Pickpocket Incident - Connaught Place",
            description="Wallet stolen from tourist near Metro Station. CCTV footage available.",
            type="theft",
            priority=Priority.MEDIUM,
            status=IncidentStatus.ACKNOWLEDGED,
            location="Connaught Place Metro Station",
            coordinates=(28.6328, 77.2197),
            reported_by="Hotel Staff",
            reported_at=ago(minutes=45),
            digital_id="DID-67890",
        ),
        Incident(
            id="INC-2024-003",
            title="Medical Emergency - India Gate",
            description="Tourist collapsed near India Gate. Ambulance requested.",
            type="emergency",
            priority=Priority.HIGH,
            status=IncidentStatus.RESOLVED,
            location="India Gate",
            coordinates=(28.6129, 77.2295),
            reported_by="112 Emergency",
            reported_at=ago(hours=2),
            assigned_to="Paramedic Unit 7",
        ),
        Incident(
            id="INC-2024-004",
            title="Fraudulent Tour Operator - Chandni Chowk",
            description="Tourist overcharged by unlicensed guide. Receipt available.",
            type="fraud",
            priority=Priority.LOW,
            status=IncidentStatus.REPORTED,
            location="Chandni Chowk",
            coordinates=(28.6506, 77.2303),
            reported_by="Tourist (DID-54321)",
            reported_at=ago(minutes=5),
            digital_id="DID-54321",
        ),
    ]

    zones = [
        Zone(
            id="zone-1",
            name="Connaught Place",
            status=ZoneStatus.UNSAFE,
            risk_score=8.5,
            polygon=_CONNAUGHT_PLACE,
            last_update=ago(minutes=10),
        ),
        Zone(
            id="zone-2",
            name="India Gate",
            status=ZoneStatus.MODERATE,
            risk_score=5.2,
            polygon=_INDIA_GATE,
            last_update=ago(minutes=20),
        ),
        Zone(
            id="zone-3",
            name="Lodhi Gardens",
            status=ZoneStatus.SAFE,
            risk_score=2.1,
            polygon=_LODHI_GARDENS,
            last_update=ago(minutes=45),
        ),
    ]

    heatmap = [
        HeatmapZone(
            id="zone-1",
            name="Connaught Place",
            coordinates=_CONNAUGHT_PLACE,
            risk_level=RiskLevel.HIGH,
            incident_count=12,
            color="#dc2626",
        ),
        HeatmapZone(
            id="zone-2",
            name="India Gate",
            coordinates=_INDIA_GATE,
            risk_level=RiskLevel.MEDIUM,
            incident_count=7,
            color="#f59e0b",
        ),
        HeatmapZone(
            id="zone-3",
            name="Red Fort",
            coordinates=_RED_FORT,
            risk_level=RiskLevel.LOW,
            incident_count=3,
            color="#16a34a",
        ),
    ]

    alerts = [
        Alert(
            id="ALERT-001",
            type="emergency",
            title="Emergency SOS Alert",
            message="Tourist in distress at Connaught Place. Immediate response required.",
            timestamp=ago(minutes=5),
            priority=Priority.HIGH,
            location="Connaught Place",
            digital_id="DID-98765",
        ),
        Alert(
            id="ALERT-002",
            type="incident",
            title="New Incident Reported",
            message="Theft reported near India Gate. Assigned to Officer Chen.",
            timestamp=ago(minutes=15),
            priority=Priority.MEDIUM,
            location="India Gate",
        ),
    ]

    digital_identities = [
        DigitalIdentity(
            digital_id="DID-12345",
            name="John Smith",
            nationality="USA",
            status=DigitalIdStatus.VERIFIED,
            issue_date=datetime(2024, 1, 15, tzinfo=timezone.utc),
            expiry_date=datetime(2024, 12, 15, tzinfo=timezone.utc),
            last_seen=ago(minutes=30),
            location="Red Fort",
            visa_type="Tourist e-Visa",
            verification_count=12,
            blockchain_tx="0x7a3f9c2e1b",
            consent_scope=["location", "emergency_contact"],
        ),
        DigitalIdentity(
            digital_id="DID-67890",
            name="Marie Dubois",
            nationality="France",
            status=DigitalIdStatus.VERIFIED,
            issue_date=datetime(2024, 2, 10, tzinfo=timezone.utc),
            expiry_date=datetime(2024, 11, 10, tzinfo=timezone.utc),
            last_seen=ago(hours=1),
            location="Connaught Place",
            visa_type="Tourist e-Visa",
            verification_count=8,
            blockchain_tx="0x4d81b6a0f3",
            consent_scope=["location", "itinerary"],
        ),
        DigitalIdentity(
            digital_id="DID-54321",
            name="Kenji Tanaka",
            nationality="Japan",
            status=DigitalIdStatus.PENDING,
            issue_date=datetime(2024, 3, 1, tzinfo=timezone.utc),
            expiry_date=datetime(2024, 9, 1, tzinfo=timezone.utc),
            last_seen=ago(minutes=5),
            location="Chandni Chowk",
            visa_type="Business Visa",
            verification_count=0,
            consent_scope=["location"],
            pending_reason="Awaiting passport cross-check",
        ),
        DigitalIdentity(
            digital_id="DID-98765",
            name="Ana Souza",
            nationality="Brazil",
            status=DigitalIdStatus.FLAGGED,
            issue_date=datetime(2024, 1, 20, tzinfo=timezone.utc),
            expiry_date=datetime(2024, 10, 20, tzinfo=timezone.utc),
            last_seen=ago(minutes=5),
            location="Connaught Place",
            visa_type="Tourist e-Visa",
            verification_count=3,
            blockchain_tx="0x9e02c7d415",
            consent_scope=["location", "emergency_contact"],
            flag_reason="Active SOS alert",
        ),
    ]

    operator_calls = [
        OperatorCall(
            id="CALL-001",
            incident_id="INC-2024-002",
            caller_id="caller-8k2m4x9qa",
            caller_location="Connaught Place",
            call_type="Emergency",
            priority=Priority.HIGH,
            status=CallStatus.ACTIVE,
            start_time=ago(minutes=5),
            operator_id="operator-1",
            operator_name="112 Operator Maya Singh",
            summary="Tourist reports stolen wallet and passport",
        ),
        OperatorCall(
            id="CALL-002",
            incident_id="INC-2024-004",
            caller_id="caller-p3n7v1zrt",
            caller_location="Chandni Chowk",
            call_type="Harassment",
            priority=Priority.MEDIUM,
            status=CallStatus.INCOMING,
            start_time=ago(minutes=1),
            operator_id="operator-1",
            operator_name="112 Operator Maya Singh",
            summary="New incoming emergency call",
        ),
        OperatorCall(
            id="CALL-003",
            incident_id="INC-2024-003",
            caller_id="caller-c5w0j6hde",
            caller_location="India Gate",
            call_type="Medical",
            priority=Priority.HIGH,
            status=CallStatus.COMPLETED,
            start_time=ago(hours=2),
            end_time=ago(hours=2) + timedelta(minutes=6),
            duration_seconds=360,
            operator_id="operator-1",
            operator_name="112 Operator Maya Singh",
            summary="Ambulance dispatched to India Gate",
            outcome="Call completed successfully",
        ),
    ]

    audit_entries = [
        AuditEntry(
            id="AUDIT-001",
            action="PII_ACCESS",
            user="Officer Sarah Chen",
            resource="Tourist Profile DID-12345",
            timestamp=ago(minutes=30),
            status=AuditStatus.APPROVED,
            approved_by="Admin User",
        ),
        AuditEntry(
            id="AUDIT-002",
            action="INCIDENT_ASSIGN",
            user="Dispatcher Kumar",
            resource="INC-2024-001",
            timestamp=ago(hours=1),
            status=AuditStatus.COMPLETED,
        ),
    ]

    return FixtureSet(
        incidents=incidents,
        zones=zones,
        heatmap=heatmap,
        alerts=alerts,
        digital_identities=digital_identities,
        operator_calls=operator_calls,
        audit_entries=audit_entries,
    )
