"""
Domain record schemas and the uniform result envelope.

Records accept both snake_case and camelCase keys so that the simulated
fixtures and the live API's JSON validate into the same shapes.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Tuple, Generic, TypeVar, Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


# ============================================================================
# ENUMS
# ============================================================================


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EMERGENCY = "emergency"


class IncidentStatus(str, Enum):
    REPORTED = "reported"
    ACKNOWLEDGED = "acknowledged"
    DISPATCHED = "dispatched"
    RESOLVED = "resolved"


class ZoneStatus(str, Enum):
    SAFE = "safe"
    MODERATE = "moderate"
    UNSAFE = "unsafe"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DigitalIdStatus(str, Enum):
    VERIFIED = "verified"
    PENDING = "pending"
    FLAGGED = "flagged"


class CallStatus(str, Enum):
    INCOMING = "incoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    DECLINED = "declined"


class AuditStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    COMPLETED = "completed"
    DENIED = "denied"


# ============================================================================
# RECORDS
# ============================================================================


class PortalRecord(BaseModel):
    """Base for domain records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict:
        """camelCase JSON-ready dict."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Incident(PortalRecord):
    id: str
    title: str
    description: str = ""
    type: str = "other"
    priority: Priority = Priority.MEDIUM
    status: IncidentStatus = IncidentStatus.REPORTED
    location: str = ""
    coordinates: Optional[Tuple[float, float]] = None
    reported_by: str = ""
    reported_at: datetime
    assigned_to: Optional[str] = None
    digital_id: Optional[str] = None
    estimated_response: Optional[str] = None


class Zone(PortalRecord):
    id: str
    name: str
    status: ZoneStatus
    risk_score: float
    polygon: List[Tuple[float, float]] = Field(default_factory=list)
    last_update: datetime


class HeatmapZone(PortalRecord):
    id: str
    name: str
    coordinates: List[Tuple[float, float]] = Field(default_factory=list)
    risk_level: RiskLevel
    incident_count: int = 0
    color: str = "#16a34a"


class Alert(PortalRecord):
    id: str
    type: str
    title: str
    message: str = ""
    timestamp: datetime
    priority: Priority = Priority.MEDIUM
    location: str = ""
    digital_id: Optional[str] = None


class DigitalIdentity(PortalRecord):
    digital_id: str
    name: str
    nationality: str
    status: DigitalIdStatus
    issue_date: datetime
    expiry_date: datetime
    last_seen: Optional[datetime] = None
    location: str = ""
    visa_type: Optional[str] = None
    verification_count: int = 0
    blockchain_tx: Optional[str] = None
    consent_scope: List[str] = Field(default_factory=list)
    flag_reason: Optional[str] = None
    pending_reason: Optional[str] = None
    last_verified_at: Optional[datetime] = None


class OperatorCall(PortalRecord):
    id: str
    incident_id: Optional[str] = None
    caller_id: str
    caller_location: str
    call_type: str
    priority: Priority = Priority.MEDIUM
    status: CallStatus
    start_time: datetime
    end_time: Optional[datetime] = None
    duration_seconds: Optional[int] = None
    operator_id: Optional[str] = None
    operator_name: Optional[str] = None
    summary: str = ""
    outcome: Optional[str] = None


class AuditEntry(PortalRecord):
    id: str
    action: str
    user: str
    resource: str
    timestamp: datetime
    status: AuditStatus = AuditStatus.COMPLETED
    approved_by: Optional[str] = None


# ============================================================================
# ENVELOPE
# ============================================================================


class Envelope(BaseModel, Generic[T]):
    """
    Uniform result of every data-access operation.

    Exactly one of ``data`` / ``error`` is meaningful: ``success`` says which.
    """

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Any) -> "Envelope":
        return cls(success=True, data=data, error=None)

    @classmethod
    def fail(cls, error: str) -> "Envelope":
        return cls(success=False, data=None, error=error or "Request failed")
