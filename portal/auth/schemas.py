"""
Identity and session schemas.

Roles are a closed enumeration. Display metadata for every role lives in
``ROLE_PROFILES``; the mapping is checked for completeness at import time so
a new role cannot ship without its label, description and icon.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, FrozenSet, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

from portal.common.exceptions import ErrorCode


# ============================================================================
# ENUMS
# ============================================================================


class Role(str, Enum):
    """Closed set of portal roles."""

    ADMIN = "admin"
    POLICE = "police"
    TOURISM = "tourism"
    OPERATOR_112 = "operator_112"
    HOTEL = "hotel"
    TOURIST = "tourist"


class BackendMode(str, Enum):
    """Which backend serves data and authentication."""

    SIMULATED = "simulated"
    LIVE = "live"


# ============================================================================
# ROLE METADATA
# ============================================================================


class RoleProfile(BaseModel):
    """Display metadata for a role."""

    model_config = ConfigDict(frozen=True)

    label: str
    description: str
    icon: str


ROLE_PROFILES: Dict[Role, RoleProfile] = {
    Role.ADMIN: RoleProfile(
        label="Administrator",
        description="Full system access",
        icon="shield",
    ),
    Role.POLICE: RoleProfile(
        label="Police Officer",
        description="Law enforcement operations",
        icon="shield",
    ),
    Role.TOURISM: RoleProfile(
        label="Tourism Officer",
        description="Tourist assistance & monitoring",
        icon="map-pin",
    ),
    Role.OPERATOR_112: RoleProfile(
        label="112 Operator",
        description="Emergency response center",
        icon="phone",
    ),
    Role.HOTEL: RoleProfile(
        label="Hotel Staff",
        description="Hospitality services",
        icon="building",
    ),
    Role.TOURIST: RoleProfile(
        label="Tourist",
        description="Limited tourist view",
        icon="plane",
    ),
}

_missing_profiles = set(Role) - set(ROLE_PROFILES)
if _missing_profiles:
    raise RuntimeError(
        f"Roles without display metadata: {sorted(r.value for r in _missing_profiles)}"
    )


def role_profile(role: Role) -> RoleProfile:
    """Display metadata for ``role``."""
    return ROLE_PROFILES[role]


# ============================================================================
# IDENTITY & SESSION
# ============================================================================


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Identity(BaseModel):
    """Authenticated principal. Replaced wholesale, never edited."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(description="Unique identity ID")
    email: str = Field(description="Login identifier")
    role: Role
    name: str = Field(description="Display name")
    badge: Optional[str] = None
    unit: Optional[str] = None
    permissions: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Capability strings, may contain the wildcard '*'",
    )

    @field_validator("permissions", mode="before")
    @classmethod
    def coerce_permissions(cls, v):
        if v is None:
            return frozenset()
        if isinstance(v, str):
            return frozenset([v])
        if not isinstance(v, (list, tuple, set, frozenset)):
            raise ValueError("permissions must be a list of capability strings")
        return frozenset(v)

    @property
    def profile(self) -> RoleProfile:
        return ROLE_PROFILES[self.role]


class Session(BaseModel):
    """An issued session. Valid iff now < expires_at."""

    model_config = ConfigDict(frozen=True)

    identity: Identity
    issued_at: datetime
    expires_at: datetime
    token: Optional[str] = Field(
        default=None,
        description="Opaque token from the live backend",
    )

    @field_validator("issued_at", "expires_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return as_utc(v)

    def is_valid(self, now: datetime) -> bool:
        return now < self.expires_at


class LiveLogin(BaseModel):
    """Successful answer from the live authentication call."""

    identity: Identity
    token: Optional[str] = None
    expires_at: Optional[datetime] = None

    @field_validator("expires_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v) if v is not None else None


class AuthResult(BaseModel):
    """Outcome of a session operation."""

    success: bool
    message: Optional[str] = None
    code: Optional[ErrorCode] = None
    identity: Optional[Identity] = None

    @classmethod
    def ok(cls, identity: Optional[Identity] = None, message: Optional[str] = None) -> "AuthResult":
        return cls(success=True, identity=identity, message=message)

    @classmethod
    def failed(cls, message: str, code: ErrorCode) -> "AuthResult":
        return cls(success=False, message=message, code=code)
