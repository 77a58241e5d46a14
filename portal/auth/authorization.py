"""
Authorization evaluation.

Two independent checks, both pure and safe to call with ``None``:

- ``allows``: capability check. Exact string match, or the wildcard grants
  everything. There is no hierarchy: ``incidents.read`` does not imply
  ``incidents.assign``.
- ``has_role``: role membership, for surfaces gated by who the user is rather
  than what they may do (the emergency console).

Navigation visibility combines both.
"""

from typing import Optional, Iterable, Tuple, List, Union

from pydantic import BaseModel, ConfigDict

from portal.auth.schemas import Identity, Role
from portal.common.exceptions import PermissionDenied

WILDCARD = "*"


# ============================================================================
# CAPABILITIES
# ============================================================================


class Capabilities:
    """Capability strings used by the portal."""

    DASHBOARD_VIEW = "dashboard.view"

    INCIDENTS_READ = "incidents.read"
    INCIDENTS_ASSIGN = "incidents.assign"
    INCIDENTS_CREATE = "incidents.create"
    INCIDENTS_VIEW_OWN = "incidents.view_own"

    DIGITAL_ID_VERIFY = "digital_id.verify"
    TOURIST_READ = "tourist.read"

    ZONES_READ = "zones.read"
    ZONES_MANAGE = "zones.manage"

    CALLS_HANDLE = "calls.handle"
    EMERGENCY_DISPATCH = "emergency.dispatch"

    AUDIT_READ = "audit.read"
    AUDIT_WRITE = "audit.write"


# ============================================================================
# CHECKS
# ============================================================================


def allows(identity: Optional[Identity], capability: str) -> bool:
    """True iff ``identity`` holds ``capability`` or the wildcard."""
    if identity is None:
        return False
    if WILDCARD in identity.permissions:
        return True
    return capability in identity.permissions


def has_role(
    identity: Optional[Identity],
    roles: Union[Role, str, Iterable[Union[Role, str]]],
) -> bool:
    """True iff ``identity``'s role is one of ``roles``. A single role is accepted too."""
    if identity is None:
        return False
    if isinstance(roles, str):
        roles = (roles,)
    wanted = {r.value if isinstance(r, Role) else str(r) for r in roles}
    return identity.role.value in wanted


def require(identity: Optional[Identity], capability: str) -> None:
    """Raise PermissionDenied unless ``allows(identity, capability)``."""
    if identity is None:
        raise PermissionDenied(
            message="Not authenticated",
            required_capability=capability,
        )
    if not allows(identity, capability):
        raise PermissionDenied(
            message=f"Role '{identity.role.value}' lacks capability '{capability}'",
            required_capability=capability,
        )


# ============================================================================
# NAVIGATION
# ============================================================================


class NavItem(BaseModel):
    """A navigation entry and the gates that control its visibility."""

    model_config = ConfigDict(frozen=True)

    title: str
    href: str
    icon: str
    capability: Optional[str] = None
    roles: Optional[Tuple[Role, ...]] = None
    badge: Optional[str] = None

    def is_visible_to(self, identity: Optional[Identity]) -> bool:
        if self.roles is not None and not has_role(identity, self.roles):
            return False
        if self.capability is not None and not allows(identity, self.capability):
            return False
        return True


NAVIGATION: Tuple[NavItem, ...] = (
    NavItem(
        title="Dashboard",
        href="/dashboard",
        icon="bar-chart",
        capability=Capabilities.DASHBOARD_VIEW,
    ),
    NavItem(
        title="Incidents",
        href="/incidents",
        icon="alert-triangle",
        capability=Capabilities.INCIDENTS_READ,
    ),
    NavItem(
        title="Risk Heatmap",
        href="/heatmap",
        icon="map",
        capability=Capabilities.ZONES_READ,
    ),
    NavItem(
        title="Digital IDs",
        href="/digital-ids",
        icon="id-card",
        capability=Capabilities.DIGITAL_ID_VERIFY,
    ),
    NavItem(
        title="Emergency Console",
        href="/operator",
        icon="phone",
        roles=(Role.OPERATOR_112,),
        badge="LIVE",
    ),
    NavItem(
        title="Zone Management",
        href="/zones",
        icon="map-pin",
        capability=Capabilities.ZONES_MANAGE,
        roles=(Role.ADMIN, Role.POLICE),
    ),
    NavItem(
        title="User Management",
        href="/users",
        icon="users",
        roles=(Role.ADMIN,),
    ),
    NavItem(
        title="Audit Logs",
        href="/audit",
        icon="file-text",
        capability=Capabilities.AUDIT_READ,
        roles=(Role.ADMIN, Role.POLICE),
    ),
    NavItem(
        title="Settings",
        href="/settings",
        icon="settings",
    ),
)


def visible_navigation(
    identity: Optional[Identity],
    items: Iterable[NavItem] = NAVIGATION,
) -> List[NavItem]:
    """Navigation entries ``identity`` may see, in declaration order."""
    return [item for item in items if item.is_visible_to(identity)]
