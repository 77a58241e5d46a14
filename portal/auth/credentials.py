"""
Credential store for simulated mode.

A fixed mapping from login identifier to secret and identity. Secrets are
compared in constant time; nothing here is ever sent over the network.
"""

import hmac
from typing import Optional, Dict, List

import structlog
from pydantic import BaseModel

from portal.auth.schemas import Identity, Role

logger = structlog.get_logger(__name__)


class CredentialEntry(BaseModel):
    """A demo account."""

    secret: str
    identity: Identity


DEMO_CREDENTIALS: Dict[str, CredentialEntry] = {
    "admin@demo.local": CredentialEntry(
        secret="Admin@1234",
        identity=Identity(
            id="admin-1",
            email="admin@demo.local",
            role=Role.ADMIN,
            name="Admin User",
            badge="ADM001",
            permissions=["*"],
        ),
    ),
    "police1@demo.local": CredentialEntry(
        secret="Police@1234",
        identity=Identity(
            id="police-1",
            email="police1@demo.local",
            role=Role.POLICE,
            name="Officer Sarah Chen",
            badge="POL001",
            unit="District 1",
            permissions=[
                "incidents.read",
                "incidents.assign",
                "digital_id.verify",
                "zones.read",
            ],
        ),
    ),
    "tourism1@demo.local": CredentialEntry(
        secret="Tourism@1234",
        identity=Identity(
            id="tourism-1",
            email="tourism1@demo.local",
            role=Role.TOURISM,
            name="Tourism Officer Raj Patel",
            badge="TOU001",
            unit="Tourism Board",
            permissions=[
                "incidents.read",
                "digital_id.verify",
                "zones.read",
                "tourist.read",
            ],
        ),
    ),
    "operator112@demo.local": CredentialEntry(
        secret="Operator@1234",
        identity=Identity(
            id="operator-1",
            email="operator112@demo.local",
            role=Role.OPERATOR_112,
            name="112 Operator Maya Singh",
            badge="OPR001",
            unit="Emergency Response",
            permissions=[
                "incidents.create",
                "incidents.assign",
                "calls.handle",
                "emergency.dispatch",
            ],
        ),
    ),
    "hotel1@demo.local": CredentialEntry(
        secret="Hotel@1234",
        identity=Identity(
            id="hotel-1",
            email="hotel1@demo.local",
            role=Role.HOTEL,
            name="Hotel Manager",
            badge="HTL001",
            unit="Grand Palace Hotel",
            permissions=["incidents.read", "digital_id.verify"],
        ),
    ),
    "tourist_demo@demo.local": CredentialEntry(
        secret="Tourist@1234",
        identity=Identity(
            id="tourist-1",
            email="tourist_demo@demo.local",
            role=Role.TOURIST,
            name="Demo Tourist",
            permissions=["incidents.view_own"],
        ),
    ),
}


class CredentialStore:
    """
    Read-only lookup over demo accounts.

    Usage:
        store = CredentialStore()
        identity = store.authenticate("admin@demo.local", "Admin@1234")
    """

    def __init__(self, entries: Optional[Dict[str, CredentialEntry]] = None):
        self._entries: Dict[str, CredentialEntry] = dict(
            DEMO_CREDENTIALS if entries is None else entries
        )

    def authenticate(self, identifier: str, secret: str) -> Optional[Identity]:
        """Return the identity iff the identifier exists and the secret matches."""
        entry = self._entries.get(identifier)
        if entry is None:
            return None
        if not hmac.compare_digest(entry.secret.encode(), secret.encode()):
            return None
        return entry.identity

    def get(self, identifier: str) -> Optional[Identity]:
        """Identity for ``identifier`` without checking a secret."""
        entry = self._entries.get(identifier)
        return entry.identity if entry else None

    def find_by_role(self, role: Role) -> Optional[Identity]:
        """First identity holding ``role``, in declaration order."""
        for entry in self._entries.values():
            if entry.identity.role == role:
                return entry.identity
        return None

    def roles(self) -> List[Role]:
        """Roles that have at least one account."""
        seen: List[Role] = []
        for entry in self._entries.values():
            if entry.identity.role not in seen:
                seen.append(entry.identity.role)
        return seen

    def __len__(self) -> int:
        return len(self._entries)
