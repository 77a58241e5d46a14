"""
Authentication and authorization.

- Demo credential store for simulated mode
- Session manager (login, logout, role switch, mode flag, persistence)
- Capability checks and navigation visibility

Usage:
    from portal.auth import SessionManager, Capabilities

    manager = SessionManager()
    manager.restore()
    await manager.login("police1@demo.local", "Police@1234")
    manager.allows(Capabilities.DIGITAL_ID_VERIFY)
"""

from portal.auth.schemas import (
    Role,
    BackendMode,
    RoleProfile,
    ROLE_PROFILES,
    Identity,
    Session,
    AuthResult,
    LiveLogin,
)
from portal.auth.authorization import (
    Capabilities,
    NavItem,
    NAVIGATION,
    allows,
    has_role,
    require,
    visible_navigation,
)
from portal.auth.credentials import CredentialStore, DEMO_CREDENTIALS
from portal.auth.storage import ClientStorage, MemoryStorage, FileStorage
from portal.auth.session import SessionManager

__all__ = [
    "Role",
    "BackendMode",
    "RoleProfile",
    "ROLE_PROFILES",
    "Identity",
    "Session",
    "AuthResult",
    "LiveLogin",
    "Capabilities",
    "NavItem",
    "NAVIGATION",
    "allows",
    "has_role",
    "require",
    "visible_navigation",
    "CredentialStore",
    "DEMO_CREDENTIALS",
    "ClientStorage",
    "MemoryStorage",
    "FileStorage",
    "SessionManager",
]
