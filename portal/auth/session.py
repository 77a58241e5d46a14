"""
Session Manager.

Owns the only process-wide state of the portal core:
- the current session (identity + expiry, optional live token)
- the backend mode flag (simulated or live)

Both are persisted to client storage under separate keys so the mode
survives logout. Nothing else writes them; consumers read through the
accessors and mutate through ``login``, ``logout``, ``switch_role`` and
``set_mode``.

Expiry is detected lazily: any read of the current identity drops a session
whose ``expires_at`` has passed.

No public method raises. Failures come back as ``AuthResult`` with
``success=False``.
"""

import json
from datetime import datetime, timedelta, timezone
from typing import Optional, Callable, Iterable, List, Protocol, Union

import structlog
from pydantic import ValidationError

from portal.auth import authorization
from portal.auth.authorization import NavItem
from portal.auth.credentials import CredentialStore
from portal.auth.schemas import (
    AuthResult,
    BackendMode,
    Identity,
    LiveLogin,
    Role,
    Session,
)
from portal.auth.storage import ClientStorage, MemoryStorage
from portal.common.exceptions import (
    AuthenticationRejected,
    BackendError,
    BackendUnavailable,
    ErrorCode,
    PortalError,
    SessionExpired,
)
from portal.core.config import Settings, settings as default_settings

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Authenticator(Protocol):
    """Live authentication call."""

    async def authenticate(self, identifier: str, secret: str) -> LiveLogin:
        ...


class SessionManager:
    """
    Owned state container for the authenticated session and backend mode.

    Usage:
        manager = SessionManager(storage=FileStorage(path))
        manager.restore()
        result = await manager.login("admin@demo.local", "Admin@1234")
        if manager.allows("incidents.read"):
            ...
    """

    def __init__(
        self,
        storage: Optional[ClientStorage] = None,
        credentials: Optional[CredentialStore] = None,
        authenticator: Optional[Authenticator] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
    ):
        self._settings = settings or default_settings
        self._storage = storage if storage is not None else MemoryStorage()
        self._credentials = credentials if credentials is not None else CredentialStore()
        self._authenticator = authenticator
        self._clock = clock or utc_now
        self._ttl = timedelta(hours=self._settings.session_ttl_hours)
        self._session_key = self._settings.session_storage_key
        self._mode_key = self._settings.mode_storage_key

        self._session: Optional[Session] = None
        self._simulated: bool = self._settings.default_simulated_mode

    # ========================================================================
    # WIRING
    # ========================================================================

    def attach_authenticator(self, authenticator: Authenticator) -> None:
        """Set the live authentication call (the live backend)."""
        self._authenticator = authenticator

    @property
    def credentials(self) -> CredentialStore:
        return self._credentials

    # ========================================================================
    # RESTORE
    # ========================================================================

    def restore(self) -> None:
        """
        Load persisted session and mode.

        Absent, expired and malformed records all resolve to "no session";
        the bad record is removed. Never raises.
        """
        self._simulated = self._read_mode()
        self._session = None

        raw = self._storage.get_item(self._session_key)
        if raw is None:
            logger.info("session_restore_empty", mode=self.current_mode().value)
            return

        try:
            session = Session.model_validate_json(raw)
        except (ValidationError, ValueError, TypeError) as e:
            logger.warning("session_restore_malformed", error=str(e))
            self._discard_persisted_session()
            return

        if not session.is_valid(self._clock()):
            logger.info(
                "session_restore_expired",
                user_id=session.identity.id,
                expired_at=session.expires_at.isoformat(),
            )
            self._discard_persisted_session()
            return

        self._session = session
        logger.info(
            "session_restored",
            user_id=session.identity.id,
            role=session.identity.role.value,
            mode=self.current_mode().value,
        )

    def _read_mode(self) -> bool:
        raw = self._storage.get_item(self._mode_key)
        if raw is None:
            return self._settings.default_simulated_mode
        try:
            value = json.loads(raw)
        except ValueError:
            value = None
        if not isinstance(value, bool):
            logger.warning("mode_restore_malformed", raw=raw[:50])
            return self._settings.default_simulated_mode
        return value

    # ========================================================================
    # ACCESSORS
    # ========================================================================

    def current_session(self) -> Optional[Session]:
        """The valid session, or None. Drops an expired one."""
        session = self._session
        if session is None:
            return None
        if not session.is_valid(self._clock()):
            self._expire(session)
            return None
        return session

    def current_identity(self) -> Optional[Identity]:
        session = self.current_session()
        return session.identity if session else None

    def current_token(self) -> Optional[str]:
        session = self.current_session()
        return session.token if session else None

    @property
    def is_simulated(self) -> bool:
        return self._simulated

    def current_mode(self) -> BackendMode:
        return BackendMode.SIMULATED if self._simulated else BackendMode.LIVE

    def is_authenticated(self) -> bool:
        return self.current_identity() is not None

    def role_switch_available(self) -> bool:
        """Role switching is offered only in simulated mode with a session."""
        return self._simulated and self.current_identity() is not None

    def allows(self, capability: str) -> bool:
        return authorization.allows(self.current_identity(), capability)

    def has_role(self, roles: Union[Role, str, Iterable[Union[Role, str]]]) -> bool:
        return authorization.has_role(self.current_identity(), roles)

    def visible_navigation(self) -> List[NavItem]:
        return authorization.visible_navigation(self.current_identity())

    def _expire(self, session: Session) -> None:
        error = SessionExpired(user_id=session.identity.id)
        logger.info(
            "session_expired",
            user_id=session.identity.id,
            expired_at=session.expires_at.isoformat(),
            code=error.code.value,
        )
        self._session = None
        self._discard_persisted_session()

    # ========================================================================
    # LOGIN / LOGOUT
    # ========================================================================

    async def login(self, identifier: str, secret: str) -> AuthResult:
        """
        Authenticate and start a session.

        Simulated mode checks the credential store. Live mode calls the
        live backend. A failure never touches the existing session.
        """
        try:
            if self._simulated:
                session = self._login_simulated(identifier, secret)
            else:
                session = await self._login_live(identifier, secret)
        except AuthenticationRejected as e:
            logger.info(
                "login_rejected",
                identifier=identifier,
                mode=self.current_mode().value,
            )
            return AuthResult.failed(e.message, e.code)
        except PortalError as e:
            logger.warning(
                "login_failed",
                identifier=identifier,
                mode=self.current_mode().value,
                error=e.message,
                code=e.code.value,
            )
            return AuthResult.failed(e.message, e.code)

        self._install(session)
        logger.info(
            "login_succeeded",
            user_id=session.identity.id,
            role=session.identity.role.value,
            mode=self.current_mode().value,
            expires_at=session.expires_at.isoformat(),
        )
        return AuthResult.ok(
            identity=session.identity,
            message=f"Welcome, {session.identity.name}",
        )

    def _login_simulated(self, identifier: str, secret: str) -> Session:
        identity = self._credentials.authenticate(identifier, secret)
        if identity is None:
            raise AuthenticationRejected()
        return self._issue(identity)

    async def _login_live(self, identifier: str, secret: str) -> Session:
        if self._authenticator is None:
            raise BackendUnavailable(message="Authentication service unavailable")

        try:
            result = await self._authenticator.authenticate(identifier, secret)
        except PortalError:
            raise
        except Exception as e:
            logger.exception("live_authentication_error", error=str(e))
            raise BackendUnavailable(message="Authentication service unavailable")

        now = self._clock()
        expires_at = result.expires_at or now + self._ttl
        if expires_at <= now:
            raise BackendError(
                "Authentication service issued an expired session",
                details={"expires_at": expires_at.isoformat()},
            )
        return Session(
            identity=result.identity,
            issued_at=now,
            expires_at=expires_at,
            token=result.token,
        )

    def logout(self) -> None:
        """Discard the session. Idempotent."""
        previous = self._session
        self._session = None
        self._discard_persisted_session()
        if previous is not None:
            logger.info("logout", user_id=previous.identity.id)

    # ========================================================================
    # ROLE SWITCH / MODE
    # ========================================================================

    async def switch_role(self, role: Union[Role, str]) -> AuthResult:
        """
        Reissue the session as the demo account holding ``role``.

        Simulated mode only. Fails without side effects in live mode or when
        no account has the role.
        """
        if not self._simulated:
            logger.info("role_switch_refused", reason="live_mode", role=str(role))
            return AuthResult.failed(
                "Role switching is only available in simulated mode",
                ErrorCode.PERMISSION_DENIED,
            )

        try:
            target = Role(role)
        except ValueError:
            logger.info("role_switch_refused", reason="unknown_role", role=str(role))
            return AuthResult.failed(
                f"Unknown role: {role}",
                ErrorCode.VALIDATION_ERROR,
            )

        identity = self._credentials.find_by_role(target)
        if identity is None:
            logger.info("role_switch_refused", reason="no_account", role=target.value)
            return AuthResult.failed(
                f"No demo account for role: {target.value}",
                ErrorCode.NOT_FOUND,
            )

        session = self._issue(identity, previous=self.current_session())
        self._install(session)
        logger.info(
            "role_switched",
            user_id=identity.id,
            role=target.value,
            expires_at=session.expires_at.isoformat(),
        )
        return AuthResult.ok(
            identity=identity,
            message=f"Now logged in as {identity.name} ({target.value})",
        )

    async def set_mode(self, simulated: Union[bool, BackendMode, str]) -> AuthResult:
        """
        Persist the backend mode.

        Accepts a bool (True for simulated), a ``BackendMode`` or its string
        value. Anything else fails without changing the mode.

        Entering simulated mode without a session logs in the default demo
        identity. Entering live mode leaves any session in place.
        """
        if isinstance(simulated, str):
            try:
                simulated = BackendMode(simulated)
            except ValueError:
                logger.info("mode_change_refused", mode=simulated)
                return AuthResult.failed(
                    f"Unknown mode: {simulated}",
                    ErrorCode.VALIDATION_ERROR,
                )
        if isinstance(simulated, BackendMode):
            simulated = simulated is BackendMode.SIMULATED
        if not isinstance(simulated, bool):
            logger.info("mode_change_refused", mode=repr(simulated))
            return AuthResult.failed(
                f"Unknown mode: {simulated!r}",
                ErrorCode.VALIDATION_ERROR,
            )

        self._simulated = bool(simulated)
        self._persist(self._mode_key, json.dumps(self._simulated))
        logger.info("mode_changed", mode=self.current_mode().value)

        if self._simulated and self.current_identity() is None:
            identifier = self._settings.default_simulated_identifier
            identity = self._credentials.get(identifier)
            if identity is None:
                logger.warning("default_identity_missing", identifier=identifier)
                return AuthResult.failed(
                    f"No demo account for {identifier}",
                    ErrorCode.NOT_FOUND,
                )
            session = self._issue(identity)
            self._install(session)
            logger.info("auto_login", user_id=identity.id, role=identity.role.value)
            return AuthResult.ok(identity=identity)

        return AuthResult.ok(identity=self.current_identity())

    # ========================================================================
    # INTERNALS
    # ========================================================================

    def _issue(self, identity: Identity, previous: Optional[Session] = None) -> Session:
        now = self._clock()
        expires_at = now + self._ttl
        # a reissued session always outlives the one it replaces
        if previous is not None and expires_at <= previous.expires_at:
            expires_at = previous.expires_at + timedelta(microseconds=1)
        return Session(identity=identity, issued_at=now, expires_at=expires_at)

    def _install(self, session: Session) -> None:
        self._session = session
        self._persist(self._session_key, session.model_dump_json())

    def _persist(self, key: str, value: str) -> None:
        try:
            self._storage.set_item(key, value)
        except OSError as e:
            logger.warning("client_storage_write_failed", key=key, error=str(e))

    def _discard_persisted_session(self) -> None:
        try:
            self._storage.remove_item(self._session_key)
        except OSError as e:
            logger.warning("session_discard_failed", error=str(e))
