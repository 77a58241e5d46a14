"""
Portal Exceptions Module.

Centralized exception definitions with:
- Error codes for client handling
- Structured details
- A single base class caught at the session and data-access boundaries

None of these escape the public API: the session manager turns them into
``AuthResult`` failures and the data-access façade turns them into
failure envelopes.
"""

from typing import Optional, Dict, Any
from enum import Enum


# ============================================================================
# ERROR CODES
# ============================================================================


class ErrorCode(str, Enum):
    """Portal error codes."""

    # General errors (1xxx)
    INTERNAL_ERROR = "E1000"
    VALIDATION_ERROR = "E1001"
    NOT_FOUND = "E1002"
    INVALID_STATE = "E1004"

    # Authentication / authorization errors (2xxx)
    AUTHENTICATION_REJECTED = "E2001"
    SESSION_EXPIRED = "E2002"
    PERMISSION_DENIED = "E2003"

    # Backend errors (5xxx)
    BACKEND_ERROR = "E5000"
    BACKEND_UNAVAILABLE = "E5003"


# ============================================================================
# BASE EXCEPTION
# ============================================================================


class PortalError(Exception):
    """Base exception for the portal core."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(message)


# ============================================================================
# SPECIFIC EXCEPTIONS
# ============================================================================


class ValidationError(PortalError):
    """A request argument is not acceptable."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(
            message=message,
            code=ErrorCode.VALIDATION_ERROR,
            details={"field": field} if field else None,
        )


class AuthenticationRejected(PortalError):
    """Credentials were rejected, locally or by the live backend.

    The message is deliberately generic so that an unknown identifier and a
    wrong secret look the same to the user.
    """

    def __init__(
        self,
        message: str = "Invalid credentials",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.AUTHENTICATION_REJECTED,
            details=details,
        )


class SessionExpired(PortalError):
    """The stored session is past its expiry."""

    def __init__(self, user_id: Optional[str] = None):
        super().__init__(
            message="Session expired",
            code=ErrorCode.SESSION_EXPIRED,
            details={"user_id": user_id} if user_id else None,
        )


class PermissionDenied(PortalError):
    """The current identity or mode does not permit the action."""

    def __init__(
        self,
        message: str = "Access denied",
        required_capability: Optional[str] = None,
    ):
        details = {}
        if required_capability:
            details["required_capability"] = required_capability
        super().__init__(
            message=message,
            code=ErrorCode.PERMISSION_DENIED,
            details=details,
        )


class ResourceNotFound(PortalError):
    """Requested key is absent from the backend."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found: {identifier}",
            code=ErrorCode.NOT_FOUND,
            details={"resource": resource, "identifier": identifier},
        )


class InvalidStateError(PortalError):
    """A mutation was requested from a state that does not allow it."""

    def __init__(self, resource: str, identifier: str, state: str, action: str):
        super().__init__(
            message=f"Cannot {action} {resource} {identifier} in state '{state}'",
            code=ErrorCode.INVALID_STATE,
            details={
                "resource": resource,
                "identifier": identifier,
                "state": state,
                "action": action,
            },
        )


class BackendUnavailable(PortalError):
    """The live backend could not be reached."""

    def __init__(
        self,
        service: str = "live_api",
        message: str = "Backend unavailable",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message,
            code=ErrorCode.BACKEND_UNAVAILABLE,
            details={"service": service, **(details or {})},
        )


class BackendError(PortalError):
    """The live backend answered with a failure."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        super().__init__(
            message=message,
            code=ErrorCode.BACKEND_ERROR,
            details={"status_code": status_code, **(details or {})},
        )
