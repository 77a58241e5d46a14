"""
Common definitions for the portal core.

Provides the error taxonomy shared by the auth and data layers.
"""

from portal.common.exceptions import (
    ErrorCode,
    PortalError,
    ValidationError,
    AuthenticationRejected,
    SessionExpired,
    PermissionDenied,
    ResourceNotFound,
    InvalidStateError,
    BackendUnavailable,
    BackendError,
)

__all__ = [
    "ErrorCode",
    "PortalError",
    "ValidationError",
    "AuthenticationRejected",
    "SessionExpired",
    "PermissionDenied",
    "ResourceNotFound",
    "InvalidStateError",
    "BackendUnavailable",
    "BackendError",
]
