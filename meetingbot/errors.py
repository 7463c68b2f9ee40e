"""
Error types shared by the handlers.

Every failure a handler expects is raised as a subclass of
:class:`MeetingBotError`.  The subclass fixes the :class:`ErrorKind`, which
decides the default HTTP status and is echoed in the response body so
callers can branch on it instead of parsing the message.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    UPSTREAM_TRANSPORT = "upstream_transport"
    UPSTREAM_API = "upstream_api"
    STORE = "store"
    INTERNAL = "internal"


class MeetingBotError(Exception):
    kind = ErrorKind.INTERNAL
    status_code = 500

    def __init__(self, message: str, *, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "kind": self.kind.value}
        if self.details is not None:
            body["details"] = self.details
        return body


class ConfigurationError(MeetingBotError):
    """A required setting is missing.  Always answered with 500."""

    kind = ErrorKind.CONFIGURATION


class ValidationError(MeetingBotError):
    """The request body is malformed or names an unsupported meeting."""

    kind = ErrorKind.VALIDATION
    status_code = 400


class UpstreamTransportError(MeetingBotError):
    """The remote service could not be reached at all."""

    kind = ErrorKind.UPSTREAM_TRANSPORT


class UpstreamAPIError(MeetingBotError):
    """The remote service answered, but with an error or an unusable body."""

    kind = ErrorKind.UPSTREAM_API

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status = status
        self.body = body


class StoreError(MeetingBotError):
    """The meetings table rejected a read or write, or the row is missing."""

    kind = ErrorKind.STORE
