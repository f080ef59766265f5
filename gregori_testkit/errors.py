"""Exception types raised while acquiring and using test sessions."""

from __future__ import annotations


class SessionError(Exception):
    """Base class for session acquisition failures."""


class ConfigurationError(SessionError):
    """A required environment value is missing or invalid."""


class AcquisitionError(SessionError):
    """Sign-in was rejected or issued no usable session cookie."""

    def __init__(self, detail: str, *, status: int | None = None) -> None:
        self.detail = detail
        self.status = status
        super().__init__(detail)


class SessionNotReadyError(SessionError):
    """An account was requested before its session finished acquiring."""


class CredentialExtractionError(ValueError):
    """A Set-Cookie value has no name=value pair."""
