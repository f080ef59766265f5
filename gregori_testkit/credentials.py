"""Session cookie storage and the request interceptor that attaches it.

The store holds at most one cookie per identity class ("general", "admin")
plus the identity used when a call does not name one. The interceptor runs
on every outgoing call and decides whether that cookie goes on the wire.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

from multidict import CIMultiDict

from .constants import (
    AUTH_PATHS,
    COOKIE_HEADER,
    GENERAL,
    IDENTITY_CLASSES,
    SESSION_KIND_HEADER,
    SKIP_AUTH_HEADER,
)
from .errors import CredentialExtractionError

logger = logging.getLogger(__name__)

COOKIE_ATTRIBUTES = frozenset(
    {"path", "domain", "expires", "max-age", "httponly", "secure", "samesite", "partitioned"}
)


def _name_value(raw: str) -> str:
    pair = raw.split(";", 1)[0].strip()
    name, sep, _ = pair.partition("=")
    if not sep or not name.strip():
        raise CredentialExtractionError(f"no name=value pair in {raw!r}")
    return pair


def extract_credential_value(raw: str | Sequence[str] | None) -> str | None:
    """Reduce one or more Set-Cookie values to a Cookie header value.

    Each value contributes the name=value pair before its first ``;``.
    Multiple pairs are joined with ``"; "``. Returns None when nothing
    usable is found; malformed values are skipped.
    """
    if not raw:
        return None
    values = [raw] if isinstance(raw, str) else list(raw)
    pairs: list[str] = []
    for value in values:
        if not value:
            continue
        try:
            pairs.append(_name_value(value))
        except CredentialExtractionError as e:
            logger.debug("Ignoring malformed Set-Cookie value: %s", e)
    return "; ".join(pairs) if pairs else None


def _has_cookie_attributes(token: str) -> bool:
    for part in token.split(";")[1:]:
        name = part.split("=", 1)[0].strip().lower()
        if name in COOKIE_ATTRIBUTES:
            return True
    return False


def format_credential(token: str) -> str:
    """Strip Set-Cookie attributes from a stored token, if it has any."""
    if not _has_cookie_attributes(token):
        return token
    return extract_credential_value(token) or token


def _check_identity(identity: str) -> None:
    if identity not in IDENTITY_CLASSES:
        raise ValueError(f"Unknown identity class: {identity!r}")


class CredentialStore:
    """Per-identity session cookies and the active default identity.

    ``fallback`` is a process-wide cookie (``SESSION_COOKIE``) used for the
    general identity until that identity is explicitly set or cleared.
    """

    def __init__(self, fallback: str | None = None, active: str | None = GENERAL):
        if active is not None:
            _check_identity(active)
        self._tokens: dict[str, str | None] = {}
        self._fallback = fallback or None
        self._active = active

    @property
    def active(self) -> str | None:
        return self._active

    def set_active(self, identity: str | None) -> None:
        if identity is not None:
            _check_identity(identity)
        self._active = identity

    def set(self, identity: str, token: str | None) -> None:
        _check_identity(identity)
        self._tokens[identity] = token or None

    def get(self, identity: str | None = None) -> str | None:
        identity = identity if identity is not None else self._active
        if identity is None:
            return None
        if identity in self._tokens:
            return self._tokens[identity]
        if identity == GENERAL:
            return self._fallback
        return None

    def forget(self, identity: str) -> None:
        """Drop any explicit token or clear, so the fallback applies again."""
        self._tokens.pop(identity, None)

    def clear(self) -> None:
        self._tokens = {identity: None for identity in IDENTITY_CLASSES}


@dataclass
class Call:
    """One outgoing request as seen by request hooks."""

    method: str
    url: str
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    params: Mapping[str, Any] | None = None
    json: Any = None
    identity: str | None = None
    skip_auth: bool = False

    @property
    def path(self) -> str:
        return urlsplit(self.url).path


class CredentialInterceptor:
    """Request hook that attaches the resolved identity's session cookie.

    A call is passed through without a cookie when the identity has no
    token, when it targets an auth endpoint, when the caller already set a
    Cookie header, or when it opts out via ``skip_auth`` / ``x-skip-auth``.
    The selector and opt-out headers are always removed.
    """

    def __init__(self, store: CredentialStore, *, auth_paths: Sequence[str] = AUTH_PATHS):
        self._store = store
        self._auth_paths = tuple(auth_paths)

    def __call__(self, call: Call) -> Call:
        return self.intercept(call)

    def _is_auth_endpoint(self, path: str) -> bool:
        path = path.rstrip("/")
        return any(path.endswith(p) for p in self._auth_paths)

    def intercept(self, call: Call) -> Call:
        headers = CIMultiDict(call.headers)
        selector = headers.popone(SESSION_KIND_HEADER, None)
        skip_flag = headers.popone(SKIP_AUTH_HEADER, None)

        identity = call.identity or selector or self._store.active
        skip = call.skip_auth or skip_flag is True or skip_flag == "true"
        out = dataclasses.replace(call, headers=headers, identity=identity, skip_auth=skip)

        token = self._store.get(identity) if identity is not None else None
        if token is None:
            return out
        if self._is_auth_endpoint(call.path):
            return out
        if headers.get(COOKIE_HEADER):
            return out
        if skip:
            return out

        headers[COOKIE_HEADER] = format_credential(token)
        logger.debug("Attached %s session cookie to %s %s", identity, call.method, call.path)
        return out
