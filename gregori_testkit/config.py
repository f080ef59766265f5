"""Test kit configuration from environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from .constants import ADMIN_EMAIL, ADMIN_NAME, DEFAULT_TIMEOUT, GENERAL_EMAIL, GENERAL_NAME

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountConfig:
    email: str
    name: str
    password: str | None = None
    member_id: int | None = None
    password_env: str = ""


@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"
    format: str = "json"
    max_body: int = 0
    show_sensitive: bool = False


@dataclass(frozen=True)
class GregoriConfig:
    api_url: str | None
    general: AccountConfig
    admin: AccountConfig
    session_cookie: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    log: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "GregoriConfig":
        env = os.environ if environ is None else environ
        general = AccountConfig(
            email=env.get("TEST_GENERAL_MEMBER_EMAIL", GENERAL_EMAIL),
            name=env.get("TEST_GENERAL_MEMBER_NAME", GENERAL_NAME),
            password=env.get("TEST_GENERAL_MEMBER_PASSWORD") or None,
            member_id=_parse_int(env.get("INTEGRATION_TEST_MEMBER_ID")),
            password_env="TEST_GENERAL_MEMBER_PASSWORD",
        )
        admin = AccountConfig(
            email=env.get("TEST_ADMIN_MEMBER_EMAIL", ADMIN_EMAIL),
            name=env.get("TEST_ADMIN_MEMBER_NAME", ADMIN_NAME),
            password=env.get("TEST_ADMIN_MEMBER_PASSWORD") or None,
            password_env="TEST_ADMIN_MEMBER_PASSWORD",
        )
        log = LogConfig(
            level="DEBUG" if env.get("LOG_MODE", "info").lower() == "debug" else "INFO",
            format="pretty" if env.get("LOG_FORMAT", "json").lower() == "pretty" else "json",
            max_body=_parse_int(env.get("LOG_MAX_BODY")) or 0,
            show_sensitive=env.get("LOG_SHOW_SENSITIVE", "false").lower() == "true",
        )
        return cls(
            api_url=resolve_api_url(env.get("API_URL")),
            general=general,
            admin=admin,
            session_cookie=env.get("SESSION_COOKIE") or None,
            log=log,
        )


def resolve_api_url(raw: str | None) -> str | None:
    """Return a usable base URL, or None when unset or not http(s)."""
    if not raw:
        return None
    url = raw.strip()
    if not url:
        return None
    if not url.lower().startswith(("http://", "https://")):
        logger.warning("API_URL must start with http:// or https://, ignoring %r", url)
        return None
    return url


def _parse_int(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-integer value %r", raw)
        return None
