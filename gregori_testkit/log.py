"""
Logging configuration and HTTP request/response logging hooks.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from typing import Any

from .config import LogConfig
from .credentials import Call
from .transport import ApiResponse, Transport

PACKAGE_LOGGER = "gregori_testkit"
REDACTED = "***REDACTED***"
SENSITIVE_HEADERS = ("authorization", "cookie", "set-cookie", "x-api-key")

http_logger = logging.getLogger(f"{PACKAGE_LOGGER}.http")

_current_test: str | None = None


def set_current_test(name: str | None) -> None:
    global _current_test
    _current_test = name


class JsonFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        for key in ("test", "http"):
            value: Any = getattr(record, key, None)
            if value is not None:
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class PrettyFormatter(logging.Formatter):
    """Human-readable lines, with the HTTP detail indented below."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        test = getattr(record, "test", None)
        if test:
            line = f"{line} [{test}]"
        detail = getattr(record, "http", None)
        if detail:
            line = f"{line}\n{json.dumps(detail, ensure_ascii=False, indent=2, default=str)}"
        return line


def configure_logging(config: LogConfig) -> None:
    """Attach a single stdout handler to the package logger."""

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(config.level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(PrettyFormatter() if config.format == "pretty" else JsonFormatter())

    # Remove existing handlers so reconfiguration is idempotent.
    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    logger.addHandler(handler)


def redact_headers(headers: Mapping[str, Any], show_sensitive: bool = False) -> dict[str, Any]:
    out = {key: value for key, value in headers.items()}
    if show_sensitive:
        return out
    for key in out:
        if key.lower() in SENSITIVE_HEADERS:
            out[key] = REDACTED
    return out


def truncate(text: str, max_body: int) -> str:
    if max_body > 0 and len(text) > max_body:
        return text[:max_body] + " ...(truncated)"
    return text


class HttpLogger:
    """Transport hooks that log every request, response and failure.

    Requests and responses are logged at DEBUG, failures and non-2xx
    responses at INFO or above, so ``LOG_MODE=debug`` shows full traffic.
    """

    def __init__(self, config: LogConfig, logger: logging.Logger = http_logger):
        self._config = config
        self._logger = logger

    def install(self, transport: Transport) -> None:
        transport.add_request_hook(self.on_request)
        transport.add_response_hook(self.on_response)
        transport.add_error_hook(self.on_error)

    def _body(self, data: Any) -> Any:
        if data is None:
            return None
        if isinstance(data, dict) and "password" in data and not self._config.show_sensitive:
            data = {**data, "password": REDACTED}
        text = data if isinstance(data, str) else json.dumps(data, ensure_ascii=False, default=str)
        return truncate(text, self._config.max_body)

    def _extra(self, detail: dict[str, Any]) -> dict[str, Any]:
        extra: dict[str, Any] = {"http": detail}
        if _current_test:
            extra["test"] = _current_test
        return extra

    def on_request(self, call: Call) -> Call:
        detail = {
            "type": "REQUEST",
            "method": call.method,
            "url": call.url,
            "identity": call.identity,
            "headers": redact_headers(call.headers, self._config.show_sensitive),
            "params": dict(call.params) if call.params else None,
            "body": self._body(call.json),
        }
        self._logger.debug("%s %s", call.method, call.url, extra=self._extra(detail))
        return call

    def on_response(self, call: Call, response: ApiResponse, elapsed_ms: float) -> None:
        detail = {
            "type": "RESPONSE",
            "method": call.method,
            "url": call.url,
            "status": response.status,
            "elapsed_ms": round(elapsed_ms, 1),
            "headers": redact_headers(response.headers, self._config.show_sensitive),
            "body": self._body(response.data),
        }
        level = logging.DEBUG if response.ok else logging.INFO
        self._logger.log(
            level, "%s %s -> %d", call.method, call.url, response.status, extra=self._extra(detail)
        )

    def on_error(self, call: Call, error: BaseException, elapsed_ms: float) -> None:
        detail = {
            "type": "ERROR",
            "method": call.method,
            "url": call.url,
            "elapsed_ms": round(elapsed_ms, 1),
            "error": repr(error),
        }
        self._logger.error("%s %s failed: %s", call.method, call.url, error, extra=self._extra(detail))
