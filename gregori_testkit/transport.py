"""aiohttp transport with request/response hook registration."""

from __future__ import annotations

import asyncio
import json
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import aiohttp
from multidict import CIMultiDict

from .constants import DEFAULT_TIMEOUT, SET_COOKIE_HEADER
from .credentials import Call

RequestHook = Callable[[Call], Call]
ResponseHook = Callable[[Call, "ApiResponse", float], None]
ErrorHook = Callable[[Call, BaseException, float], None]


class ApiError(Exception):
    """Non-2xx response surfaced by ``ApiResponse.raise_for_status``."""

    def __init__(self, status: int, data: Any = None, url: str = ""):
        self.status = status
        self.data = data
        self.url = url
        super().__init__(f"HTTP {status} for {url}")


@dataclass
class ApiResponse:
    status: int
    headers: CIMultiDict = field(default_factory=CIMultiDict)
    data: Any = None
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def set_cookie(self) -> list[str]:
        return self.headers.getall(SET_COOKIE_HEADER, [])

    @property
    def location(self) -> str | None:
        return self.headers.get("Location")

    def raise_for_status(self) -> None:
        if not self.ok:
            raise ApiError(self.status, self.data, self.url)


class Transport:
    """HTTP transport for the Gregori API.

    Request hooks run in registration order and may return a modified copy
    of the call; response and error hooks only observe. The underlying
    session uses a dummy cookie jar so that cookies only travel when a hook
    or the caller puts them on a call.
    """

    def __init__(self, base_url: str, timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None
        self._request_hooks: list[RequestHook] = []
        self._response_hooks: list[ResponseHook] = []
        self._error_hooks: list[ErrorHook] = []

    def add_request_hook(self, hook: RequestHook) -> None:
        self._request_hooks.append(hook)

    def add_response_hook(self, hook: ResponseHook) -> None:
        self._response_hooks.append(hook)

    def add_error_hook(self, hook: ErrorHook) -> None:
        self._error_hooks.append(hook)

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                cookie_jar=aiohttp.DummyCookieJar(),
                timeout=self._timeout,
            )
        return self._session

    def _full_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"

    async def request(
        self,
        method: str,
        url: str,
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
        headers: Mapping[str, Any] | None = None,
        identity: str | None = None,
        skip_auth: bool = False,
    ) -> ApiResponse:
        call = Call(
            method=method.upper(),
            url=url,
            headers=CIMultiDict(headers or {}),
            params=params,
            json=json,
            identity=identity,
            skip_auth=skip_auth,
        )
        for hook in self._request_hooks:
            call = hook(call)

        started = time.monotonic()
        try:
            response = await self.dispatch(call)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            elapsed = (time.monotonic() - started) * 1000
            for error_hook in self._error_hooks:
                error_hook(call, e, elapsed)
            raise
        elapsed = (time.monotonic() - started) * 1000
        for response_hook in self._response_hooks:
            response_hook(call, response, elapsed)
        return response

    async def dispatch(self, call: Call) -> ApiResponse:
        """Send an already-hooked call. Contract tests replace this."""
        session = await self._ensure_session()
        url = self._full_url(call.url)
        async with session.request(
            call.method,
            url,
            json=call.json,
            params=call.params,
            headers=call.headers,
        ) as resp:
            text = await resp.text()
            return ApiResponse(
                status=resp.status,
                headers=CIMultiDict(resp.headers),
                data=_decode_body(text, resp.content_type),
                url=url,
            )

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()


def _decode_body(text: str, content_type: str) -> Any:
    if not text:
        return None
    if content_type == "application/json":
        try:
            return json.loads(text)
        except json.JSONDecodeError:
            return text
    return text
