"""HTTP client for the Gregori API.

Every method returns the raw ``ApiResponse``; callers decide whether a
status is an error. Extra keyword arguments (``headers``, ``identity``,
``skip_auth``) are passed through to the transport for that call.
"""

from __future__ import annotations

from typing import Any

from .constants import SIGNIN_PATH, SIGNOUT_PATH
from .transport import ApiResponse, Transport


class GregoriApiClient:
    """Thin endpoint wrappers over a hook-aware transport."""

    def __init__(self, transport: Transport):
        self.transport = transport

    async def sign_in(self, email: str, password: str, **opts: Any) -> ApiResponse:
        return await self.transport.request(
            "POST", SIGNIN_PATH, json={"email": email, "password": password}, **opts
        )

    async def sign_out(self, **opts: Any) -> ApiResponse:
        return await self.transport.request("POST", SIGNOUT_PATH, **opts)

    async def register(self, name: str, email: str, password: str, **opts: Any) -> ApiResponse:
        return await self.transport.request(
            "POST",
            "/member/register",
            json={"name": name, "email": email, "password": password},
            **opts,
        )

    async def get_member(self, **opts: Any) -> ApiResponse:
        return await self.transport.request("GET", "/member", **opts)

    async def update_member_name(self, name: str, **opts: Any) -> ApiResponse:
        return await self.transport.request("POST", "/member/name", json={"name": name}, **opts)

    async def delete_member(self, **opts: Any) -> ApiResponse:
        return await self.transport.request("DELETE", "/member", **opts)

    async def get_categories(self, **opts: Any) -> ApiResponse:
        return await self.transport.request("GET", "/category", **opts)

    async def create_category(self, name: str, **opts: Any) -> ApiResponse:
        return await self.transport.request("POST", "/category", json={"name": name}, **opts)

    async def delete_category(self, category_id: int, **opts: Any) -> ApiResponse:
        return await self.transport.request("DELETE", f"/category/{category_id}", **opts)

    async def create_order(self, order: dict, **opts: Any) -> ApiResponse:
        return await self.transport.request("POST", "/order", json=order, **opts)

    async def get_orders(self, **opts: Any) -> ApiResponse:
        return await self.transport.request("GET", "/order", **opts)

    async def get_order(self, order_id: int, **opts: Any) -> ApiResponse:
        return await self.transport.request("GET", f"/order/{order_id}", **opts)

    async def cancel_order(self, order_id: int, **opts: Any) -> ApiResponse:
        return await self.transport.request("PATCH", f"/order/{order_id}", **opts)

    async def close(self) -> None:
        await self.transport.close()


def id_from_location(location: str | None) -> int | None:
    """Return the trailing numeric id of a ``Location`` header, if any."""
    if not location:
        return None
    tail = location.rstrip("/").rsplit("/", 1)[-1]
    return int(tail) if tail.isdigit() else None
