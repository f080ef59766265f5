"""Test-level fixtures for unit tests that need no backend."""

from unittest.mock import AsyncMock

import pytest
from multidict import CIMultiDict

from gregori_testkit.api_client import GregoriApiClient
from gregori_testkit.config import GregoriConfig
from gregori_testkit.credentials import CredentialInterceptor, CredentialStore
from gregori_testkit.transport import ApiResponse

SESSION_SET_COOKIE = "SESSION=abc123; Path=/; HttpOnly; SameSite=Lax"


@pytest.fixture
def store() -> CredentialStore:
    return CredentialStore()


@pytest.fixture
def interceptor(store: CredentialStore) -> CredentialInterceptor:
    return CredentialInterceptor(store)


@pytest.fixture
def fake_api() -> AsyncMock:
    """Stand-in for GregoriApiClient; every endpoint is an AsyncMock."""
    return AsyncMock(spec=GregoriApiClient)


@pytest.fixture
def make_config():
    """Factory for configs built from an explicit environment mapping."""

    def create(**env: str) -> GregoriConfig:
        environ = {"API_URL": "http://gregori.test"}
        environ.update(env)
        return GregoriConfig.from_env(environ)

    return create


@pytest.fixture
def signin_ok():
    """Factory for a successful sign-in response."""

    def create(
        member_id: int | None = 7,
        set_cookie: str | None = SESSION_SET_COOKIE,
        email: str = "member@integration.test",
    ) -> ApiResponse:
        headers = CIMultiDict()
        if set_cookie:
            headers.add("Set-Cookie", set_cookie)
        data = None
        if member_id is not None:
            data = {
                "status": "SUCCESS",
                "message": "signed in",
                "timestamp": "2026-01-01T00:00:00+00:00",
                "data": {
                    "member": {
                        "id": member_id,
                        "email": email,
                        "name": "일반회원",
                        "authority": "GENERAL_MEMBER",
                        "isDeleted": False,
                    }
                },
            }
        return ApiResponse(status=200, headers=headers, data=data)

    return create
