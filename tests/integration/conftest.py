"""Fixtures for tests that talk to the Gregori API."""

import pytest_asyncio

from gregori_testkit.accounts import Account, generate_password, generate_unique_email, generate_unique_name
from gregori_testkit.api_client import id_from_location
from gregori_testkit.credentials import extract_credential_value


@pytest_asyncio.fixture(loop_scope="session")
async def fresh_account(api) -> Account:
    """A newly registered member that no session cookie belongs to yet."""
    name = generate_unique_name("임시")
    email = generate_unique_email("fresh")
    password = generate_password()
    response = await api.register(name, email, password)
    assert response.status == 201, response.data
    return Account(email=email, password=password, name=name, member_id=id_from_location(response.location))


@pytest_asyncio.fixture(loop_scope="session")
async def fresh_cookie(api, fresh_account) -> str:
    """A session cookie for ``fresh_account``, sent only when passed explicitly."""
    response = await api.sign_in(fresh_account.email, fresh_account.password)
    assert response.status == 200, response.data
    cookie = extract_credential_value(response.set_cookie)
    assert cookie
    return cookie
