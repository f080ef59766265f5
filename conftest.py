"""Root conftest.py - session-scoped fixtures."""

import dataclasses
import os

import pytest
import pytest_asyncio

from gregori_testkit.config import GregoriConfig
from gregori_testkit.constants import ADMIN, GENERAL, MOCK_ADMIN_PASSWORD
from gregori_testkit.log import configure_logging, set_current_test


def pytest_configure(config):
    configure_logging(GregoriConfig.from_env().log)


@pytest.fixture(scope="session")
def env_config() -> GregoriConfig:
    return GregoriConfig.from_env()


@pytest.fixture(scope="session")
def config(env_config: GregoriConfig):
    """Config for API_URL, or for a mock backend started for this session."""
    if env_config.api_url:
        yield env_config
        return

    from mock_backend.server import create_app, serve_in_background

    admin_password = env_config.admin.password or MOCK_ADMIN_PASSWORD
    app = create_app(
        admin_email=env_config.admin.email,
        admin_password=admin_password,
        admin_name=env_config.admin.name,
    )
    server = serve_in_background(app)
    try:
        yield dataclasses.replace(
            env_config,
            api_url=f"http://127.0.0.1:{server.server_port}",
            admin=dataclasses.replace(env_config.admin, password=admin_password),
        )
    finally:
        server.shutdown()


@pytest.fixture(scope="session")
def credential_store(config: GregoriConfig):
    from gregori_testkit.credentials import CredentialStore

    store = CredentialStore(fallback=config.session_cookie)
    yield store
    store.clear()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def api(config: GregoriConfig, credential_store):
    from gregori_testkit.api_client import GregoriApiClient
    from gregori_testkit.credentials import CredentialInterceptor
    from gregori_testkit.log import HttpLogger
    from gregori_testkit.transport import Transport

    transport = Transport(config.api_url, timeout=config.timeout)
    transport.add_request_hook(CredentialInterceptor(credential_store))
    HttpLogger(config.log).install(transport)
    client = GregoriApiClient(transport)
    yield client
    await client.close()


@pytest.fixture(scope="session")
def sessions(api, credential_store, config: GregoriConfig):
    from gregori_testkit.session import SessionCoordinator

    return SessionCoordinator(api, credential_store, config, export_env=os.environ)


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def general_account(sessions):
    await sessions.wait_for_ready(GENERAL)
    return sessions.get_account(GENERAL)


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def admin_account(sessions):
    await sessions.wait_for_ready(ADMIN)
    return sessions.get_account(ADMIN)


@pytest.fixture(autouse=True)
def restore_credentials(request):
    """Undo per-test credential changes so they never leak into the next test."""
    set_current_test(request.node.nodeid)
    coordinator = None
    if "sessions" in request.fixturenames:
        coordinator = request.getfixturevalue("sessions")
    yield
    if coordinator is not None:
        coordinator.restore_credentials()
    set_current_test(None)
