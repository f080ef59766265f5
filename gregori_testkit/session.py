"""One-time session acquisition for the general and admin test members.

Each identity class is acquired at most once per coordinator: the first
``ensure_ready`` call starts the sign-in (registering a member first when
needed) and every other caller, concurrent or later, awaits that same
attempt and sees the same success or the same exception.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, MutableMapping
from dataclasses import replace

import aiohttp

from .accounts import Account, generate_password, generate_unique_email, generate_unique_name
from .api_client import GregoriApiClient, id_from_location
from .config import GregoriConfig
from .constants import ADMIN, GENERAL, MEMBER_NOT_FOUND_STATUS
from .credentials import CredentialStore, extract_credential_value
from .errors import AcquisitionError, ConfigurationError, SessionNotReadyError
from .schemas import member_id_from_signin
from .transport import ApiResponse

logger = logging.getLogger(__name__)


class AsyncOnce:
    """Run an async initializer at most once and share its outcome.

    The first call schedules the initializer as a task; every call awaits it
    through ``asyncio.shield`` so a cancelled waiter leaves it running.
    """

    def __init__(self, factory: Callable[[], Awaitable[None]]):
        self._factory = factory
        self._task: asyncio.Future | None = None

    @property
    def started(self) -> bool:
        return self._task is not None

    async def __call__(self) -> None:
        if self._task is None:
            self._task = asyncio.ensure_future(self._factory())
        await asyncio.shield(self._task)


class SessionCoordinator:
    """Acquires and publishes the session cookie of each test member."""

    def __init__(
        self,
        api: GregoriApiClient,
        store: CredentialStore,
        config: GregoriConfig,
        *,
        export_env: MutableMapping[str, str] | None = None,
    ):
        self._api = api
        self._store = store
        self._config = config
        # the resolved general account is written here so later processes reuse it
        self._export_env = export_env
        self._accounts: dict[str, Account] = {}
        self._cookies: dict[str, str] = {}
        self._initializers = {
            GENERAL: AsyncOnce(self._acquire_general),
            ADMIN: AsyncOnce(self._acquire_admin),
        }

    async def ensure_ready(self, identity: str) -> None:
        try:
            once = self._initializers[identity]
        except KeyError:
            raise ValueError(f"Unknown identity class: {identity!r}") from None
        await once()

    async def wait_for_ready(self, identity: str) -> None:
        await self.ensure_ready(identity)

    def is_ready(self, identity: str) -> bool:
        return identity in self._accounts

    def restore_credentials(self) -> None:
        """Put back the acquired cookies and the default identity.

        Tests may clear or swap credentials to simulate other callers; this
        undoes that so nothing leaks into the next test.
        """
        for identity in self._initializers:
            cookie = self._cookies.get(identity)
            if cookie is None:
                self._store.forget(identity)
            else:
                self._store.set(identity, cookie)
        self._store.set_active(GENERAL)

    def get_account(self, identity: str) -> Account:
        try:
            return self._accounts[identity]
        except KeyError:
            raise SessionNotReadyError(
                f"{identity} session is not ready; await ensure_ready({identity!r}) first"
            ) from None

    async def _sign_in(self, identity: str, account: Account) -> ApiResponse:
        try:
            return await self._api.sign_in(account.email, account.password)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AcquisitionError(f"{identity} member sign-in request failed: {e!r}") from e

    async def _register(self, account: Account) -> Account:
        try:
            response = await self._api.register(account.name, account.email, account.password)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise AcquisitionError(f"registration of {account.email} failed: {e!r}") from e
        if not response.ok:
            raise AcquisitionError(
                f"registration of {account.email} failed: HTTP {response.status}",
                status=response.status,
            )
        logger.info("Registered test member %s", account.email)
        return replace(account, member_id=id_from_location(response.location))

    def _publish(self, identity: str, response: ApiResponse) -> None:
        if not response.ok:
            raise AcquisitionError(
                f"{identity} member sign-in failed: HTTP {response.status}",
                status=response.status,
            )
        cookie = extract_credential_value(response.set_cookie)
        if cookie is None:
            raise AcquisitionError(
                f"{identity} member sign-in response carried no session cookie",
                status=response.status,
            )
        self._cookies[identity] = cookie
        self._store.set(identity, cookie)

    async def _lookup_member_id(self) -> int | None:
        try:
            response = await self._api.get_member(identity=GENERAL)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning("Could not look up the general member id: %r", e)
            return None
        if not response.ok or not isinstance(response.data, dict):
            return None
        body = response.data.get("data", response.data)
        member_id = body.get("id") if isinstance(body, dict) else None
        return member_id if isinstance(member_id, int) else None

    async def _acquire_general(self) -> None:
        cfg = self._config.general
        if cfg.password is None:
            logger.info("%s is not set, registering a throwaway general member", cfg.password_env)
            account = await self._register(
                Account(
                    email=generate_unique_email("general"),
                    password=generate_password(),
                    name=generate_unique_name("일반"),
                )
            )
            response = await self._sign_in(GENERAL, account)
        else:
            account = Account(cfg.email, cfg.password, cfg.name, cfg.member_id)
            response = await self._sign_in(GENERAL, account)
            if response.status == MEMBER_NOT_FOUND_STATUS:
                logger.warning("%s is not registered yet, registering it once", account.email)
                account = await self._register(account)
                response = await self._sign_in(GENERAL, account)

        self._publish(GENERAL, response)
        member_id = account.member_id
        if member_id is None:
            member_id = member_id_from_signin(response.data)
        if member_id is None:
            member_id = await self._lookup_member_id()
        account = replace(account, member_id=member_id)
        self._accounts[GENERAL] = account
        self._export_general(account)
        logger.info("General session ready for %s (member id %s)", account.email, member_id)

    def _export_general(self, account: Account) -> None:
        if self._export_env is None:
            return
        env = self._export_env
        env["TEST_GENERAL_MEMBER_EMAIL"] = account.email
        env["TEST_GENERAL_MEMBER_PASSWORD"] = account.password
        env["TEST_GENERAL_MEMBER_NAME"] = account.name
        if account.member_id is not None:
            env["INTEGRATION_TEST_MEMBER_ID"] = str(account.member_id)

    async def _acquire_admin(self) -> None:
        cfg = self._config.admin
        if not cfg.password:
            raise ConfigurationError(
                f"{cfg.password_env} is not set; the admin member must be pre-provisioned"
            )
        account = Account(cfg.email, cfg.password, cfg.name, cfg.member_id)
        response = await self._sign_in(ADMIN, account)
        self._publish(ADMIN, response)
        member_id = account.member_id
        if member_id is None:
            member_id = member_id_from_signin(response.data)
        self._accounts[ADMIN] = replace(account, member_id=member_id)
        logger.info("Admin session ready for %s", account.email)
