from __future__ import annotations

import inspect
from typing import Awaitable, Callable, List, Optional, Protocol, Union

import aiosqlite

import db.crud as storage
from api import endpoints
from api.errors import ApiError, ParseError
from api.models import FederatedIdentity, UserInfo, parse
from core.results import Result
from utils.logger import get_logger

_logger = get_logger(__name__)

# single well-known device storage entry holding the serialized identity
STORAGE_KEY = "userInfo"

SessionListener = Callable[[Optional[UserInfo]], Union[None, Awaitable[None]]]


class FederatedAuthError(Exception):
    """raised by an identity provider when the handshake fails or is cancelled"""


class FederatedIdentityProvider(Protocol):
    """
    Third-party sign-in (Google). The handshake itself is opaque to us;
    all we need is the resulting identity and a way to revoke it.
    """

    async def sign_in(self) -> FederatedIdentity: ...

    async def sign_out(self) -> None: ...


class SessionState:
    """
    Holds the authenticated identity (or None) and the operations that change it.

    Subscribers registered with `subscribe` are called after every identity
    change, in registration order; coroutine listeners are awaited.
    """

    def __init__(
        self, identity_provider: Optional[FederatedIdentityProvider] = None
    ) -> None:
        self.user: Optional[UserInfo] = None
        self.loading = True
        self._identity_provider = identity_provider
        self._listeners: List[SessionListener] = []

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    @property
    def is_admin(self) -> bool:
        return self.user is not None and self.user.is_admin

    @property
    def token(self) -> Optional[str]:
        return self.user.token if self.user else None

    @property
    def has_identity_provider(self) -> bool:
        return self._identity_provider is not None

    def subscribe(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    async def _set_user(self, user: Optional[UserInfo]) -> None:
        self.user = user
        for listener in self._listeners:
            res = listener(user)
            if inspect.isawaitable(res):
                await res

    async def _establish(self, user: UserInfo) -> None:
        try:
            await storage.set_json(STORAGE_KEY, user.to_storage())
        except (aiosqlite.Error, OSError) as exc:
            # the session still holds for this run, it just won't survive a restart
            _logger.error(f"Could not persist session for {user.email}: {exc}")
        _logger.info(f"Session established for {user.email}")
        await self._set_user(user)

    async def restore(self) -> Optional[UserInfo]:
        """
        Re-hydrate the identity from device storage. Called once at startup,
        before the first screen is shown.
        """
        user = None
        try:
            data = await storage.get_json(STORAGE_KEY)
            if data is not None:
                user = parse(UserInfo, data)
        except (ValueError, ParseError) as exc:
            _logger.warning(f"Discarding unreadable stored session: {exc}")
            await storage.remove_item(STORAGE_KEY)
        self.loading = False
        if user is not None:
            _logger.debug(f"Restored session for {user.email}")
            await self._set_user(user)
        return user

    async def login(self, email: str, password: str) -> Result[UserInfo]:
        email = (email or "").strip()
        if not email or not password:
            return Result.fail("Email and password are required.")
        try:
            user = await endpoints.login(email, password)
        except ApiError as exc:
            return Result.from_error(exc)
        await self._establish(user)
        return Result.ok(user)

    async def login_with_google(self) -> Result[UserInfo]:
        if self._identity_provider is None:
            return Result.fail("Google login is not configured.")
        try:
            identity = await self._identity_provider.sign_in()
        except FederatedAuthError as exc:
            _logger.warning(f"Federated sign-in failed: {exc}")
            return Result.fail(str(exc) or "Google login failed", "server")
        try:
            user = await endpoints.google_login(identity)
        except ApiError as exc:
            return Result.from_error(exc)
        await self._establish(user)
        return Result.ok(user)

    async def register(self, name: str, email: str, password: str) -> Result[UserInfo]:
        name, email = (name or "").strip(), (email or "").strip()
        if not name or not email or not password:
            return Result.fail("Make sure all inputs are filled.")
        try:
            user = await endpoints.register(name, email, password)
        except ApiError as exc:
            return Result.from_error(exc)
        await self._establish(user)
        return Result.ok(user)

    async def logout(self) -> None:
        """
        End the session. Revoking the federated session and telling the
        backend are best effort; local state is cleared no matter what.
        """
        if self._identity_provider is not None:
            try:
                await self._identity_provider.sign_out()
            except FederatedAuthError as exc:
                _logger.warning(f"Federated sign-out failed: {exc}")
        try:
            await endpoints.logout()
        except ApiError as exc:
            _logger.warning(f"Backend logout failed: {exc.message}")
        try:
            await storage.remove_item(STORAGE_KEY)
        finally:
            await self._set_user(None)
            _logger.info("Session ended")
