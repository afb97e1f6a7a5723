from __future__ import annotations

from typing import List, Optional, Tuple

from api import endpoints
from api.errors import ApiError
from api.models import Product, UserInfo
from core.results import Result
from core.session import SessionState
from utils.logger import get_logger

_logger = get_logger(__name__)

LOGIN_REQUIRED = "Please log in to manage your wishlist."


class WishlistState:
    """
    Local cache of the user's server-side wishlist.

    The server is the source of truth: every successful mutation replaces the
    cache with the list the server returns. Each identity change bumps an
    epoch, and a response that comes back under an older epoch is dropped, so
    a request still in flight at logout can never repopulate the list.
    """

    def __init__(self, session: SessionState) -> None:
        self._session = session
        self._items: List[Product] = []
        self._epoch = 0
        session.subscribe(self._on_session_changed)

    @property
    def wishlist_items(self) -> Tuple[Product, ...]:
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def is_in_wishlist(self, product_id: str) -> bool:
        return any(p.id == product_id for p in self._items)

    async def _on_session_changed(self, user: Optional[UserInfo]) -> None:
        self._epoch += 1
        if user is None:
            self._items = []
            return
        await self.refresh()

    async def refresh(self) -> Result[None]:
        """Fetch the whole wishlist once, e.g. right after login."""
        token = self._session.token
        if token is None:
            return Result.fail(LOGIN_REQUIRED)
        epoch = self._epoch
        try:
            items = await endpoints.get_wishlist(token)
        except ApiError as exc:
            _logger.warning(f"Could not load wishlist: {exc.message}")
            return Result.from_error(exc)
        if epoch != self._epoch:
            _logger.debug("Dropping stale wishlist response")
            return Result.fail("Session changed.", "validation")
        self._items = items
        return Result.ok()

    async def add_to_wishlist(self, product: Product) -> Result[None]:
        token = self._session.token
        if token is None:
            return Result.fail("Please log in to add items to your wishlist")
        return await self._replace_from(endpoints.add_to_wishlist(token, product.id))

    async def remove_from_wishlist(self, product_id: str) -> Result[None]:
        token = self._session.token
        if token is None:
            return Result.fail(LOGIN_REQUIRED)
        return await self._replace_from(
            endpoints.remove_from_wishlist(token, product_id)
        )

    async def clear_wishlist(self) -> Result[None]:
        token = self._session.token
        if token is None:
            return Result.fail(LOGIN_REQUIRED)
        epoch = self._epoch
        try:
            await endpoints.clear_wishlist(token)
        except ApiError as exc:
            return Result.from_error(exc)
        if epoch == self._epoch:
            self._items = []
        return Result.ok()

    async def _replace_from(self, call) -> Result[None]:
        epoch = self._epoch
        try:
            items = await call
        except ApiError as exc:
            return Result.from_error(exc)
        if epoch != self._epoch:
            _logger.debug("Dropping stale wishlist response")
            return Result.fail("Session changed.", "validation")
        self._items = items
        return Result.ok()
