from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from core.admin import AdminConsole
from core.cart import CartState
from core.catalog import Catalog
from core.comparison import ComparisonState
from core.orders import AdminOrderBoard, OrderHistory
from core.session import FederatedIdentityProvider, SessionState
from core.wishlist import WishlistState


@dataclass
class GlobalState:
    """
    Centralized application state shared by screens, wired explicitly.

    Fields:
      - session: current identity, or None before login
      - cart / comparison: client-only containers
      - wishlist: server-synchronised, subscribed to session
      - catalog: products fetched from the backend
      - history / admin_orders / admin: loaders used by the order and back-office screens
      - viewed: product ids opened this run, fed to recommendations
    """

    identity_provider: Optional[FederatedIdentityProvider] = None

    session: SessionState = field(init=False)
    cart: CartState = field(init=False)
    wishlist: WishlistState = field(init=False)
    comparison: ComparisonState = field(init=False)
    catalog: Catalog = field(init=False)
    history: OrderHistory = field(init=False)
    admin_orders: AdminOrderBoard = field(init=False)
    admin: AdminConsole = field(init=False)
    viewed: list = field(default_factory=list)

    def __post_init__(self) -> None:
        self.session = SessionState(self.identity_provider)
        self.cart = CartState()
        self.wishlist = WishlistState(self.session)
        self.comparison = ComparisonState()
        self.catalog = Catalog()
        self.history = OrderHistory(self.session)
        self.admin_orders = AdminOrderBoard(self.session)
        self.admin = AdminConsole(self.session)

    @property
    def role(self) -> Optional[str]:
        """ "admin" | "customer" | None if nobody is logged in"""
        if not self.session.is_authenticated:
            return None
        return "admin" if self.session.is_admin else "customer"

    def record_view(self, product_id: str) -> None:
        if product_id in self.viewed:
            self.viewed.remove(product_id)
        self.viewed.insert(0, product_id)
        del self.viewed[10:]

    async def start(self) -> None:
        """Restore a stored session, then load the catalog."""
        await self.session.restore()
        await self.catalog.load_products()

    async def end_session(self) -> None:
        """
        Log out. The wishlist empties through its session subscription;
        cart and comparison belong to this run of the app and survive.
        """
        await self.session.logout()
