from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from core.assistant import ChatSession
from utils.logger import get_logger
from utils.messages import (
    CartChangedMessage,
    ComparisonChangedMessage,
    LoginRequestedMessage,
    ModeSwitchedMessage,
    QuitRequestedMessage,
    UserLogoutMessage,
    WishlistChangedMessage,
)
from utils.state import GlobalState
from views.base_screen import Sidebar
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_admin_report import AdminReportScreen
from views.scr_cart import CartScreen
from views.scr_compare import CompareScreen
from views.scr_login import LoginScreen
from views.scr_past_orders import PastOrdersScreen
from views.scr_shop import ShopScreen
from views.scr_wishlist import WishlistScreen

_logger = get_logger(__name__)


class StorefrontApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "shop": ShopScreen,
        "cart": CartScreen,
        "wishlist": WishlistScreen,
        "compare": CompareScreen,
        "orders": PastOrdersScreen,
        "admin_dash": AdminReportScreen,
        "admin_orders": AdminOrdersScreen,
        "admin_products": AdminProductsScreen,
    }

    ADMIN_MODES = {
        "admin_dash": "Dashboard",
        "admin_orders": "Manage Orders",
        "admin_products": "Manage Products",
    }
    CUSTOMER_MODES = {
        "shop": "Shop",
        "cart": "Cart",
        "wishlist": "Wishlist",
        "compare": "Compare",
        "orders": "My Orders",
    }

    CSS_PATH = [
        "styles/index.tcss",
        "styles/login.tcss",
        "styles/shop.tcss",
        "styles/cart.tcss",
        "styles/orders.tcss",
        "styles/admin.tcss",
    ]

    state: GlobalState
    chat: ChatSession

    def __init__(self, state: GlobalState | None = None):
        super().__init__()
        self.state = state or GlobalState()
        self.chat = ChatSession(self.state.cart)

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow(restore=True)

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(CartChangedMessage)
    @on(WishlistChangedMessage)
    @on(ComparisonChangedMessage)
    async def handle_badges_changed(self):
        for screen in self.screen_stack:
            for sidebar in screen.query(Sidebar):
                await sidebar.refresh_badges()

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        await self.state.end_session()
        self.notify("Logout successful.")
        self.main_flow()

    @on(LoginRequestedMessage)
    def handle_login_requested(self):
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        # the stored session is kept so the next launch starts logged in
        self.exit()

    @work(exclusive=True, group="flow")
    async def main_flow(self, restore: bool = False):
        if restore:
            await self.state.start()
            if self.state.catalog.error:
                self.notify(
                    f"Could not load products: {self.state.catalog.error}",
                    severity="warning",
                )

        if self.state.role is None:
            await self.push_screen_wait(LoginScreen())

        target = "admin_dash" if self.state.role == "admin" else "shop"
        _logger.debug(f"Entering {target} as {self.state.role or 'guest'}")
        if self.current_mode != target:
            self.post_message(ModeSwitchedMessage(self.current_mode, target))
            await self.switch_mode(target)


def main() -> None:
    StorefrontApp().run()


if __name__ == "__main__":
    main()
