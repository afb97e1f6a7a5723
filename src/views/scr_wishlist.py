from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label

from utils.messages import CartChangedMessage, ModeSwitchedMessage, WishlistChangedMessage
from utils.pure import money, stars
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_prod_detail import ProdDetailModal


class WishlistScreen(BaseScreen):
    """
    Saved products, kept on the server for the logged-in user.
    """

    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Label("", id="label-wishlist-count")
            yield DataTable(id="table-wishlist")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Wishlist", id="btn-clear-wishlist")
            yield Button("Remove", id="btn-remove")
            yield Button("Add to Cart", id="btn-addcart", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Brand", "Price", "Rating", "Stock")
        self.render_wishlist()

    def action_noop(self) -> None:
        pass

    @on(WishlistChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    def render_wishlist(self) -> None:
        items = self.app.state.wishlist.wishlist_items
        table = self.query_one(DataTable)
        table.clear()
        for p in items:
            table.add_row(
                p.name,
                p.brand,
                money(p.price),
                stars(p.rating),
                p.count_in_stock if p.in_stock else "Out of stock",
                key=p.id,
            )
        self.query_one("#label-wishlist-count", Label).content = (
            f"{len(items)} items in your wishlist" if items else "Your wishlist is empty."
        )
        for btn_id in ("#btn-clear-wishlist", "#btn-remove", "#btn-addcart"):
            self.query_one(btn_id, Button).disabled = not items

    def selected_product(self):
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return next(
            (p for p in self.app.state.wishlist.wishlist_items if p.id == row_key.value),
            None,
        )

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        await self.app.push_screen_wait(ProdDetailModal(event.row_key.value))
        self.render_wishlist()

    @on(Button.Pressed, "#btn-remove")
    @work(exclusive=True)
    async def handle_remove(self) -> None:
        prod = self.selected_product()
        if prod is None:
            return
        result = await self.app.state.wishlist.remove_from_wishlist(prod.id)
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self.notify(f"{prod.name} removed from wishlist.")
        self.post_message(WishlistChangedMessage())

    @on(Button.Pressed, "#btn-addcart")
    def handle_addcart(self) -> None:
        prod = self.selected_product()
        if prod is None:
            return
        if not prod.in_stock:
            self.notify(f"{prod.name} is out of stock.", severity="warning")
            return
        self.app.state.cart.add_to_cart(prod)
        self.notify(f"{prod.name} added to cart.")
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-clear-wishlist")
    @work(exclusive=True)
    async def handle_clear(self) -> None:
        if not await self.app.push_screen_wait(
            DialogModal(
                "Remove every product from your wishlist?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        ):
            return
        result = await self.app.state.wishlist.clear_wishlist()
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self.post_message(WishlistChangedMessage())
