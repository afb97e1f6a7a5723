from textual import on, work
from textual.app import ComposeResult
from textual.containers import Container, Horizontal, HorizontalGroup, VerticalScroll
from textual.events import ScreenResume
from textual.message import Message
from textual.widgets import Button, Label, Rule

from api.models import CartLine
from utils.messages import CartChangedMessage, ModeSwitchedMessage
from utils.pure import money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import DialogModal, PromptModal
from views.modal_order_tracking import OrderTrackingModal
from views.modal_prod_detail import ProdDetailModal


class CartLineActionEditMessage(Message):
    bubble = True


class CartLineActionQtyMessage(Message):
    bubble = True


class CartLineActionRemoveMessage(Message):
    bubble = True


class CartLineActionLabel(Label):
    def action_edit(self):
        self.post_message(CartLineActionEditMessage())

    def action_qty(self):
        self.post_message(CartLineActionQtyMessage())

    def action_remove(self):
        self.post_message(CartLineActionRemoveMessage())


class CartLineWidget(HorizontalGroup):
    def __init__(self, line: CartLine):
        super().__init__()
        self.line = line

    def compose(self):
        prod = self.line.product
        with Container(id="div-cart-item-group"):
            with Container(id="div-item"):
                yield Label(prod.name, id="label-item-name")
                yield Label(f"{money(prod.price)} x {self.line.qty}", id="label-item-qty")
                yield Label(money(self.line.line_total), id="label-item-price")
            with Container(id="div-actions"):
                yield CartLineActionLabel("[@click=edit()]Details[/]", id="link-item-edit")
                yield CartLineActionLabel("[@click=qty()]Qty[/]", id="link-item-qty")
                yield CartLineActionLabel(
                    "[@click=remove()]Remove[/]", id="link-item-remove"
                )

    @on(CartLineActionEditMessage)
    @work()
    async def handle_edit_line(self):
        if await self.app.push_screen_wait(ProdDetailModal(self.line.product.id)):
            self.post_message(CartChangedMessage())

    @on(CartLineActionQtyMessage)
    @work()
    async def handle_set_qty(self):
        raw = await self.app.push_screen_wait(
            PromptModal(
                "New quantity (0 removes the item)",
                placeholder="1",
                value=str(self.line.qty),
            )
        )
        if raw is None:
            return
        if not raw.strip().isdigit():
            self.notify("Quantity must be a whole number.", severity="error")
            return
        self.app.state.cart.update_quantity(self.line.product.id, int(raw))
        self.post_message(CartChangedMessage())

    @on(CartLineActionRemoveMessage)
    @work()
    async def handle_remove_line(self):
        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove this item from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        )

        if remove_confirmed:
            self.app.state.cart.remove_from_cart(self.line.product.id)
            self.post_message(CartChangedMessage())
            self.notify("Item removed from cart.", severity="information")


class CartScreen(BaseScreen):
    """
    cart lines with edit / remove, plus checkout
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield VerticalScroll(id="vertscroll-content")
        yield Label("Subtotal: $0.00", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Clear Cart", id="btn-clear-cart")
            yield Button("Continue Shopping", id="btn-shop")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    async def on_mount(self):
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True)  # must exclusive, else might race cond and gen duplicate
    async def handle_cart_change(self):
        cart = self.app.state.cart
        lines = list(cart.cart_items)

        content = self.query_one("#vertscroll-content")
        if [c.line for c in content.children] != lines:
            await content.remove_children()
            await content.mount_all([CartLineWidget(line) for line in lines])

        content.set_class(not lines, "no-items")
        self.query_one("#label-cart-total", Label).content = (
            f"Subtotal ({cart.item_count} items): {money(cart.subtotal)}"
        )
        self.query_one("#btn-checkout", Button).disabled = cart.is_empty

    @on(Button.Pressed, "#btn-shop")
    async def handle_shop(self) -> None:
        self.post_message(ModeSwitchedMessage(self.app.current_mode, "shop"))
        await self.app.switch_mode("shop")

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if self.app.state.cart.is_empty:
            self.app.notify("Cart is empty.", severity="warning")
            return

        remove_confirmed = await self.app.push_screen_wait(
            DialogModal(
                "Do you really want to remove all items from cart?",
                primary_text="Yes",
                secondary_text="No",
                tone="error",
            )
        )
        if remove_confirmed:
            self.app.state.cart.clear_cart()
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        """
        Open up checkout, then track the new order
        """
        if self.app.state.cart.is_empty:
            self.app.notify("Cart is empty.", severity="warning")
            return

        order_id = await self.app.push_screen_wait(CheckoutModal())
        self.post_message(CartChangedMessage())
        if order_id:
            await self.app.push_screen_wait(OrderTrackingModal(order_id))
