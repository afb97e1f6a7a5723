from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, MarkdownViewer, RadioButton, RadioSet

from api.models import PaymentMethod, ShippingAddress
from core.orders import place_order
from utils.messages import CartChangedMessage, NewOrderMessage
from utils.pure import generate_markdown_table, money
from views.modal_dialog import DialogModal

ADDRESS_INPUTS = {
    "address": "#input-address-line",
    "city": "#input-city",
    "postal_code": "#input-postal-code",
    "country": "#input-country",
}


class CheckoutModal(ModalScreen[Optional[str]]):
    """
    A modal screen for check out: order summary, shipping address and payment method.
    Returns the new order id on success, None otherwise.
    """

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield MarkdownViewer("", show_table_of_contents=False)
            with VerticalScroll(id="vert-checkout-form"):
                yield Label("Shipping Address")
                yield Input(placeholder="123 Main St", id="input-address-line")
                yield Input(placeholder="City", id="input-city")
                yield Input(placeholder="Postal Code", id="input-postal-code")
                yield Input(placeholder="Country", id="input-country")
                yield Label("Payment Method")
                with RadioSet(id="radio-payment"):
                    for method in PaymentMethod:
                        yield RadioButton(
                            method.label,
                            value=method == PaymentMethod.PAYPAL,
                            name=method.value,
                        )
                # card details stay on this device, the backend only gets the method
                with Vertical(id="div-card", classes="hidden"):
                    yield Input(placeholder="Card Number", id="input-card-no")
                    with Horizontal():
                        yield Input(placeholder="MM/YY", id="input-card-exp")
                        yield Input(placeholder="CVC", password=True, id="input-card-cvc")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        cart = self.app.state.cart
        headers = ["Product Name", "Unit Price", "Quantity", "Total Price"]
        rows = [
            [line.product.name, money(line.product.price), line.qty, money(line.line_total)]
            for line in cart.cart_items
        ]
        md = "### Order Summary\n\n"
        md += generate_markdown_table(headers, rows, ["l", "c", "c", "c"])
        md += f"\n\n**Items:** {cart.item_count}  \n"
        md += "**Shipping:** Free  \n"
        md += f"**Total:** {money(cart.subtotal)}"
        await self.query_one(MarkdownViewer).document.update(md)
        self.query_one("#input-address-line").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    def selected_method(self) -> PaymentMethod:
        pressed = self.query_one("#radio-payment", RadioSet).pressed_button
        if pressed is None:
            return PaymentMethod.PAYPAL
        return PaymentMethod(pressed.name)

    @on(RadioSet.Changed, "#radio-payment")
    def handle_method_changed(self) -> None:
        self.query_one("#div-card").set_class(
            self.selected_method() != PaymentMethod.STRIPE, "hidden"
        )

    def read_address(self) -> ShippingAddress:
        return ShippingAddress(
            **{
                field: self.query_one(selector, Input).value
                for field, selector in ADDRESS_INPUTS.items()
            }
        )

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        address = self.read_address()
        missing = address.missing_fields()
        for field, selector in ADDRESS_INPUTS.items():
            self.query_one(selector).set_class(field in missing, "-invalid")
        if missing:
            self.query_one(ADDRESS_INPUTS[missing[0]]).focus()
            self.notify("Please fill in all shipping information", severity="error")
            return

        method = self.selected_method()
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Place order of {money(self.app.state.cart.subtotal)} "
                f"with {method.label}?",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return

        btn = self.query_one("#btn-submit", Button)
        btn.disabled = True
        btn.label = "Processing..."
        result = await place_order(
            self.app.state.session, self.app.state.cart, address, method
        )
        btn.disabled = False
        btn.label = "Place Order"

        if not result.success:
            self.notify(result.message, severity="error")
            return

        self.notify(result.message)
        self.app.post_message(CartChangedMessage())
        self.app.post_message(NewOrderMessage(result.value))
        self.dismiss(result.value)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)
