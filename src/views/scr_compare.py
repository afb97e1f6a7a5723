from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, MarkdownViewer, Select

from core.comparison import MAX_COMPARED
from utils.messages import CartChangedMessage, ComparisonChangedMessage, ModeSwitchedMessage
from utils.pure import generate_markdown_table
from views.base_screen import BaseScreen


class CompareScreen(BaseScreen):
    """Side by side attribute table of up to four products."""

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer("", show_table_of_contents=False)
        with Horizontal(id="hort-buttons"):
            yield Select([], prompt="Pick a product", id="select-compared")
            yield Button("Remove", id="btn-remove")
            yield Button("Add to Cart", id="btn-addcart", variant="primary")
            yield Button("Clear All", id="btn-clear", variant="error")

    def on_mount(self) -> None:
        self.render_comparison()

    @on(ComparisonChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True)
    async def render_comparison(self) -> None:
        comparison = self.app.state.comparison
        products = comparison.compared_products

        self.query_one("#select-compared", Select).set_options(
            [(p.name, p.id) for p in products]
        )
        for btn_id in ("#btn-remove", "#btn-addcart", "#btn-clear"):
            self.query_one(btn_id, Button).disabled = not products

        if not products:
            md = (
                "### No products to compare\n\n"
                f"Open a product in the shop and pick *Add to Compare* "
                f"(up to {MAX_COMPARED} products)."
            )
        else:
            md = f"### Comparing {len(products)} of {MAX_COMPARED} products\n\n"
            md += generate_markdown_table(
                ["Attribute", *(p.name for p in products)],
                comparison.comparison_rows(),
                ["l", *("c" for _ in products)],
            )
        await self.query_one(MarkdownViewer).document.update(md)

    def selected_product(self):
        value = self.query_one("#select-compared", Select).value
        if value == Select.BLANK:
            self.notify("Pick a product first.", severity="warning")
            return None
        return next(
            (p for p in self.app.state.comparison.compared_products if p.id == value),
            None,
        )

    @on(Button.Pressed, "#btn-remove")
    def handle_remove(self) -> None:
        prod = self.selected_product()
        if prod is None:
            return
        self.app.state.comparison.remove_from_comparison(prod.id)
        self.post_message(ComparisonChangedMessage())

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

    @on(Button.Pressed, "#btn-clear")
    def handle_clear(self) -> None:
        self.app.state.comparison.clear_comparison()
        self.post_message(ComparisonChangedMessage())
