import asyncio
from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer, Select

from api.models import Product
from utils.messages import (
    CartChangedMessage,
    ComparisonChangedMessage,
    WishlistChangedMessage,
)
from utils.pure import fmt_ts, generate_markdown_table, money, stars


class ProdDetailModal(ModalScreen[bool]):
    """
    prod detail, plus cart / wishlist / comparison actions and reviews
    Will return true if cart changed, false if not
    """

    order_qty = reactive(1, init=False)

    def __init__(self, product_id: str) -> None:
        super().__init__()

        self._product_id = product_id
        self._prod: Optional[Product] = None
        self._ai_description = ""
        self._cart_changed = False

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield MarkdownViewer("Loading...", show_table_of_contents=False)
            with VerticalScroll(id="vert-prod-actions"):
                yield Label("Order Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                yield Button("Add to Cart", id="btn-addcart", variant="primary")
                yield Button("Add to Wishlist", id="btn-wishlist")
                yield Button("Add to Compare", id="btn-compare")
                yield Button("AI Description", id="btn-ai-desc")
                with Vertical(id="div-review"):
                    yield Label("Write a Review")
                    yield Select(
                        [(f"{stars(n)} ({n})", n) for n in range(5, 0, -1)],
                        prompt="Rating",
                        id="select-rating",
                    )
                    yield Input(placeholder="Your comment", id="input-review-comment")
                    yield Input(placeholder="Image URL (optional)", id="input-review-image")
                    yield Button("Submit Review", id="btn-review", variant="success")
                yield Button("Go Back", id="btn-quit")

    async def on_mount(self):
        result = await self.app.state.catalog.get_product(self._product_id)
        if not result.success:
            self.notify(result.message, severity="error")
            self.dismiss(False)
            return
        self._prod = result.value
        self.app.state.record_view(self._product_id)
        await self.render_product()

        # update elements depending on stock cnt
        if not self._prod.in_stock:
            order_btn = self.query_one("#btn-addcart", Button)
            order_btn.label = "Out of Stock"
            order_btn.disabled = True
            order_btn.variant = "warning"

        self.query_one("#input-order-qty").validators = [
            Number(minimum=1, maximum=max(self._prod.count_in_stock, 1))
        ]

        # update elements based on cart status
        line = self.app.state.cart.get_line(self._product_id)
        if line:
            self.order_qty = line.qty
            self.query_one("#btn-addcart", Button).label = "Update Cart"
        self.refresh_toggles()

        if self.app.state.catalog.has_reviewed(self.app.state.session, self._prod):
            self.query_one("#div-review").add_class("hidden")

        self.query_one("#input-order-qty").focus()
        self.analyze_reviews()

    def refresh_toggles(self) -> None:
        state = self.app.state
        in_wishlist = state.wishlist.is_in_wishlist(self._product_id)
        self.query_one("#btn-wishlist", Button).label = (
            "Remove from Wishlist" if in_wishlist else "Add to Wishlist"
        )
        compare_btn = self.query_one("#btn-compare", Button)
        if state.comparison.is_in_comparison(self._product_id):
            compare_btn.label = "Remove from Compare"
            compare_btn.disabled = False
        else:
            compare_btn.label = "Add to Compare"
            compare_btn.disabled = not state.comparison.can_add_to_comparison()

    async def render_product(self, sentiments=None) -> None:
        prod = self._prod
        rows = [
            ["Brand", prod.brand],
            ["Category", prod.category],
            ["Price", money(prod.price)],
            ["Rating", f"{stars(prod.rating)} ({prod.num_reviews} reviews)"],
            ["In Stock", prod.count_in_stock if prod.in_stock else "Out of stock"],
        ]
        md = f"### {prod.name}\n\n"
        md += generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        md += f"\n\n{prod.description}\n"
        if self._ai_description:
            md += f"\n#### AI Description\n\n{self._ai_description}\n"

        md += "\n#### Reviews\n\n"
        if not prod.reviews:
            md += "No reviews yet.\n"
        for review in prod.reviews:
            md += f"**{review.name}** {stars(review.rating)} _{fmt_ts(review.created_at, '')}_\n\n"
            md += f"{review.comment}\n\n"
            sentiment = (sentiments or {}).get(review.id)
            if sentiment:
                md += (
                    f"> AI Analysis: {sentiment.overall_sentiment} "
                    f"({round(sentiment.confidence * 100)}% confidence)\n\n"
                )
        await self.query_one(MarkdownViewer).document.update(md)

    @work(exclusive=True, group="sentiment")
    async def analyze_reviews(self) -> None:
        catalog = self.app.state.catalog
        reviews = self._prod.reviews
        found = await asyncio.gather(*(catalog.analyze_sentiment(r) for r in reviews))
        sentiments = {r.id: s for r, s in zip(reviews, found) if s is not None}
        if sentiments:
            await self.render_product(sentiments)

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(self._cart_changed)

    async def on_input_changed(self, message: Input.Changed) -> None:
        if (
            message.input.id == "input-order-qty"
            and message.input.is_valid
            and message.value
            and self.focused == message.input
        ):
            self.order_qty = int(message.value)

    async def watch_order_qty(self, qty: int):
        btn_sub_qty = self.query_one("#btn-sub-qty")
        btn_add_qty = self.query_one("#btn-add-qty")

        btn_sub_qty.disabled = qty <= 1
        btn_add_qty.disabled = self._prod is not None and qty >= self._prod.count_in_stock

        self.query_one("#input-order-qty", Input).value = str(qty)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self):
        self.order_qty += 1

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self):
        self.order_qty = max(1, self.order_qty - 1)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(self._cart_changed)

    @on(Button.Pressed, "#btn-addcart")
    def handle_addcart(self):
        cart = self.app.state.cart
        if cart.get_line(self._product_id) is None:
            cart.add_to_cart(self._prod, self.order_qty)
            self.app.notify("Item added to cart successfully.")
        else:
            cart.update_quantity(self._product_id, self.order_qty)
            self.app.notify("Updated cart item quantity.")

        self._cart_changed = True
        self.app.post_message(CartChangedMessage())
        self.dismiss(True)

    @on(Button.Pressed, "#btn-wishlist")
    @work(exclusive=True, group="wishlist")
    async def handle_wishlist(self):
        wishlist = self.app.state.wishlist
        if wishlist.is_in_wishlist(self._product_id):
            result = await wishlist.remove_from_wishlist(self._product_id)
            done = "Removed from wishlist."
        else:
            result = await wishlist.add_to_wishlist(self._prod)
            done = "Added to wishlist."
        if result.success:
            self.notify(done)
            self.app.post_message(WishlistChangedMessage())
        else:
            self.notify(result.message, severity="error")
        self.refresh_toggles()

    @on(Button.Pressed, "#btn-compare")
    def handle_compare(self):
        comparison = self.app.state.comparison
        if comparison.is_in_comparison(self._product_id):
            comparison.remove_from_comparison(self._product_id)
            self.notify("Removed from comparison.")
        elif comparison.add_to_comparison(self._prod):
            self.notify("Added to comparison.")
        else:
            self.notify("You can compare up to 4 products.", severity="warning")
        self.app.post_message(ComparisonChangedMessage())
        self.refresh_toggles()

    @on(Button.Pressed, "#btn-ai-desc")
    @work(exclusive=True, group="ai")
    async def handle_ai_description(self):
        btn = self.query_one("#btn-ai-desc", Button)
        btn.disabled = True
        btn.label = "Generating..."
        result = await self.app.state.catalog.generate_description(self._prod)
        btn.disabled = False
        btn.label = "AI Description"
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self._ai_description = result.value
        await self.render_product()

    @on(Button.Pressed, "#btn-review")
    @work(exclusive=True, group="review")
    async def handle_review(self):
        rating = self.query_one("#select-rating", Select).value
        comment = self.query_one("#input-review-comment", Input).value
        image = self.query_one("#input-review-image", Input).value.strip()
        result = await self.app.state.catalog.submit_review(
            self.app.state.session,
            self._product_id,
            0 if rating == Select.BLANK else int(rating),
            comment,
            image,
        )
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message)
        if result.value is not None:
            self._prod = result.value
        self.query_one("#div-review").add_class("hidden")
        await self.render_product()
        self.analyze_reviews()
