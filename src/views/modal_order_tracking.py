from typing import Optional

from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, MarkdownViewer

from api.models import Order, PaymentMethod
from core.orders import LoadState, OrderTracker, order_status_label
from utils.pure import fmt_ts, generate_markdown_table, money, short_id


def render_order(order: Order, timeline) -> str:
    md = f"### Order #{short_id(order.id)}\n\n"
    md += f"Placed on {fmt_ts(order.created_at)}  \n"
    md += f"Status: **{order_status_label(order)}**\n\n"

    md += "#### Order Timeline\n\n"
    for stage in timeline:
        mark = "[x]" if stage.completed else "[ ]"
        md += f"- {mark} **{stage.title}** ({fmt_ts(stage.timestamp)})  \n"
        md += f"  {stage.description}\n"

    md += "\n#### Items\n\n"
    rows = [
        [item.name, item.qty, money(item.price), money(item.qty * item.price)]
        for item in order.items
    ]
    md += generate_markdown_table(
        ["Product", "Qty", "Unit Price", "Line Total"], rows, ["l", "c", "r", "r"]
    )

    try:
        method = PaymentMethod(order.payment_method).label
    except ValueError:
        method = order.payment_method
    md += "\n\n#### Shipping & Payment\n\n"
    md += f"Ship To: {order.shipping_address.one_line()}  \n"
    md += f"Payment: {method} ({'Paid' if order.is_paid else 'Not paid'})  \n"
    md += f"Tax: {money(order.tax_price)}  \n"
    md += f"Shipping: {money(order.shipping_price)}  \n"
    md += f"**Total: {money(order.total_price)}**\n"
    return md


class OrderTrackingModal(ModalScreen[None]):
    """
    Loads one order and shows its status timeline, items and totals.
    """

    def __init__(self, order_id: str) -> None:
        super().__init__()
        self._order_id = order_id
        self._tracker: Optional[OrderTracker] = None

    def compose(self) -> ComposeResult:
        with Vertical():
            yield MarkdownViewer("Loading order...", show_table_of_contents=False)
            with Horizontal():
                yield Button("Refresh", id="btn-refresh")
                yield Button("Close", id="btn-quit", variant="primary")

    def on_mount(self):
        self._tracker = OrderTracker(self.app.state.session, self._order_id)
        self.load_order()

    def on_unmount(self):
        # a response arriving after close is dropped
        if self._tracker is not None:
            self._tracker.cancel()

    @on(Button.Pressed, "#btn-refresh")
    @work(exclusive=True)
    async def load_order(self) -> None:
        viewer = self.query_one(MarkdownViewer)
        state = await self._tracker.load()
        if state == LoadState.FAILED:
            await viewer.document.update(f"### {self._tracker.error}")
        elif state == LoadState.LOADED:
            await viewer.document.update(
                render_order(self._tracker.order, self._tracker.timeline())
            )

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss()
