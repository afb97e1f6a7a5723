from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer

from api.models import Order
from core.orders import LoadState, build_timeline, order_status_label
from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import fmt_ts, money, short_id
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal
from views.modal_order_tracking import render_order


class AdminOrdersScreen(BaseScreen):
    """
    Every customer's orders, with a button to mark the highlighted one delivered.
    """

    BINDINGS = [
        Binding("ctrl+r", "reload", "Reload", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield DataTable(id="table-orders")
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Mark Delivered", id="btn-deliver", variant="success")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Customer", "Date", "Total", "Paid", "Status")
        self.handle_reload()

    def action_reload(self) -> None:
        self.handle_reload()

    @on(Button.Pressed, "#btn-refresh")
    @on(NewOrderMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        board = self.app.state.admin_orders
        state = await board.load()
        if state == LoadState.FAILED:
            self.notify(board.error, severity="error")
        if state in (LoadState.LOADED, LoadState.FAILED):
            self.render_orders()

    def render_orders(self) -> None:
        table = self.query_one(DataTable)
        cursor = table.cursor_row
        table.clear()
        for o in self.app.state.admin_orders.orders:
            table.add_row(
                short_id(o.id),
                o.customer.name if o.customer else "-",
                fmt_ts(o.created_at),
                money(o.total_price),
                "Yes" if o.is_paid else "No",
                order_status_label(o),
                key=o.id,
            )
        if table.row_count:
            table.move_cursor(row=min(cursor, table.row_count - 1))
        else:
            self.query_one("#md-order-detail", MarkdownViewer).document.update(
                "### No orders yet."
            )

    def _find(self, order_id: str) -> Order | None:
        return next(
            (o for o in self.app.state.admin_orders.orders if o.id == order_id), None
        )

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        order = self._find(event.row_key.value)
        if order is None:
            return
        self.query_one("#btn-deliver", Button).disabled = order.is_delivered
        self.query_one("#md-order-detail", MarkdownViewer).document.update(
            render_order(order, build_timeline(order))
        )

    @on(Button.Pressed, "#btn-deliver")
    @work(exclusive=True, group="deliver")
    async def handle_deliver(self) -> None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        order = self._find(row_key.value)
        if order is None or order.is_delivered:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Mark order #{short_id(order.id)} as delivered?",
                primary_text="Yes",
                secondary_text="No",
                tone="positive",
            )
        ):
            return
        result = await self.app.state.admin_orders.mark_delivered(order.id)
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message)
        self.render_orders()
