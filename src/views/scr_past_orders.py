from math import ceil
from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

from api.models import Order
from core.orders import LoadState, build_timeline, order_status_label
from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import fmt_ts, money, short_id
from views.base_screen import BaseScreen
from views.modal_order_tracking import OrderTrackingModal, render_order

PAGE_SIZE = 5


class PastOrdersScreen(BaseScreen):
    """
    Customers can browse their past orders with pagination and view details.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below (newest first), 5 per page with Prev/Next.
    """

    # Show some hints in footer
    BINDINGS = [
        Binding("enter", "noop", "Track Order", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1, init=False)
    page_cnt = reactive(1, init=False)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Items", "Total", "Status")
        self._load_orders()

    def action_noop(self) -> None:
        pass

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewOrderMessage)
    def handle_refresh(self):
        self._load_orders()

    @work(exclusive=True, group="orders")
    async def _load_orders(self) -> None:
        history = self.app.state.history
        state = await history.load()
        if state == LoadState.FAILED:
            self.notify(history.error, severity="error")
            self._orders = []
        elif state == LoadState.LOADED:
            self._orders = sorted(
                history.orders, key=lambda o: o.created_at.timestamp(), reverse=True
            )
        else:
            return
        self.page_cnt = max(ceil(len(self._orders) / PAGE_SIZE), 1)
        self.query_one("#label-total-page-cnt", Label).content = f" / {self.page_cnt}"
        self.page_idx = min(self.page_idx, self.page_cnt)
        self._render_page()

    def watch_page_idx(self, new: int) -> None:
        self.query_one("#input-page", Input).value = str(new)
        self._render_page()

    def _render_page(self) -> None:
        self._refresh_buttons()
        start = (self.page_idx - 1) * PAGE_SIZE
        table = self.query_one(DataTable)
        table.clear()
        for o in self._orders[start : start + PAGE_SIZE]:
            table.add_row(
                short_id(o.id),
                fmt_ts(o.created_at),
                sum(i.qty for i in o.items),
                money(o.total_price),
                order_status_label(o),
                key=o.id,
            )
        if table.row_count:
            table.move_cursor(row=0)
        else:
            self._render_detail(None)

    def _refresh_buttons(self) -> None:
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, ev: Input.Changed) -> None:
        if ev.value and ev.value.isdigit():
            new_idx = max(1, min(int(ev.value), self.page_cnt))
            if new_idx != self.page_idx:
                self.page_idx = new_idx

    def _find(self, order_id: str) -> Order | None:
        return next((o for o in self._orders if o.id == order_id), None)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        self._render_detail(self._find(event.row_key.value))

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        await self.app.push_screen_wait(OrderTrackingModal(event.row_key.value))
        self._load_orders()

    def _render_detail(self, order: Order | None) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if order is None:
            if self._orders:
                md = "### Select an order to view its details."
            else:
                md = "### You have no orders yet."
            viewer.document.update(md)
            return
        viewer.document.update(render_order(order, build_timeline(order)))
