from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.widgets import Button, DataTable, Input, Markdown, Select

from core.catalog import SORT_KEYS
from utils.messages import ModeSwitchedMessage
from utils.pure import money, stars
from views.base_screen import BaseScreen
from views.modal_dialog import PromptModal
from views.modal_prod_detail import ProdDetailModal


class ShopScreen(BaseScreen):
    """
    Product browsing: text search, category and sort filters, AI picks on top.
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
        Binding("ctrl+r", "reload", "Reload Catalog", show=True),
    ]

    query_str = reactive("", init=False)
    category = reactive("", init=False)
    sort_by = reactive("featured", init=False)

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield Markdown("", id="md-recommended")
            with Horizontal(id="hort-filters"):
                yield Input(
                    id="input-search", placeholder="Start typing to search something..."
                )
                yield Select([], prompt="All categories", id="select-category")
                yield Select(
                    [(label, key) for key, label in SORT_KEYS.items()],
                    value="featured",
                    allow_blank=False,
                    id="select-sort",
                )
                yield Button("Search by Image", id="btn-visual-search")
            yield DataTable(id="table-products")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Brand", "Category", "Price", "Rating", "Stock")

        self.populate_categories()
        self.update_search_result()
        self.load_recommendations()
        self.query_one("#input-search").focus()

    def populate_categories(self) -> None:
        select = self.query_one("#select-category", Select)
        select.set_options([(c, c) for c in self.app.state.catalog.categories()])

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self.query_str = message.value

    def on_select_changed(self, message: Select.Changed) -> None:
        if message.select.id == "select-category":
            self.category = "" if message.value == Select.BLANK else message.value
        elif message.select.id == "select-sort":
            self.sort_by = message.value

    def watch_query_str(self) -> None:
        self.update_search_result()

    def watch_category(self) -> None:
        self.update_search_result()

    def watch_sort_by(self) -> None:
        self.update_search_result()

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    def update_search_result(self) -> None:
        results = self.app.state.catalog.search(
            self.query_str, category=self.category, sort_by=self.sort_by
        )
        table = self.query_one(DataTable)
        table.clear()
        for p in results:
            table.add_row(
                p.name,
                p.brand,
                p.category,
                money(p.price),
                stars(p.rating),
                p.count_in_stock if p.in_stock else "Out of stock",
                key=p.id,
            )
        if not results and self.app.state.catalog.error:
            self.notify(self.app.state.catalog.error, severity="warning")

    @work(exclusive=True, group="recommendations")
    async def load_recommendations(self) -> None:
        recs = await self.app.state.catalog.recommendations(self.app.state.viewed)
        if not recs:
            await self.query_one("#md-recommended", Markdown).update("")
            return
        picks = " · ".join(f"**{p.name}** ({money(p.price)})" for p in recs)
        await self.query_one("#md-recommended", Markdown).update(
            f"#### Recommended for you\n\n{picks}"
        )

    @on(DataTable.RowSelected, "#table-products")
    @work()
    async def handle_product_selected(self, event: DataTable.RowSelected) -> None:
        await self.app.push_screen_wait(ProdDetailModal(event.row_key.value))
        self.load_recommendations()

    @on(Button.Pressed, "#btn-visual-search")
    @work(exclusive=True)
    async def handle_visual_search(self) -> None:
        path = await self.app.push_screen_wait(
            PromptModal("Path to an image of what you are looking for", "~/photo.jpg")
        )
        if not path:
            return
        self.notify("Analyzing image...")
        result = await self.app.state.catalog.visual_search(path)
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self.query_one("#input-search", Input).value = result.value

    @work(exclusive=True, group="catalog")
    async def action_reload(self) -> None:
        await self.app.state.catalog.load_products()
        self.populate_categories()
        self.update_search_result()
        self.notify("Catalog reloaded.")

    def action_noop(self) -> None:
        pass
