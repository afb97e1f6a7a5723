from __future__ import annotations

from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import ScreenResume
from textual.validation import Number
from textual.widgets import Button, Input, Label, OptionList, TextArea
from textual.widgets.option_list import Option

from core.admin import ProductForm
from utils.messages import ModeSwitchedMessage
from utils.pure import money
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal

TEXT_FIELDS = {
    "name": "#input-name",
    "brand": "#input-brand",
    "category": "#input-category",
    "image": "#input-image",
}


class AdminProductsScreen(BaseScreen):
    """
    Operators search the catalog, then create, edit or delete products.
    """

    current_pid: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal():
            with Vertical(id="div-prod-list"):
                yield Input(id="input-search", placeholder="Search for product...")
                yield OptionList(id="optlist-prods")
                yield Button("New Product", id="btn-new", variant="primary")
            with VerticalScroll(id="div-prod-form"):
                yield Label("Creating a new product", id="label-form-title")
                yield Label("Name")
                yield Input(id="input-name")
                with Horizontal():
                    with Vertical():
                        yield Label("Price ($)")
                        yield Input(
                            "0",
                            id="input-price",
                            type="number",
                            validators=[Number(minimum=0.0)],
                        )
                    with Vertical():
                        yield Label("Stock")
                        yield Input(
                            "0",
                            id="input-stock",
                            type="integer",
                            validators=[Number(minimum=0)],
                        )
                yield Label("Brand")
                yield Input(id="input-brand")
                yield Label("Category")
                yield Input(id="input-category")
                yield Label("Image URL")
                yield Input(id="input-image")
                yield Label("Description")
                yield TextArea(id="textarea-description")
                with Horizontal(id="div-button"):
                    yield Button("AI Description", id="btn-ai-desc")
                    yield Button("Delete", id="btn-delete", variant="error")
                    yield Button("Save", id="btn-save", variant="success")

    def on_mount(self) -> None:
        self.query_one("#btn-delete").disabled = True
        self.query_one("#input-search", Input).focus()
        self.handle_reload()

    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True, group="load")
    async def handle_reload(self) -> None:
        result = await self.app.state.admin.load_products()
        if not result.success:
            self.notify(result.message, severity="error")
        self.update_optlist(self.query_one("#input-search", Input).value)

    def on_input_changed(self, message: Input.Changed) -> None:
        if message.input.id == "input-search":
            self.update_optlist(message.value)

    def update_optlist(self, query: str) -> None:
        """
        fill option list with the products whose name, brand or category match
        """
        needle = query.strip().lower()
        opt_list = self.query_one("#optlist-prods", OptionList)
        opt_list.clear_options()
        opt_list.add_options(
            [
                Option(f"{p.name} ({money(p.price)}, {p.count_in_stock} left)", id=p.id)
                for p in self.app.state.admin.products
                if not needle
                or needle in p.name.lower()
                or needle in p.brand.lower()
                or needle in p.category.lower()
            ]
        )

    @on(OptionList.OptionSelected, "#optlist-prods")
    @work(exclusive=True, group="form")
    async def handle_option_selected(self, message: OptionList.OptionSelected) -> None:
        pid = message.option.id
        result = await self.app.state.admin.load_product(pid)
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self.current_pid = pid
        self.fill_form(result.value)

    def fill_form(self, form: ProductForm) -> None:
        for field, selector in TEXT_FIELDS.items():
            self.query_one(selector, Input).value = getattr(form, field)
        self.query_one("#input-price", Input).value = f"{form.price:.2f}"
        self.query_one("#input-stock", Input).value = str(form.count_in_stock)
        self.query_one("#textarea-description", TextArea).text = form.description

        self.query_one("#label-form-title", Label).content = (
            "Creating a new product" if self.current_pid is None else f"Editing {form.name}"
        )
        self.query_one("#btn-delete").disabled = self.current_pid is None

    def read_form(self) -> Optional[ProductForm]:
        price_input = self.query_one("#input-price", Input)
        stock_input = self.query_one("#input-stock", Input)
        for widget in (price_input, stock_input):
            if not widget.value or not widget.is_valid:
                widget.focus()
                widget.add_class("-invalid")
                self.notify("Price and stock must be non-negative numbers.", severity="error")
                return None
        return ProductForm(
            price=float(price_input.value),
            count_in_stock=int(stock_input.value),
            description=self.query_one("#textarea-description", TextArea).text,
            **{
                field: self.query_one(selector, Input).value
                for field, selector in TEXT_FIELDS.items()
            },
        )

    @on(Button.Pressed, "#btn-new")
    def handle_new(self) -> None:
        self.current_pid = None
        self.fill_form(ProductForm())
        self.query_one("#input-name").focus()

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True, group="form")
    async def handle_save(self) -> None:
        form = self.read_form()
        if form is None:
            return
        admin = self.app.state.admin
        result = await admin.save_product(form, self.current_pid)
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message)
        self.current_pid = result.value.id
        self.fill_form(ProductForm.from_product(result.value))
        self.update_optlist(self.query_one("#input-search", Input).value)
        # keep the shop in step with the edit
        await self.app.state.catalog.load_products()

    @on(Button.Pressed, "#btn-delete")
    @work(exclusive=True, group="form")
    async def handle_delete(self) -> None:
        if self.current_pid is None:
            return
        name = self.query_one("#input-name", Input).value
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete {name}? This cannot be undone.",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        result = await self.app.state.admin.delete_product(self.current_pid)
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message)
        self.current_pid = None
        self.fill_form(ProductForm())
        self.update_optlist(self.query_one("#input-search", Input).value)
        await self.app.state.catalog.load_products()

    @on(Button.Pressed, "#btn-ai-desc")
    @work(exclusive=True, group="ai")
    async def handle_ai_description(self) -> None:
        form = self.read_form()
        if form is None:
            return
        btn = self.query_one("#btn-ai-desc", Button)
        btn.disabled = True
        btn.label = "Generating..."
        result = await self.app.state.admin.generate_description(form)
        btn.disabled = False
        btn.label = "AI Description"
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self.query_one("#textarea-description", TextArea).text = result.value
        self.notify("Description generated. Review it before saving.")
