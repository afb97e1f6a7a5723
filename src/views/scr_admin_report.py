from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, MarkdownViewer

from utils.messages import ModeSwitchedMessage, NewOrderMessage
from utils.pure import generate_markdown_table, money
from views.base_screen import BaseScreen
from views.modal_dialog import DialogModal


class AdminReportScreen(BaseScreen):
    """
    Dashboard: revenue and record counts, plus the user list.
    """

    BINDINGS = [
        Binding("ctrl+r", "reload", "Reload", show=True),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-stats", show_table_of_contents=False)
            yield DataTable(id="table-users")
        with Horizontal(id="hort-buttons"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("Delete User", id="btn-delete-user", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Name", "Email", "Role")
        self.handle_reload()

    def action_reload(self) -> None:
        self.handle_reload()

    @on(Button.Pressed, "#btn-refresh")
    @on(NewOrderMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        admin = self.app.state.admin
        stats_result = await admin.load_stats()
        users_result = await admin.load_users()

        if stats_result.success:
            stats = stats_result.value
            rows = [
                ["Total Revenue", money(stats.revenue)],
                ["Revenue (recent)", money(stats.recent_revenue)],
                ["Orders", stats.orders],
                ["Customers", stats.users],
                ["Products", stats.products],
            ]
            md = "### Dashboard\n\n" + generate_markdown_table(
                ["Metric", "Value"], rows, ["l", "r"]
            )
        else:
            md = f"### Dashboard\n\n{stats_result.message}"
        await self.query_one("#md-stats", MarkdownViewer).document.update(md)

        if not users_result.success:
            self.notify(users_result.message, severity="error")
        table = self.query_one(DataTable)
        table.clear()
        for u in admin.users:
            table.add_row(
                u.name, u.email, "Administrator" if u.is_admin else "Customer", key=u.id
            )

    @on(Button.Pressed, "#btn-delete-user")
    @work(exclusive=True)
    async def handle_delete_user(self) -> None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        user = next((u for u in self.app.state.admin.users if u.id == row_key.value), None)
        if user is None:
            return
        if not await self.app.push_screen_wait(
            DialogModal(
                f"Delete user {user.name} ({user.email})?",
                primary_text="Delete",
                secondary_text="Cancel",
                tone="error",
            )
        ):
            return
        result = await self.app.state.admin.delete_user(user.id)
        if not result.success:
            self.notify(result.message, severity="error")
            return
        self.notify(result.message)
        table.remove_row(row_key)
