from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import Resize, ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import (
    LoginRequestedMessage,
    ModeSwitchedMessage,
    UserLoginMessage,
    UserLogoutMessage,
)
from utils.pure import generate_markdown_table
from views.modal_chat import ChatModal
from views.modal_dialog import DialogModal, QuitDialogModal, ResizeScreenPromptModal


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Markdown("", id="md-badges")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(id="list-menu")

    def on_mount(self):
        self.init_mode = self.app.current_mode
        self.rebuild()

    @work(exclusive=True, group="sidebar")
    async def rebuild(self) -> None:
        """
        re-render user info and menu for whoever is logged in now
        """
        state = self.app.state
        user = state.session.user
        btn_logout = self.query_one("#btn-logout", Button)

        if user is None:
            rows = [["Name", "Guest"], ["Role", "Not logged in"]]
            modes = self.app.CUSTOMER_MODES
            btn_logout.label, btn_logout.variant = "Log in", "primary"
        elif state.role == "admin":
            rows = [["Name", user.name], ["Email", user.email], ["Role", "Administrator"]]
            modes = {**self.app.CUSTOMER_MODES, **self.app.ADMIN_MODES}
            btn_logout.label, btn_logout.variant = "Log out", "error"
        else:
            rows = [["Name", user.name], ["Email", user.email], ["Role", "Customer"]]
            modes = self.app.CUSTOMER_MODES
            btn_logout.label, btn_logout.variant = "Log out", "error"
        md_table_str = generate_markdown_table(None, rows, ["l", "l"])
        await self.query_one("#md-userinfo", Markdown).update(md_table_str)

        list_menu: ListView = self.query_one("#list-menu")
        await list_menu.clear()
        await list_menu.extend(
            [ListItem(Label(v), name=k) for k, v in modes.items()]
        )

        self.highlight_item(self.init_mode)
        await self.refresh_badges()

    async def refresh_badges(self) -> None:
        state = self.app.state
        md = (
            f"Cart: **{state.cart.item_count}**  \n"
            f"Wishlist: **{len(state.wishlist)}**  \n"
            f"Compare: **{len(state.comparison.compared_products)}** / 4"
        )
        await self.query_one("#md-badges", Markdown).update(md)

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.name
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            self.post_message(ModeSwitchedMessage(self.app.current_mode, selected_mode))
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if self.app.state.session.user is None:
            self.post_message(LoginRequestedMessage())
            return

        if not await self.app.push_screen_wait(
            DialogModal(
                "Are you sure you want to log out?",
                primary_text="Yes",
                secondary_text="No",
                tone="warning",
            )
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = item.name == mode_str


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
        Binding("ctrl+k", "assistant", "Assistant", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "Storefront",
        show_sidebar: bool = True,
    ) -> None:
        """
        configure behavior of the base screen
        """

        # auto gen titles and subtitles
        self.app.title = "Storefront"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v):
                if k in self.app.ADMIN_MODES:
                    self.sub_title = self.app.ADMIN_MODES[k]
                elif k in self.app.CUSTOMER_MODES:
                    self.sub_title = self.app.CUSTOMER_MODES[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    async def on_resize(self, event: Resize) -> None:
        min_width = 80
        min_height = 24
        if event.size.width < min_width or event.size.height < min_height:
            self.app.push_screen(ResizeScreenPromptModal(min_width, min_height))

    @on(UserLoginMessage)
    @on(ScreenResume)
    def handle_identity_refresh(self):
        for sidebar in self.query(Sidebar):
            if sidebar.is_mounted:
                sidebar.rebuild()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())

    @work()
    async def action_assistant(self):
        await self.app.push_screen_wait(ChatModal(self.app.chat))
