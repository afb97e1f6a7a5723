from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, MarkdownViewer

from core.assistant import ChatSession


def render_chat(chat: ChatSession) -> str:
    parts = []
    for msg in chat.messages:
        who = "You" if msg.role == "user" else "Assistant"
        parts.append(f"**{who}:** {msg.text}")
    return "\n\n".join(parts)


class ChatModal(ModalScreen[None]):
    """
    Shopping assistant. The conversation belongs to the app, so it survives
    closing and reopening the modal.
    """

    def __init__(self, chat: ChatSession) -> None:
        super().__init__()
        self.chat = chat

    def compose(self) -> ComposeResult:
        with Vertical(id="div-chat"):
            yield MarkdownViewer("", show_table_of_contents=False)
            with Horizontal():
                yield Input(placeholder="Ask about products...", id="input-chat")
                yield Button("Send", id="btn-send", variant="primary")
                yield Button("Close", id="btn-quit")

    async def on_mount(self):
        await self.query_one(MarkdownViewer).document.update(render_chat(self.chat))
        self.query_one("#input-chat").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss()

    @on(Input.Submitted, "#input-chat")
    @on(Button.Pressed, "#btn-send")
    @work(exclusive=True)
    async def handle_send(self) -> None:
        chat_input = self.query_one("#input-chat", Input)
        text = chat_input.value.strip()
        if not text:
            return
        chat_input.value = ""
        chat_input.disabled = True
        viewer = self.query_one(MarkdownViewer)

        pending = render_chat(self.chat) + f"\n\n**You:** {text}\n\n_Assistant is typing..._"
        await viewer.document.update(pending)
        await self.chat.send(text)
        await viewer.document.update(render_chat(self.chat))
        viewer.scroll_end(animate=False)

        chat_input.disabled = False
        chat_input.focus()

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss()
