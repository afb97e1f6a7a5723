from __future__ import annotations

from dataclasses import dataclass
from typing import List, Literal

from api import endpoints
from api.errors import NetworkError, ParseError, ServerError
from core.cart import CartState
from utils.logger import get_logger

_logger = get_logger(__name__)

SERVER_APOLOGY = "Sorry, I encountered an error on the server."
OFFLINE_APOLOGY = "Sorry, I am having trouble connecting right now."


@dataclass(frozen=True)
class ChatMessage:
    role: Literal["user", "model"]
    text: str


class ChatSession:
    """
    Shopping assistant conversation. The whole history and a summary of the
    cart go with every message; the reply is appended as a model turn.
    """

    def __init__(self, cart: CartState) -> None:
        self._cart = cart
        self.messages: List[ChatMessage] = [
            ChatMessage("model", "Hi! Ask me anything about our products.")
        ]

    def _history(self):
        return [{"role": m.role, "parts": [{"text": m.text}]} for m in self.messages]

    def _cart_context(self):
        return [
            {"name": l.product.name, "quantity": l.qty, "price": l.product.price}
            for l in self._cart.cart_items
        ]

    async def send(self, text: str) -> ChatMessage | None:
        text = (text or "").strip()
        if not text:
            return None
        history = self._history()
        self.messages.append(ChatMessage("user", text))
        try:
            reply = await endpoints.ai_chat(text, history, self._cart_context())
        except ServerError as exc:
            body = exc.payload if isinstance(exc.payload, dict) else {}
            reply = body.get("reply")
            if not isinstance(reply, str) or not reply.strip():
                reply = SERVER_APOLOGY
        except (NetworkError, ParseError) as exc:
            _logger.warning(f"Chat error: {exc.message}")
            reply = OFFLINE_APOLOGY
        msg = ChatMessage("model", reply)
        self.messages.append(msg)
        return msg
