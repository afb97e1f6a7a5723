from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Sequence, TypeVar

from api import endpoints
from api.errors import ApiError, ServerError
from api.models import CartLine, Order, PaymentMethod, ShippingAddress, UserInfo
from core.cart import CartState
from core.results import Result
from core.session import SessionState
from utils.logger import get_logger

_logger = get_logger(__name__)

T = TypeVar("T")


# ---------------------------
# Placement
# ---------------------------


def build_order_payload(
    lines: Sequence[CartLine],
    address: ShippingAddress,
    payment_method: PaymentMethod,
) -> Dict[str, Any]:
    """
    Snapshot of the cart as the backend expects it. Tax and shipping are sent
    as 0; the backend computes the authoritative amounts.
    """
    return {
        "orderItems": [
            {
                "product": line.product.id,
                "name": line.product.name,
                "image": line.product.image,
                "price": line.product.price,
                "qty": line.qty,
            }
            for line in lines
        ],
        "shippingAddress": address.to_json(),
        "paymentMethod": PaymentMethod(payment_method).value,
        "taxPrice": 0,
        "shippingPrice": 0,
        "totalPrice": sum(line.qty * line.product.price for line in lines),
    }


async def place_order(
    session: SessionState,
    cart: CartState,
    address: ShippingAddress,
    payment_method: PaymentMethod | str,
) -> Result[str]:
    """
    Submit the cart. On success the cart is cleared before the new order id
    is handed back, so whatever opens the tracking view sees an empty cart.
    On failure the cart is left as it was.
    """
    if session.token is None:
        return Result.fail("Please login to place an order")
    if cart.is_empty:
        return Result.fail("Your cart is empty.")
    if address.missing_fields():
        return Result.fail("Please fill in all shipping information")
    try:
        method = PaymentMethod(payment_method)
    except ValueError:
        return Result.fail(f"Unknown payment method: {payment_method}")

    payload = build_order_payload(cart.cart_items, address, method)
    try:
        order = await endpoints.place_order(session.token, payload)
    except ApiError as exc:
        _logger.info(f"Order placement failed: {exc.message}")
        return Result.from_error(exc)

    cart.clear_cart()
    _logger.info(f"Order {order.id} placed")
    return Result.ok(order.id, "Order placed successfully!")


# ---------------------------
# Loading
# ---------------------------


class LoadState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class _Loader(Generic[T]):
    """
    One-shot fetch with explicit states. `cancel()` (or a newer `load()`)
    makes any response still in flight be discarded on arrival.
    """

    not_found_message = "Not found"

    def __init__(self) -> None:
        self.state = LoadState.IDLE
        self.data: Optional[T] = None
        self.error: Optional[str] = None
        self._generation = 0

    async def _fetch(self) -> T:
        raise NotImplementedError

    def _precondition(self) -> Optional[str]:
        return None

    def cancel(self) -> None:
        self._generation += 1
        if self.state == LoadState.LOADING:
            self.state = LoadState.IDLE

    def reset(self) -> None:
        """Forget loaded data and drop whatever is in flight."""
        self.cancel()
        self.state, self.data, self.error = LoadState.IDLE, None, None

    def _reset_on_session_change(self, user: Optional[UserInfo]) -> None:
        self.reset()

    async def load(self) -> LoadState:
        problem = self._precondition()
        if problem:
            self.cancel()
            self.state, self.data, self.error = LoadState.FAILED, None, problem
            return self.state

        self._generation += 1
        generation = self._generation
        self.state, self.error = LoadState.LOADING, None
        try:
            data = await self._fetch()
        except ServerError as exc:
            if generation != self._generation:
                return self.state
            self.state = LoadState.FAILED
            self.error = self.not_found_message if exc.not_found else exc.message
            return self.state
        except ApiError as exc:
            if generation != self._generation:
                return self.state
            self.state, self.error = LoadState.FAILED, exc.message
            return self.state

        if generation != self._generation:
            _logger.debug(f"{type(self).__name__}: dropping stale response")
            return self.state
        self.state, self.data = LoadState.LOADED, data
        return self.state


# ---------------------------
# Tracking
# ---------------------------


@dataclass(frozen=True)
class TimelineStage:
    title: str
    completed: bool
    timestamp: Optional[datetime]
    description: str


def build_timeline(order: Order) -> List[TimelineStage]:
    """
    Four stages. The backend has no separate shipped flag, so "Order Shipped"
    completes together with "Order Delivered" on is_delivered.
    """
    placed = TimelineStage(
        "Order Placed",
        True,
        order.created_at,
        "Your order has been placed successfully",
    )
    if order.is_paid:
        payment = TimelineStage(
            "Payment Confirmed",
            True,
            order.paid_at or order.created_at,
            "Payment has been processed successfully",
        )
    else:
        payment = TimelineStage(
            "Payment Pending",
            False,
            order.created_at,
            "Waiting for payment confirmation",
        )
    if order.is_delivered:
        shipped = TimelineStage(
            "Order Shipped", True, order.created_at, "Your order has been shipped"
        )
        delivered = TimelineStage(
            "Order Delivered",
            True,
            order.delivered_at or order.created_at,
            "Your order has been delivered",
        )
    else:
        shipped = TimelineStage(
            "Order Shipped", False, order.created_at, "Your order will be shipped soon"
        )
        delivered = TimelineStage(
            "Order Delivered", False, None, "Your order will be delivered soon"
        )
    return [placed, payment, shipped, delivered]


def order_status_label(order: Order) -> str:
    if order.is_delivered:
        return "Delivered"
    if order.is_paid:
        return "Processing"
    return "Pending Payment"


class OrderTracker(_Loader[Order]):
    """Loads one order by id for the tracking view."""

    not_found_message = "Order not found"

    def __init__(self, session: SessionState, order_id: str) -> None:
        super().__init__()
        self._session = session
        self.order_id = order_id

    @property
    def order(self) -> Optional[Order]:
        return self.data

    def _precondition(self) -> Optional[str]:
        if self._session.token is None:
            return "Please login to view order details"
        return None

    async def _fetch(self) -> Order:
        return await endpoints.get_order(self._session.token, self.order_id)

    def timeline(self) -> List[TimelineStage]:
        if self.state != LoadState.LOADED or self.data is None:
            return []
        return build_timeline(self.data)


class OrderHistory(_Loader[List[Order]]):
    """The logged-in user's past orders."""

    def __init__(self, session: SessionState) -> None:
        super().__init__()
        self._session = session
        session.subscribe(self._reset_on_session_change)

    @property
    def orders(self) -> List[Order]:
        return self.data or []

    def _precondition(self) -> Optional[str]:
        if self._session.token is None:
            return "Please login to view your orders"
        return None

    async def _fetch(self) -> List[Order]:
        return await endpoints.list_my_orders(self._session.token)


# ---------------------------
# Admin
# ---------------------------


class AdminOrderBoard(_Loader[List[Order]]):
    """All orders, for operators. Marking one delivered touches only that entry."""

    def __init__(self, session: SessionState) -> None:
        super().__init__()
        self._session = session
        session.subscribe(self._reset_on_session_change)

    @property
    def orders(self) -> List[Order]:
        return self.data or []

    async def _fetch(self) -> List[Order]:
        return await endpoints.admin_list_orders(self._session.token)

    async def mark_delivered(self, order_id: str) -> Result[Order]:
        generation = self._generation
        try:
            updated = await endpoints.admin_mark_delivered(
                order_id, self._session.token
            )
        except ApiError as exc:
            return Result.from_error(exc)
        if generation == self._generation and self.data is not None:
            self.data = [updated if o.id == order_id else o for o in self.data]
        return Result.ok(updated, "Order marked as delivered.")
