import asyncio
import unittest
from datetime import datetime, timezone

import httpx
from fake_backend import StorefrontTestCase, order_json

from api.models import Order, PaymentMethod, Product, ShippingAddress
from core.cart import CartState
from core.orders import (
    AdminOrderBoard,
    LoadState,
    OrderHistory,
    OrderTracker,
    build_order_payload,
    build_timeline,
    place_order,
)
from core.session import SessionState

ALICE = {"_id": "u1", "name": "Alice", "email": "alice@example.com"}
ADDRESS = ShippingAddress(
    address="1 Main St", city="Springfield", postal_code="12345", country="US"
)


class TimelineTestCase(unittest.TestCase):
    def make_order(self, **extra) -> Order:
        items = [{"product": "A", "name": "Alpha", "qty": 1, "price": 10}]
        return Order.model_validate(order_json("O1", ALICE, items, **extra))

    def test_new_order_has_only_placed_complete(self):
        stages = build_timeline(self.make_order())
        self.assertEqual(
            [s.title for s in stages],
            ["Order Placed", "Payment Pending", "Order Shipped", "Order Delivered"],
        )
        self.assertEqual([s.completed for s in stages], [True, False, False, False])
        self.assertIsNone(stages[3].timestamp)

    def test_paying_flips_only_payment(self):
        unpaid = build_timeline(self.make_order())
        paid = build_timeline(
            self.make_order(isPaid=True, paidAt="2026-01-06T08:00:00+00:00")
        )
        self.assertEqual([s.completed for s in paid], [True, True, False, False])
        self.assertEqual(paid[1].title, "Payment Confirmed")
        self.assertEqual(paid[1].timestamp, datetime(2026, 1, 6, 8, tzinfo=timezone.utc))
        for before, after in zip(unpaid[2:], paid[2:]):
            self.assertEqual(before, after)

    def test_delivery_completes_shipped_and_delivered(self):
        stages = build_timeline(
            self.make_order(isPaid=True, isDelivered=True)
        )
        self.assertEqual([s.completed for s in stages], [True, True, True, True])
        # paidAt and deliveredAt missing: both fall back to the creation time
        created = stages[0].timestamp
        self.assertEqual(stages[1].timestamp, created)
        self.assertEqual(stages[3].timestamp, created)


class PlaceOrderTestCase(StorefrontTestCase):
    async def asyncSetUp(self):
        self.session = SessionState()
        await self.session.login("alice@example.com", "secret")
        self.cart = CartState()
        self.product_a = Product.model_validate(self.backend.products["A"])

    async def test_checkout_clears_cart_and_returns_order_id(self):
        self.cart.add_to_cart(self.product_a, 2)

        result = await place_order(
            self.session, self.cart, ADDRESS, PaymentMethod.CASH_ON_DELIVERY
        )

        self.assertTrue(result.success)
        self.assertEqual(result.value, "O1")
        self.assertTrue(self.cart.is_empty)
        sent = self.backend.calls("POST", "/api/orders")[0]
        self.assertEqual(sent["totalPrice"], 20.0)
        self.assertEqual(sent["taxPrice"], 0)
        self.assertEqual(sent["shippingPrice"], 0)
        self.assertEqual(sent["paymentMethod"], "CashOnDelivery")
        self.assertEqual(sent["shippingAddress"]["postalCode"], "12345")
        self.assertEqual(
            sent["orderItems"],
            [
                {
                    "product": "A",
                    "name": "Alpha Phone",
                    "image": "/images/A.jpg",
                    "price": 10.0,
                    "qty": 2,
                }
            ],
        )

        tracker = OrderTracker(self.session, result.value)
        self.assertEqual(await tracker.load(), LoadState.LOADED)
        self.assertEqual(tracker.order.total_price, 20.0)

    async def test_server_failure_keeps_cart(self):
        self.cart.add_to_cart(self.product_a, 2)
        self.backend.failures[("POST", "/api/orders")] = (400, {"message": "Out of stock"})

        result = await place_order(self.session, self.cart, ADDRESS, "PayPal")

        self.assertFalse(result.success)
        self.assertEqual(result.message, "Out of stock")
        self.assertEqual(self.cart.get_line("A").qty, 2)

    async def test_validation_rejections_send_nothing(self):
        empty = await place_order(self.session, self.cart, ADDRESS, "PayPal")
        self.assertFalse(empty.success)

        self.cart.add_to_cart(self.product_a)
        partial = ShippingAddress(
            address="1 Main St", city="", postal_code="12345", country=" "
        )
        result = await place_order(self.session, self.cart, partial, "PayPal")
        self.assertEqual(result.message, "Please fill in all shipping information")
        self.assertEqual(partial.missing_fields(), ["city", "country"])

        bogus = await place_order(self.session, self.cart, ADDRESS, "Bitcoin")
        self.assertFalse(bogus.success)

        await self.session.logout()
        anon = await place_order(self.session, self.cart, ADDRESS, "PayPal")
        self.assertEqual(anon.message, "Please login to place an order")

        self.assertEqual(self.backend.calls("POST", "/api/orders"), [])
        self.assertFalse(self.cart.is_empty)

    def test_payload_total_is_sum_of_lines(self):
        self.cart.add_to_cart(self.product_a, 3)
        self.cart.add_to_cart(Product.model_validate(self.backend.products["B"]), 1)
        payload = build_order_payload(self.cart.cart_items, ADDRESS, PaymentMethod.STRIPE)
        self.assertEqual(payload["totalPrice"], 930.0)
        self.assertEqual(payload["paymentMethod"], "Stripe")


class LoaderTestCase(StorefrontTestCase):
    async def asyncSetUp(self):
        self.session = SessionState()
        await self.session.login("alice@example.com", "secret")
        items = [{"product": "A", "name": "Alpha", "qty": 1, "price": 10}]
        self.backend.orders["O7"] = order_json("O7", ALICE, items)

    async def test_tracker_states(self):
        tracker = OrderTracker(self.session, "O7")
        self.assertEqual(tracker.state, LoadState.IDLE)
        self.assertEqual(tracker.timeline(), [])

        self.assertEqual(await tracker.load(), LoadState.LOADED)
        self.assertEqual(len(tracker.timeline()), 4)

        missing = OrderTracker(self.session, "nope")
        self.assertEqual(await missing.load(), LoadState.FAILED)
        self.assertEqual(missing.error, "Order not found")

    async def test_tracker_requires_login(self):
        await self.session.logout()
        tracker = OrderTracker(self.session, "O7")
        self.assertEqual(await tracker.load(), LoadState.FAILED)
        self.assertEqual(tracker.error, "Please login to view order details")

    async def test_cancelled_load_is_discarded(self):
        gate = asyncio.Event()
        self.backend.gates[("GET", "/api/orders/O7")] = gate
        tracker = OrderTracker(self.session, "O7")

        task = asyncio.create_task(tracker.load())
        while not self.backend.calls("GET", "/api/orders/O7"):
            await asyncio.sleep(0)
        self.assertEqual(tracker.state, LoadState.LOADING)

        tracker.cancel()
        gate.set()
        await task
        self.assertEqual(tracker.state, LoadState.IDLE)
        self.assertIsNone(tracker.order)

    async def test_history_and_network_failure(self):
        history = OrderHistory(self.session)
        self.assertEqual(await history.load(), LoadState.LOADED)
        self.assertEqual([o.id for o in history.orders], ["O7"])

        self.backend.failures[("GET", "/api/users/orders")] = httpx.ConnectError("down")
        self.assertEqual(await history.load(), LoadState.FAILED)
        self.assertEqual(history.error, "Network error")

    async def test_admin_mark_delivered_touches_one_order(self):
        items = [{"product": "B", "name": "Beta", "qty": 1, "price": 900}]
        self.backend.orders["O8"] = order_json("O8", ALICE, items)
        board = AdminOrderBoard(self.session)
        await board.load()
        untouched = board.orders[1]

        result = await board.mark_delivered("O7")

        self.assertTrue(result.success)
        self.assertTrue(board.orders[0].is_delivered)
        self.assertIsNotNone(board.orders[0].delivered_at)
        self.assertIs(board.orders[1], untouched)
        self.assertEqual(
            self.backend.calls("PUT", "/api/admin/orders/O7/deliver"), [None]
        )

    async def test_logout_forgets_loaded_orders(self):
        history = OrderHistory(self.session)
        board = AdminOrderBoard(self.session)
        await history.load()
        await board.load()

        await self.session.logout()

        self.assertEqual(history.state, LoadState.IDLE)
        self.assertEqual(history.orders, [])
        self.assertEqual(board.state, LoadState.IDLE)
        self.assertEqual(board.orders, [])

    async def test_reply_after_logout_and_refused_reload_is_dropped(self):
        gate = asyncio.Event()
        self.backend.gates[("GET", "/api/users/orders")] = gate
        history = OrderHistory(self.session)

        task = asyncio.create_task(history.load())
        while not self.backend.calls("GET", "/api/users/orders"):
            await asyncio.sleep(0)

        await self.session.logout()
        self.assertEqual(await history.load(), LoadState.FAILED)
        self.assertEqual(history.error, "Please login to view your orders")

        gate.set()
        await task
        self.assertEqual(history.state, LoadState.FAILED)
        self.assertEqual(history.orders, [])

    async def test_refused_load_clears_previous_data(self):
        history = OrderHistory(self.session)
        await history.load()
        # identity vanishes without the listener firing, e.g. a token expiry
        self.session.user = None
        self.assertEqual(await history.load(), LoadState.FAILED)
        self.assertIsNone(history.data)


if __name__ == "__main__":
    unittest.main()
