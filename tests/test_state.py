import unittest

from fake_backend import StorefrontTestCase

from api.models import Product
from utils.state import GlobalState


class GlobalStateTestCase(StorefrontTestCase):
    async def test_start_restores_and_loads(self):
        first = GlobalState()
        await first.session.login("alice@example.com", "secret")

        state = GlobalState()
        self.assertIsNone(state.role)
        await state.start()

        self.assertEqual(state.role, "customer")
        self.assertEqual(len(state.catalog.products), 3)
        self.assertTrue(state.wishlist.is_in_wishlist("B"))

    async def test_end_session_keeps_cart_and_comparison(self):
        state = GlobalState()
        await state.start()
        await state.session.login("root@example.com", "admin")
        self.assertEqual(state.role, "admin")

        product = Product.model_validate(self.backend.products["A"])
        state.cart.add_to_cart(product)
        state.comparison.add_to_comparison(product)

        await state.end_session()

        self.assertIsNone(state.role)
        self.assertEqual(state.cart.item_count, 1)
        self.assertTrue(state.comparison.is_in_comparison("A"))

    def test_record_view_keeps_recent_unique_ids(self):
        state = GlobalState()
        for pid in ["A", "B", "A"] + [str(i) for i in range(12)]:
            state.record_view(pid)
        self.assertEqual(len(state.viewed), 10)
        self.assertEqual(state.viewed[0], "11")
        self.assertEqual(state.viewed.count("A"), 0)

        state.record_view("3")
        self.assertEqual(state.viewed[0], "3")
        self.assertEqual(state.viewed.count("3"), 1)


if __name__ == "__main__":
    unittest.main()
