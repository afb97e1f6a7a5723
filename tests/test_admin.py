import asyncio
import unittest

from fake_backend import StorefrontTestCase
from pydantic import ValidationError

from core.admin import AdminConsole, ProductForm
from core.session import SessionState


class ProductFormTestCase(unittest.TestCase):
    def test_problems(self):
        form = ProductForm(name=" ", price=-1, count_in_stock=-2, brand="Acme")
        problems = form.problems()
        self.assertIn("Product name is required.", problems)
        self.assertIn("Product category is required.", problems)
        self.assertIn("Price cannot be negative.", problems)
        self.assertIn("Stock cannot be negative.", problems)
        self.assertNotIn("Product brand is required.", problems)

    def test_payload_rejects_invalid_values(self):
        with self.assertRaises(ValidationError):
            ProductForm(name="Lamp", price=-1, brand="Glow", category="Home").payload()
        payload = ProductForm(
            name=" Lamp ", price=3, brand="Glow", category="Home", count_in_stock=1
        ).payload()
        self.assertEqual((payload.name, payload.count_in_stock), ("Lamp", 1))

    def test_to_json_uses_backend_field_names(self):
        form = ProductForm(name=" Lamp ", price=12.5, brand="Glow", category="Home", count_in_stock=3)
        data = form.to_json()
        self.assertEqual(data["name"], "Lamp")
        self.assertEqual(data["countInStock"], 3)
        self.assertNotIn("count_in_stock", data)


class AdminConsoleTestCase(StorefrontTestCase):
    async def asyncSetUp(self):
        self.session = SessionState()
        await self.session.login("root@example.com", "admin")
        self.admin = AdminConsole(self.session)

    async def test_stats(self):
        result = await self.admin.load_stats()
        self.assertTrue(result.success)
        self.assertEqual(result.value.products, 3)
        self.assertEqual(result.value.users, 2)
        self.assertEqual(result.value.revenue, 0)

    async def test_create_update_delete_product(self):
        await self.admin.load_products()
        self.assertEqual(len(self.admin.products), 3)

        invalid = await self.admin.save_product(ProductForm(name="Lamp"))
        self.assertFalse(invalid.success)
        self.assertEqual(self.backend.calls("POST", "/api/admin/products"), [])

        form = ProductForm(name="Lamp", price=12.5, brand="Glow", category="Home", count_in_stock=3)
        created = await self.admin.save_product(form)
        self.assertTrue(created.success)
        new_id = created.value.id
        self.assertEqual(self.admin.products[-1].name, "Lamp")

        loaded = await self.admin.load_product(new_id)
        self.assertEqual(
            (loaded.value.name, loaded.value.price, loaded.value.count_in_stock),
            ("Lamp", 12.5, 3),
        )

        form.price = 15.0
        updated = await self.admin.save_product(form, new_id)
        self.assertEqual(updated.value.price, 15.0)
        self.assertEqual(self.backend.calls("PUT", f"/api/admin/products/{new_id}")[0]["price"], 15.0)
        self.assertEqual(len(self.admin.products), 4)

        deleted = await self.admin.delete_product(new_id)
        self.assertTrue(deleted.success)
        self.assertNotIn(new_id, [p.id for p in self.admin.products])
        self.assertNotIn(new_id, self.backend.products)

    async def test_users(self):
        await self.admin.load_users()
        self.assertEqual({u.email for u in self.admin.users}, {"alice@example.com", "root@example.com"})

        own = await self.admin.delete_user("u9")
        self.assertFalse(own.success)
        self.assertEqual(self.backend.calls("DELETE", "/api/admin/users/u9"), [])

        result = await self.admin.delete_user("u1")
        self.assertTrue(result.success)
        self.assertEqual([u.id for u in self.admin.users], ["u9"])

        missing = await self.admin.delete_user("u404")
        self.assertFalse(missing.success)
        self.assertEqual(missing.message, "User not found")

    async def test_admin_requests_carry_token(self):
        await self.admin.load_stats()
        self.assertEqual(self.backend.auth[-1], "Bearer token-u9")

    async def test_generate_description_needs_basics(self):
        result = await self.admin.generate_description(ProductForm(name="Lamp"))
        self.assertFalse(result.success)
        self.assertEqual(self.backend.calls("POST", "/api/ai/generate"), [])

        form = ProductForm(name="Lamp", brand="Glow", category="Home")
        result = await self.admin.generate_description(form)
        self.assertEqual(result.value, "The Lamp is great.")

    async def test_logout_drops_cached_data(self):
        await self.admin.load_stats()
        await self.admin.load_products()
        await self.admin.load_users()

        await self.session.logout()

        self.assertEqual(self.admin.products, [])
        self.assertEqual(self.admin.users, [])
        self.assertEqual(self.admin.stats.products, 0)

    async def test_reply_from_previous_session_is_dropped(self):
        gate = asyncio.Event()
        self.backend.gates[("GET", "/api/admin/users")] = gate

        task = asyncio.create_task(self.admin.load_users())
        while not self.backend.calls("GET", "/api/admin/users"):
            await asyncio.sleep(0)
        await self.session.logout()
        gate.set()

        result = await task
        self.assertFalse(result.success)
        self.assertEqual(self.admin.users, [])


if __name__ == "__main__":
    unittest.main()
