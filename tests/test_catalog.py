import os
import unittest

import httpx
from fake_backend import StorefrontTestCase, product_json

from api.models import Product
from core.catalog import Catalog, filter_products, strip_html
from core.session import SessionState


class FilterProductsTestCase(unittest.TestCase):
    def setUp(self):
        self.products = [
            Product.model_validate(product_json("1", "Red Phone", 300, brand="Acme", rating=4.2,
                                              createdAt="2026-01-01T00:00:00+00:00")),
            Product.model_validate(product_json("2", "Blue Laptop", 1200, brand="Bolt",
                                              category="Computers", rating=4.9,
                                              createdAt="2026-03-01T00:00:00+00:00")),
            Product.model_validate(product_json("3", "Phone Case", 15, brand="Casey", rating=3.0,
                                              description="Fits the red phone",
                                              createdAt="2026-02-01T00:00:00+00:00")),
        ]

    def ids(self, **kwargs):
        return [p.id for p in filter_products(self.products, **kwargs)]

    def test_query_matches_name_description_and_brand(self):
        self.assertEqual(self.ids(query="PHONE"), ["1", "3"])
        self.assertEqual(self.ids(query="red"), ["1", "3"])
        self.assertEqual(self.ids(query="bolt"), ["2"])
        self.assertEqual(self.ids(query="   "), ["1", "2", "3"])

    def test_category_and_price_range(self):
        self.assertEqual(self.ids(category="Computers"), ["2"])
        self.assertEqual(self.ids(price_range=(10, 300)), ["1", "3"])
        self.assertEqual(self.ids(price_range=(0, 2000), category="Electronics"), ["1", "3"])

    def test_sorting(self):
        self.assertEqual(self.ids(sort_by="price-low"), ["3", "1", "2"])
        self.assertEqual(self.ids(sort_by="price-high"), ["2", "1", "3"])
        self.assertEqual(self.ids(sort_by="rating"), ["2", "1", "3"])
        self.assertEqual(self.ids(sort_by="newest"), ["2", "3", "1"])
        self.assertEqual(self.ids(sort_by="featured"), ["1", "2", "3"])

    def test_strip_html(self):
        self.assertEqual(strip_html("<p>Great <b>deal</b></p>\n"), "Great deal")


class CatalogTestCase(StorefrontTestCase):
    async def asyncSetUp(self):
        self.catalog = Catalog()
        self.session = SessionState()

    async def test_load_and_categories(self):
        products = await self.catalog.load_products()
        self.assertEqual([p.id for p in products], ["A", "B", "C"])
        self.assertIsNone(self.catalog.error)
        self.assertEqual(self.catalog.categories(), ["Electronics", "Computers"])
        self.assertEqual([p.id for p in self.catalog.search("laptop")], ["B"])
        self.assertFalse(products[2].in_stock)

    async def test_load_failure_degrades_to_empty(self):
        self.backend.failures[("GET", "/api/products")] = httpx.ConnectError("down")
        self.assertEqual(await self.catalog.load_products(), [])
        self.assertEqual(self.catalog.error, "Network error")

    async def test_invalid_product_shape_is_parse_error(self):
        self.backend.products["A"]["countInStock"] = -1
        await self.catalog.load_products()
        self.assertEqual(self.catalog.products, [])
        self.assertIn("countInStock", self.catalog.error)

        self.backend.failures[("GET", "/api/products/B")] = (200, {"name": "no id"})
        result = await self.catalog.get_product("B")
        self.assertEqual(result.kind, "parse")

    async def test_get_missing_product(self):
        result = await self.catalog.get_product("zzz")
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Product not found")

    async def test_review_validation_and_submit(self):
        anon = await self.catalog.submit_review(self.session, "A", 5, "Nice")
        self.assertEqual(anon.message, "Please login to submit a review")

        await self.session.login("alice@example.com", "secret")
        self.assertFalse((await self.catalog.submit_review(self.session, "A", 0, "x")).success)
        self.assertFalse((await self.catalog.submit_review(self.session, "A", 4, "  ")).success)
        self.assertEqual(self.backend.calls("POST", "/api/products/A/reviews"), [])

        result = await self.catalog.submit_review(self.session, "A", 4, " Great phone ")
        self.assertTrue(result.success)
        self.assertEqual(
            self.backend.calls("POST", "/api/products/A/reviews"),
            [{"rating": 4, "comment": "Great phone", "image": ""}],
        )
        refreshed = result.value
        self.assertEqual(refreshed.num_reviews, 1)
        self.assertTrue(Catalog.has_reviewed(self.session, refreshed))

    async def test_sentiment_is_cached(self):
        await self.session.login("alice@example.com", "secret")
        await self.catalog.submit_review(self.session, "A", 5, "Great battery")
        review = (await self.catalog.get_product("A")).value.reviews[0]

        first = await self.catalog.analyze_sentiment(review)
        second = await self.catalog.analyze_sentiment(review)
        self.assertEqual(first.overall_sentiment, "Positive")
        self.assertIs(first, second)
        self.assertEqual(len(self.backend.calls("POST", "/api/ai/sentiment")), 1)

    async def test_recommendations_fall_back_to_catalog_head(self):
        await self.catalog.load_products()
        recs = await self.catalog.recommendations(["A"])
        self.assertEqual([p.id for p in recs], ["B"])
        sent = self.backend.calls("POST", "/api/ai/recommend")[0]
        self.assertEqual(sent["viewedProducts"], ["A"])

        self.backend.failures[("POST", "/api/ai/recommend")] = (500, {"message": "quota"})
        recs = await self.catalog.recommendations()
        self.assertEqual([p.id for p in recs], ["A", "B", "C"])

    async def test_generate_description_strips_markup(self):
        await self.catalog.load_products()
        result = await self.catalog.generate_description(self.catalog.products[0])
        self.assertEqual(result.value, "The Alpha Phone is great.")
        sent = self.backend.calls("POST", "/api/ai/generate")[0]
        self.assertIn("Brand: Acme", sent["specs"])

    async def test_visual_search(self):
        image = os.path.join(self.temp_dir.name, "shot.png")
        with open(image, "wb") as f:
            f.write(b"\x89PNG fake")

        result = await self.catalog.visual_search(image)
        self.assertEqual(result.value, "phone black")
        sent = self.backend.calls("POST", "/api/ai/visual-search")[0]
        self.assertTrue(sent["imageBase64"].startswith("data:image/png;base64,"))

        text = os.path.join(self.temp_dir.name, "notes.txt")
        with open(text, "w") as f:
            f.write("hello")
        self.assertFalse((await self.catalog.visual_search(text)).success)
        self.assertFalse((await self.catalog.visual_search(image + ".missing")).success)


if __name__ == "__main__":
    unittest.main()
