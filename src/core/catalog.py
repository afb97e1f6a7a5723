from __future__ import annotations

import base64
import mimetypes
import os
import re
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from api import endpoints
from api.errors import ApiError
from api.models import Product, Review, Sentiment
from core.results import Result
from core.session import SessionState
from utils.logger import get_logger

_logger = get_logger(__name__)

SortKey = Literal["featured", "price-low", "price-high", "rating", "newest"]
SORT_KEYS: Dict[str, str] = {
    "featured": "Featured",
    "price-low": "Price: Low to High",
    "price-high": "Price: High to Low",
    "rating": "Top Rated",
    "newest": "Newest",
}

DEFAULT_PRICE_RANGE = (0.0, 2000.0)
RECOMMENDATION_FALLBACK = 3

_TAG_RE = re.compile(r"<[^>]*>")


def strip_html(text: str) -> str:
    return _TAG_RE.sub("", text).strip()


def product_specs(product: Product) -> str:
    """Plain-text facts handed to the description generator."""
    return (
        f"Category: {product.category}\n"
        f"Brand: {product.brand}\n"
        f"Price: ${product.price}\n"
        f"Rating: {product.rating}/5 ({product.num_reviews} reviews)\n"
        f"In Stock: {'Yes' if product.in_stock else 'No'}"
    )


def filter_products(
    products: Sequence[Product],
    query: str = "",
    category: str = "",
    price_range: Tuple[float, float] = DEFAULT_PRICE_RANGE,
    sort_by: SortKey = "featured",
) -> List[Product]:
    """
    Case-insensitive substring match over name, description and brand,
    exact category match, inclusive price range, then sort.
    "featured" keeps the backend order.
    """
    needle = (query or "").strip().lower()
    low, high = price_range
    result = [
        p
        for p in products
        if (
            not needle
            or needle in p.name.lower()
            or needle in p.description.lower()
            or needle in p.brand.lower()
        )
        and (not category or p.category == category)
        and low <= p.price <= high
    ]

    if sort_by == "price-low":
        result.sort(key=lambda p: p.price)
    elif sort_by == "price-high":
        result.sort(key=lambda p: p.price, reverse=True)
    elif sort_by == "rating":
        result.sort(key=lambda p: p.rating, reverse=True)
    elif sort_by == "newest":
        result.sort(
            key=lambda p: p.created_at.timestamp() if p.created_at else float("-inf"),
            reverse=True,
        )
    return result


class Catalog:
    """
    Read-only view of the backend's products, plus the thin AI helpers that
    hang off a product page.
    """

    def __init__(self) -> None:
        self.products: List[Product] = []
        self.error: Optional[str] = None
        self._sentiments: Dict[str, Sentiment] = {}

    def categories(self) -> List[str]:
        seen: List[str] = []
        for p in self.products:
            if p.category and p.category not in seen:
                seen.append(p.category)
        return seen

    async def load_products(self) -> List[Product]:
        """On failure the catalog is left empty and `error` is set."""
        try:
            self.products = await endpoints.list_products()
            self.error = None
        except ApiError as exc:
            _logger.warning(f"Error fetching products: {exc.message}")
            self.products, self.error = [], exc.message
        return self.products

    async def get_product(self, product_id: str) -> Result[Product]:
        try:
            return Result.ok(await endpoints.get_product(product_id))
        except ApiError as exc:
            return Result.from_error(exc)

    def search(self, query: str = "", **filters) -> List[Product]:
        return filter_products(self.products, query, **filters)

    # ---------------------------
    # Reviews
    # ---------------------------

    @staticmethod
    def has_reviewed(session: SessionState, product: Product) -> bool:
        if session.user is None:
            return False
        return any(r.user == session.user.id for r in product.reviews)

    async def submit_review(
        self,
        session: SessionState,
        product_id: str,
        rating: int,
        comment: str,
        image: str = "",
    ) -> Result[Product]:
        """Post a review, then re-fetch the product so its review list is current."""
        if session.token is None:
            return Result.fail("Please login to submit a review")
        if not 1 <= rating <= 5:
            return Result.fail("Please select a rating")
        if not (comment or "").strip():
            return Result.fail("Please enter a comment")
        try:
            await endpoints.submit_review(
                session.token, product_id, rating, comment.strip(), image
            )
        except ApiError as exc:
            return Result.from_error(exc)
        refreshed = await self.get_product(product_id)
        return Result.ok(refreshed.value, "Review submitted successfully!")

    async def analyze_sentiment(self, review: Review) -> Optional[Sentiment]:
        """Cached per review id; None when the analysis is unavailable."""
        if review.id in self._sentiments:
            return self._sentiments[review.id]
        try:
            sentiment = await endpoints.ai_sentiment(review.comment)
        except ApiError as exc:
            _logger.debug(f"Sentiment analysis failed: {exc.message}")
            return None
        self._sentiments[review.id] = sentiment
        return sentiment

    # ---------------------------
    # AI helpers
    # ---------------------------

    async def recommendations(
        self,
        viewed: Sequence[str] = (),
        preferences: Optional[Dict] = None,
    ) -> List[Product]:
        """Falls back to the head of the catalog whenever the recommender fails."""
        prefs = preferences or {
            "categories": self.categories()[:2],
            "priceRange": {"min": DEFAULT_PRICE_RANGE[0], "max": DEFAULT_PRICE_RANGE[1]},
        }
        try:
            recs = await endpoints.ai_recommend(prefs, list(viewed))
        except ApiError as exc:
            _logger.debug(f"Recommendations unavailable: {exc.message}")
            return self.products[:RECOMMENDATION_FALLBACK]
        return recs or self.products[:RECOMMENDATION_FALLBACK]

    async def generate_description(self, product: Product) -> Result[str]:
        try:
            text = await endpoints.ai_generate_description(
                product.name, product_specs(product)
            )
        except ApiError as exc:
            return Result.from_error(exc)
        return Result.ok(strip_html(text))

    async def visual_search(self, image_path: str) -> Result[str]:
        """Turn a local image into a search query via the visual search endpoint."""
        try:
            with open(os.path.expanduser(image_path), "rb") as f:
                raw = f.read()
        except OSError as exc:
            return Result.fail(f"Cannot read image: {exc.strerror}")
        mime = mimetypes.guess_type(image_path)[0] or "application/octet-stream"
        if not mime.startswith("image/"):
            return Result.fail("Please choose an image file.")
        data_url = f"data:{mime};base64,{base64.b64encode(raw).decode('ascii')}"
        try:
            found = await endpoints.ai_visual_search(data_url)
        except ApiError as exc:
            return Result.from_error(exc)
        return Result.ok(found.query)
