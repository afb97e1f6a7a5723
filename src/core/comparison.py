from __future__ import annotations

from typing import List, Tuple

from api.models import Product

MAX_COMPARED = 4

# attribute label -> how to render it for one product
_ROWS = [
    ("Price", lambda p: f"${p.price:.2f}"),
    ("Brand", lambda p: p.brand or "-"),
    ("Category", lambda p: p.category or "-"),
    ("Rating", lambda p: f"{p.rating:.1f} / 5"),
    ("Reviews", lambda p: str(p.num_reviews)),
    ("In Stock", lambda p: str(p.count_in_stock) if p.in_stock else "Out of stock"),
    ("Description", lambda p: p.description or "-"),
]


class ComparisonState:
    """
    Client-only set of products picked for side by side comparison,
    capped at MAX_COMPARED entries.
    """

    def __init__(self) -> None:
        self._products: List[Product] = []

    @property
    def compared_products(self) -> Tuple[Product, ...]:
        return tuple(self._products)

    def is_in_comparison(self, product_id: str) -> bool:
        return any(p.id == product_id for p in self._products)

    def can_add_to_comparison(self) -> bool:
        return len(self._products) < MAX_COMPARED

    def add_to_comparison(self, product: Product) -> bool:
        """False (and no change) for a duplicate or when the set is full."""
        if self.is_in_comparison(product.id) or not self.can_add_to_comparison():
            return False
        self._products.append(product)
        return True

    def remove_from_comparison(self, product_id: str) -> None:
        self._products = [p for p in self._products if p.id != product_id]

    def clear_comparison(self) -> None:
        self._products = []

    def comparison_rows(self) -> List[List[str]]:
        """Attribute matrix: one row per attribute, one column per product."""
        return [[label] + [fmt(p) for p in self._products] for label, fmt in _ROWS]
