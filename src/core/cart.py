from __future__ import annotations

import dataclasses
from typing import List, Tuple

from api.models import CartLine, Product
from utils.logger import get_logger

_logger = get_logger(__name__)


class CartState:
    """
    In-memory cart for the current run of the app.
    At most one line per product id; lines keep insertion order.
    Nothing here talks to the backend, the cart is only submitted at checkout.
    """

    def __init__(self) -> None:
        self._lines: List[CartLine] = []

    @property
    def cart_items(self) -> Tuple[CartLine, ...]:
        return tuple(self._lines)

    @property
    def subtotal(self) -> float:
        return sum(line.qty * line.product.price for line in self._lines)

    @property
    def item_count(self) -> int:
        return sum(line.qty for line in self._lines)

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, product_id: str) -> CartLine | None:
        for line in self._lines:
            if line.product.id == product_id:
                return line
        return None

    def add_to_cart(self, product: Product, qty: int = 1) -> CartLine:
        """
        Add qty of product; an existing line for the same product id is
        incremented instead of duplicated. Stock is not enforced here.
        """
        if qty < 1:
            raise ValueError("Quantity must be at least 1.")
        for i, line in enumerate(self._lines):
            if line.product.id == product.id:
                self._lines[i] = dataclasses.replace(line, qty=line.qty + qty)
                _logger.debug(f"Cart: {product.id} qty -> {self._lines[i].qty}")
                return self._lines[i]
        line = CartLine(product=product, qty=qty)
        self._lines.append(line)
        _logger.debug(f"Cart: added {product.id} x{qty}")
        return line

    def update_quantity(self, product_id: str, qty: int) -> None:
        """Set the quantity of an existing line; 0 removes it."""
        if qty < 0:
            raise ValueError("Quantity cannot be negative.")
        if qty == 0:
            self.remove_from_cart(product_id)
            return
        for i, line in enumerate(self._lines):
            if line.product.id == product_id:
                self._lines[i] = dataclasses.replace(line, qty=qty)
                return

    def remove_from_cart(self, product_id: str) -> None:
        self._lines = [l for l in self._lines if l.product.id != product_id]

    def clear_cart(self) -> None:
        self._lines = []
