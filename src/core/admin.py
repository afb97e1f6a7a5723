from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ValidationError

from api import endpoints
from api.errors import ApiError
from api.models import AdminStats, AdminUser, Product, ProductPayload, UserInfo
from core.catalog import strip_html
from core.results import Result
from core.session import SessionState
from utils.logger import get_logger

_logger = get_logger(__name__)

SESSION_CHANGED = "Session changed."

PROBLEMS = {
    "name": "Product name is required.",
    "brand": "Product brand is required.",
    "category": "Product category is required.",
    "price": "Price cannot be negative.",
    "countInStock": "Stock cannot be negative.",
    "count_in_stock": "Stock cannot be negative.",
}


class ProductForm(BaseModel):
    """What the operator typed; `payload` validates it for the backend."""

    name: str = ""
    price: float = 0.0
    description: str = ""
    image: str = ""
    brand: str = ""
    category: str = ""
    count_in_stock: int = 0

    @classmethod
    def from_product(cls, product: Product) -> "ProductForm":
        return cls.model_validate(product.model_dump(include=set(cls.model_fields)))

    def payload(self) -> ProductPayload:
        """
        Raises:
            ValidationError: a required field is blank or a number is negative.
        """
        return ProductPayload.model_validate(self.model_dump())

    def problems(self) -> List[str]:
        try:
            self.payload()
        except ValidationError as exc:
            return [PROBLEMS[err["loc"][0]] for err in exc.errors()]
        return []

    def to_json(self) -> Dict[str, Any]:
        return self.payload().model_dump(by_alias=True)


class AdminConsole:
    """
    Operator back-office: dashboard numbers, product editing and user list.
    Orders live on core.orders.AdminOrderBoard.

    Everything cached here is dropped when the identity changes, and replies
    requested under an earlier identity are discarded.
    """

    def __init__(self, session: SessionState) -> None:
        self._session = session
        self._epoch = 0
        self.stats = AdminStats()
        self.products: List[Product] = []
        self.users: List[AdminUser] = []
        session.subscribe(self._on_session_changed)

    def _on_session_changed(self, user: Optional[UserInfo]) -> None:
        self._epoch += 1
        self.stats = AdminStats()
        self.products, self.users = [], []

    def _stale(self, epoch: int) -> bool:
        if epoch != self._epoch:
            _logger.debug("Dropping admin response from an earlier session")
            return True
        return False

    async def load_stats(self) -> Result[AdminStats]:
        epoch = self._epoch
        try:
            stats = await endpoints.admin_stats(self._session.token)
        except ApiError as exc:
            _logger.warning(f"Error fetching stats: {exc.message}")
            return Result.from_error(exc)
        if self._stale(epoch):
            return Result.fail(SESSION_CHANGED)
        self.stats = stats
        return Result.ok(self.stats)

    async def load_products(self) -> Result[List[Product]]:
        epoch = self._epoch
        try:
            products = await endpoints.admin_list_products(self._session.token)
        except ApiError as exc:
            return Result.from_error(exc)
        if self._stale(epoch):
            return Result.fail(SESSION_CHANGED)
        self.products = products
        return Result.ok(self.products)

    async def load_product(self, product_id: str) -> Result[ProductForm]:
        try:
            prod = await endpoints.admin_get_product(product_id, self._session.token)
        except ApiError as exc:
            return Result.from_error(exc)
        return Result.ok(ProductForm.from_product(prod))

    async def save_product(
        self, form: ProductForm, product_id: Optional[str] = None
    ) -> Result[Product]:
        """Create when product_id is None, otherwise update."""
        problems = form.problems()
        if problems:
            return Result.fail(" ".join(problems))
        epoch = self._epoch
        try:
            saved = await endpoints.admin_save_product(
                form.payload(), product_id, self._session.token
            )
        except ApiError as exc:
            return Result.from_error(exc)
        if not self._stale(epoch):
            if product_id is None:
                self.products.append(saved)
            else:
                self.products = [
                    saved if p.id == product_id else p for p in self.products
                ]
        return Result.ok(saved, "Product saved.")

    async def delete_product(self, product_id: str) -> Result[None]:
        epoch = self._epoch
        try:
            await endpoints.admin_delete_product(product_id, self._session.token)
        except ApiError as exc:
            return Result.from_error(exc)
        if not self._stale(epoch):
            self.products = [p for p in self.products if p.id != product_id]
        return Result.ok(message="Product deleted.")

    async def load_users(self) -> Result[List[AdminUser]]:
        epoch = self._epoch
        try:
            users = await endpoints.admin_list_users(self._session.token)
        except ApiError as exc:
            return Result.from_error(exc)
        if self._stale(epoch):
            return Result.fail(SESSION_CHANGED)
        self.users = users
        return Result.ok(self.users)

    async def delete_user(self, user_id: str) -> Result[None]:
        if self._session.user is not None and self._session.user.id == user_id:
            return Result.fail("You cannot delete your own account.")
        epoch = self._epoch
        try:
            await endpoints.admin_delete_user(user_id, self._session.token)
        except ApiError as exc:
            return Result.from_error(exc)
        if not self._stale(epoch):
            self.users = [u for u in self.users if u.id != user_id]
        return Result.ok(message="User deleted.")

    async def generate_description(self, form: ProductForm) -> Result[str]:
        if not (form.name.strip() and form.brand.strip() and form.category.strip()):
            return Result.fail("Please fill in product name, brand, and category first")
        specs = (
            f"Category: {form.category}\nBrand: {form.brand}\nPrice: ${form.price}"
        )
        try:
            text = await endpoints.ai_generate_description(form.name, specs)
        except ApiError as exc:
            return Result.from_error(exc)
        return Result.ok(strip_html(text))
