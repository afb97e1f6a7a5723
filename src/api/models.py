# pydantic models for backend records; malformed payloads surface as ParseError
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from functools import lru_cache
from typing import Annotated, Any, Dict, List, Optional, Tuple

from pydantic import (
    BaseModel,
    BeforeValidator,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_validator,
)

from api.errors import ParseError


def _null_as(default: Any) -> BeforeValidator:
    # the backend sends null for optional fields it never filled in
    return BeforeValidator(lambda val: default if val is None else val)


Text = Annotated[str, _null_as("")]
NonBlank = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


def _ref_id(val: Any) -> Any:
    # references come back either as a bare id or populated with _id
    if isinstance(val, dict):
        return val.get("_id")
    return val


RefId = Annotated[str, BeforeValidator(_ref_id)]


class WireModel(BaseModel):
    model_config = {"frozen": True, "populate_by_name": True}


def describe(exc: ValidationError) -> str:
    err = exc.errors()[0]
    where = ".".join(str(part) for part in err["loc"]) or "body"
    return f"Malformed response at '{where}': {err['msg']}"


@lru_cache(maxsize=None)
def _adapter(shape: Any) -> TypeAdapter:
    return TypeAdapter(shape)


def parse(shape: Any, data: Any) -> Any:
    """
    Validate decoded JSON against a model or a typing shape such as
    List[Product].

    Raises:
        ParseError: the payload does not match the shape.
    """
    try:
        return _adapter(shape).validate_python(data)
    except ValidationError as exc:
        raise ParseError(describe(exc)) from exc


class Review(WireModel):
    id: str = Field(alias="_id")
    name: Text = ""
    rating: float = Field(ge=0, le=5)
    comment: Text = ""
    user: RefId
    image: Text = ""
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class Product(WireModel):
    id: str = Field(alias="_id")
    name: str
    price: float = Field(ge=0)
    count_in_stock: Annotated[int, _null_as(0)] = Field(0, alias="countInStock", ge=0)
    description: Text = ""
    image: Text = ""
    brand: Text = ""
    category: Text = ""
    rating: Annotated[float, _null_as(0.0)] = Field(0.0, ge=0, le=5)
    num_reviews: Annotated[int, _null_as(0)] = Field(0, alias="numReviews", ge=0)
    reviews: Annotated[Tuple[Review, ...], _null_as(())] = ()
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    @property
    def in_stock(self) -> bool:
        return self.count_in_stock > 0


class ProductPayload(BaseModel):
    """What an operator may send when creating or updating a product."""

    model_config = {"populate_by_name": True}

    name: NonBlank
    price: float = Field(ge=0)
    description: str = ""
    image: Annotated[str, StringConstraints(strip_whitespace=True)] = ""
    brand: NonBlank
    category: NonBlank
    count_in_stock: int = Field(alias="countInStock", ge=0)


@dataclass(frozen=True)
class CartLine:
    product: Product
    qty: int

    @property
    def line_total(self) -> float:
        return self.qty * self.product.price


class ShippingAddress(WireModel):
    address: str
    city: str
    postal_code: str = Field(alias="postalCode")
    country: str

    def missing_fields(self) -> List[str]:
        return [
            name
            for name in ("address", "city", "postal_code", "country")
            if not getattr(self, name).strip()
        ]

    def one_line(self) -> str:
        return f"{self.address}, {self.city}, {self.postal_code}, {self.country}"

    def to_json(self) -> Dict[str, str]:
        return {
            key: val.strip() for key, val in self.model_dump(by_alias=True).items()
        }


class PaymentMethod(str, Enum):
    PAYPAL = "PayPal"
    STRIPE = "Stripe"
    CASH_ON_DELIVERY = "CashOnDelivery"

    @property
    def label(self) -> str:
        return {
            PaymentMethod.PAYPAL: "PayPal",
            PaymentMethod.STRIPE: "Credit Card (Stripe)",
            PaymentMethod.CASH_ON_DELIVERY: "Cash on Delivery",
        }[self]


class OrderItem(WireModel):
    product: RefId
    name: str
    qty: int = Field(ge=1)
    price: float = Field(ge=0)
    image: Text = ""


class Customer(WireModel):
    id: str = Field(alias="_id")
    name: Text = ""
    email: Text = ""


class Order(WireModel):
    id: str = Field(alias="_id")
    items: Tuple[OrderItem, ...] = Field(alias="orderItems")
    shipping_address: ShippingAddress = Field(alias="shippingAddress")
    payment_method: str = Field(alias="paymentMethod")
    total_price: float = Field(alias="totalPrice", ge=0)
    created_at: datetime = Field(alias="createdAt")
    tax_price: Annotated[float, _null_as(0.0)] = Field(0.0, alias="taxPrice")
    shipping_price: Annotated[float, _null_as(0.0)] = Field(0.0, alias="shippingPrice")
    is_paid: Annotated[bool, _null_as(False)] = Field(False, alias="isPaid")
    paid_at: Optional[datetime] = Field(None, alias="paidAt")
    is_delivered: Annotated[bool, _null_as(False)] = Field(False, alias="isDelivered")
    delivered_at: Optional[datetime] = Field(None, alias="deliveredAt")
    customer: Optional[Customer] = Field(None, alias="user")

    @field_validator("customer", mode="before")
    @classmethod
    def _populated_user_only(cls, val: Any) -> Any:
        # an unpopulated reference carries no name to show
        return val if isinstance(val, dict) else None


class UserInfo(WireModel):
    """
    The authenticated identity. Unknown keys are kept so the payload can be
    written back to device storage unchanged.
    """

    model_config = {"frozen": True, "populate_by_name": True, "extra": "allow"}

    id: str = Field(alias="_id")
    name: str
    email: str
    token: str
    is_admin: Annotated[bool, _null_as(False)] = Field(False, alias="isAdmin")

    def to_storage(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class FederatedIdentity(WireModel):
    uid: str
    name: str
    email: str
    photo_url: str = Field("", alias="photoURL")

    def to_json(self) -> Dict[str, str]:
        return self.model_dump(by_alias=True)


class AdminStats(WireModel):
    revenue: float = 0.0
    recent_revenue: float = Field(0.0, alias="recentRevenue")
    orders: int = Field(0, ge=0)
    users: int = Field(0, ge=0)
    products: int = Field(0, ge=0)


class AdminUser(WireModel):
    id: str = Field(alias="_id")
    name: str
    email: str
    is_admin: Annotated[bool, _null_as(False)] = Field(False, alias="isAdmin")


class Sentiment(WireModel):
    overall_sentiment: str = Field(alias="overallSentiment")
    confidence: Annotated[float, _null_as(0.0)] = Field(0.0, ge=0, le=1)


class VisualSearchResult(WireModel):
    keywords: Tuple[str, ...]

    @property
    def query(self) -> str:
        return " ".join(self.keywords)


class WishlistReply(WireModel):
    wishlist: List[Product]


class ChatReply(WireModel):
    reply: str


class GeneratedDescription(WireModel):
    description: str
