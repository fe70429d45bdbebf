# walcard/domain/schemas.py
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, List, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from walcard.domain.errors import SchemaError

M = TypeVar("M", bound=BaseModel)


class UserType(str, Enum):
    MERCHANT = "merchant"
    STORE_OWNER = "store_owner"
    ADMIN = "admin"


class OrderStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PREPARING = "preparing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# =====================================================
# Backend records
# =====================================================
class _Record(BaseModel):
    # backend moze zwrocic wiecej kolumn niz potrzebujemy
    model_config = ConfigDict(extra="ignore")


class Product(_Record):
    id: str
    name: str
    price: Decimal
    discount_price: Decimal | None = None
    image_url: str | None = None
    is_active: bool
    merchant_id: str
    available_quantity: int = 0

    @property
    def unit_price(self) -> Decimal:
        """Discount price when the product has one, regular price otherwise."""
        return self.discount_price if self.discount_price is not None else self.price


class StockRecord(_Record):
    id: str
    available_quantity: int | None = None


class UserRecord(_Record):
    id: str
    phone_number: str
    full_name: str
    user_type: UserType
    is_approved: bool = False


class AccountInfo(_Record):
    has_account: bool = False
    user_id: str | None = None
    full_name: str | None = None
    user_type: UserType | None = None
    is_approved: bool = False


class AuthLog(_Record):
    id: str
    user_id: str
    expires_at: datetime
    is_used: bool = False
    created_at: datetime | None = None

    @field_validator("expires_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # timestamp bez strefy traktujemy jako UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class OrderItem(_Record):
    id: str | None = None
    order_id: str
    product_id: str
    quantity: int
    price_at_order: Decimal
    product_name: str | None = None
    image_url: str | None = None


class Order(_Record):
    id: str
    store_owner_id: str | None = None
    status: OrderStatus = OrderStatus.PENDING
    total_price: Decimal
    order_notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: List[OrderItem] = Field(default_factory=list)


class FavoriteProduct(_Record):
    favorite_id: str
    product_id: str
    product_name: str
    price: Decimal
    discount_price: Decimal | None = None
    image_url: str | None = None
    available_quantity: int = 0
    merchant_id: str | None = None
    added_at: datetime | None = None


# =====================================================
# Local state
# =====================================================
class CartLineItem(BaseModel):
    """One persisted cart entry. Product data is never stored here."""

    id: str
    product_id: str
    quantity: int = Field(..., ge=1)
    added_at: datetime


class CartItemDetails(CartLineItem):
    product: Product

    @property
    def line_total(self) -> Decimal:
        return self.product.unit_price * self.quantity


class UserSession(BaseModel):
    user_id: str
    phone_number: str
    full_name: str
    user_type: UserType
    is_approved: bool
    auth_log_id: str


class SessionUser(BaseModel):
    """Identity resolved by OTP login, before a session record exists."""

    user_id: str
    phone_number: str
    full_name: str
    user_type: UserType
    is_approved: bool


class StockAdjustment(BaseModel):
    product_id: str
    quantity: int


CartItems = TypeAdapter(List[CartLineItem])


# =====================================================
# Results
# =====================================================
class ActionResult(BaseModel):
    success: bool
    message: str


class CartResult(ActionResult):
    cart: List[CartLineItem] | None = None


class OrderResult(ActionResult):
    order_id: str | None = None


class FavoriteResult(ActionResult):
    is_favorite: bool | None = None


class LoginResult(ActionResult):
    session: UserSession | None = None
    needs_approval: bool = False


class LoginStatus(BaseModel):
    is_logged_in: bool
    session: UserSession | None = None
    redirect_to: str | None = None


class UploadResult(ActionResult):
    url: str | None = None
    path: str | None = None


# =====================================================
# Boundary parsing
# =====================================================
def parse_record(model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise SchemaError(f"Niepoprawny rekord {model.__name__}: {e}") from e


def parse_records(model: Type[M], data: Any) -> List[M]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise SchemaError(f"Oczekiwano listy rekordow {model.__name__}")
    return [parse_record(model, row) for row in data]
