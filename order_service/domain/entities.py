"""
Domain entities for orders, subscribers and notifications.

Core business objects shared by the lifecycle service, the dispatcher
and the campaign worker. These entities are framework-agnostic; numeric
coercion (str/float -> Decimal) happens once, when an entity is built.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from .exceptions import ValidationError

TOTAL_TOLERANCE = Decimal("0.01")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str) -> str:
    """Trim and lower-case an email address."""
    if email is None:
        raise ValidationError("Email is required", field="email", value=email)
    normalized = str(email).strip().lower()
    if not normalized or "@" not in normalized:
        raise ValidationError(f"Invalid email: {email}", field="email", value=email)
    return normalized


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Coerce a numeric value (Decimal, int, float or str) to a finite Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError(f"{field_name} must be a number", field=field_name, value=value)
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() first so floats keep their printed value (10.1 -> 10.1, not 10.0999...)
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValidationError(
                f"{field_name} must be a number", field=field_name, value=value
            ) from e
    if not result.is_finite():
        raise ValidationError(
            f"{field_name} must be a finite number", field=field_name, value=str(value)
        )
    return result


class OrderStatus(str, Enum):
    """Order fulfilment status."""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELED = "canceled"

    @classmethod
    def parse(cls, value: Any) -> "OrderStatus":
        """Parse a raw value, raising ValidationError when it is not a known status."""
        try:
            return cls(value)
        except ValueError as e:
            raise ValidationError(
                "Invalid order status", field="status", value=value
            ) from e


class PaymentStatus(str, Enum):
    """Order payment status."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"

    @classmethod
    def parse(cls, value: Any) -> "PaymentStatus":
        """Parse a raw value, raising ValidationError when it is not a known status."""
        try:
            return cls(value)
        except ValueError as e:
            raise ValidationError(
                "Invalid payment status", field="payment_status", value=value
            ) from e


# Statuses that notify the customer when an order moves into them.
NOTIFYING_ORDER_STATUSES = frozenset(
    {OrderStatus.PROCESSING, OrderStatus.SHIPPED, OrderStatus.DELIVERED}
)


class NotificationType(str, Enum):
    """Types of notifications."""

    ORDER_CONFIRMATION = "order_confirmation"
    ORDER_STATUS_UPDATE = "order_status_update"
    PAYMENT_CONFIRMATION = "payment_confirmation"
    DISCOUNT_CAMPAIGN = "discount_campaign"


@dataclass
class ShippingAddress:
    """Shipping address; every part is required and non-empty."""

    street: str
    city: str
    state: str
    postal_code: str
    country: str

    def __post_init__(self):
        for name in ("street", "city", "state", "postal_code", "country"):
            value = getattr(self, name)
            text = str(value).strip() if value is not None else ""
            if not text:
                raise ValidationError(
                    f"shipping_address.{name} is required",
                    field=f"shipping_address.{name}",
                    value=value,
                )
            setattr(self, name, text)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ShippingAddress":
        return cls(
            street=data.get("street"),
            city=data.get("city"),
            state=data.get("state"),
            postal_code=data.get("postal_code", data.get("postalCode")),
            country=data.get("country"),
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "postal_code": self.postal_code,
            "country": self.country,
        }


@dataclass
class OrderItem:
    """One ordered product line. `price` is the unit price."""

    product_id: str
    product_name: str
    quantity: int
    price: Decimal

    def __post_init__(self):
        self.product_id = str(self.product_id or "").strip()
        self.product_name = str(self.product_name or "").strip()
        if not self.product_id or not self.product_name:
            raise ValidationError(
                "product_id and product_name are required", field="items", value=self.product_id
            )
        self.price = to_decimal(self.price, "price")
        if self.price < 0:
            raise ValidationError("price must be >= 0", field="price", value=str(self.price))
        if (
            isinstance(self.quantity, bool)
            or not isinstance(self.quantity, (int, float))
            or int(self.quantity) != self.quantity
        ):
            raise ValidationError(
                "quantity must be an integer", field="quantity", value=self.quantity
            )
        self.quantity = int(self.quantity)
        if self.quantity < 1:
            raise ValidationError("quantity must be >= 1", field="quantity", value=self.quantity)

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "OrderItem":
        return cls(
            product_id=str(data.get("product_id", data.get("productId", ""))),
            product_name=str(data.get("product_name", data.get("productName", ""))),
            quantity=data.get("quantity"),
            price=data.get("price"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "price": str(self.price),
        }


@dataclass
class OrderDraft:
    """Input for creating an order. `total_amount` may be omitted."""

    customer_email: str
    customer_name: str
    items: List[OrderItem]
    shipping_address: ShippingAddress
    total_amount: Optional[Decimal] = None
    customer_id: Optional[UUID] = None

    def computed_total(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    def resolve_total(self) -> Decimal:
        """
        Return the authoritative order total.

        The item sum wins; a supplied total that disagrees with it by more
        than one cent is rejected.
        """
        computed = self.computed_total()
        if self.total_amount is None:
            return computed

        provided = to_decimal(self.total_amount, "total_amount")
        if provided < 0:
            raise ValidationError(
                "total_amount must be >= 0", field="total_amount", value=str(provided)
            )
        if abs(provided - computed) > TOTAL_TOLERANCE:
            raise ValidationError(
                "Total amount does not match sum of items",
                field="total_amount",
                value=str(provided),
            )
        return computed


@dataclass
class Order:
    """A customer order tracked through its lifecycle."""

    id: UUID
    customer_email: str
    customer_name: str
    items: List[OrderItem]
    total_amount: Decimal
    shipping_address: ShippingAddress
    status: OrderStatus = OrderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    ordered_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    customer_id: Optional[UUID] = None

    def __post_init__(self):
        self.total_amount = to_decimal(self.total_amount, "total_amount")
        self.status = OrderStatus.parse(self.status)
        self.payment_status = PaymentStatus.parse(self.payment_status)

    @property
    def subtotal(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0"))

    def with_fields(self, **changes: Any) -> "Order":
        return replace(self, **changes)


@dataclass
class Subscriber:
    """A newsletter subscriber; deletion is a soft deactivation."""

    id: UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool = True
    wants_discount_emails: bool = True
    subscribed_at: datetime = field(default_factory=utcnow)
    unsubscribed_at: Optional[datetime] = None
    updated_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.email = normalize_email(self.email)
        if self.first_name is not None:
            self.first_name = self.first_name.strip() or None
        if self.last_name is not None:
            self.last_name = self.last_name.strip() or None

    def with_fields(self, **changes: Any) -> "Subscriber":
        return replace(self, **changes)


@dataclass(frozen=True)
class NotificationMessage:
    """A rendered message ready to hand to a channel."""

    recipient: str
    subject: str
    body: str


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of sending to many recipients."""

    total: int = 0
    successful: int = 0

    @property
    def failed(self) -> int:
        return self.total - self.successful

    def to_dict(self) -> Dict[str, int]:
        return {"total": self.total, "successful": self.successful, "failed": self.failed}


@dataclass(frozen=True)
class DiscountProduct:
    """A promoted catalog item."""

    name: str
    original_price: Decimal
    discount_price: Decimal
    description: str = ""

    def __post_init__(self):
        object.__setattr__(
            self, "original_price", to_decimal(self.original_price, "original_price")
        )
        object.__setattr__(
            self, "discount_price", to_decimal(self.discount_price, "discount_price")
        )

    @property
    def discount_percent(self) -> int:
        """Discount as a whole percentage, rounded half up."""
        original = self.original_price
        if original <= 0:
            return 0
        ratio = (1 - self.discount_price / original) * 100
        return int(ratio.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DiscountProduct":
        return cls(
            name=str(data.get("name", "")),
            original_price=to_decimal(
                data.get("original_price", data.get("originalPrice")), "original_price"
            ),
            discount_price=to_decimal(
                data.get("discount_price", data.get("discountPrice")), "discount_price"
            ),
            description=str(data.get("description") or ""),
        )
