"""Domain layer: entities and exceptions."""

from .entities import (
    DiscountProduct,
    DispatchResult,
    NotificationMessage,
    NotificationType,
    Order,
    OrderDraft,
    OrderItem,
    OrderStatus,
    PaymentStatus,
    ShippingAddress,
    Subscriber,
)
from .exceptions import (
    CatalogUnavailableError,
    DuplicateSubscriberError,
    NotFoundError,
    NotificationFailure,
    OrderServiceException,
    PersistenceError,
    ValidationError,
)

__all__ = [
    "CatalogUnavailableError",
    "DiscountProduct",
    "DispatchResult",
    "DuplicateSubscriberError",
    "NotFoundError",
    "NotificationFailure",
    "NotificationMessage",
    "NotificationType",
    "Order",
    "OrderDraft",
    "OrderItem",
    "OrderServiceException",
    "OrderStatus",
    "PaymentStatus",
    "PersistenceError",
    "ShippingAddress",
    "Subscriber",
    "ValidationError",
]
