"""Repository layer for orders and subscribers."""

from .memory_repository import InMemoryOrderRepository, InMemorySubscriberRepository
from .order_repository import IOrderRepository
from .postgres_repository import PostgresOrderRepository, PostgresSubscriberRepository
from .subscriber_repository import ISubscriberRepository

__all__ = [
    "IOrderRepository",
    "ISubscriberRepository",
    "InMemoryOrderRepository",
    "InMemorySubscriberRepository",
    "PostgresOrderRepository",
    "PostgresSubscriberRepository",
]
