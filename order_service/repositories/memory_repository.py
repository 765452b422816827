"""
In-memory repositories.

Used when no DATABASE_URL is configured (local development) and by the
test suite. Entities are copied on the way in and out so callers never
share state with the store.
"""

import asyncio
import copy
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

import structlog

from ..domain.entities import Order, OrderStatus, Subscriber, utcnow
from ..domain.exceptions import DuplicateSubscriberError, PersistenceError
from .order_repository import IOrderRepository
from .subscriber_repository import ISubscriberRepository

logger = structlog.get_logger()


class InMemoryOrderRepository(IOrderRepository):
    """Dict-backed order store."""

    def __init__(self):
        self._orders: Dict[UUID, Order] = {}
        self._lock = asyncio.Lock()

    async def create(self, order: Order) -> Order:
        async with self._lock:
            if order.id in self._orders:
                raise PersistenceError("create", f"order {order.id} already exists")
            self._orders[order.id] = copy.deepcopy(order)
            logger.debug("Order stored in memory", order_id=str(order.id))
            return copy.deepcopy(order)

    async def find_by_id(self, order_id: UUID) -> Optional[Order]:
        order = self._orders.get(order_id)
        return copy.deepcopy(order) if order else None

    async def find_by_customer_email(
        self, email: str, status: Optional[OrderStatus] = None
    ) -> List[Order]:
        matches = [
            o
            for o in self._orders.values()
            if o.customer_email == email and (status is None or o.status == status)
        ]
        matches.sort(key=lambda o: o.ordered_at, reverse=True)
        return [copy.deepcopy(o) for o in matches]

    async def update_fields(self, order_id: UUID, fields: Dict[str, Any]) -> Optional[Order]:
        async with self._lock:
            current = self._orders.get(order_id)
            if current is None:
                return None
            updated = current.with_fields(**fields, updated_at=utcnow())
            self._orders[order_id] = updated
            return copy.deepcopy(updated)


class InMemorySubscriberRepository(ISubscriberRepository):
    """Dict-backed subscriber store with a case-insensitive email index."""

    def __init__(self):
        self._subscribers: Dict[UUID, Subscriber] = {}
        self._lock = asyncio.Lock()

    async def create(self, subscriber: Subscriber) -> Subscriber:
        async with self._lock:
            if any(s.email == subscriber.email for s in self._subscribers.values()):
                raise DuplicateSubscriberError(subscriber.email)
            self._subscribers[subscriber.id] = copy.deepcopy(subscriber)
            return copy.deepcopy(subscriber)

    async def find_by_id(self, subscriber_id: UUID) -> Optional[Subscriber]:
        subscriber = self._subscribers.get(subscriber_id)
        return copy.deepcopy(subscriber) if subscriber else None

    async def find_by_email(self, email: str) -> Optional[Subscriber]:
        email = email.strip().lower()
        for subscriber in self._subscribers.values():
            if subscriber.email == email:
                return copy.deepcopy(subscriber)
        return None

    async def find_active(
        self, wants_discount_emails: Optional[bool] = None
    ) -> List[Subscriber]:
        return [
            copy.deepcopy(s)
            for s in self._subscribers.values()
            if s.is_active
            and (wants_discount_emails is None or s.wants_discount_emails == wants_discount_emails)
        ]

    async def find_by_ids_active(self, subscriber_ids: Sequence[UUID]) -> List[Subscriber]:
        wanted = set(subscriber_ids)
        return [
            copy.deepcopy(s)
            for s in self._subscribers.values()
            if s.is_active and s.id in wanted
        ]

    async def update_fields(
        self, subscriber_id: UUID, fields: Dict[str, Any]
    ) -> Optional[Subscriber]:
        async with self._lock:
            current = self._subscribers.get(subscriber_id)
            if current is None:
                return None
            updated = current.with_fields(**fields, updated_at=utcnow())
            self._subscribers[subscriber_id] = updated
            return copy.deepcopy(updated)
