"""
PostgreSQL implementation of the order and subscriber repositories.

Rows are converted to domain entities once, here: JSONB columns are
decoded and NUMERIC values arrive as Decimal.
"""

import json
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID

import asyncpg
import structlog

from ..database import Database
from ..domain.entities import (
    Order,
    OrderItem,
    OrderStatus,
    ShippingAddress,
    Subscriber,
    utcnow,
)
from ..domain.exceptions import DuplicateSubscriberError, PersistenceError
from .order_repository import IOrderRepository
from .subscriber_repository import ISubscriberRepository

logger = structlog.get_logger()

ORDER_COLUMNS = """
    id, customer_id, customer_email, customer_name, items, total_amount,
    shipping_address, status, payment_status, ordered_at, updated_at
"""

SUBSCRIBER_COLUMNS = """
    id, email, first_name, last_name, is_active, wants_discount_emails,
    subscribed_at, unsubscribed_at, updated_at
"""

ORDER_UPDATABLE = {"status", "payment_status"}
SUBSCRIBER_UPDATABLE = {
    "first_name",
    "last_name",
    "is_active",
    "wants_discount_emails",
    "unsubscribed_at",
}

DB_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError)


def _decode_json(value: Any) -> Any:
    if isinstance(value, str):
        return json.loads(value)
    return value


def _encode_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def _build_update(
    table: str, columns: str, allowed: set, record_id: UUID, fields: Dict[str, Any]
) -> tuple[str, list]:
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Cannot update columns on {table}: {sorted(unknown)}")

    assignments = []
    args: list = [record_id]
    for name, value in fields.items():
        args.append(_encode_value(value))
        assignments.append(f"{name} = ${len(args)}")
    assignments.append("updated_at = NOW()")

    query = f"""
        UPDATE {table}
        SET {', '.join(assignments)}
        WHERE id = $1
        RETURNING {columns}
    """
    return query, args


class PostgresOrderRepository(IOrderRepository):
    """PostgreSQL implementation for order persistence."""

    def __init__(self, db: Database):
        self.db = db

    async def create(self, order: Order) -> Order:
        query = f"""
            INSERT INTO orders (
                id, customer_id, customer_email, customer_name, items,
                total_amount, shipping_address, status, payment_status,
                ordered_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7::jsonb, $8, $9, $10, $11)
            RETURNING {ORDER_COLUMNS}
        """
        try:
            row = await self.db.fetchrow(
                query,
                order.id,
                order.customer_id,
                order.customer_email,
                order.customer_name,
                json.dumps([item.to_dict() for item in order.items]),
                order.total_amount,
                json.dumps(order.shipping_address.to_dict()),
                order.status.value,
                order.payment_status.value,
                order.ordered_at,
                order.updated_at,
            )
        except DB_ERRORS as e:
            logger.error("Error creating order in PostgreSQL", error=str(e))
            raise PersistenceError("create order", str(e)) from e
        return self._map_to_entity(row)

    async def find_by_id(self, order_id: UUID) -> Optional[Order]:
        query = f"SELECT {ORDER_COLUMNS} FROM orders WHERE id = $1"
        try:
            row = await self.db.fetchrow(query, order_id)
        except DB_ERRORS as e:
            logger.error("Error fetching order", order_id=str(order_id), error=str(e))
            raise PersistenceError("find order", str(e)) from e
        return self._map_to_entity(row) if row else None

    async def find_by_customer_email(
        self, email: str, status: Optional[OrderStatus] = None
    ) -> List[Order]:
        query = f"""
            SELECT {ORDER_COLUMNS}
            FROM orders
            WHERE customer_email = $1
            AND ($2::text IS NULL OR status = $2::text)
            ORDER BY ordered_at DESC
        """
        try:
            rows = await self.db.fetch(query, email, status.value if status else None)
        except DB_ERRORS as e:
            logger.error("Error fetching customer orders", email=email, error=str(e))
            raise PersistenceError("find customer orders", str(e)) from e
        return [self._map_to_entity(row) for row in rows]

    async def update_fields(self, order_id: UUID, fields: Dict[str, Any]) -> Optional[Order]:
        query, args = _build_update("orders", ORDER_COLUMNS, ORDER_UPDATABLE, order_id, fields)
        try:
            row = await self.db.fetchrow(query, *args)
        except DB_ERRORS as e:
            logger.error("Error updating order", order_id=str(order_id), error=str(e))
            raise PersistenceError("update order", str(e)) from e
        return self._map_to_entity(row) if row else None

    @staticmethod
    def _map_to_entity(row: Mapping[str, Any]) -> Order:
        items = _decode_json(row["items"]) or []
        return Order(
            id=row["id"],
            customer_id=row["customer_id"],
            customer_email=row["customer_email"],
            customer_name=row["customer_name"],
            items=[OrderItem.from_mapping(item) for item in items],
            total_amount=row["total_amount"],
            shipping_address=ShippingAddress.from_mapping(_decode_json(row["shipping_address"])),
            status=row["status"],
            payment_status=row["payment_status"],
            ordered_at=row["ordered_at"],
            updated_at=row["updated_at"],
        )


class PostgresSubscriberRepository(ISubscriberRepository):
    """PostgreSQL implementation for subscriber persistence."""

    def __init__(self, db: Database):
        self.db = db

    async def create(self, subscriber: Subscriber) -> Subscriber:
        query = f"""
            INSERT INTO subscribers (
                id, email, first_name, last_name, is_active,
                wants_discount_emails, subscribed_at, unsubscribed_at, updated_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
            RETURNING {SUBSCRIBER_COLUMNS}
        """
        try:
            row = await self.db.fetchrow(
                query,
                subscriber.id,
                subscriber.email,
                subscriber.first_name,
                subscriber.last_name,
                subscriber.is_active,
                subscriber.wants_discount_emails,
                subscriber.subscribed_at,
                subscriber.unsubscribed_at,
                subscriber.updated_at,
            )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateSubscriberError(subscriber.email) from e
        except DB_ERRORS as e:
            logger.error("Error creating subscriber", error=str(e))
            raise PersistenceError("create subscriber", str(e)) from e
        return self._map_to_entity(row)

    async def find_by_id(self, subscriber_id: UUID) -> Optional[Subscriber]:
        query = f"SELECT {SUBSCRIBER_COLUMNS} FROM subscribers WHERE id = $1"
        return await self._fetch_one(query, subscriber_id)

    async def find_by_email(self, email: str) -> Optional[Subscriber]:
        query = f"SELECT {SUBSCRIBER_COLUMNS} FROM subscribers WHERE lower(email) = lower($1)"
        return await self._fetch_one(query, email.strip())

    async def find_active(
        self, wants_discount_emails: Optional[bool] = None
    ) -> List[Subscriber]:
        query = f"""
            SELECT {SUBSCRIBER_COLUMNS}
            FROM subscribers
            WHERE is_active = true
            AND ($1::boolean IS NULL OR wants_discount_emails = $1::boolean)
            ORDER BY subscribed_at
        """
        return await self._fetch_many(query, wants_discount_emails)

    async def find_by_ids_active(self, subscriber_ids: Sequence[UUID]) -> List[Subscriber]:
        query = f"""
            SELECT {SUBSCRIBER_COLUMNS}
            FROM subscribers
            WHERE is_active = true
            AND id = ANY($1::uuid[])
            ORDER BY subscribed_at
        """
        return await self._fetch_many(query, list(subscriber_ids))

    async def update_fields(
        self, subscriber_id: UUID, fields: Dict[str, Any]
    ) -> Optional[Subscriber]:
        query, args = _build_update(
            "subscribers", SUBSCRIBER_COLUMNS, SUBSCRIBER_UPDATABLE, subscriber_id, fields
        )
        return await self._fetch_one(query, *args)

    async def _fetch_one(self, query: str, *args) -> Optional[Subscriber]:
        try:
            row = await self.db.fetchrow(query, *args)
        except DB_ERRORS as e:
            logger.error("Error querying subscribers", error=str(e))
            raise PersistenceError("query subscribers", str(e)) from e
        return self._map_to_entity(row) if row else None

    async def _fetch_many(self, query: str, *args) -> List[Subscriber]:
        try:
            rows = await self.db.fetch(query, *args)
        except DB_ERRORS as e:
            logger.error("Error querying subscribers", error=str(e))
            raise PersistenceError("query subscribers", str(e)) from e
        return [self._map_to_entity(row) for row in rows]

    @staticmethod
    def _map_to_entity(row: Mapping[str, Any]) -> Subscriber:
        return Subscriber(
            id=row["id"],
            email=row["email"],
            first_name=row["first_name"],
            last_name=row["last_name"],
            is_active=row["is_active"],
            wants_discount_emails=row["wants_discount_emails"],
            subscribed_at=row["subscribed_at"] or utcnow(),
            unsubscribed_at=row["unsubscribed_at"],
            updated_at=row["updated_at"] or utcnow(),
        )
