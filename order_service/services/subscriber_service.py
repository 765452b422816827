"""Subscriber management: creation, updates and soft deactivation."""

from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID, uuid4

import structlog

from order_service.domain.entities import Subscriber, normalize_email, utcnow
from order_service.domain.exceptions import (
    DuplicateSubscriberError,
    NotFoundError,
    ValidationError,
)
from order_service.repositories.subscriber_repository import ISubscriberRepository

logger = structlog.get_logger()

UPDATABLE_FIELDS = ("first_name", "last_name", "is_active", "wants_discount_emails")


class SubscriberService:
    """Subscriber operations exposed to the API layer."""

    def __init__(self, subscribers: ISubscriberRepository):
        self.subscribers = subscribers

    async def create_subscriber(
        self,
        email: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        wants_discount_emails: bool = True,
    ) -> Subscriber:
        """
        Create an active subscriber.

        Raises:
            DuplicateSubscriberError: the email (case-insensitive) exists
        """
        normalized = normalize_email(email)
        if await self.subscribers.find_by_email(normalized) is not None:
            raise DuplicateSubscriberError(normalized)

        now = utcnow()
        subscriber = Subscriber(
            id=uuid4(),
            email=normalized,
            first_name=first_name,
            last_name=last_name,
            is_active=True,
            wants_discount_emails=wants_discount_emails,
            subscribed_at=now,
            updated_at=now,
        )
        created = await self.subscribers.create(subscriber)
        logger.info("Subscriber created", subscriber_id=str(created.id), email=created.email)
        return created

    async def get_subscriber(self, subscriber_id: UUID) -> Subscriber:
        subscriber = await self.subscribers.find_by_id(subscriber_id)
        if subscriber is None:
            raise NotFoundError("Subscriber", subscriber_id)
        return subscriber

    async def list_active_subscribers(self) -> List[Subscriber]:
        return await self.subscribers.find_active()

    async def update_subscriber(
        self, subscriber_id: UUID, fields: Mapping[str, Any]
    ) -> Subscriber:
        """Partially update names, active flag and discount opt-in."""
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(
                f"Cannot update fields: {', '.join(sorted(unknown))}",
                field="fields",
                value=sorted(unknown),
            )
        changes: Dict[str, Any] = {k: v for k, v in fields.items() if v is not None}
        if changes.get("is_active") is False:
            changes["unsubscribed_at"] = utcnow()
        elif changes.get("is_active") is True:
            changes["unsubscribed_at"] = None

        if not changes:
            return await self.get_subscriber(subscriber_id)

        subscriber = await self.subscribers.update_fields(subscriber_id, changes)
        if subscriber is None:
            raise NotFoundError("Subscriber", subscriber_id)
        logger.info(
            "Subscriber updated",
            subscriber_id=str(subscriber_id),
            fields=sorted(changes),
        )
        return subscriber

    async def deactivate_subscriber(self, subscriber_id: UUID) -> Subscriber:
        """Soft delete: the record stays, flagged inactive with a timestamp."""
        subscriber = await self.subscribers.update_fields(
            subscriber_id, {"is_active": False, "unsubscribed_at": utcnow()}
        )
        if subscriber is None:
            raise NotFoundError("Subscriber", subscriber_id)
        logger.info("Subscriber deactivated", subscriber_id=str(subscriber_id))
        return subscriber
