"""
Subscriber repository interface (Abstract Base Class).

Defines the contract for subscriber persistence. Email uniqueness
(case-insensitive) is enforced by implementations at creation time.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from ..domain.entities import Subscriber


class ISubscriberRepository(ABC):
    """Abstract repository interface for subscriber data operations."""

    @abstractmethod
    async def create(self, subscriber: Subscriber) -> Subscriber:
        """
        Persist a new subscriber.

        Raises:
            DuplicateSubscriberError: email already exists
        """
        pass

    @abstractmethod
    async def find_by_id(self, subscriber_id: UUID) -> Optional[Subscriber]:
        """Find a subscriber by id."""
        pass

    @abstractmethod
    async def find_by_email(self, email: str) -> Optional[Subscriber]:
        """Find a subscriber by normalized email."""
        pass

    @abstractmethod
    async def find_active(
        self, wants_discount_emails: Optional[bool] = None
    ) -> List[Subscriber]:
        """
        List active subscribers.

        Args:
            wants_discount_emails: When set, only subscribers whose opt-in
                flag equals this value
        """
        pass

    @abstractmethod
    async def find_by_ids_active(self, subscriber_ids: Sequence[UUID]) -> List[Subscriber]:
        """List active subscribers whose id is in the given set."""
        pass

    @abstractmethod
    async def update_fields(
        self, subscriber_id: UUID, fields: Dict[str, Any]
    ) -> Optional[Subscriber]:
        """Apply a partial update; None when the subscriber does not exist."""
        pass
