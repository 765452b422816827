"""
Order repository interface (Abstract Base Class).

Defines the contract for order persistence and retrieval
independent of the underlying storage mechanism.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional
from uuid import UUID

from ..domain.entities import Order, OrderStatus


class IOrderRepository(ABC):
    """
    Abstract repository interface for order data operations.

    Implementations raise PersistenceError when the backing store fails.
    """

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """
        Persist a new order.

        Args:
            order: Fully built order entity

        Returns:
            The stored order
        """
        pass

    @abstractmethod
    async def find_by_id(self, order_id: UUID) -> Optional[Order]:
        """
        Find an order by id.

        Returns:
            Order if found, None otherwise
        """
        pass

    @abstractmethod
    async def find_by_customer_email(
        self, email: str, status: Optional[OrderStatus] = None
    ) -> List[Order]:
        """
        List orders for a customer email, most recent first (ordered_at desc).

        Args:
            email: Normalized customer email
            status: Only return orders currently in this status
        """
        pass

    @abstractmethod
    async def update_fields(self, order_id: UUID, fields: Dict[str, Any]) -> Optional[Order]:
        """
        Apply a partial update.

        Args:
            order_id: Order to update
            fields: Column name -> new value

        Returns:
            The updated order, or None when the order does not exist
        """
        pass
