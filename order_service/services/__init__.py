"""Application services."""

from order_service.services.lifecycle_service import OrderLifecycleService
from order_service.services.subscriber_service import SubscriberService

__all__ = ["OrderLifecycleService", "SubscriberService"]
