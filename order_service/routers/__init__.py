"""HTTP routers."""

from order_service.routers import campaigns, orders, subscribers

__all__ = ["campaigns", "orders", "subscribers"]
