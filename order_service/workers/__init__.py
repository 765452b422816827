"""Workers for order service."""

from order_service.workers.discount_campaign import DiscountCampaignWorker

__all__ = ["DiscountCampaignWorker"]
