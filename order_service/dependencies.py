"""FastAPI dependencies resolving the services wired in the app lifespan."""

from fastapi import Request

from order_service.services.lifecycle_service import OrderLifecycleService
from order_service.services.subscriber_service import SubscriberService
from order_service.workers.discount_campaign import DiscountCampaignWorker


def get_lifecycle_service(request: Request) -> OrderLifecycleService:
    return request.app.state.lifecycle_service


def get_subscriber_service(request: Request) -> SubscriberService:
    return request.app.state.subscriber_service


def get_campaign_worker(request: Request) -> DiscountCampaignWorker:
    return request.app.state.campaign_worker
