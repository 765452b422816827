from fastapi import APIRouter, Depends, status
import structlog
from uuid import UUID

from order_service.dependencies import get_subscriber_service
from order_service.models import (
    MessageResponse,
    SubscriberCreate,
    SubscriberListResponse,
    SubscriberResponse,
    SubscriberUpdate,
)
from order_service.services.subscriber_service import SubscriberService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/subscribers", tags=["subscribers"])


@router.get("", response_model=SubscriberListResponse)
async def list_subscribers(service: SubscriberService = Depends(get_subscriber_service)):
    """List active subscribers."""
    subscribers = await service.list_active_subscribers()
    return SubscriberListResponse(
        count=len(subscribers),
        subscribers=[SubscriberResponse.from_entity(s) for s in subscribers],
    )


@router.post("", response_model=SubscriberResponse, status_code=status.HTTP_201_CREATED)
async def create_subscriber(
    request: SubscriberCreate,
    service: SubscriberService = Depends(get_subscriber_service),
):
    subscriber = await service.create_subscriber(
        email=request.email,
        first_name=request.first_name,
        last_name=request.last_name,
        wants_discount_emails=request.wants_discount_emails,
    )
    return SubscriberResponse.from_entity(subscriber)


@router.get("/{subscriber_id}", response_model=SubscriberResponse)
async def get_subscriber(
    subscriber_id: UUID,
    service: SubscriberService = Depends(get_subscriber_service),
):
    subscriber = await service.get_subscriber(subscriber_id)
    return SubscriberResponse.from_entity(subscriber)


@router.put("/{subscriber_id}", response_model=SubscriberResponse)
async def update_subscriber(
    subscriber_id: UUID,
    request: SubscriberUpdate,
    service: SubscriberService = Depends(get_subscriber_service),
):
    subscriber = await service.update_subscriber(
        subscriber_id, request.model_dump(exclude_unset=True)
    )
    return SubscriberResponse.from_entity(subscriber)


@router.delete("/{subscriber_id}", response_model=MessageResponse)
async def delete_subscriber(
    subscriber_id: UUID,
    service: SubscriberService = Depends(get_subscriber_service),
):
    """Unsubscribe. The record is kept and marked inactive."""
    await service.deactivate_subscriber(subscriber_id)
    return MessageResponse(message="Subscriber deactivated")
