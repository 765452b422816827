from fastapi import APIRouter, Depends, Query, status
import structlog
from typing import Optional
from uuid import UUID

from order_service.dependencies import get_lifecycle_service
from order_service.models import (
    CreateOrderRequest,
    OrderListResponse,
    OrderResponse,
    UpdateOrderStatusRequest,
    UpdatePaymentStatusRequest,
)
from order_service.services.lifecycle_service import OrderLifecycleService

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/orders", tags=["orders"])


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED)
async def create_order(
    request: CreateOrderRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
):
    """
    Place an order.

    The order starts pending/pending and a confirmation email is sent
    to the customer.
    """
    order = await service.create_order(request.to_draft())
    return OrderResponse.from_entity(order)


@router.get("/customer/{email}", response_model=OrderListResponse)
async def get_customer_orders(
    email: str,
    order_status: Optional[str] = Query(
        None, alias="status", description="Only orders in this status"
    ),
    service: OrderLifecycleService = Depends(get_lifecycle_service),
):
    """List a customer's orders, most recent first."""
    orders = await service.get_orders_by_customer(email, order_status)
    return OrderListResponse(
        count=len(orders),
        orders=[OrderResponse.from_entity(o) for o in orders],
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
):
    order = await service.get_order(order_id)
    return OrderResponse.from_entity(order)


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: UUID,
    request: UpdateOrderStatusRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
):
    """Change the order status; the customer is emailed for processing/shipped/delivered."""
    order = await service.update_order_status(order_id, request.status)
    return OrderResponse.from_entity(order)


@router.put("/{order_id}/payment", response_model=OrderResponse)
async def update_payment_status(
    order_id: UUID,
    request: UpdatePaymentStatusRequest,
    service: OrderLifecycleService = Depends(get_lifecycle_service),
):
    """Change the payment status; the customer is emailed when it becomes paid."""
    order = await service.update_payment_status(order_id, request.payment_status)
    return OrderResponse.from_entity(order)
