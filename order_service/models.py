"""Pydantic models for request/response validation."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from order_service.domain.entities import (
    DispatchResult,
    Order,
    OrderDraft,
    OrderItem,
    ShippingAddress,
    Subscriber,
)


class ShippingAddressModel(BaseModel):
    """Shipping address payload."""

    street: str = Field(..., min_length=1)
    city: str = Field(..., min_length=1)
    state: str = Field(..., min_length=1)
    postal_code: str = Field(..., min_length=1)
    country: str = Field(..., min_length=1)


class OrderItemModel(BaseModel):
    """Ordered product line."""

    product_id: str = Field(..., min_length=1)
    product_name: str = Field(..., min_length=1)
    quantity: int = Field(..., ge=1)
    price: Decimal = Field(..., ge=0, description="Unit price")


class CreateOrderRequest(BaseModel):
    """Request model for placing an order."""

    customer_email: str = Field(..., min_length=3)
    customer_name: str = Field(..., min_length=1)
    items: List[OrderItemModel] = Field(..., min_length=1)
    total_amount: Optional[Decimal] = Field(
        None, ge=0, description="Checked against the item sum when given"
    )
    shipping_address: ShippingAddressModel
    customer_id: Optional[UUID] = None

    def to_draft(self) -> OrderDraft:
        return OrderDraft(
            customer_email=self.customer_email,
            customer_name=self.customer_name,
            items=[OrderItem(**item.model_dump()) for item in self.items],
            shipping_address=ShippingAddress(**self.shipping_address.model_dump()),
            total_amount=self.total_amount,
            customer_id=self.customer_id,
        )


class UpdateOrderStatusRequest(BaseModel):
    status: str


class UpdatePaymentStatusRequest(BaseModel):
    payment_status: str


class OrderResponse(BaseModel):
    """Order response model."""

    id: UUID
    customer_id: Optional[UUID] = None
    customer_email: str
    customer_name: str
    items: List[OrderItemModel]
    total_amount: Decimal
    shipping_address: ShippingAddressModel
    status: str
    payment_status: str
    ordered_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            customer_id=order.customer_id,
            customer_email=order.customer_email,
            customer_name=order.customer_name,
            items=[
                OrderItemModel(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    price=item.price,
                )
                for item in order.items
            ],
            total_amount=order.total_amount,
            shipping_address=ShippingAddressModel(**order.shipping_address.to_dict()),
            status=order.status.value,
            payment_status=order.payment_status.value,
            ordered_at=order.ordered_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    count: int
    orders: List[OrderResponse]


class SubscriberCreate(BaseModel):
    """Request model for subscribing."""

    email: str = Field(..., min_length=3)
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    wants_discount_emails: bool = True


class SubscriberUpdate(BaseModel):
    """Request model for updating a subscriber."""

    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None
    wants_discount_emails: Optional[bool] = None


class SubscriberResponse(BaseModel):
    """Subscriber response model."""

    id: UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    is_active: bool
    wants_discount_emails: bool
    subscribed_at: datetime
    unsubscribed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, subscriber: Subscriber) -> "SubscriberResponse":
        return cls(
            id=subscriber.id,
            email=subscriber.email,
            first_name=subscriber.first_name,
            last_name=subscriber.last_name,
            is_active=subscriber.is_active,
            wants_discount_emails=subscriber.wants_discount_emails,
            subscribed_at=subscriber.subscribed_at,
            unsubscribed_at=subscriber.unsubscribed_at,
        )


class SubscriberListResponse(BaseModel):
    count: int
    subscribers: List[SubscriberResponse]


class ManualCampaignRequest(BaseModel):
    """Request model for a manual discount campaign."""

    subscriber_ids: List[UUID] = Field(default_factory=list)


class DispatchResultResponse(BaseModel):
    """Campaign outcome."""

    success: bool = True
    message: str
    total: int
    successful: int
    failed: int

    @classmethod
    def from_result(cls, result: DispatchResult) -> "DispatchResultResponse":
        return cls(
            message=f"Emails sent successfully: {result.successful}/{result.total}",
            total=result.total,
            successful=result.successful,
            failed=result.failed,
        )


class MessageResponse(BaseModel):
    """Generic message response."""

    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    """Error response model."""

    success: bool = False
    message: str
    details: dict = Field(default_factory=dict)
