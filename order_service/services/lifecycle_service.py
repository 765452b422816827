"""
Order lifecycle service.

Owns the order status and payment-status transitions. Persisting a change
is the primary effect of every operation; the notification that may follow
it is best-effort and its failure never reaches the caller.
"""

from typing import Any, List
from uuid import UUID, uuid4

import structlog

from order_service.dispatcher import Dispatcher
from order_service.domain.entities import (
    NOTIFYING_ORDER_STATUSES,
    NotificationMessage,
    NotificationType,
    Order,
    OrderDraft,
    OrderStatus,
    PaymentStatus,
    normalize_email,
    utcnow,
)
from order_service.domain.exceptions import NotFoundError, PersistenceError, ValidationError
from order_service.email_templates import (
    ORDER_CONFIRMATION_SUBJECT,
    PAYMENT_CONFIRMATION_SUBJECT,
    order_template_data,
    render_template,
    status_update_subject,
)
from order_service.metrics import record_failure, record_transition
from order_service.repositories.order_repository import IOrderRepository

logger = structlog.get_logger()


class OrderLifecycleService:
    """Creates orders, applies transitions and triggers their notifications."""

    def __init__(self, orders: IOrderRepository, dispatcher: Dispatcher):
        self.orders = orders
        self.dispatcher = dispatcher

    async def create_order(self, draft: OrderDraft) -> Order:
        """
        Persist a new pending order and send its confirmation.

        Raises:
            ValidationError: malformed draft or total mismatch
            PersistenceError: the repository write failed (nothing is sent)
        """
        if not draft.items:
            raise ValidationError("Order must contain at least one item", field="items")
        customer_name = (draft.customer_name or "").strip()
        if not customer_name:
            raise ValidationError("customer_name is required", field="customer_name")

        now = utcnow()
        order = Order(
            id=uuid4(),
            customer_id=draft.customer_id,
            customer_email=normalize_email(draft.customer_email),
            customer_name=customer_name,
            items=list(draft.items),
            total_amount=draft.resolve_total(),
            shipping_address=draft.shipping_address,
            status=OrderStatus.PENDING,
            payment_status=PaymentStatus.PENDING,
            ordered_at=now,
            updated_at=now,
        )

        try:
            created = await self.orders.create(order)
        except PersistenceError as e:
            logger.error("Error creating order", error=e.message)
            raise

        logger.info(
            "Order created",
            order_id=str(created.id),
            customer_email=created.customer_email,
            total_amount=str(created.total_amount),
        )
        await self._notify(
            created,
            NotificationType.ORDER_CONFIRMATION,
            ORDER_CONFIRMATION_SUBJECT,
        )
        return created

    async def get_order(self, order_id: UUID) -> Order:
        order = await self.orders.find_by_id(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order

    async def get_orders_by_customer(self, email: str, status: Any = None) -> List[Order]:
        """Orders for a customer, most recent first, optionally in one status."""
        status_filter = OrderStatus.parse(status) if status is not None else None
        try:
            normalized = normalize_email(email)
        except ValidationError:
            # No order can be stored under a malformed address.
            return []
        return await self.orders.find_by_customer_email(normalized, status_filter)

    async def update_order_status(self, order_id: UUID, new_status: Any) -> Order:
        """
        Set the order status. Any status may follow any other.

        A status-update notification goes out only for processing, shipped
        and delivered.
        """
        status = OrderStatus.parse(new_status)

        order = await self.orders.update_fields(order_id, {"status": status})
        if order is None:
            raise NotFoundError("Order", order_id)

        record_transition("status", status.value)
        logger.info("Order status updated", order_id=str(order_id), status=status.value)

        if status in NOTIFYING_ORDER_STATUSES:
            await self._notify(
                order,
                NotificationType.ORDER_STATUS_UPDATE,
                status_update_subject(status),
            )
        return order

    async def update_payment_status(self, order_id: UUID, new_payment_status: Any) -> Order:
        """Set the payment status; a confirmation goes out only for `paid`."""
        payment_status = PaymentStatus.parse(new_payment_status)

        order = await self.orders.update_fields(order_id, {"payment_status": payment_status})
        if order is None:
            raise NotFoundError("Order", order_id)

        record_transition("payment_status", payment_status.value)
        logger.info(
            "Order payment status updated",
            order_id=str(order_id),
            payment_status=payment_status.value,
        )

        if payment_status is PaymentStatus.PAID:
            await self._notify(
                order,
                NotificationType.PAYMENT_CONFIRMATION,
                PAYMENT_CONFIRMATION_SUBJECT,
            )
        return order

    async def _notify(
        self, order: Order, notification_type: NotificationType, subject: str
    ) -> bool:
        try:
            message = NotificationMessage(
                recipient=order.customer_email,
                subject=subject,
                body=render_template(notification_type, order_template_data(order)),
            )
            sent = await self.dispatcher.send_message(message, notification_type)
        except Exception as e:
            logger.error(
                "Failed to send order notification",
                order_id=str(order.id),
                notification_type=notification_type.value,
                error=str(e),
            )
            record_failure(notification_type, "render_or_dispatch_error")
            return False

        if not sent:
            logger.warning(
                "Order notification not delivered",
                order_id=str(order.id),
                notification_type=notification_type.value,
            )
        return sent
