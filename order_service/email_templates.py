"""
Email templates and rendering.

`render_template(kind, data)` is a pure function from a notification type
and template data to HTML. The `*_template_data` helpers build that data
from domain entities; neither touches a channel.
"""

from decimal import Decimal
from typing import Any, Dict, Optional, Sequence

from jinja2 import Template

from order_service.domain.entities import (
    DiscountProduct,
    NotificationType,
    Order,
    OrderStatus,
)

ORDER_CONFIRMATION_SUBJECT = "Your order has been placed successfully!"
PAYMENT_CONFIRMATION_SUBJECT = "Payment Confirmation"
DAILY_DISCOUNT_SUBJECT = "Today's Special Discounts - Up to {percent}% OFF!"
MANUAL_DISCOUNT_SUBJECT = "Special Offer - Up to {percent}% OFF!"

STATUS_MESSAGES = {
    OrderStatus.PROCESSING: "We are now preparing your order for shipment.",
    OrderStatus.SHIPPED: "Great news! Your order has been shipped and is on its way to you.",
    OrderStatus.DELIVERED: "Your order has been delivered. We hope you enjoy your purchase!",
}

ORDER_CONFIRMATION_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2>Order Confirmation</h2>
    <p>Dear {{ customer_name }},</p>
    <p>Thank you for your order! We've received your order and are processing it now.</p>

    <h3>Order Details:</h3>
    <p><strong>Order ID:</strong> {{ order_id }}</p>
    <p><strong>Order Date:</strong> {{ order_date }}</p>

    <h3>Items:</h3>
    <table style="width: 100%; border-collapse: collapse;">
        <thead>
            <tr style="background-color: #f2f2f2;">
                <th style="padding: 8px; text-align: left; border: 1px solid #ddd;">Product</th>
                <th style="padding: 8px; text-align: left; border: 1px solid #ddd;">Quantity</th>
                <th style="padding: 8px; text-align: left; border: 1px solid #ddd;">Price</th>
                <th style="padding: 8px; text-align: left; border: 1px solid #ddd;">Total</th>
            </tr>
        </thead>
        <tbody>
            {% for item in items %}
            <tr>
                <td style="padding: 8px; border: 1px solid #ddd;">{{ item.product_name }}</td>
                <td style="padding: 8px; border: 1px solid #ddd;">{{ item.quantity }}</td>
                <td style="padding: 8px; border: 1px solid #ddd;">${{ item.price }}</td>
                <td style="padding: 8px; border: 1px solid #ddd;">${{ item.line_total }}</td>
            </tr>
            {% endfor %}
        </tbody>
        <tfoot>
            <tr>
                <td colspan="3" style="padding: 8px; text-align: right; border: 1px solid #ddd;"><strong>Subtotal:</strong></td>
                <td style="padding: 8px; border: 1px solid #ddd;">${{ subtotal }}</td>
            </tr>
            <tr>
                <td colspan="3" style="padding: 8px; text-align: right; border: 1px solid #ddd;"><strong>Total:</strong></td>
                <td style="padding: 8px; border: 1px solid #ddd;"><strong>${{ total_amount }}</strong></td>
            </tr>
        </tfoot>
    </table>

    <h3>Shipping Address:</h3>
    <p>
        {{ shipping_address.street }}<br>
        {{ shipping_address.city }}, {{ shipping_address.state }} {{ shipping_address.postal_code }}<br>
        {{ shipping_address.country }}
    </p>

    <p>We'll update you when your order ships.</p>
    <p>If you have any questions, please contact our customer service.</p>

    <p>Thank you for shopping with us!</p>
</div>
"""

ORDER_STATUS_UPDATE_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2>Order Status Update</h2>
    <p>Dear {{ customer_name }},</p>
    <p>{{ status_message }}</p>

    <h3>Order Details:</h3>
    <p><strong>Order ID:</strong> {{ order_id }}</p>
    <p><strong>Order Date:</strong> {{ order_date }}</p>
    <p><strong>Current Status:</strong> {{ status }}</p>

    <p>Thank you for shopping with us!</p>
</div>
"""

PAYMENT_CONFIRMATION_TEMPLATE = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
    <h2>Payment Confirmation</h2>
    <p>Dear {{ customer_name }},</p>
    <p>We're writing to confirm that we've received your payment for order #{{ order_id }}.</p>

    <h3>Payment Details:</h3>
    <p><strong>Order ID:</strong> {{ order_id }}</p>
    <p><strong>Payment Amount:</strong> ${{ total_amount }}</p>
    <p><strong>Payment Status:</strong> {{ payment_status }}</p>

    <p>Thank you for your purchase!</p>
</div>
"""

DISCOUNT_CAMPAIGN_TEMPLATE = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Today's Special Discounts</title>
</head>
<body style="font-family: 'Helvetica Neue', Arial, sans-serif; line-height: 1.6; color: #333333; margin: 0; padding: 0; background-color: #f9f9f9;">
    <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff;">
        <div style="background-color: #3AA39F; padding: 20px; text-align: center;">
            <h1 style="color: #ffffff; margin: 0; font-weight: 300; font-size: 24px;">Today's Special Discounts</h1>
        </div>
        <div style="padding: 30px;">
            <h2>Hello {{ recipient_name }}!</h2>
            <p>We're excited to share today's special discounts with you. Don't miss out on these amazing deals!</p>

            <div style="background-color: #f5f5f5; padding: 10px; border-radius: 4px; text-align: center; margin: 20px 0;">
                <p style="margin: 0; font-weight: bold;">Today's Deals End In:</p>
                <p style="margin: 5px 0; font-size: 18px; color: #3AA39F;">12 hours</p>
            </div>

            {% for product in products %}
            <div style="margin-bottom: 20px; border-bottom: 1px solid #eee; padding-bottom: 15px;">
                <h3 style="color: #333; margin-bottom: 5px;">{{ product.name }}</h3>
                <p style="margin: 5px 0; font-size: 16px;">
                    <span style="text-decoration: line-through; color: #999;">${{ product.original_price }}</span>
                    <span style="color: #3AA39F; font-weight: bold; margin-left: 10px;">${{ product.discount_price }}</span>
                    <span style="background-color: #3AA39F; color: white; padding: 2px 6px; border-radius: 10px; font-size: 12px; margin-left: 8px;">
                        {{ product.discount_percent }}% OFF
                    </span>
                </p>
                <p style="color: #666; margin-top: 5px;">{{ product.description }}</p>
            </div>
            {% endfor %}

            <a href="{{ website_url }}/products/discount" style="display: inline-block; background-color: #3AA39F; color: #ffffff; text-decoration: none; padding: 12px 25px; border-radius: 4px; margin: 20px 0; font-weight: bold;">Shop All Discounts</a>

            <p>Happy shopping!</p>
            <p>Best regards,<br>The Team</p>
        </div>
        <div style="background-color: #f5f5f5; padding: 15px; text-align: center; font-size: 12px; color: #666666;">
            <p>To unsubscribe from discount notifications, <a href="{{ website_url }}/unsubscribe?type=discount" style="color: #3AA39F;">click here</a></p>
        </div>
    </div>
</body>
</html>
"""

TEMPLATES = {
    NotificationType.ORDER_CONFIRMATION: ORDER_CONFIRMATION_TEMPLATE,
    NotificationType.ORDER_STATUS_UPDATE: ORDER_STATUS_UPDATE_TEMPLATE,
    NotificationType.PAYMENT_CONFIRMATION: PAYMENT_CONFIRMATION_TEMPLATE,
    NotificationType.DISCOUNT_CAMPAIGN: DISCOUNT_CAMPAIGN_TEMPLATE,
}


def render_template(kind: NotificationType, data: Dict[str, Any]) -> str:
    """Render the HTML body for a notification type."""
    template_str = TEMPLATES.get(kind)
    if template_str is None:
        raise KeyError(f"No template for notification type: {kind}")
    return Template(template_str, autoescape=True).render(**data)


def _money(value: Decimal) -> str:
    return f"{Decimal(value):.2f}"


def order_template_data(order: Order) -> Dict[str, Any]:
    """Template data shared by the order notifications."""
    return {
        "customer_name": order.customer_name,
        "order_id": str(order.id),
        "order_date": order.ordered_at.strftime("%B %d, %Y"),
        "items": [
            {
                "product_name": item.product_name,
                "quantity": item.quantity,
                "price": _money(item.price),
                "line_total": _money(item.line_total),
            }
            for item in order.items
        ],
        "subtotal": _money(order.subtotal),
        "total_amount": _money(order.total_amount),
        "shipping_address": order.shipping_address.to_dict(),
        "status": order.status.value,
        "status_message": STATUS_MESSAGES.get(
            order.status, f"Your order status has been updated to: {order.status.value}"
        ),
        "payment_status": order.payment_status.value,
    }


def status_update_subject(status: OrderStatus) -> str:
    return f"Order Status Update: Your order is now {status.value}"


def discount_template_data(
    recipient_name: Optional[str],
    products: Sequence[DiscountProduct],
    website_url: str = "#",
) -> Dict[str, Any]:
    return {
        "recipient_name": recipient_name or "Valued Customer",
        "website_url": website_url.rstrip("/") if website_url != "#" else "#",
        "products": [
            {
                "name": p.name,
                "original_price": _money(p.original_price),
                "discount_price": _money(p.discount_price),
                "discount_percent": p.discount_percent,
                "description": p.description,
            }
            for p in products
        ],
    }
