"""
Test configuration and fixtures
"""

import os

# Settings are read at import time; keep the scheduler and real providers off.
os.environ.setdefault("CAMPAIGN_ENABLED", "false")
os.environ.pop("RESEND_API_KEY", None)
os.environ.pop("DATABASE_URL", None)

from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional, Set, Tuple

import pytest

from order_service.catalog import StaticProductCatalog
from order_service.channels.base import NotificationChannel
from order_service.dispatcher import Dispatcher
from order_service.domain.entities import (
    DiscountProduct,
    OrderDraft,
    OrderItem,
    ShippingAddress,
)
from order_service.repositories import InMemoryOrderRepository, InMemorySubscriberRepository
from order_service.services import OrderLifecycleService, SubscriberService
from order_service.workers import DiscountCampaignWorker


class RecordingChannel(NotificationChannel):
    """Channel that records every send; addresses in `fail_for` report failure."""

    def __init__(self, fail_for: Optional[Set[str]] = None, raise_for: Optional[Set[str]] = None):
        self.sent: List[Tuple[str, str, str]] = []
        self.fail_for = fail_for or set()
        self.raise_for = raise_for or set()

    def get_channel_name(self) -> str:
        return "recording"

    async def send(self, address: str, subject: str, body: str) -> bool:
        self.sent.append((address, subject, body))
        if address in self.raise_for:
            raise RuntimeError(f"provider exploded for {address}")
        return address not in self.fail_for

    @property
    def recipients(self) -> List[str]:
        return [address for address, _, _ in self.sent]

    @property
    def subjects(self) -> List[str]:
        return [subject for _, subject, _ in self.sent]


@pytest.fixture
def channel():
    """Recording channel that accepts every message."""
    return RecordingChannel()


@pytest.fixture
def dispatcher(channel):
    return Dispatcher(channel)


@pytest.fixture
def order_repo():
    return InMemoryOrderRepository()


@pytest.fixture
def subscriber_repo():
    return InMemorySubscriberRepository()


@pytest.fixture
def lifecycle_service(order_repo, dispatcher):
    return OrderLifecycleService(order_repo, dispatcher)


@pytest.fixture
def subscriber_service(subscriber_repo):
    return SubscriberService(subscriber_repo)


@pytest.fixture
def discount_products():
    return [
        DiscountProduct(
            name="Premium Headphones",
            original_price=Decimal("199.99"),
            discount_price=Decimal("149.99"),
            description="Noise-cancelling wireless headphones.",
        ),
        DiscountProduct(
            name="Smart Watch",
            original_price=Decimal("299.99"),
            discount_price=Decimal("239.99"),
        ),
    ]


@pytest.fixture
def catalog(discount_products):
    return StaticProductCatalog(discount_products)


@pytest.fixture
def fixed_now():
    return datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def campaign_worker(subscriber_repo, catalog, dispatcher, fixed_now):
    return DiscountCampaignWorker(
        subscriber_repo,
        catalog,
        dispatcher,
        send_hour=12,
        send_minute=0,
        timezone=timezone.utc,
        website_url="https://shop.example.com",
        clock=lambda: fixed_now,
    )


@pytest.fixture
def shipping_address():
    return ShippingAddress(
        street="1 Main St",
        city="Springfield",
        state="IL",
        postal_code="62701",
        country="US",
    )


@pytest.fixture
def order_draft(shipping_address):
    """Draft for 2 x $10 + 1 x $5."""
    return OrderDraft(
        customer_email="a@x.io",
        customer_name="Ann",
        items=[
            OrderItem(product_id="p1", product_name="Mug", quantity=2, price=Decimal("10")),
            OrderItem(product_id="p2", product_name="Pen", quantity=1, price=Decimal("5")),
        ],
        shipping_address=shipping_address,
    )
