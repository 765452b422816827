"""
Tests for the HTTP layer.

Routes run against real services backed by in-memory repositories and a
recording channel; the app lifespan is not started.
"""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from order_service.dependencies import (
    get_campaign_worker,
    get_lifecycle_service,
    get_subscriber_service,
)
from order_service.domain.exceptions import PersistenceError
from order_service.main import app


ORDER_PAYLOAD = {
    "customer_email": "a@x.io",
    "customer_name": "Ann",
    "items": [
        {"product_id": "p1", "product_name": "Mug", "quantity": 2, "price": "10"},
        {"product_id": "p2", "product_name": "Pen", "quantity": 1, "price": "5"},
    ],
    "shipping_address": {
        "street": "1 Main St",
        "city": "Springfield",
        "state": "IL",
        "postal_code": "62701",
        "country": "US",
    },
}


@pytest.fixture
def client(lifecycle_service, subscriber_service, campaign_worker):
    """Create test client with service dependencies overridden."""
    app.dependency_overrides[get_lifecycle_service] = lambda: lifecycle_service
    app.dependency_overrides[get_subscriber_service] = lambda: subscriber_service
    app.dependency_overrides[get_campaign_worker] = lambda: campaign_worker

    yield TestClient(app)

    app.dependency_overrides.clear()


class TestOrderEndpoints:
    """Test /api/v1/orders."""

    def test_create_order(self, client, channel):
        response = client.post("/api/v1/orders", json=ORDER_PAYLOAD)

        assert response.status_code == 201
        data = response.json()
        assert float(data["total_amount"]) == 25.0
        assert data["status"] == "pending"
        assert data["payment_status"] == "pending"
        assert channel.recipients == ["a@x.io"]

    def test_total_mismatch_is_400(self, client, channel):
        response = client.post("/api/v1/orders", json={**ORDER_PAYLOAD, "total_amount": "30"})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "Total amount does not match sum of items"
        assert channel.sent == []

    def test_missing_items_is_422(self, client):
        response = client.post("/api/v1/orders", json={**ORDER_PAYLOAD, "items": []})

        assert response.status_code == 422

    def test_get_order(self, client):
        order_id = client.post("/api/v1/orders", json=ORDER_PAYLOAD).json()["id"]

        response = client.get(f"/api/v1/orders/{order_id}")

        assert response.status_code == 200
        assert response.json()["id"] == order_id

    def test_get_missing_order(self, client):
        response = client.get(f"/api/v1/orders/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_customer_orders(self, client):
        client.post("/api/v1/orders", json=ORDER_PAYLOAD)
        client.post("/api/v1/orders", json=ORDER_PAYLOAD)

        response = client.get("/api/v1/orders/customer/A@X.io")

        assert response.status_code == 200
        assert response.json()["count"] == 2

    def test_customer_orders_malformed_email(self, client):
        client.post("/api/v1/orders", json=ORDER_PAYLOAD)

        response = client.get("/api/v1/orders/customer/not-an-email")

        assert response.status_code == 200
        assert response.json()["count"] == 0

    def test_customer_orders_status_filter(self, client):
        order_id = client.post("/api/v1/orders", json=ORDER_PAYLOAD).json()["id"]
        client.post("/api/v1/orders", json=ORDER_PAYLOAD)
        client.put(f"/api/v1/orders/{order_id}/status", json={"status": "delivered"})

        response = client.get("/api/v1/orders/customer/a@x.io", params={"status": "delivered"})

        assert response.status_code == 200
        assert [o["id"] for o in response.json()["orders"]] == [order_id]

    def test_update_status(self, client, channel):
        order_id = client.post("/api/v1/orders", json=ORDER_PAYLOAD).json()["id"]

        response = client.put(f"/api/v1/orders/{order_id}/status", json={"status": "shipped"})

        assert response.status_code == 200
        assert response.json()["status"] == "shipped"
        assert len(channel.sent) == 2

    def test_update_status_invalid(self, client):
        order_id = client.post("/api/v1/orders", json=ORDER_PAYLOAD).json()["id"]

        response = client.put(f"/api/v1/orders/{order_id}/status", json={"status": "lost"})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid order status"

    def test_update_payment(self, client, channel):
        order_id = client.post("/api/v1/orders", json=ORDER_PAYLOAD).json()["id"]

        response = client.put(
            f"/api/v1/orders/{order_id}/payment", json={"payment_status": "paid"}
        )

        assert response.status_code == 200
        assert response.json()["payment_status"] == "paid"
        assert channel.subjects[-1] == "Payment Confirmation"

    def test_persistence_error_is_500(self, client):
        broken = MagicMock()
        broken.create_order = AsyncMock(side_effect=PersistenceError("create order", "db down"))
        app.dependency_overrides[get_lifecycle_service] = lambda: broken

        response = client.post("/api/v1/orders", json=ORDER_PAYLOAD)

        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Server error"}


class TestSubscriberEndpoints:
    """Test /api/v1/subscribers."""

    def test_create_and_list(self, client):
        response = client.post(
            "/api/v1/subscribers", json={"email": "Bob@X.io", "first_name": "Bob"}
        )
        assert response.status_code == 201
        assert response.json()["email"] == "bob@x.io"

        listing = client.get("/api/v1/subscribers").json()
        assert listing["count"] == 1

    def test_duplicate_is_400(self, client):
        client.post("/api/v1/subscribers", json={"email": "bob@x.io"})

        response = client.post("/api/v1/subscribers", json={"email": "BOB@x.io"})

        assert response.status_code == 400
        assert response.json()["message"] == "Email already subscribed"

    def test_update(self, client):
        subscriber_id = client.post("/api/v1/subscribers", json={"email": "c@x.io"}).json()["id"]

        response = client.put(
            f"/api/v1/subscribers/{subscriber_id}", json={"wants_discount_emails": False}
        )

        assert response.status_code == 200
        assert response.json()["wants_discount_emails"] is False

    def test_delete_is_soft(self, client):
        subscriber_id = client.post("/api/v1/subscribers", json={"email": "d@x.io"}).json()["id"]

        response = client.delete(f"/api/v1/subscribers/{subscriber_id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Subscriber deactivated"
        stored = client.get(f"/api/v1/subscribers/{subscriber_id}").json()
        assert stored["is_active"] is False
        assert stored["unsubscribed_at"] is not None

    def test_get_missing(self, client):
        response = client.get(f"/api/v1/subscribers/{uuid4()}")

        assert response.status_code == 404


class TestCampaignEndpoints:
    """Test /api/v1/campaigns."""

    def test_manual_campaign(self, client, channel):
        subscriber_id = client.post(
            "/api/v1/subscribers", json={"email": "e@x.io", "first_name": "Eve"}
        ).json()["id"]

        response = client.post(
            "/api/v1/campaigns/discount", json={"subscriber_ids": [subscriber_id]}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["successful"] == 1
        assert data["message"] == "Emails sent successfully: 1/1"
        assert channel.recipients == ["e@x.io"]

    def test_manual_campaign_empty_list(self, client):
        response = client.post("/api/v1/campaigns/discount", json={"subscriber_ids": []})

        assert response.status_code == 400
        assert response.json()["message"] == "No subscribers specified"

    def test_manual_campaign_no_match(self, client):
        response = client.post(
            "/api/v1/campaigns/discount", json={"subscriber_ids": [str(uuid4())]}
        )

        assert response.status_code == 404

    def test_run_daily_campaign(self, client, channel):
        client.post("/api/v1/subscribers", json={"email": "f@x.io"})
        client.post(
            "/api/v1/subscribers", json={"email": "g@x.io", "wants_discount_emails": False}
        )

        response = client.post("/api/v1/campaigns/discount/run")

        assert response.status_code == 200
        assert response.json()["total"] == 1
        assert channel.recipients == ["f@x.io"]


class TestServiceEndpoints:
    def test_health_without_database(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "order-service"

    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "running"
