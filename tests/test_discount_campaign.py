"""
Tests for the discount campaign worker.

Covers:
- Next fire time computation
- Scheduled runs: opt-in filtering, personalization, skip on empty catalog
- Manual runs: validation and not-found cases
- Partial failure counting
- Scheduler start/stop
"""

import asyncio
from datetime import datetime, timedelta, timezone
from decimal import InvalidOperation
from unittest.mock import AsyncMock, MagicMock, PropertyMock, patch
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from order_service.catalog import StaticProductCatalog
from order_service.dispatcher import Dispatcher
from order_service.domain.entities import DiscountProduct
from order_service.domain.exceptions import CatalogUnavailableError, NotFoundError, ValidationError
from order_service.workers import DiscountCampaignWorker

from conftest import RecordingChannel


async def _subscribe(service, email, first_name=None, wants_discount_emails=True):
    return await service.create_subscriber(
        email, first_name=first_name, wants_discount_emails=wants_discount_emails
    )


class TestNextRunAfter:
    """Test fire time computation."""

    def test_later_today(self, campaign_worker):
        now = datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)

        assert campaign_worker.next_run_after(now) == datetime(
            2024, 3, 15, 12, 0, tzinfo=timezone.utc
        )

    def test_already_passed_rolls_to_tomorrow(self, campaign_worker):
        now = datetime(2024, 3, 15, 13, 0, tzinfo=timezone.utc)

        assert campaign_worker.next_run_after(now) == datetime(
            2024, 3, 16, 12, 0, tzinfo=timezone.utc
        )

    def test_exactly_at_fire_time_is_strictly_after(self, campaign_worker):
        now = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

        assert campaign_worker.next_run_after(now) == now + timedelta(days=1)

    def test_respects_configured_timezone(self, subscriber_repo, catalog, dispatcher):
        berlin = ZoneInfo("Europe/Berlin")
        worker = DiscountCampaignWorker(
            subscriber_repo, catalog, dispatcher, send_hour=8, send_minute=15, timezone=berlin
        )
        now = datetime(2024, 6, 1, 7, 0, tzinfo=berlin)

        next_run = worker.next_run_after(now)

        assert (next_run.hour, next_run.minute) == (8, 15)
        assert next_run.date() == now.date()


class TestScheduledCampaign:
    """Test the daily run."""

    @pytest.mark.asyncio
    async def test_sends_only_to_active_opted_in(
        self, campaign_worker, subscriber_service, channel
    ):
        await _subscribe(subscriber_service, "a@x.io", "Ann")
        await _subscribe(subscriber_service, "b@x.io", wants_discount_emails=False)
        gone = await _subscribe(subscriber_service, "c@x.io")
        await subscriber_service.deactivate_subscriber(gone.id)

        result = await campaign_worker.run_scheduled_campaign()

        assert result.total == 1
        assert result.successful == 1
        assert channel.recipients == ["a@x.io"]
        assert channel.subjects == ["Today's Special Discounts - Up to 25% OFF!"]

    @pytest.mark.asyncio
    async def test_personalized_greeting(self, campaign_worker, subscriber_service, channel):
        await _subscribe(subscriber_service, "a@x.io", "Ann")
        await _subscribe(subscriber_service, "b@x.io")

        await campaign_worker.run_scheduled_campaign()

        bodies = {address: body for address, _, body in channel.sent}
        assert "Hello Ann!" in bodies["a@x.io"]
        assert "Hello Valued Customer!" in bodies["b@x.io"]
        assert "https://shop.example.com/products/discount" in bodies["a@x.io"]

    @pytest.mark.asyncio
    async def test_empty_catalog_skips_run(self, subscriber_service, subscriber_repo, channel):
        await _subscribe(subscriber_service, "a@x.io")
        worker = DiscountCampaignWorker(
            subscriber_repo, StaticProductCatalog([]), Dispatcher(channel), send_hour=12
        )

        result = await worker.run_scheduled_campaign()

        assert result.total == 0
        assert channel.sent == []

    @pytest.mark.asyncio
    async def test_catalog_failure_does_not_raise(self, subscriber_repo, channel):
        catalog = MagicMock()
        catalog.list_discounted = AsyncMock(side_effect=CatalogUnavailableError("HTTP 500"))
        worker = DiscountCampaignWorker(subscriber_repo, catalog, Dispatcher(channel))

        result = await worker.run_scheduled_campaign()

        assert result.total == 0
        assert channel.sent == []

    @pytest.mark.asyncio
    async def test_unusable_top_product_does_not_raise(
        self, subscriber_service, subscriber_repo, channel
    ):
        await _subscribe(subscriber_service, "a@x.io")
        product = MagicMock()
        type(product).discount_percent = PropertyMock(side_effect=InvalidOperation())
        catalog = MagicMock()
        catalog.list_discounted = AsyncMock(return_value=[product])
        worker = DiscountCampaignWorker(subscriber_repo, catalog, Dispatcher(channel))

        result = await worker.run_scheduled_campaign()

        assert result.total == 0
        assert channel.sent == []

    def test_infinite_catalog_price_rejected(self):
        with pytest.raises(ValidationError):
            DiscountProduct.from_mapping(
                {"name": "X", "original_price": 100, "discount_price": "Infinity"}
            )

    @pytest.mark.asyncio
    async def test_failure_after_preparation_does_not_raise(
        self, subscriber_service, subscriber_repo, catalog
    ):
        await _subscribe(subscriber_service, "a@x.io")
        worker = DiscountCampaignWorker(subscriber_repo, catalog, Dispatcher(RecordingChannel()))
        worker._dispatch_personalized = AsyncMock(side_effect=RuntimeError("template exploded"))

        result = await worker.run_scheduled_campaign()

        assert result.total == 0
        assert result.successful == 0

    @pytest.mark.asyncio
    async def test_partial_failures_counted(self, subscriber_service, subscriber_repo, catalog):
        for email in ("a@x.io", "b@x.io", "c@x.io", "d@x.io", "e@x.io"):
            await _subscribe(subscriber_service, email)
        channel = RecordingChannel(fail_for={"b@x.io"}, raise_for={"d@x.io"})
        worker = DiscountCampaignWorker(subscriber_repo, catalog, Dispatcher(channel))

        result = await worker.run_scheduled_campaign()

        assert result.total == 5
        assert result.successful == 3
        assert result.failed == 2
        assert len(channel.sent) == 5


class TestManualCampaign:
    """Test the on-demand run."""

    @pytest.mark.asyncio
    async def test_sends_to_given_active_subscribers(
        self, campaign_worker, subscriber_service, channel
    ):
        a = await _subscribe(subscriber_service, "a@x.io")
        b = await _subscribe(subscriber_service, "b@x.io", wants_discount_emails=False)
        gone = await _subscribe(subscriber_service, "c@x.io")
        await subscriber_service.deactivate_subscriber(gone.id)

        result = await campaign_worker.trigger_manual_campaign([a.id, b.id, gone.id, uuid4()])

        # Opt-out does not apply to an explicit list; inactive and unknown ids do.
        assert result.total == 2
        assert result.successful == 2
        assert sorted(channel.recipients) == ["a@x.io", "b@x.io"]
        assert set(channel.subjects) == {"Special Offer - Up to 25% OFF!"}

    @pytest.mark.asyncio
    async def test_empty_list_rejected(self, campaign_worker):
        with pytest.raises(ValidationError) as exc_info:
            await campaign_worker.trigger_manual_campaign([])
        assert exc_info.value.message == "No subscribers specified"

    @pytest.mark.asyncio
    async def test_no_active_match(self, campaign_worker, channel):
        with pytest.raises(NotFoundError) as exc_info:
            await campaign_worker.trigger_manual_campaign([uuid4()])
        assert exc_info.value.message == "No active subscribers found"
        assert channel.sent == []

    @pytest.mark.asyncio
    async def test_empty_catalog(self, subscriber_service, subscriber_repo, channel):
        a = await _subscribe(subscriber_service, "a@x.io")
        worker = DiscountCampaignWorker(
            subscriber_repo, StaticProductCatalog([]), Dispatcher(channel)
        )

        with pytest.raises(NotFoundError) as exc_info:
            await worker.trigger_manual_campaign([a.id])
        assert exc_info.value.message == "No discount products available"


class TestSchedulerLifecycle:
    """Test start/stop of the background task."""

    @pytest.mark.asyncio
    async def test_start_and_stop(self, campaign_worker):
        await campaign_worker.start()
        assert campaign_worker.running is True
        assert campaign_worker.task is not None

        await campaign_worker.stop()
        assert campaign_worker.running is False
        assert campaign_worker.task is None

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, campaign_worker):
        await campaign_worker.start()
        task = campaign_worker.task

        await campaign_worker.start()

        assert campaign_worker.task is task
        await campaign_worker.stop()

    @pytest.mark.asyncio
    async def test_scheduler_runs_when_due(self, subscriber_repo, catalog, dispatcher):
        times = iter(
            [
                datetime(2024, 3, 15, 11, 59, 59, tzinfo=timezone.utc),
                datetime(2024, 3, 15, 12, 0, 0, tzinfo=timezone.utc),
            ]
        )
        last = datetime(2024, 3, 15, 12, 0, 1, tzinfo=timezone.utc)
        worker = DiscountCampaignWorker(
            subscriber_repo,
            catalog,
            dispatcher,
            send_hour=12,
            send_minute=0,
            timezone=timezone.utc,
            clock=lambda: next(times, last),
        )
        ran = asyncio.Event()

        async def fake_run():
            ran.set()
            worker.running = False

        worker.run_scheduled_campaign = fake_run
        await worker.start()

        await asyncio.wait_for(ran.wait(), timeout=5)
        await worker.stop()

    @pytest.mark.asyncio
    async def test_failed_run_is_not_repeated_same_day(
        self, subscriber_repo, catalog, dispatcher
    ):
        now = datetime(2024, 3, 15, 12, 0, 5, tzinfo=timezone.utc)
        worker = DiscountCampaignWorker(
            subscriber_repo,
            catalog,
            dispatcher,
            send_hour=12,
            send_minute=0,
            timezone=timezone.utc,
            clock=lambda: now,
        )
        # Today's fire time has just passed; the next one is tomorrow.
        worker.next_run_after = MagicMock(
            side_effect=[
                datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc),
                datetime(2024, 3, 16, 12, 0, tzinfo=timezone.utc),
            ]
        )
        runs = []
        sleeps = []

        async def failing_run():
            runs.append(now)
            raise RuntimeError("campaign blew up")

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            if len(sleeps) >= 3:
                worker.running = False

        worker.run_scheduled_campaign = failing_run
        worker.running = True
        with patch("order_service.workers.discount_campaign.asyncio.sleep", new=fake_sleep):
            await worker._run_scheduler()

        assert len(runs) == 1
        # One back-off after the failure, then waits toward tomorrow's run.
        assert sleeps[0] == 60
        assert all(s == 3600 for s in sleeps[1:])
