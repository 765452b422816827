"""
Discount campaign worker.

Sends the personalized promotional email once a day at a fixed wall-clock
time, and on demand for an explicit subscriber list. Scheduling
(`next_run_after`, `_run_scheduler`) is kept apart from the run itself
(`run_scheduled_campaign`) so the run can be invoked directly.
"""

import asyncio
from datetime import datetime, timedelta, tzinfo
from typing import Callable, List, Optional, Sequence
from uuid import UUID

import structlog

from order_service.catalog import IProductCatalog
from order_service.config import settings
from order_service.dispatcher import Dispatcher
from order_service.domain.entities import (
    DiscountProduct,
    DispatchResult,
    NotificationType,
    Subscriber,
)
from order_service.domain.exceptions import NotFoundError, ValidationError
from order_service.email_templates import (
    DAILY_DISCOUNT_SUBJECT,
    MANUAL_DISCOUNT_SUBJECT,
    discount_template_data,
    render_template,
)
from order_service.metrics import record_campaign_run, record_failure
from order_service.repositories.subscriber_repository import ISubscriberRepository

logger = structlog.get_logger()


class DiscountCampaignWorker:
    """Background worker for the daily discount email campaign."""

    def __init__(
        self,
        subscribers: ISubscriberRepository,
        catalog: IProductCatalog,
        dispatcher: Dispatcher,
        send_hour: Optional[int] = None,
        send_minute: Optional[int] = None,
        timezone: Optional[tzinfo] = None,
        website_url: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.subscribers = subscribers
        self.catalog = catalog
        self.dispatcher = dispatcher
        self.send_hour = settings.CAMPAIGN_SEND_HOUR if send_hour is None else send_hour
        self.send_minute = settings.CAMPAIGN_SEND_MINUTE if send_minute is None else send_minute
        self.timezone = timezone or settings.campaign_tz
        self.website_url = website_url or settings.WEBSITE_URL
        self._clock = clock or (lambda: datetime.now(self.timezone))
        self.running = False
        self.task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the campaign scheduler."""
        if self.running:
            logger.warning("Discount campaign worker already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._run_scheduler())
        logger.info(
            "Discount campaign worker started",
            send_hour=self.send_hour,
            send_minute=self.send_minute,
            timezone=str(self.timezone),
        )

    async def stop(self) -> None:
        """Stop the campaign scheduler."""
        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
        logger.info("Discount campaign worker stopped")

    def next_run_after(self, now: datetime) -> datetime:
        """First scheduled fire time strictly after `now`."""
        next_run = now.replace(
            hour=self.send_hour, minute=self.send_minute, second=0, microsecond=0
        )
        if next_run <= now:
            next_run += timedelta(days=1)
        return next_run

    async def _run_scheduler(self) -> None:
        """Sleep until the next fire time, run, repeat."""
        next_run = self.next_run_after(self._clock())
        while self.running:
            try:
                now = self._clock()
                if now >= next_run:
                    logger.info(
                        "Running daily discount campaign",
                        scheduled_for=next_run.isoformat(),
                    )
                    # One attempt per day, even when the run fails.
                    next_run = self.next_run_after(now)
                    await self.run_scheduled_campaign()
                    continue

                sleep_seconds = (next_run - now).total_seconds()
                logger.info(
                    "Waiting for next discount campaign run",
                    next_run=next_run.isoformat(),
                    sleep_seconds=sleep_seconds,
                )
                await asyncio.sleep(min(sleep_seconds, 3600))

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error("Error in discount campaign scheduler", error=str(e))
                await asyncio.sleep(60)

    async def run_scheduled_campaign(self) -> DispatchResult:
        """
        Run one daily campaign. Never raises.

        Opted-in active subscribers each get a personalized message. An
        empty catalog skips the run; catalog or repository errors abort
        only this run.
        """
        try:
            subscribers = await self.subscribers.find_active(wants_discount_emails=True)
            products = await self.catalog.list_discounted()
        except Exception as e:
            logger.error("Failed to prepare daily discount campaign", error=str(e))
            record_failure(NotificationType.DISCOUNT_CAMPAIGN, "job_failed")
            record_campaign_run("scheduled", "failed")
            return DispatchResult()

        if not products:
            logger.info("No discounted products available today, skipping discount email")
            record_campaign_run("scheduled", "skipped")
            return DispatchResult()

        try:
            subject = DAILY_DISCOUNT_SUBJECT.format(percent=products[0].discount_percent)
            result = await self._dispatch_personalized(subscribers, products, subject)
        except Exception as e:
            logger.error("Daily discount campaign aborted", error=str(e))
            record_failure(NotificationType.DISCOUNT_CAMPAIGN, "job_failed")
            record_campaign_run("scheduled", "failed")
            return DispatchResult()

        logger.info(
            "Daily discount emails sent",
            sent=result.successful,
            total=result.total,
        )
        record_campaign_run("scheduled", "completed", result.total)
        return result

    async def trigger_manual_campaign(self, subscriber_ids: Sequence[UUID]) -> DispatchResult:
        """
        Send the discount email to an explicit set of subscribers.

        Raises:
            ValidationError: no ids given
            NotFoundError: no active subscriber matched, or no discounted products
        """
        if not subscriber_ids:
            raise ValidationError("No subscribers specified", field="subscriber_ids")

        subscribers = await self.subscribers.find_by_ids_active(list(subscriber_ids))
        if not subscribers:
            raise NotFoundError("Subscriber", message="No active subscribers found")

        products = await self.catalog.list_discounted()
        if not products:
            raise NotFoundError("DiscountProduct", message="No discount products available")

        subject = MANUAL_DISCOUNT_SUBJECT.format(percent=products[0].discount_percent)
        result = await self._dispatch_personalized(subscribers, products, subject)

        logger.info(
            "Manual discount emails sent",
            sent=result.successful,
            total=result.total,
            requested=len(subscriber_ids),
        )
        record_campaign_run("manual", "completed", result.total)
        return result

    async def _dispatch_personalized(
        self,
        subscribers: List[Subscriber],
        products: List[DiscountProduct],
        subject: str,
    ) -> DispatchResult:
        successful = 0
        for index, subscriber in enumerate(subscribers):
            try:
                body = render_template(
                    NotificationType.DISCOUNT_CAMPAIGN,
                    discount_template_data(subscriber.first_name, products, self.website_url),
                )
                if await self.dispatcher.send_one(
                    subscriber.email, subject, body, NotificationType.DISCOUNT_CAMPAIGN
                ):
                    successful += 1
            except Exception as e:
                logger.error(
                    "Failed to send discount email",
                    subscriber_id=str(subscriber.id),
                    error=str(e),
                )
                record_failure(NotificationType.DISCOUNT_CAMPAIGN, "send_failed")

            if self.dispatcher.delay_ms and index < len(subscribers) - 1:
                await asyncio.sleep(self.dispatcher.delay_ms / 1000)

        return DispatchResult(total=len(subscribers), successful=successful)
