"""
Notification dispatcher.

Sends messages through a NotificationChannel one attempt per recipient,
counting successes. A failed or raising send is logged and counted; it
never aborts the loop and never propagates to the caller.
"""

import asyncio
from typing import Optional, Sequence

import structlog

from order_service.channels.base import NotificationChannel
from order_service.domain.entities import DispatchResult, NotificationMessage, NotificationType
from order_service.domain.exceptions import NotificationFailure
from order_service.metrics import MetricsTracker, record_failure, record_notification

logger = structlog.get_logger()


class Dispatcher:
    """Sends one message to many recipients with partial-failure bookkeeping."""

    def __init__(
        self,
        channel: NotificationChannel,
        delay_ms: int = 0,
        max_concurrency: int = 1,
    ):
        self.channel = channel
        self.delay_ms = delay_ms
        self.max_concurrency = max(1, max_concurrency)

    async def send_one(
        self,
        recipient: str,
        subject: str,
        body: str,
        notification_type: Optional[NotificationType] = None,
    ) -> bool:
        """Make a single send attempt and report whether it succeeded."""
        type_label = notification_type or "generic"
        try:
            with MetricsTracker(type_label):
                success = bool(await self.channel.send(recipient, subject, body))
        except Exception as e:
            failure = NotificationFailure(recipient, str(e))
            logger.error(
                "Channel raised during send",
                channel=self.channel.get_channel_name(),
                error=failure.message,
                **failure.details,
            )
            record_failure(type_label, "channel_error")
            success = False

        record_notification(type_label, success)
        if not success:
            logger.warning(
                "Notification not delivered",
                recipient=recipient,
                notification_type=str(type_label),
            )
        return success

    async def send_message(
        self,
        message: NotificationMessage,
        notification_type: Optional[NotificationType] = None,
    ) -> bool:
        return await self.send_one(
            message.recipient, message.subject, message.body, notification_type
        )

    async def send_to_many(
        self,
        recipients: Sequence[str],
        subject: str,
        body: str,
        notification_type: Optional[NotificationType] = None,
    ) -> DispatchResult:
        """
        Send the same message to every recipient.

        Sequential in input order by default. With max_concurrency > 1 the
        attempts overlap under a semaphore; counts stay exact either way.
        """
        if self.max_concurrency > 1:
            successful = await self._send_concurrently(
                recipients, subject, body, notification_type
            )
        else:
            successful = 0
            for index, recipient in enumerate(recipients):
                if await self.send_one(recipient, subject, body, notification_type):
                    successful += 1
                if self.delay_ms and index < len(recipients) - 1:
                    await asyncio.sleep(self.delay_ms / 1000)

        result = DispatchResult(total=len(recipients), successful=successful)
        logger.info(
            "Dispatch completed",
            total=result.total,
            successful=result.successful,
            failed=result.failed,
        )
        return result

    async def _send_concurrently(
        self,
        recipients: Sequence[str],
        subject: str,
        body: str,
        notification_type: Optional[NotificationType],
    ) -> int:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def attempt(recipient: str) -> bool:
            async with semaphore:
                return await self.send_one(recipient, subject, body, notification_type)

        outcomes = await asyncio.gather(*(attempt(r) for r in recipients))
        return sum(1 for ok in outcomes if ok)
