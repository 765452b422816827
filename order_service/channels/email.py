import asyncio
from typing import Optional

import resend
import structlog

from order_service.channels.base import NotificationChannel
from order_service.config import settings

logger = structlog.get_logger()


class ResendEmailChannel(NotificationChannel):
    """Email notification channel using Resend API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
    ):
        resend.api_key = api_key or settings.RESEND_API_KEY
        self.from_email = from_email or settings.RESEND_FROM_EMAIL
        self.from_name = from_name or settings.RESEND_FROM_NAME
        self.timeout_seconds = timeout_seconds or settings.EMAIL_SEND_TIMEOUT_SECONDS

    def get_channel_name(self) -> str:
        """Get the name of this notification channel."""
        return "email"

    async def send(self, address: str, subject: str, body: str) -> bool:
        """
        Send an HTML email.

        The blocking SDK call runs in a worker thread and is bounded by
        `timeout_seconds`; a timeout counts as a failed send.
        """
        params = {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": [address],
            "subject": subject,
            "html": body,
        }

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(resend.Emails.send, params),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error(
                "Email send timed out",
                recipient=address,
                timeout_seconds=self.timeout_seconds,
            )
            return False
        except Exception as e:
            logger.error(
                "Failed to send email",
                recipient=address,
                subject=subject,
                error=str(e),
            )
            return False

        logger.info(
            "Email sent successfully",
            recipient=address,
            subject=subject,
            resend_id=response.get("id") if isinstance(response, dict) else None,
        )
        return True
