"""Notification channels."""

from order_service.channels.base import NotificationChannel
from order_service.channels.console import ConsoleChannel
from order_service.channels.email import ResendEmailChannel
from order_service.config import Settings


def build_channel(config: Settings) -> NotificationChannel:
    """Pick the Resend channel when an API key is configured, else the console."""
    if config.RESEND_API_KEY:
        return ResendEmailChannel(
            api_key=config.RESEND_API_KEY,
            from_email=config.RESEND_FROM_EMAIL,
            from_name=config.RESEND_FROM_NAME,
            timeout_seconds=config.EMAIL_SEND_TIMEOUT_SECONDS,
        )
    return ConsoleChannel()


__all__ = ["ConsoleChannel", "NotificationChannel", "ResendEmailChannel", "build_channel"]
