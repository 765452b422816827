"""Console channel for local development: messages are logged, never delivered."""

import structlog

from order_service.channels.base import NotificationChannel

logger = structlog.get_logger()


class ConsoleChannel(NotificationChannel):
    """Logs every message and reports success."""

    def get_channel_name(self) -> str:
        return "console"

    async def send(self, address: str, subject: str, body: str) -> bool:
        logger.info(
            "Console notification",
            recipient=address,
            subject=subject,
            body_length=len(body),
        )
        return True
