from abc import ABC, abstractmethod


class NotificationChannel(ABC):
    """Abstract base class for notification channels."""

    @abstractmethod
    async def send(self, address: str, subject: str, body: str) -> bool:
        """
        Send one message to one address.

        Implementations must not raise: provider errors and timeouts are
        reported as False.

        Args:
            address: Recipient identifier (email address)
            subject: Subject line
            body: Rendered message body

        Returns:
            True when the provider accepted the message
        """
        pass

    @abstractmethod
    def get_channel_name(self) -> str:
        """Get the name of this notification channel."""
        pass
