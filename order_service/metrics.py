from prometheus_client import Counter, Histogram, Gauge
import time
from order_service.domain.entities import NotificationType


notifications_sent_total = Counter(
    "order_notifications_sent_total",
    "Total number of notification send attempts",
    ["notification_type", "status"],
)

notification_failures_total = Counter(
    "order_notification_failures_total",
    "Total number of notification failures",
    ["notification_type", "error_type"],
)

status_transitions_total = Counter(
    "order_status_transitions_total",
    "Total number of accepted order lifecycle transitions",
    ["field", "value"],
)

campaign_runs_total = Counter(
    "order_campaign_runs_total",
    "Total number of discount campaign runs",
    ["trigger", "outcome"],
)

notification_delivery_duration_seconds = Histogram(
    "order_notification_delivery_duration_seconds",
    "Notification delivery duration in seconds",
    ["notification_type"],
)

campaign_last_recipients = Gauge(
    "order_campaign_last_recipients",
    "Number of recipients targeted by the last discount campaign run",
)


class MetricsTracker:
    """Helper class for tracking metrics with timing."""

    def __init__(self, notification_type: NotificationType):
        self.notification_type = _type_value(notification_type)
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time:
            duration = time.time() - self.start_time
            notification_delivery_duration_seconds.labels(
                notification_type=self.notification_type
            ).observe(duration)


def _type_value(notification_type) -> str:
    if isinstance(notification_type, NotificationType):
        return notification_type.value
    return str(notification_type)


def record_notification(notification_type: NotificationType, success: bool = True) -> None:
    """Record a notification send attempt."""
    status = "success" if success else "failed"
    notifications_sent_total.labels(
        notification_type=_type_value(notification_type), status=status
    ).inc()


def record_failure(notification_type: NotificationType, error_type: str) -> None:
    """Record notification failure."""
    notification_failures_total.labels(
        notification_type=_type_value(notification_type), error_type=error_type
    ).inc()


def record_transition(field: str, value: str) -> None:
    """Record an accepted status or payment-status change."""
    status_transitions_total.labels(field=field, value=value).inc()


def record_campaign_run(trigger: str, outcome: str, recipients: int = 0) -> None:
    """Record a discount campaign run."""
    campaign_runs_total.labels(trigger=trigger, outcome=outcome).inc()
    campaign_last_recipients.set(recipients)
