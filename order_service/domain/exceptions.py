"""
Custom exceptions for the order service domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, database, etc.).
"""

from typing import Any, Optional


class OrderServiceException(Exception):
    """Base exception for all order service errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(OrderServiceException):
    """Raised when input is malformed or outside an enumerated value set."""

    def __init__(self, message: str, field: Optional[str] = None, value: Any = None):
        details = {}
        if field:
            details["field"] = field
            details["value"] = value
        super().__init__(message=message, details=details)


class DuplicateSubscriberError(ValidationError):
    """Raised when a subscriber with the same email already exists."""

    def __init__(self, email: str):
        super().__init__("Email already subscribed", field="email", value=email)


class NotFoundError(OrderServiceException):
    """Raised when a referenced order or subscriber does not exist."""

    def __init__(self, resource: str, identifier: Any = None, message: Optional[str] = None):
        if message is None:
            message = f"{resource} not found"
            if identifier is not None:
                message = f"{resource} not found: {identifier}"
        super().__init__(
            message=message,
            details={"resource": resource, "identifier": str(identifier) if identifier else None},
        )


class PersistenceError(OrderServiceException):
    """Raised when a repository read or write fails."""

    def __init__(self, operation: str, reason: Optional[str] = None):
        message = f"Repository {operation} failed"
        if reason:
            message += f": {reason}"
        super().__init__(message=message, details={"operation": operation, "reason": reason})


class NotificationFailure(OrderServiceException):
    """
    A single send attempt failed.

    Never raised past the dispatcher; it only describes a failed
    attempt in logs and metrics.
    """

    def __init__(self, recipient: str, reason: Optional[str] = None):
        message = f"Notification to {recipient} failed"
        if reason:
            message += f": {reason}"
        super().__init__(message=message, details={"recipient": recipient, "reason": reason})


class CatalogUnavailableError(OrderServiceException):
    """Raised when the product catalog cannot be reached."""

    def __init__(self, reason: Optional[str] = None):
        message = "Product catalog unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(message=message, details={"reason": reason})
