"""
Core exceptions for the Slack relay.

This module defines the exceptions raised by the send path: channel
configuration and delivery failures, input validation, media loading
and external service errors.
"""

from typing import Dict, Any, Optional


class CoreError(Exception):
    """Base exception for all core business logic errors."""

    def __init__(
            self,
            message: str,
            error_code: Optional[str] = None,
            details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details
        }


class ChannelError(CoreError):
    """Base exception for channel-related operations."""
    pass


class ChannelConfigurationError(ChannelError):
    """Raised when channel configuration is invalid."""

    def __init__(self, channel: str, config_issue: str, account_id: Optional[str] = None):
        super().__init__(
            message=f"Channel {channel} configuration error: {config_issue}",
            error_code="CHANNEL_CONFIG_ERROR",
            details={
                "channel": channel,
                "config_issue": config_issue,
                "account_id": account_id
            }
        )
        self.account_id = account_id


class ChannelDeliveryError(ChannelError):
    """Raised when message delivery through channel fails."""

    def __init__(
            self,
            channel: str,
            recipient: str,
            delivery_error: str,
            is_permanent: bool = False
    ):
        super().__init__(
            message=f"Message delivery failed via {channel} to {recipient}: {delivery_error}",
            error_code="CHANNEL_DELIVERY_ERROR",
            details={
                "channel": channel,
                "recipient": recipient,
                "delivery_error": delivery_error,
                "is_permanent": is_permanent
            }
        )
        self.is_permanent = is_permanent


class ValidationError(CoreError):
    """Raised when input validation fails."""

    def __init__(
            self,
            field: str,
            value: Any,
            validation_rule: str,
            expected_format: Optional[str] = None
    ):
        super().__init__(
            message=f"Validation failed for field '{field}': {validation_rule}",
            error_code="VALIDATION_ERROR",
            details={
                "field": field,
                "value": str(value),
                "validation_rule": validation_rule,
                "expected_format": expected_format
            }
        )
        self.field = field


class MediaLoadError(CoreError):
    """Raised when media for an upload cannot be loaded."""

    def __init__(self, source: str, reason: str, size_bytes: Optional[int] = None):
        super().__init__(
            message=f"Failed to load media from {source}: {reason}",
            error_code="MEDIA_LOAD_ERROR",
            details={
                "source": source,
                "reason": reason,
                "size_bytes": size_bytes
            }
        )
        self.source = source


class ExternalServiceError(CoreError):
    """Raised when external service integration fails."""

    def __init__(
            self,
            service: str,
            operation: str,
            error_message: str,
            status_code: Optional[int] = None,
            is_retryable: bool = True
    ):
        super().__init__(
            message=f"External service {service} failed during {operation}: {error_message}",
            error_code="EXTERNAL_SERVICE_ERROR",
            details={
                "service": service,
                "operation": operation,
                "error_message": error_message,
                "status_code": status_code,
                "is_retryable": is_retryable
            }
        )
        self.status_code = status_code
        self.is_retryable = is_retryable
