"""
Abstract base class defining the channel interface and common functionality.

Channels own a structlog logger bound to their class name and keep simple
delivery metrics.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Any, Optional

from pydantic import BaseModel, Field
import structlog


class ChannelMetrics(BaseModel):
    """Channel performance and usage metrics."""

    total_messages_sent: int = 0
    total_messages_failed: int = 0
    success_rate: float = 0.0
    average_response_time_ms: float = 0.0

    # Error tracking
    common_errors: Dict[str, int] = Field(default_factory=dict)
    last_error_at: Optional[datetime] = None


class BaseChannel(ABC):
    """Abstract base class for all channel implementations."""

    def __init__(self):
        self.logger = structlog.get_logger(self.__class__.__name__)
        self.metrics = ChannelMetrics()

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Return the channel name."""
        pass

    @abstractmethod
    async def send_message(self, to: str, message: str, options: Optional[Any] = None) -> Any:
        """
        Send a message through this channel.

        Args:
            to: Channel-specific recipient identifier
            message: Message text
            options: Optional channel-specific send options

        Raises:
            ChannelError: When message sending fails
            ValidationError: When input validation fails
        """
        pass

    @abstractmethod
    async def validate_recipient(self, recipient: str) -> bool:
        """
        Validate recipient format for this channel.

        Returns:
            True if recipient format is valid
        """
        pass

    def update_metrics(
            self,
            success: bool,
            response_time_ms: int,
            error_code: Optional[str] = None
    ) -> None:
        """Update channel metrics after a request."""
        if success:
            self.metrics.total_messages_sent += 1
        else:
            self.metrics.total_messages_failed += 1
            self.metrics.last_error_at = datetime.now(timezone.utc)

            if error_code:
                self.metrics.common_errors[error_code] = self.metrics.common_errors.get(error_code, 0) + 1

        total = self.metrics.total_messages_sent + self.metrics.total_messages_failed
        if total > 0:
            self.metrics.success_rate = self.metrics.total_messages_sent / total

        if self.metrics.average_response_time_ms == 0:
            self.metrics.average_response_time_ms = response_time_ms
        else:
            # Moving average
            self.metrics.average_response_time_ms = (
                    self.metrics.average_response_time_ms * 0.9 + response_time_ms * 0.1
            )

    def get_metrics(self) -> ChannelMetrics:
        """Get current channel metrics."""
        return self.metrics.model_copy(deep=True)

    @staticmethod
    def _calculate_processing_time(start_time: datetime) -> int:
        """Milliseconds elapsed since ``start_time``."""
        return int((datetime.now(timezone.utc) - start_time).total_seconds() * 1000)
