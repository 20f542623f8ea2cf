"""
Notification channel interface - transport-agnostic status-change delivery

The pms layer implements INotificationChannel for concrete channels
(in-app notifications, webhooks).
"""
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from lifecycle.domain.models import StatusChangeEvent


class INotificationChannel(ABC):
    """Notification channel interface"""

    @abstractmethod
    def send(self, event: StatusChangeEvent) -> bool:
        """Deliver one status-change event.

        Transport errors are reported by returning False; the dispatcher
        decides whether to retry.

        Returns:
            Whether the event was delivered
        """

    @abstractmethod
    def get_channel_type(self) -> str:
        """Channel type identifier, e.g. 'internal', 'webhook'"""


class NotificationChannelRegistry:
    """Notification channel registry - singleton

    The app layer registers implementations at startup:
        registry = NotificationChannelRegistry()
        registry.register(InternalChannel(session_factory))
        registry.register(WebhookChannel(url))
    """

    _instance: Optional["NotificationChannelRegistry"] = None

    def __new__(cls) -> "NotificationChannelRegistry":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._channels: Dict[str, INotificationChannel] = {}
        return cls._instance

    def register(self, channel: INotificationChannel) -> None:
        self._channels[channel.get_channel_type()] = channel

    def unregister(self, channel_type: str) -> None:
        self._channels.pop(channel_type, None)

    def get_channel(self, channel_type: str) -> Optional[INotificationChannel]:
        return self._channels.get(channel_type)

    def get_all_channels(self) -> List[INotificationChannel]:
        return list(self._channels.values())

    def clear(self) -> None:
        """Remove all channels (for testing)."""
        self._channels.clear()


__all__ = ["INotificationChannel", "NotificationChannelRegistry"]
