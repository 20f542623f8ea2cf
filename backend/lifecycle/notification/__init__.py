"""
lifecycle/notification - status-change notifications

- channel: INotificationChannel and the channel registry
- dispatcher: asynchronous retrying fan-out
"""
from lifecycle.notification.channel import INotificationChannel, NotificationChannelRegistry
from lifecycle.notification.dispatcher import (
    INotificationSink,
    NullNotificationSink,
    NotificationDispatcher,
)

__all__ = [
    "INotificationChannel",
    "NotificationChannelRegistry",
    "INotificationSink",
    "NullNotificationSink",
    "NotificationDispatcher",
]
