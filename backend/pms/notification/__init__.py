"""
pms.notification - concrete notification channels
"""
from pms.notification.internal_channel import InternalChannel
from pms.notification.webhook_channel import WebhookChannel

__all__ = ["InternalChannel", "WebhookChannel"]
