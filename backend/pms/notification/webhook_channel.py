"""
Webhook notification channel - POSTs status-change events as JSON
"""
import logging
from typing import Dict, Optional

import httpx

from lifecycle.domain.models import StatusChangeEvent
from lifecycle.notification.channel import INotificationChannel

logger = logging.getLogger(__name__)


class WebhookChannel(INotificationChannel):
    """Generic webhook channel"""

    def __init__(
        self,
        webhook_url: str = "",
        headers: Optional[Dict[str, str]] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.headers = headers or {"Content-Type": "application/json"}
        self.timeout = timeout
        self._transport = transport

    def send(self, event: StatusChangeEvent) -> bool:
        if not self.webhook_url:
            logger.error("Webhook URL not configured")
            return False

        payload = event.to_dict()
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(self.webhook_url, json=payload, headers=self.headers)
                resp.raise_for_status()
            logger.info(f"Webhook sent to {self.webhook_url}: {event.subject}")
            return True
        except Exception as e:
            logger.error(f"Failed to send webhook to {self.webhook_url}: {e}")
            return False

    def get_channel_type(self) -> str:
        return "webhook"
