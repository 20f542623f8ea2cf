"""
lifecycle/notification/dispatcher.py

Asynchronous, retrying fan-out of status-change events.

``notify`` returns immediately; delivery runs on a worker pool. Each channel
gets a bounded number of attempts. Failures are logged and never reach the
caller, so a broken channel can never fail or roll back a transition.
"""
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import List, Optional
import threading
import time
import logging

from lifecycle.domain.models import StatusChangeEvent
from lifecycle.notification.channel import INotificationChannel, NotificationChannelRegistry

logger = logging.getLogger(__name__)


class INotificationSink(ABC):
    """Where the coordinator hands realized transitions"""

    @abstractmethod
    def notify(self, event: StatusChangeEvent) -> None:
        """Fire-and-forget; must not raise and must not block on delivery."""


class NullNotificationSink(INotificationSink):
    """Drops every event."""

    def notify(self, event: StatusChangeEvent) -> None:
        logger.debug(f"Notification dropped: {event.subject}")


class NotificationDispatcher(INotificationSink):
    """
    Delivers events to every registered channel, at least once.

    Example:
        >>> dispatcher = NotificationDispatcher(max_attempts=3)
        >>> dispatcher.notify(event)
        >>> dispatcher.flush(timeout=5)
    """

    def __init__(
        self,
        registry: Optional[NotificationChannelRegistry] = None,
        max_workers: int = 2,
        max_attempts: int = 3,
        retry_delay: float = 0.5,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._registry = registry or NotificationChannelRegistry()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="notify")
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._pending: List[Future] = []
        self._lock = threading.Lock()
        self._closed = False

    def notify(self, event: StatusChangeEvent) -> None:
        with self._lock:
            if self._closed:
                logger.warning(f"Dispatcher closed, dropping notification {event.event_id}")
                return
            try:
                future = self._executor.submit(self._deliver, event)
            except RuntimeError as e:
                logger.error(f"Failed to schedule notification {event.event_id}: {e}")
                return
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)

    def _deliver(self, event: StatusChangeEvent) -> None:
        for channel in self._registry.get_all_channels():
            self._deliver_to(channel, event)

    def _deliver_to(self, channel: INotificationChannel, event: StatusChangeEvent) -> bool:
        channel_type = channel.get_channel_type()
        for attempt in range(1, self._max_attempts + 1):
            try:
                if channel.send(event):
                    logger.debug(f"Notification {event.event_id} delivered via {channel_type}")
                    return True
                logger.warning(
                    f"Channel {channel_type} rejected notification {event.event_id} "
                    f"(attempt {attempt}/{self._max_attempts})"
                )
            except Exception as e:
                logger.warning(
                    f"Channel {channel_type} failed on notification {event.event_id} "
                    f"(attempt {attempt}/{self._max_attempts}): {e}"
                )
            if attempt < self._max_attempts and self._retry_delay > 0:
                time.sleep(self._retry_delay * attempt)

        logger.error(
            f"Giving up on notification {event.event_id} via {channel_type} "
            f"after {self._max_attempts} attempts"
        )
        return False

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued deliveries. Returns False if some are still running."""
        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_pending: bool = True) -> None:
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait_for_pending)


__all__ = [
    "INotificationSink",
    "NullNotificationSink",
    "NotificationDispatcher",
]
