"""
In-app notification channel - stores status-change events as notifications
"""
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from lifecycle.domain.models import StatusChangeEvent
from lifecycle.notification.channel import INotificationChannel
from pms.models.ontology import Notification

logger = logging.getLogger(__name__)


def describe(event: StatusChangeEvent) -> str:
    origin = "automatically" if event.is_automatic else "manually"
    text = f"Status changed {origin} to {event.new_status.value}"
    if event.reason:
        text += f": {event.reason}"
    return text


class InternalChannel(INotificationChannel):
    """In-app notification channel"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def send(self, event: StatusChangeEvent) -> bool:
        db = self._session_factory()
        try:
            db.add(Notification(
                event_id=event.event_id,
                event_type=event.event_type,
                property_id=event.property_id,
                organization_id=event.organization_id,
                reservation_id=event.reservation_id,
                title=event.subject,
                content=describe(event),
            ))
            db.commit()
            return True
        except IntegrityError:
            # Redelivery of an event already stored
            db.rollback()
            return True
        except Exception as e:
            db.rollback()
            logger.error(f"Failed to store notification {event.event_id}: {e}")
            return False
        finally:
            db.close()

    def get_channel_type(self) -> str:
        return "internal"
