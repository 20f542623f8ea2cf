"""
Property automation settings loader
Reads property_settings rows into AutomationConfig; properties without a
row get the documented defaults.
"""
import logging

from sqlalchemy.orm import Session, sessionmaker

from lifecycle.domain.models import AutomationConfig
from lifecycle.ports import IConfigSource
from pms.models.ontology import PropertySettings

logger = logging.getLogger(__name__)

_FIELDS = (
    "check_in_time",
    "check_out_time",
    "no_show_grace_hours",
    "no_show_lookback_days",
    "late_checkout_grace_hours",
    "late_checkout_lookback_days",
    "late_checkout_fee",
    "late_checkout_fee_type",
    "confirmation_pending_timeout_hours",
    "audit_log_retention_days",
    "early_checkin_warning_hours",
    "enable_no_show_detection",
    "enable_late_checkout_detection",
    "enable_confirmation_timeout",
)


def settings_to_config(row: PropertySettings) -> AutomationConfig:
    """Copy non-null columns over the defaults"""
    values = {name: getattr(row, name) for name in _FIELDS if getattr(row, name) is not None}
    return AutomationConfig(property_id=row.property_id, **values)


class PropertySettingsLoader(IConfigSource):
    """IConfigSource backed by the property_settings table"""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def load_automation_config(self, property_id: int) -> AutomationConfig:
        db: Session = self._session_factory()
        try:
            row = db.query(PropertySettings).filter(PropertySettings.property_id == property_id).first()
            if row is None:
                logger.debug(f"No automation settings for property {property_id}, using defaults")
                return AutomationConfig(property_id=property_id)
            return settings_to_config(row)
        finally:
            db.close()
