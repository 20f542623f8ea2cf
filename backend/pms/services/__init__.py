# Application services
from pms.services.reservation_store import SqlReservationStore
from pms.services.audit_service import AuditService
from pms.services.settings_loader import PropertySettingsLoader
from pms.services.billing_service import BillingService

__all__ = [
    'SqlReservationStore', 'AuditService', 'PropertySettingsLoader', 'BillingService',
]
