"""
Lifecycle engine wiring
Builds the engine components on top of the SQLAlchemy services and holds
the application-wide instance used by the routers.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import sessionmaker

from lifecycle.clock import Clock, utcnow
from lifecycle.config_cache import CachedConfigSource
from lifecycle.engine.coordinator import TransitionCoordinator
from lifecycle.engine.day_roll import DayRollChecker
from lifecycle.engine.locks import ReservationLockRegistry
from lifecycle.notification.channel import NotificationChannelRegistry
from lifecycle.notification.dispatcher import NotificationDispatcher
from lifecycle.scheduler.automation import AutomationScheduler
from lifecycle.scheduler.base import ISchedulerBackend
from pms.config import Settings, settings as default_settings
from pms.notification.internal_channel import InternalChannel
from pms.notification.webhook_channel import WebhookChannel
from pms.services.audit_service import AuditService
from pms.services.billing_service import BillingService
from pms.services.reservation_store import SqlReservationStore
from pms.services.settings_loader import PropertySettingsLoader

logger = logging.getLogger(__name__)


@dataclass
class LifecycleEngine:
    """All engine components sharing one store, config cache and lock registry"""

    store: SqlReservationStore
    audit: AuditService
    config_source: CachedConfigSource
    billing: BillingService
    dispatcher: NotificationDispatcher
    coordinator: TransitionCoordinator
    day_roll: DayRollChecker
    scheduler: AutomationScheduler

    def shutdown(self) -> None:
        self.scheduler.stop()
        self.dispatcher.shutdown(wait_for_pending=True)


def build_engine(
    session_factory: sessionmaker,
    app_settings: Optional[Settings] = None,
    clock: Clock = utcnow,
    backend: Optional[ISchedulerBackend] = None,
    channels: Optional[NotificationChannelRegistry] = None,
) -> LifecycleEngine:
    """
    Wire the engine.

    Args:
        session_factory: SQLAlchemy session factory
        app_settings: Settings (defaults to the global instance)
        clock: Time source shared by coordinator and scheduler
        backend: Scheduler backend for recurring sweeps
        channels: Channel registry (defaults to the global registry with the
            internal channel and, when configured, the webhook channel)
    """
    cfg = app_settings or default_settings

    if channels is None:
        channels = NotificationChannelRegistry()
        channels.register(InternalChannel(session_factory))
        if cfg.NOTIFICATION_WEBHOOK_URL:
            channels.register(WebhookChannel(
                cfg.NOTIFICATION_WEBHOOK_URL, timeout=cfg.NOTIFICATION_WEBHOOK_TIMEOUT_SECONDS,
            ))

    store = SqlReservationStore(session_factory)
    audit = AuditService(session_factory)
    config_source = CachedConfigSource(
        PropertySettingsLoader(session_factory), ttl_seconds=cfg.CONFIG_CACHE_TTL_SECONDS,
    )
    billing = BillingService(session_factory)
    dispatcher = NotificationDispatcher(
        registry=channels,
        max_workers=cfg.NOTIFICATION_WORKERS,
        max_attempts=cfg.NOTIFICATION_MAX_ATTEMPTS,
        retry_delay=cfg.NOTIFICATION_RETRY_DELAY_SECONDS,
    )
    coordinator = TransitionCoordinator(
        store,
        config_source,
        notifier=dispatcher,
        locks=ReservationLockRegistry(timeout=cfg.TRANSITION_LOCK_TIMEOUT_SECONDS),
        clock=clock,
    )
    scheduler = AutomationScheduler(
        coordinator,
        store,
        config_source,
        billing=billing,
        backend=backend,
        audit=audit,
        clock=clock,
        max_workers=cfg.AUTOMATION_MAX_WORKERS,
    )
    logger.info("Lifecycle engine built")
    return LifecycleEngine(
        store=store,
        audit=audit,
        config_source=config_source,
        billing=billing,
        dispatcher=dispatcher,
        coordinator=coordinator,
        day_roll=DayRollChecker(store, billing),
        scheduler=scheduler,
    )


_engine: Optional[LifecycleEngine] = None


def get_engine() -> LifecycleEngine:
    """Dependency: the application-wide engine (built on first use)"""
    global _engine
    if _engine is None:
        from pms.database import SessionLocal
        _engine = build_engine(SessionLocal)
    return _engine


def set_engine(engine: Optional[LifecycleEngine]) -> None:
    """Install (or reset with None) the application-wide engine"""
    global _engine
    _engine = engine
