"""
Persistent objects
Reservations, their append-only status history, per-property automation
settings, late checkout charges and in-app notifications.
"""
from sqlalchemy import (
    Column, Integer, String, DateTime, Date, ForeignKey, Text, Boolean,
    Enum as SQLEnum, Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from lifecycle.clock import utcnow
from lifecycle.domain.enums import LateCheckoutFeeType, PaymentStatus, ReservationStatus
from pms.database import Base


class Property(Base):
    """Property (hotel)"""
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, index=True)
    name = Column(String(100), nullable=False)
    created_at = Column(DateTime, default=utcnow)

    rooms = relationship("Room", back_populates="property")
    settings = relationship("PropertySettings", back_populates="property", uselist=False)


class Room(Base):
    """Room"""
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    room_number = Column(String(20), nullable=False)

    property = relationship("Property", back_populates="rooms")


class Reservation(Base):
    """
    Reservation - status is written only through the transition coordinator.
    Money columns are integers in the smallest currency unit.
    """
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, index=True)
    organization_id = Column(Integer, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=True)
    guest_name = Column(String(100))
    check_in = Column(DateTime, nullable=False)
    check_out = Column(DateTime, nullable=False)
    adults = Column(Integer, default=1)
    children = Column(Integer, default=0)
    status = Column(SQLEnum(ReservationStatus), nullable=False, default=ReservationStatus.CONFIRMATION_PENDING)
    payment_status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.UNPAID)
    total_amount = Column(Integer, default=0)
    paid_amount = Column(Integer, default=0)
    amount_captured = Column(Integer, default=0)
    deposit_amount = Column(Integer, default=0)
    status_updated_by = Column(Integer)
    status_updated_at = Column(DateTime)
    status_change_reason = Column(Text)
    checked_in_at = Column(DateTime)
    checked_out_at = Column(DateTime)
    created_at = Column(DateTime, default=utcnow)

    room = relationship("Room")
    history = relationship(
        "ReservationStatusHistory",
        back_populates="reservation",
        order_by=lambda: [ReservationStatusHistory.changed_at.desc(), ReservationStatusHistory.id.desc()],
    )

    __table_args__ = (
        Index("ix_reservations_property_status", "property_id", "status"),
    )


class ReservationStatusHistory(Base):
    """
    Status history entry - append-only, one row per realized transition.
    Queried newest first by reservation or by property.
    """
    __tablename__ = "reservation_status_history"

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=False)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    previous_status = Column(SQLEnum(ReservationStatus), nullable=True)
    new_status = Column(SQLEnum(ReservationStatus), nullable=False)
    changed_by = Column(Integer, nullable=True)  # None for the system
    change_reason = Column(Text)
    is_automatic = Column(Boolean, default=False, nullable=False)
    changed_at = Column(DateTime, nullable=False, default=utcnow)

    reservation = relationship("Reservation", back_populates="history")

    __table_args__ = (
        Index("ix_status_history_reservation_changed", "reservation_id", "changed_at"),
        Index("ix_status_history_property_changed", "property_id", "changed_at"),
    )


class PropertySettings(Base):
    """Per-property automation settings"""
    __tablename__ = "property_settings"

    id = Column(Integer, primary_key=True, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False, unique=True)
    check_in_time = Column(String(5), default="15:00")
    check_out_time = Column(String(5), default="11:00")
    no_show_grace_hours = Column(Integer, default=6)
    no_show_lookback_days = Column(Integer, default=3)
    late_checkout_grace_hours = Column(Integer, default=2)
    late_checkout_lookback_days = Column(Integer, default=2)
    late_checkout_fee = Column(Integer, default=0)
    late_checkout_fee_type = Column(SQLEnum(LateCheckoutFeeType), default=LateCheckoutFeeType.FLAT_RATE)
    confirmation_pending_timeout_hours = Column(Integer, default=24)
    audit_log_retention_days = Column(Integer, default=365)
    early_checkin_warning_hours = Column(Integer, default=4)
    enable_no_show_detection = Column(Boolean, default=True)
    enable_late_checkout_detection = Column(Boolean, default=True)
    enable_confirmation_timeout = Column(Boolean, default=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    property = relationship("Property", back_populates="settings")


class LateCheckoutCharge(Base):
    """Late checkout charge - at most one per reservation and business date"""
    __tablename__ = "late_checkout_charges"

    id = Column(Integer, primary_key=True, index=True)
    reservation_id = Column(Integer, ForeignKey("reservations.id"), nullable=False, index=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    business_date = Column(Date, nullable=False)
    amount = Column(Integer, nullable=False)
    fee_type = Column(SQLEnum(LateCheckoutFeeType), nullable=False)
    reason = Column(Text)
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        UniqueConstraint("reservation_id", "business_date", name="uq_late_checkout_charge_day"),
    )


class Notification(Base):
    """In-app notification of a reservation status change"""
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(String(64), unique=True, nullable=False)
    event_type = Column(String(50), nullable=False)
    property_id = Column(Integer, index=True)
    organization_id = Column(Integer)
    reservation_id = Column(Integer, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=utcnow)
