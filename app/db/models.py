from typing import Any, Dict, List, Optional
from datetime import datetime, date, time
import uuid
from sqlalchemy import (
    String,
    Boolean,
    Text,
    ForeignKey,
    Enum,
    Index,
    DateTime,
    Date,
    Time,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import enum

from app.db.custom_types import JSONText
from app.utils.datetime_utils import naive_utc_now


class Base(DeclarativeBase):
    pass


def _new_id() -> str:
    return str(uuid.uuid4())


# Enums
class TripStatus(enum.Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    COMPLETED = "completed"


class BookingType(enum.Enum):
    FLIGHT = "flight"
    HOTEL = "hotel"
    CAR = "car"
    ACTIVITY = "activity"
    TRANSPORT = "transport"
    OTHER = "other"


class BookingStatus(enum.Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


class NotificationCategory(enum.Enum):
    BOOKING_REMINDER = "booking_reminder"
    CHECKIN_REMINDER = "checkin_reminder"
    WEATHER_ALERT = "weather_alert"
    FLIGHT_DELAY = "flight_delay"
    FLIGHT_UPDATE = "flight_update"


class Priority(enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
    Priority.URGENT: 3,
}


# Base model with common audit fields
class AuditMixin:
    """Mixin for common audit fields"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, onupdate=naive_utc_now
    )


# Models
class User(Base, AuditMixin):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    email: Mapped[str] = mapped_column(String(320), unique=True)
    name: Mapped[Optional[str]] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    trips: Mapped[List["Trip"]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("idx_users_is_active", "is_active"),)


class Trip(Base, AuditMixin):
    __tablename__ = "trips"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    destination: Mapped[str] = mapped_column(String(255), nullable=False)
    start_date: Mapped[Optional[date]] = mapped_column(Date)
    end_date: Mapped[Optional[date]] = mapped_column(Date)
    status: Mapped[TripStatus] = mapped_column(
        Enum(TripStatus), default=TripStatus.PLANNING, nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="trips")
    bookings: Mapped[List["Booking"]] = relationship(
        back_populates="trip", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_trips_user_id", "user_id"),
        Index("idx_trips_dates", "start_date", "end_date"),
    )


class Booking(Base, AuditMixin):
    __tablename__ = "bookings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    trip_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("trips.id", ondelete="CASCADE"), nullable=False
    )
    booking_type: Mapped[BookingType] = mapped_column(
        Enum(BookingType), default=BookingType.OTHER, nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    provider: Mapped[Optional[str]] = mapped_column(String(255))
    location: Mapped[Optional[str]] = mapped_column(String(255))
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus), default=BookingStatus.CONFIRMED, nullable=False
    )
    booking_date: Mapped[Optional[date]] = mapped_column(Date)
    booking_time: Mapped[Optional[time]] = mapped_column(Time)
    # flight_number, gate, terminal, latitude, longitude, last_checked
    details: Mapped[Dict[str, Any]] = mapped_column(JSONText, default=dict)

    # Relationships
    trip: Mapped["Trip"] = relationship(back_populates="bookings")

    __table_args__ = (
        Index("idx_bookings_user_id", "user_id"),
        Index("idx_bookings_trip_id", "trip_id"),
        Index("idx_bookings_date", "booking_date"),
        Index("idx_bookings_type_date", "booking_type", "booking_date"),
    )

    @property
    def flight_number(self) -> Optional[str]:
        value = (self.details or {}).get("flight_number")
        return str(value).strip().upper() if value else None

    @property
    def recorded_gate(self) -> Optional[str]:
        value = (self.details or {}).get("gate")
        return str(value) if value else None


class Notification(Base, AuditMixin):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    trip_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("trips.id", ondelete="SET NULL")
    )
    booking_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("bookings.id", ondelete="SET NULL")
    )
    category: Mapped[NotificationCategory] = mapped_column(
        Enum(NotificationCategory), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    priority: Mapped[Priority] = mapped_column(
        Enum(Priority), default=Priority.MEDIUM, nullable=False
    )
    # JSON stored as Text - serialize/deserialize in application
    notification_metadata: Mapped[Dict[str, Any]] = mapped_column(JSONText, default=dict)
    dismissed: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (
        Index(
            "idx_notif_dedup",
            "user_id",
            "booking_id",
            "category",
            "created_at",
        ),
        Index("idx_notif_user_dismissed", "user_id", "dismissed"),
        Index("idx_notif_created_at", "created_at"),
    )
