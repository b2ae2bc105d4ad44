from datetime import date, datetime, timedelta
from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from app.db.models import Booking, BookingStatus, BookingType, Trip, User
from app.utils.datetime_utils import (
    booking_datetime,
    hours_until,
    naive_utc_now,
    to_naive_utc,
)
from app.utils.errors import NotFoundError
from app.utils.logging import get_logger

logger = get_logger()


class BookingService:
    """Read side of users, trips and bookings for the notification jobs"""

    def __init__(self, db_session: Session):
        self.db = db_session

    async def list_active_user_ids(self) -> List[str]:
        result = self.db.execute(
            select(User.id).where(User.is_active.is_(True)).order_by(User.created_at)
        )
        return list(result.scalars().all())

    async def list_bookings_due_for_reminder(
        self,
        user_id: str,
        within_days: int = 7,
        now: Optional[datetime] = None,
        slack_hours: float = 0,
    ) -> List[Booking]:
        """
        Non-cancelled bookings starting between now and ``within_days`` from now.

        ``slack_hours`` stretches the horizon so the furthest reminder keeps the
        upper half of its tolerance window.
        """
        now = to_naive_utc(now or naive_utc_now())
        max_hours = within_days * 24 + slack_hours
        horizon = now + timedelta(hours=max_hours)

        result = self.db.execute(
            select(Booking)
            .where(
                and_(
                    Booking.user_id == user_id,
                    Booking.status != BookingStatus.CANCELLED,
                    Booking.booking_date.is_not(None),
                    Booking.booking_date >= now.date(),
                    Booking.booking_date <= horizon.date(),
                )
            )
            .order_by(Booking.booking_date, Booking.booking_time)
        )
        return [
            b
            for b in result.scalars().all()
            if 0 <= hours_until(booking_datetime(b.booking_date, b.booking_time), now)
            <= max_hours
        ]

    async def list_flight_bookings(
        self, user_id: str, within_hours: int = 48, now: Optional[datetime] = None
    ) -> List[Booking]:
        """Non-cancelled flight bookings departing within the next ``within_hours``."""
        now = to_naive_utc(now or naive_utc_now())
        horizon = now + timedelta(hours=within_hours)

        result = self.db.execute(
            select(Booking)
            .where(
                and_(
                    Booking.user_id == user_id,
                    Booking.booking_type == BookingType.FLIGHT,
                    Booking.status != BookingStatus.CANCELLED,
                    Booking.booking_date.is_not(None),
                    Booking.booking_date >= now.date(),
                    Booking.booking_date <= horizon.date(),
                )
            )
            .order_by(Booking.booking_date, Booking.booking_time)
        )
        return [
            b
            for b in result.scalars().all()
            if 0 <= hours_until(booking_datetime(b.booking_date, b.booking_time), now)
            <= within_hours
        ]

    async def update_booking_details(
        self,
        booking_id: str,
        user_id: str,
        gate: Optional[str] = None,
        terminal: Optional[str] = None,
        last_checked: Optional[datetime] = None,
    ) -> Booking:
        """
        Record the latest observed gate/terminal on a booking.

        Only the gate, terminal and last_checked keys of ``details`` are touched.
        """
        result = self.db.execute(
            select(Booking).where(
                and_(Booking.id == booking_id, Booking.user_id == user_id)
            )
        )
        booking = result.scalar_one_or_none()
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found for user {user_id}")

        details = dict(booking.details or {})
        if gate is not None:
            details["gate"] = gate
        if terminal is not None:
            details["terminal"] = terminal
        details["last_checked"] = (last_checked or naive_utc_now()).isoformat()

        # Reassign so the JSON column is flagged dirty
        booking.details = details
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        logger.debug(
            "Updated booking details",
            booking_id=booking_id,
            gate=gate,
            terminal=terminal,
        )
        return booking

    async def list_weather_candidate_trips(
        self, user_id: str, today: date, within_days: int = 3
    ) -> List[Trip]:
        """Active trips plus upcoming trips starting within ``within_days``."""
        result = self.db.execute(
            select(Trip)
            .where(
                and_(
                    Trip.user_id == user_id,
                    Trip.start_date.is_not(None),
                    Trip.end_date.is_not(None),
                    or_(
                        and_(Trip.start_date <= today, Trip.end_date >= today),
                        and_(
                            Trip.start_date > today,
                            Trip.start_date <= today + timedelta(days=within_days),
                        ),
                    ),
                )
            )
            .order_by(Trip.start_date)
        )
        return list(result.scalars().all())

    async def list_trip_bookings(self, trip_id: str, user_id: str) -> List[Booking]:
        result = self.db.execute(
            select(Booking)
            .where(
                and_(
                    Booking.trip_id == trip_id,
                    Booking.user_id == user_id,
                    Booking.status != BookingStatus.CANCELLED,
                )
            )
            .order_by(Booking.booking_date, Booking.booking_time)
        )
        return list(result.scalars().all())
