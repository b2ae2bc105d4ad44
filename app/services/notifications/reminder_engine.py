from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from app.db.models import (
    Booking,
    BookingStatus,
    BookingType,
    NotificationCategory,
    Priority,
)
from app.schemas.notification_schemas import NotificationIntent
from app.utils.datetime_utils import booking_datetime, hours_until

from . import messages
from .dedup_gate import DEFAULT_LOOKBACK_HOURS, reminder_lookback_hours

REMINDER_LEAD_HOURS: Tuple[int, ...] = (2, 24, 72, 168)
CHECKIN_WINDOW_HOURS: Tuple[float, float] = (22, 26)
DEFAULT_TOLERANCE_HOURS = 0.5


class ReminderEngine:
    """
    Time-based reminder ladder for upcoming bookings.

    A lead-time fires when the booking starts within ``tolerance_hours`` of it.
    The tolerance must cover at least half the polling interval, otherwise a
    lead-time can fall between two runs and never fire.
    """

    def __init__(
        self,
        lead_hours: Sequence[int] = REMINDER_LEAD_HOURS,
        tolerance_hours: float = DEFAULT_TOLERANCE_HOURS,
        checkin_window: Tuple[float, float] = CHECKIN_WINDOW_HOURS,
    ):
        self.lead_hours = tuple(sorted(lead_hours))
        self.tolerance_hours = tolerance_hours
        self.checkin_window = checkin_window

    def due_lead_times(self, hours: float) -> List[int]:
        return [
            lead for lead in self.lead_hours if abs(hours - lead) <= self.tolerance_hours
        ]

    def evaluate(
        self, booking: Booking, now: datetime
    ) -> List[NotificationIntent]:
        """
        All reminder intents due for ``booking`` at ``now``.

        Returns an empty list for cancelled bookings, bookings without a date and
        bookings that already started.
        """
        if booking.status == BookingStatus.CANCELLED or booking.booking_date is None:
            return []

        hours = hours_until(
            booking_datetime(booking.booking_date, booking.booking_time), now
        )
        if hours < 0:
            return []

        intents = []
        for lead in self.due_lead_times(hours):
            title, message, priority = messages.reminder_message(booking, hours)
            intents.append(
                NotificationIntent(
                    category=NotificationCategory.BOOKING_REMINDER,
                    priority=priority,
                    reason=f"reminder_{lead}h",
                    title=title,
                    message=message,
                    metadata={
                        "booking_type": booking.booking_type.value,
                        "lead_hours": lead,
                        "hours_until": round(hours, 2),
                    },
                    lookback_hours=reminder_lookback_hours(lead),
                )
            )

        checkin = self.evaluate_checkin(booking, hours)
        if checkin is not None:
            intents.append(checkin)
        return intents

    def evaluate_checkin(
        self, booking: Booking, hours: float
    ) -> Optional[NotificationIntent]:
        if booking.booking_type != BookingType.FLIGHT:
            return None
        low, high = self.checkin_window
        if not low <= hours <= high:
            return None

        title, message = messages.checkin_message(booking)
        return NotificationIntent(
            category=NotificationCategory.CHECKIN_REMINDER,
            priority=Priority.HIGH,
            reason="checkin",
            title=title,
            message=message,
            metadata={
                "flight_number": booking.flight_number,
                "hours_until": round(hours, 2),
            },
            lookback_hours=DEFAULT_LOOKBACK_HOURS[NotificationCategory.CHECKIN_REMINDER],
        )
