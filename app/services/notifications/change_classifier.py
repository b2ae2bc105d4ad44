from datetime import datetime
from typing import Optional

from app.db.models import Booking, NotificationCategory, Priority
from app.schemas.flight_status_schemas import FlightStatus, FlightStatusSnapshot
from app.schemas.notification_schemas import NotificationIntent
from app.utils.datetime_utils import booking_datetime, hours_until

from . import messages
from .dedup_gate import DEFAULT_LOOKBACK_HOURS

DELAY_THRESHOLD_MINUTES = 15
URGENT_DELAY_MINUTES = 60
BOARDING_WINDOW_HOURS = 2


class ChangeClassifier:
    """
    Turns a freshly fetched flight snapshot into at most one notification intent.

    Rules are checked in order and the first match wins:

    1. cancelled -> flight_update, urgent
    2. delayed by more than 15 minutes and more than the user was last told
       -> flight_delay, urgent above 60 minutes, high otherwise
    3. departure gate differs from the gate recorded on the booking
       -> flight_update (gate_change), high
    4. active/boarding within two hours of departure -> flight_update (boarding), urgent
    """

    def __init__(
        self,
        delay_threshold_minutes: int = DELAY_THRESHOLD_MINUTES,
        urgent_delay_minutes: int = URGENT_DELAY_MINUTES,
        boarding_window_hours: float = BOARDING_WINDOW_HOURS,
    ):
        self.delay_threshold_minutes = delay_threshold_minutes
        self.urgent_delay_minutes = urgent_delay_minutes
        self.boarding_window_hours = boarding_window_hours

    def classify(
        self,
        booking: Booking,
        previous: Optional[FlightStatusSnapshot],
        current: FlightStatusSnapshot,
        now: datetime,
        baseline_delay: Optional[int] = None,
    ) -> Optional[NotificationIntent]:
        """
        Args:
            booking: the flight booking the snapshot belongs to
            previous: last snapshot seen for the same flight and date, if any
            current: the snapshot just fetched
            now: evaluation time (naive UTC)
            baseline_delay: delay last told to the user; takes precedence over
                the previous snapshot so growth is measured against what the
                user already knows
        """
        if not current.is_comparable(previous):
            previous = None

        if current.status == FlightStatus.CANCELLED:
            return self._cancelled(booking, current)

        if baseline_delay is not None:
            previous_delay = baseline_delay
        elif previous is not None:
            previous_delay = previous.delay_minutes
        else:
            previous_delay = 0
        if (
            current.delay_minutes - previous_delay > 0
            and current.delay_minutes > self.delay_threshold_minutes
        ):
            return self._delayed(booking, current, previous_delay)

        if self.is_gate_change(booking, current):
            return self._gate_change(booking, current)

        if current.status in (FlightStatus.ACTIVE, FlightStatus.BOARDING):
            departure = current.departure.scheduled or (
                booking_datetime(booking.booking_date, booking.booking_time)
                if booking.booking_date
                else None
            )
            if departure is not None:
                hours = hours_until(departure, now)
                if 0 < hours <= self.boarding_window_hours:
                    return self._boarding(booking, current, hours)

        return None

    @staticmethod
    def is_gate_change(booking: Booking, current: FlightStatusSnapshot) -> bool:
        new_gate = current.departure.gate
        recorded = booking.recorded_gate
        return bool(new_gate) and bool(recorded) and new_gate != recorded

    def _base_metadata(self, current: FlightStatusSnapshot) -> dict:
        return {
            "flight_number": current.flight_number,
            "flight_date": current.flight_date.isoformat(),
            "status": current.status.value,
            "delay": current.delay_minutes,
            "gate": current.departure.gate,
            "terminal": current.departure.terminal,
            "provider": current.provider,
        }

    def _cancelled(self, booking, current) -> NotificationIntent:
        title, message = messages.cancelled_message(booking, current)
        return NotificationIntent(
            category=NotificationCategory.FLIGHT_UPDATE,
            priority=Priority.URGENT,
            reason="cancelled",
            title=title,
            message=message,
            metadata=self._base_metadata(current),
            signal={"reason": "cancelled"},
            lookback_hours=DEFAULT_LOOKBACK_HOURS[NotificationCategory.FLIGHT_UPDATE],
        )

    def _delayed(self, booking, current, previous_delay: int) -> NotificationIntent:
        title, message = messages.delay_message(booking, current)
        new_departure = current.departure.estimated or current.departure.scheduled
        priority = (
            Priority.URGENT
            if current.delay_minutes > self.urgent_delay_minutes
            else Priority.HIGH
        )
        return NotificationIntent(
            category=NotificationCategory.FLIGHT_DELAY,
            priority=priority,
            reason="delayed",
            title=title,
            message=message,
            metadata={
                **self._base_metadata(current),
                "previous_delay": previous_delay,
                "new_departure_time": new_departure.isoformat() if new_departure else None,
            },
            signal={"reason": "delayed", "priority": priority.value},
            lookback_hours=DEFAULT_LOOKBACK_HOURS[NotificationCategory.FLIGHT_DELAY],
        )

    def _gate_change(self, booking, current) -> NotificationIntent:
        title, message = messages.gate_change_message(booking, current)
        return NotificationIntent(
            category=NotificationCategory.FLIGHT_UPDATE,
            priority=Priority.HIGH,
            reason="gate_change",
            title=title,
            message=message,
            metadata={**self._base_metadata(current), "previous_gate": booking.recorded_gate},
            signal={"reason": "gate_change", "gate": current.departure.gate},
            lookback_hours=DEFAULT_LOOKBACK_HOURS[NotificationCategory.FLIGHT_UPDATE],
        )

    def _boarding(self, booking, current, hours: float) -> NotificationIntent:
        title, message = messages.boarding_message(booking, current)
        return NotificationIntent(
            category=NotificationCategory.FLIGHT_UPDATE,
            priority=Priority.URGENT,
            reason="boarding",
            title=title,
            message=message,
            metadata={**self._base_metadata(current), "hours_until_departure": round(hours, 2)},
            signal={"reason": "boarding"},
            lookback_hours=DEFAULT_LOOKBACK_HOURS[NotificationCategory.FLIGHT_UPDATE],
        )
