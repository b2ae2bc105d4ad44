import pytest
from datetime import time, timedelta

from app.db.models import (
    Booking,
    BookingStatus,
    BookingType,
    NotificationCategory,
    Priority,
)
from app.services.notifications import ReminderEngine

from tests.conftest import NOW


def _booking(hours: float, booking_type=BookingType.HOTEL, **kwargs) -> Booking:
    starts_at = NOW + timedelta(hours=hours)
    return Booking(
        id="booking-1",
        user_id="user-1",
        trip_id="trip-1",
        booking_type=booking_type,
        title=kwargs.pop("title", "Hotel Avenida"),
        location="Lisbon",
        status=kwargs.pop("status", BookingStatus.CONFIRMED),
        booking_date=starts_at.date(),
        booking_time=kwargs.pop("booking_time", starts_at.time()),
        details=kwargs.pop("details", {}),
    )


@pytest.fixture
def engine() -> ReminderEngine:
    return ReminderEngine(tolerance_hours=0.5)


class TestReminderLadder:
    """Each lead-time fires only inside its tolerance window."""

    def test_24h_lead_fires_alone(self, engine):
        intents = engine.evaluate(_booking(23.8), NOW)

        assert len(intents) == 1
        assert intents[0].category == NotificationCategory.BOOKING_REMINDER
        assert intents[0].reason == "reminder_24h"
        assert intents[0].priority == Priority.HIGH
        assert intents[0].lookback_hours == 25
        assert intents[0].title == "Tomorrow: Hotel Avenida"

    @pytest.mark.parametrize(
        "hours,reason,priority",
        [
            (1.8, "reminder_2h", Priority.URGENT),
            (71.6, "reminder_72h", Priority.MEDIUM),
            (168.5, "reminder_168h", Priority.MEDIUM),
        ],
    )
    def test_other_lead_times(self, engine, hours, reason, priority):
        intents = engine.evaluate(_booking(hours), NOW)

        assert [i.reason for i in intents] == [reason]
        assert intents[0].priority == priority

    @pytest.mark.parametrize("hours", [1.0, 12.0, 23.4, 48.0, 100.0, 169.0])
    def test_nothing_outside_the_windows(self, engine, hours):
        assert engine.evaluate(_booking(hours), NOW) == []

    def test_started_booking_is_skipped(self, engine):
        assert engine.evaluate(_booking(-0.2), NOW) == []

    def test_cancelled_booking_is_skipped(self, engine):
        assert engine.evaluate(_booking(24, status=BookingStatus.CANCELLED), NOW) == []

    def test_missing_time_means_midnight(self, engine):
        # NOW is 12:00, so midnight three days out is 60 hours away
        booking = _booking(72, booking_time=None)
        booking.booking_date = (NOW + timedelta(days=3)).date()

        assert engine.evaluate(booking, NOW) == []
        assert [i.reason for i in engine.evaluate(booking, NOW + timedelta(hours=-12))] == [
            "reminder_72h"
        ]

    def test_due_lead_times(self, engine):
        assert engine.due_lead_times(24.5) == [24]
        assert engine.due_lead_times(24.51) == []


class TestReminderWording:
    """Priority and wording follow the hours left, not the lead-time that fired."""

    def test_just_over_a_day_out_is_a_plain_reminder(self, engine):
        intents = engine.evaluate(_booking(24.2), NOW)

        assert [i.reason for i in intents] == ["reminder_24h"]
        assert intents[0].priority == Priority.MEDIUM
        assert intents[0].title == "Reminder: Hotel Avenida"
        assert intents[0].message == (
            f"Your hotel is coming up on {(NOW + timedelta(hours=24.2)).date().isoformat()}"
        )

    def test_just_over_two_hours_out_is_high(self, engine):
        intents = engine.evaluate(_booking(2.4), NOW)

        assert [i.reason for i in intents] == ["reminder_2h"]
        assert intents[0].priority == Priority.HIGH
        assert intents[0].title == "Tomorrow: Hotel Avenida"

    def test_within_two_hours_is_urgent(self, engine):
        intents = engine.evaluate(_booking(2.0), NOW)

        assert intents[0].priority == Priority.URGENT
        assert intents[0].title == "Upcoming hotel: Hotel Avenida"


class TestCheckinReminder:
    """Flights get a check-in reminder 22-26 hours before departure."""

    def test_flight_gets_checkin_and_reminder(self, engine):
        flight = _booking(
            24.2,
            booking_type=BookingType.FLIGHT,
            title="AA123 JFK-LAX",
            details={"flight_number": "AA123"},
        )

        intents = engine.evaluate(flight, NOW)

        assert {i.category for i in intents} == {
            NotificationCategory.BOOKING_REMINDER,
            NotificationCategory.CHECKIN_REMINDER,
        }
        checkin = next(i for i in intents if i.category == NotificationCategory.CHECKIN_REMINDER)
        assert checkin.priority == Priority.HIGH
        assert checkin.lookback_hours == 26
        assert "AA123" in checkin.message

    def test_checkin_between_lead_times(self, engine):
        flight = _booking(22.5, booking_type=BookingType.FLIGHT, details={"flight_number": "AA123"})

        intents = engine.evaluate(flight, NOW)

        assert [i.category for i in intents] == [NotificationCategory.CHECKIN_REMINDER]

    def test_no_checkin_for_hotels(self, engine):
        assert engine.evaluate_checkin(_booking(23), 23) is None
