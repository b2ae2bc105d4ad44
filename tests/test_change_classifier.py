import pytest
from datetime import timedelta

from app.db.models import Booking, BookingType, NotificationCategory, Priority
from app.schemas.flight_status_schemas import FlightStatus
from app.services.notifications import ChangeClassifier

from tests.conftest import NOW, make_snapshot


def _flight(gate=None) -> Booking:
    starts_at = NOW + timedelta(hours=3)
    details = {"flight_number": "AA123"}
    if gate:
        details["gate"] = gate
    return Booking(
        id="booking-1",
        user_id="user-1",
        trip_id="trip-1",
        booking_type=BookingType.FLIGHT,
        title="AA123 JFK-LAX",
        provider="American Airlines",
        booking_date=starts_at.date(),
        booking_time=starts_at.time(),
        details=details,
    )


@pytest.fixture
def classifier() -> ChangeClassifier:
    return ChangeClassifier()


class TestDelayClassification:
    """Delay growth past 15 minutes produces a flight_delay."""

    def test_new_delay_of_twenty_minutes_is_high(self, classifier):
        intent = classifier.classify(
            _flight(), make_snapshot(delay=0), make_snapshot(delay=20), NOW
        )

        assert intent.category == NotificationCategory.FLIGHT_DELAY
        assert intent.priority == Priority.HIGH
        assert intent.reason == "delayed"
        assert intent.metadata["delay"] == 20
        assert intent.lookback_hours == 2
        assert "delayed by 20 minutes" in intent.message

    def test_delay_over_an_hour_is_urgent(self, classifier):
        intent = classifier.classify(_flight(), None, make_snapshot(delay=90), NOW)

        assert intent.category == NotificationCategory.FLIGHT_DELAY
        assert intent.priority == Priority.URGENT

    def test_delay_under_threshold_is_ignored(self, classifier):
        assert classifier.classify(_flight(), None, make_snapshot(delay=10), NOW) is None

    def test_unchanged_delay_is_ignored(self, classifier):
        assert (
            classifier.classify(_flight(), make_snapshot(delay=30), make_snapshot(delay=30), NOW)
            is None
        )

    def test_baseline_used_without_previous_snapshot(self, classifier):
        assert (
            classifier.classify(_flight(), None, make_snapshot(delay=30), NOW, baseline_delay=30)
            is None
        )
        intent = classifier.classify(
            _flight(), None, make_snapshot(delay=45), NOW, baseline_delay=30
        )
        assert intent.metadata["previous_delay"] == 30

    def test_notified_delay_takes_precedence_over_previous_snapshot(self, classifier):
        intent = classifier.classify(
            _flight(), make_snapshot(delay=90), make_snapshot(delay=90), NOW, baseline_delay=20
        )

        assert intent.priority == Priority.URGENT
        assert intent.metadata["previous_delay"] == 20
        assert intent.signal == {"reason": "delayed", "priority": "urgent"}

    def test_snapshot_of_another_flight_is_not_compared(self, classifier):
        other = make_snapshot(flight_number="DL88", delay=40)

        intent = classifier.classify(_flight(), other, make_snapshot(delay=40), NOW)

        assert intent.category == NotificationCategory.FLIGHT_DELAY


class TestStatusChanges:
    """Cancellation, gate change and boarding rules."""

    def test_cancellation_is_urgent(self, classifier):
        intent = classifier.classify(
            _flight(gate="A1"),
            None,
            make_snapshot(status=FlightStatus.CANCELLED, delay=90, gate="B3"),
            NOW,
        )

        assert intent.category == NotificationCategory.FLIGHT_UPDATE
        assert intent.priority == Priority.URGENT
        assert intent.reason == "cancelled"
        assert intent.signal == {"reason": "cancelled"}
        assert "American Airlines" in intent.message

    def test_gate_change(self, classifier):
        intent = classifier.classify(
            _flight(gate="A1"), None, make_snapshot(gate="B3", terminal="8"), NOW
        )

        assert intent.category == NotificationCategory.FLIGHT_UPDATE
        assert intent.priority == Priority.HIGH
        assert intent.reason == "gate_change"
        assert intent.metadata["previous_gate"] == "A1"
        assert intent.signal == {"reason": "gate_change", "gate": "B3"}
        assert "New gate: B3, Terminal 8" in intent.message

    def test_same_gate_is_not_a_change(self, classifier):
        assert classifier.classify(_flight(gate="B3"), None, make_snapshot(gate="B3"), NOW) is None

    def test_first_observed_gate_is_not_a_change(self, classifier):
        assert classifier.classify(_flight(), None, make_snapshot(gate="B3"), NOW) is None

    def test_delay_takes_precedence_over_gate_change(self, classifier):
        intent = classifier.classify(
            _flight(gate="A1"), None, make_snapshot(delay=30, gate="B3"), NOW
        )

        assert intent.category == NotificationCategory.FLIGHT_DELAY

    def test_boarding_within_two_hours(self, classifier):
        snapshot = make_snapshot(
            status=FlightStatus.BOARDING,
            gate="A1",
            scheduled=NOW + timedelta(minutes=40),
        )

        intent = classifier.classify(_flight(gate="A1"), None, snapshot, NOW)

        assert intent.category == NotificationCategory.FLIGHT_UPDATE
        assert intent.priority == Priority.URGENT
        assert intent.reason == "boarding"
        assert "boarding at gate A1" in intent.message

    def test_boarding_status_far_from_departure_is_ignored(self, classifier):
        snapshot = make_snapshot(status=FlightStatus.ACTIVE, scheduled=NOW + timedelta(hours=3))

        assert classifier.classify(_flight(), None, snapshot, NOW) is None

    def test_departed_flight_is_ignored(self, classifier):
        snapshot = make_snapshot(status=FlightStatus.ACTIVE, scheduled=NOW - timedelta(minutes=5))

        assert classifier.classify(_flight(), None, snapshot, NOW) is None
