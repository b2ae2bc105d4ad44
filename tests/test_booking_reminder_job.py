import pytest
from datetime import timedelta
from unittest.mock import patch

from sqlalchemy.orm import Session

from app.db.models import (
    BookingStatus,
    BookingType,
    Notification,
    NotificationCategory,
    Priority,
    User,
)
from app.tasks.cron.booking_reminder_job import (
    _async_booking_reminder_job,
    process_booking_reminders,
)

from tests.conftest import NOW


def _reminders(db_session: Session):
    return (
        db_session.query(Notification)
        .filter(Notification.category == NotificationCategory.BOOKING_REMINDER)
        .all()
    )


class TestBookingReminderJob:
    """Reminder ladder driven through the dedup gate and the store."""

    @pytest.mark.asyncio
    async def test_lead_time_fires_once_across_runs(self, db_session, make_engine, make_booking):
        booking = make_booking(24.2)
        engine = make_engine()

        first = await process_booking_reminders(db_session, engine, NOW, "test-run-1")
        # 23.9h before the booking: still inside the 24h window
        second = await process_booking_reminders(
            db_session, engine, NOW + timedelta(minutes=18), "test-run-2"
        )

        assert first["success"] is True
        assert first["notifications_created"] == 1
        assert second["notifications_created"] == 0
        assert second["notifications_suppressed"] == 1

        reminders = _reminders(db_session)
        assert len(reminders) == 1
        assert reminders[0].booking_id == booking.id
        assert reminders[0].trip_id == booking.trip_id
        assert reminders[0].priority == Priority.MEDIUM
        assert reminders[0].notification_metadata["reason"] == "reminder_24h"
        assert reminders[0].notification_metadata["lead_hours"] == 24

    @pytest.mark.asyncio
    async def test_each_lead_time_fires_on_its_own(self, db_session, make_engine, make_booking):
        make_booking(72.2)
        engine = make_engine()

        await process_booking_reminders(db_session, engine, NOW, "test-run")
        await process_booking_reminders(db_session, engine, NOW + timedelta(hours=48), "test-run")

        reasons = sorted(r.notification_metadata["reason"] for r in _reminders(db_session))
        assert reasons == ["reminder_24h", "reminder_72h"]

    @pytest.mark.asyncio
    async def test_flight_gets_checkin_reminder_once(self, db_session, make_engine, make_booking):
        make_booking(
            23.0,
            booking_type=BookingType.FLIGHT,
            title="AA123 JFK-LAX",
            details={"flight_number": "AA123"},
        )
        engine = make_engine()

        for minutes in (0, 30, 60, 90):
            await process_booking_reminders(
                db_session, engine, NOW + timedelta(minutes=minutes), "test-run"
            )

        checkins = (
            db_session.query(Notification)
            .filter(Notification.category == NotificationCategory.CHECKIN_REMINDER)
            .all()
        )
        assert len(checkins) == 1
        assert checkins[0].priority == Priority.HIGH

    @pytest.mark.asyncio
    async def test_week_out_reminder_fires_past_the_horizon(
        self, db_session, make_engine, make_booking
    ):
        make_booking(168.3, title="Douro river cruise")

        result = await process_booking_reminders(db_session, make_engine(), NOW, "test-run")

        assert result["bookings_checked"] == 1
        assert result["notifications_created"] == 1
        reminders = _reminders(db_session)
        assert reminders[0].notification_metadata["reason"] == "reminder_168h"
        assert reminders[0].priority == Priority.MEDIUM

    @pytest.mark.asyncio
    async def test_bookings_beyond_the_tolerance_are_not_loaded(
        self, db_session, make_engine, make_booking
    ):
        make_booking(168.6, title="Douro river cruise")

        result = await process_booking_reminders(db_session, make_engine(), NOW, "test-run")

        assert result["bookings_checked"] == 0

    @pytest.mark.asyncio
    async def test_cancelled_bookings_and_inactive_users_are_skipped(
        self, db_session, make_engine, make_booking, sample_trip
    ):
        make_booking(24.0, status=BookingStatus.CANCELLED)
        inactive = User(email="away@example.com", name="Away", is_active=False)
        db_session.add(inactive)
        db_session.commit()

        result = await process_booking_reminders(db_session, make_engine(), NOW, "test-run")

        assert result["users_processed"] == 1
        assert result["notifications_created"] == 0

    @pytest.mark.asyncio
    async def test_failing_booking_does_not_stop_the_run(
        self, db_session, make_engine, make_booking
    ):
        make_booking(24.0, title="Broken booking")
        make_booking(2.0, title="Airport transfer")
        engine = make_engine()
        evaluate = engine.reminders.evaluate

        def flaky_evaluate(booking, now):
            if booking.title == "Broken booking":
                raise RuntimeError("bad booking data")
            return evaluate(booking, now)

        engine.reminders.evaluate = flaky_evaluate

        result = await process_booking_reminders(db_session, engine, NOW, "test-run")

        assert result["success"] is True
        assert result["bookings_checked"] == 2
        assert result["notifications_created"] == 1
        assert _reminders(db_session)[0].priority == Priority.URGENT

    @pytest.mark.asyncio
    async def test_job_failure_is_returned_not_raised(self, db_session):
        def sessions():
            yield db_session

        with patch(
            "app.tasks.cron.booking_reminder_job.get_sync_session", side_effect=sessions
        ), patch(
            "app.tasks.cron.booking_reminder_job.get_engine",
            side_effect=RuntimeError("no engine"),
        ):
            result = await _async_booking_reminder_job("test-run")

        assert result == {"success": False, "error": "no engine", "request_id": "test-run"}
