from datetime import datetime
from typing import Any, Dict
import asyncio

from sqlalchemy.orm import Session

from app.celery import celery
from app.db.session import get_sync_session
from app.services.booking_service import BookingService
from app.services.notifications import (
    DedupGate,
    NotificationEngine,
    NotificationService,
    get_engine,
)
from app.utils.context import set_request_id
from app.utils.logging import get_logger
from app.utils.datetime_utils import naive_utc_now

REMINDER_HORIZON_DAYS = 7


@celery.task(bind=True, max_retries=0)
def booking_reminder_job_task(self, request_id: str):
    """
    Periodic task sending time-based reminders for upcoming bookings.

    Runs every 30 minutes to:
    1. Enumerate active users
    2. Load their non-cancelled bookings starting within the next 7 days
    3. Fire each reminder lead-time (168h, 72h, 24h, 2h) the booking is within
       tolerance of, plus the flight check-in reminder 22-26h before departure
    4. Drop reminders already sent within their lookback window

    Args:
        request_id: Request ID for tracking purposes
    """

    return asyncio.run(_async_booking_reminder_job(request_id))


async def _async_booking_reminder_job(request_id: str):
    set_request_id(request_id)
    logger = get_logger().bind(request_id=request_id)

    for db_session in get_sync_session():
        try:
            return await process_booking_reminders(
                db_session, get_engine(), naive_utc_now(), request_id
            )

        except Exception as e:
            logger.error(
                "Booking reminder job exception",
                request_id=request_id,
                error=str(e),
                exc_info=True,
            )

            return {"success": False, "error": str(e), "request_id": request_id}


async def process_booking_reminders(
    db_session: Session,
    engine: NotificationEngine,
    now: datetime,
    request_id: str,
) -> Dict[str, Any]:
    logger = get_logger().bind(request_id=request_id)

    bookings = BookingService(db_session)
    notifications = NotificationService(db_session)
    dedup = DedupGate(notifications)

    user_ids = await bookings.list_active_user_ids()

    users_processed = 0
    bookings_checked = 0
    notifications_created = 0
    notifications_suppressed = 0

    for user_id in user_ids:
        try:
            users_processed += 1
            due = await bookings.list_bookings_due_for_reminder(
                user_id,
                within_days=REMINDER_HORIZON_DAYS,
                now=now,
                slack_hours=engine.reminders.tolerance_hours,
            )
        except Exception as e:
            logger.error(
                "Error loading bookings for reminders",
                user_id=user_id,
                error=str(e),
                exc_info=True,
            )
            continue

        for booking in due:
            try:
                bookings_checked += 1

                for intent in engine.reminders.evaluate(booking, now):
                    if not await dedup.should_emit(
                        user_id=user_id,
                        booking_id=booking.id,
                        category=intent.category,
                        lookback_hours=intent.lookback_hours,
                        now=now,
                    ):
                        notifications_suppressed += 1
                        continue

                    await notifications.create_from_intent(
                        user_id=user_id,
                        intent=intent,
                        trip_id=booking.trip_id,
                        booking_id=booking.id,
                        created_at=now,
                    )
                    notifications_created += 1

            except Exception as e:
                logger.error(
                    "Error processing booking reminder",
                    user_id=user_id,
                    booking_id=booking.id,
                    error=str(e),
                    exc_info=True,
                )
                continue

    logger.info(
        "Booking reminder job completed",
        users_processed=users_processed,
        bookings_checked=bookings_checked,
        notifications_created=notifications_created,
        notifications_suppressed=notifications_suppressed,
    )

    return {
        "success": True,
        "users_processed": users_processed,
        "bookings_checked": bookings_checked,
        "notifications_created": notifications_created,
        "notifications_suppressed": notifications_suppressed,
        "request_id": request_id,
    }
