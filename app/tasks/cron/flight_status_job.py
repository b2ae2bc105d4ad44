from datetime import datetime
from typing import Any, Dict, Optional
import asyncio

from sqlalchemy.orm import Session

from app.celery import celery
from app.db.models import Booking, NotificationCategory
from app.db.session import get_sync_session
from app.services.booking_service import BookingService
from app.services.notifications import (
    DedupGate,
    NotificationEngine,
    NotificationService,
    get_engine,
)
from app.utils.errors import FlightNumberValidationError
from app.utils.context import set_request_id
from app.utils.logging import get_logger
from app.utils.datetime_utils import naive_utc_now

TRACKING_HORIZON_HOURS = 48


@celery.task(bind=True, max_retries=0)
def flight_status_job_task(self, request_id: str):
    """
    Periodic task reconciling tracked flights against live provider status.

    Runs every 15 minutes to:
    1. Enumerate active users and their flight bookings departing within 48 hours
    2. Fetch the current status through the provider chain (cache first)
    3. Classify the change since the last observation
       (cancellation, delay, gate change, boarding)
    4. Emit the resulting notification unless one of the same category was
       sent within its lookback window
    5. Record the latest gate/terminal on the booking

    Args:
        request_id: Request ID for tracking purposes
    """

    return asyncio.run(_async_flight_status_job(request_id))


async def _async_flight_status_job(request_id: str):
    set_request_id(request_id)
    logger = get_logger().bind(request_id=request_id)

    for db_session in get_sync_session():
        try:
            return await process_flight_statuses(
                db_session, get_engine(), naive_utc_now(), request_id
            )

        except Exception as e:
            logger.error(
                "Flight status job exception",
                request_id=request_id,
                error=str(e),
                exc_info=True,
            )

            return {"success": False, "error": str(e), "request_id": request_id}


async def process_flight_statuses(
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

    flights_checked = 0
    statuses_unavailable = 0
    notifications_created = 0
    notifications_suppressed = 0

    for user_id in user_ids:
        try:
            flights = await bookings.list_flight_bookings(
                user_id, within_hours=TRACKING_HORIZON_HOURS, now=now
            )
        except Exception as e:
            logger.error(
                "Error loading flight bookings",
                user_id=user_id,
                error=str(e),
                exc_info=True,
            )
            continue

        for booking in flights:
            if not booking.flight_number:
                continue

            try:
                flights_checked += 1
                outcome = await _check_flight(
                    booking, engine, bookings, notifications, dedup, now
                )
                if outcome == "unavailable":
                    statuses_unavailable += 1
                elif outcome == "created":
                    notifications_created += 1
                elif outcome == "suppressed":
                    notifications_suppressed += 1

            except FlightNumberValidationError as e:
                logger.warning(
                    "Skipping booking with invalid flight number",
                    user_id=user_id,
                    booking_id=booking.id,
                    flight_number=e.flight_number,
                )
                continue
            except Exception as e:
                logger.error(
                    "Error processing flight status",
                    user_id=user_id,
                    booking_id=booking.id,
                    error=str(e),
                    exc_info=True,
                )
                continue

    logger.info(
        "Flight status job completed",
        flights_checked=flights_checked,
        statuses_unavailable=statuses_unavailable,
        notifications_created=notifications_created,
        notifications_suppressed=notifications_suppressed,
    )

    return {
        "success": True,
        "flights_checked": flights_checked,
        "statuses_unavailable": statuses_unavailable,
        "notifications_created": notifications_created,
        "notifications_suppressed": notifications_suppressed,
        "request_id": request_id,
    }


async def _check_flight(
    booking: Booking,
    engine: NotificationEngine,
    bookings: BookingService,
    notifications: NotificationService,
    dedup: DedupGate,
    now: datetime,
) -> Optional[str]:
    """
    Run one booking through fetch, classify, dedup and persist.

    Returns "unavailable", "created", "suppressed" or None when nothing changed.
    """
    # Read the previous observation before the chain refreshes the cache
    previous = engine.chain.last_known(booking.flight_number, booking.booking_date)
    current = await engine.chain.get_status(booking.flight_number, booking.booking_date)
    if current is None:
        return "unavailable"

    baseline_delay = await _last_notified_delay(notifications, booking)

    intent = engine.classifier.classify(
        booking, previous, current, now, baseline_delay=baseline_delay
    )

    outcome = None
    if intent is not None:
        if await dedup.should_emit(
            user_id=booking.user_id,
            booking_id=booking.id,
            category=intent.category,
            lookback_hours=intent.lookback_hours,
            now=now,
            signal=intent.signal,
        ):
            await notifications.create_from_intent(
                user_id=booking.user_id,
                intent=intent,
                trip_id=booking.trip_id,
                booking_id=booking.id,
                created_at=now,
            )
            outcome = "created"
        else:
            outcome = "suppressed"

    # A changed gate is only stored once the user has been told about it, so a
    # gate change outranked by a cancellation or delay, or held back by the
    # dedup gate, is announced on a later run. The first observed gate is
    # recorded silently.
    new_gate = current.departure.gate
    gate_announced = (
        intent is not None and intent.reason == "gate_change" and outcome == "created"
    )
    if engine.classifier.is_gate_change(booking, current) and not gate_announced:
        new_gate = None

    await bookings.update_booking_details(
        booking.id,
        booking.user_id,
        gate=new_gate,
        terminal=current.departure.terminal,
        last_checked=now,
    )

    return outcome


async def _last_notified_delay(
    notifications: NotificationService, booking: Booking
) -> Optional[int]:
    latest = await notifications.get_latest(
        booking.user_id, booking.id, NotificationCategory.FLIGHT_DELAY
    )
    if latest is None:
        return None
    delay = (latest.notification_metadata or {}).get("delay")
    return int(delay) if delay is not None else None
