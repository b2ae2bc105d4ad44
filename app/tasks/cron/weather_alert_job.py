from datetime import datetime
from typing import Any, Dict, List, Tuple
import asyncio

from sqlalchemy.orm import Session

from app.celery import celery
from app.db.models import Booking, BookingType, Trip
from app.db.session import get_sync_session
from app.services.booking_service import BookingService
from app.services.notifications import (
    DedupGate,
    NotificationEngine,
    NotificationService,
    classify_weather,
    get_engine,
)
from app.utils.context import set_request_id
from app.utils.logging import get_logger
from app.utils.datetime_utils import days_until, naive_utc_now

WEATHER_HORIZON_DAYS = 3
WEATHER_SENSITIVE_TYPES = (BookingType.ACTIVITY, BookingType.TRANSPORT)


@celery.task(bind=True, max_retries=0)
def weather_alert_job_task(self, request_id: str):
    """
    Periodic task warning travellers about bad weather at outdoor bookings.

    Runs every 6 hours to:
    1. Find active trips and trips starting within 3 days
    2. Pick activity and transport bookings within the next 3 days that have
       coordinates
    3. Fetch current conditions and alert on rain, drizzle, thunderstorm,
       snow, mist or fog at most once per 12 hours per booking

    Args:
        request_id: Request ID for tracking purposes
    """

    return asyncio.run(_async_weather_alert_job(request_id))


async def _async_weather_alert_job(request_id: str):
    set_request_id(request_id)
    logger = get_logger().bind(request_id=request_id)

    for db_session in get_sync_session():
        try:
            return await process_weather_alerts(
                db_session, get_engine(), naive_utc_now(), request_id
            )

        except Exception as e:
            logger.error(
                "Weather alert job exception",
                request_id=request_id,
                error=str(e),
                exc_info=True,
            )

            return {"success": False, "error": str(e), "request_id": request_id}


async def process_weather_alerts(
    db_session: Session,
    engine: NotificationEngine,
    now: datetime,
    request_id: str,
) -> Dict[str, Any]:
    logger = get_logger().bind(request_id=request_id)

    bookings = BookingService(db_session)
    notifications = NotificationService(db_session)
    dedup = DedupGate(notifications)
    today = now.date()

    user_ids = await bookings.list_active_user_ids()

    locations_checked = 0
    notifications_created = 0
    notifications_suppressed = 0

    for user_id in user_ids:
        try:
            trips = await bookings.list_weather_candidate_trips(
                user_id, today=today, within_days=WEATHER_HORIZON_DAYS
            )
        except Exception as e:
            logger.error(
                "Error loading trips for weather alerts",
                user_id=user_id,
                error=str(e),
                exc_info=True,
            )
            continue

        for trip in trips:
            try:
                targets = await _weather_targets(bookings, trip, user_id, today)
            except Exception as e:
                logger.error(
                    "Error loading trip bookings for weather alerts",
                    user_id=user_id,
                    trip_id=trip.id,
                    error=str(e),
                    exc_info=True,
                )
                continue

            for booking, lat, lng in targets:
                try:
                    locations_checked += 1
                    report = await engine.weather.get_weather(lat, lng)
                    if report is None:
                        continue

                    intent = classify_weather(
                        report, booking.location or trip.destination
                    )
                    if intent is None:
                        continue

                    if not await dedup.should_emit(
                        user_id=user_id,
                        booking_id=booking.id,
                        category=intent.category,
                        lookback_hours=intent.lookback_hours,
                        now=now,
                        trip_id=trip.id,
                    ):
                        notifications_suppressed += 1
                        continue

                    await notifications.create_from_intent(
                        user_id=user_id,
                        intent=intent,
                        trip_id=trip.id,
                        booking_id=booking.id,
                        created_at=now,
                    )
                    notifications_created += 1

                except Exception as e:
                    logger.error(
                        "Error processing weather alert",
                        user_id=user_id,
                        booking_id=booking.id,
                        error=str(e),
                        exc_info=True,
                    )
                    continue

    logger.info(
        "Weather alert job completed",
        locations_checked=locations_checked,
        notifications_created=notifications_created,
        notifications_suppressed=notifications_suppressed,
    )

    return {
        "success": True,
        "locations_checked": locations_checked,
        "notifications_created": notifications_created,
        "notifications_suppressed": notifications_suppressed,
        "request_id": request_id,
    }


async def _weather_targets(
    bookings: BookingService, trip: Trip, user_id: str, today
) -> List[Tuple[Booking, float, float]]:
    """Weather-sensitive bookings of ``trip`` in the next few days with coordinates."""
    targets = []
    for booking in await bookings.list_trip_bookings(trip.id, user_id):
        if booking.booking_type not in WEATHER_SENSITIVE_TYPES:
            continue
        if booking.booking_date is None:
            continue
        if not 0 <= days_until(booking.booking_date, today) <= WEATHER_HORIZON_DAYS:
            continue

        details = booking.details or {}
        lat, lng = details.get("latitude"), details.get("longitude")
        if lat is None or lng is None:
            continue
        targets.append((booking, float(lat), float(lng)))
    return targets
