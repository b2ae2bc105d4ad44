from datetime import datetime
from typing import Any, Dict, Optional

from app.db.models import NotificationCategory
from app.utils.logging import get_logger

from .notification_service import NotificationService

logger = get_logger()

# Hours of history searched before emitting another notification of a category
# for the same booking. Booking reminders depend on the lead-time that fired.
DEFAULT_LOOKBACK_HOURS: Dict[NotificationCategory, float] = {
    NotificationCategory.FLIGHT_DELAY: 2,
    NotificationCategory.FLIGHT_UPDATE: 2,
    NotificationCategory.WEATHER_ALERT: 12,
    NotificationCategory.CHECKIN_REMINDER: 26,
}


def reminder_lookback_hours(lead_hours: float) -> float:
    """A lead-time can only fire once: look back past the lead-time itself."""
    return lead_hours + 1


class DedupGate:
    """
    Decides whether a notification may be emitted, using the notification
    store as the record of what the user has already been told.
    """

    def __init__(
        self,
        notification_service: NotificationService,
        lookback_hours: Optional[Dict[NotificationCategory, float]] = None,
    ):
        self.notifications = notification_service
        self.lookback_hours = {**DEFAULT_LOOKBACK_HOURS, **(lookback_hours or {})}

    def lookback_for(
        self, category: NotificationCategory, lead_hours: Optional[float] = None
    ) -> float:
        if category == NotificationCategory.BOOKING_REMINDER:
            if lead_hours is None:
                raise ValueError("Booking reminders need the triggering lead-time")
            return reminder_lookback_hours(lead_hours)
        return self.lookback_hours[category]

    async def should_emit(
        self,
        user_id: str,
        booking_id: Optional[str],
        category: NotificationCategory,
        lookback_hours: Optional[float] = None,
        now: Optional[datetime] = None,
        trip_id: Optional[str] = None,
        signal: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        False when a notification of ``category`` for the same user and booking
        (or trip, for notifications without a booking) exists within the lookback.

        With a ``signal``, only notifications recorded with the same signal
        suppress; a changed signal (e.g. a cancellation after a gate change,
        or a delay turning urgent) is let through inside the window.
        """
        if lookback_hours is None:
            lookback_hours = self.lookback_for(category)

        recent = await self.notifications.query_recent(
            user_id=user_id,
            booking_id=booking_id,
            categories=[category],
            since_hours=lookback_hours,
            now=now,
            trip_id=trip_id,
        )
        if recent and signal:
            same_signal = [
                n for n in recent if (n.notification_metadata or {}).get("signal") == signal
            ]
            if not same_signal:
                logger.info(
                    "Signal changed inside dedup window",
                    user_id=user_id,
                    booking_id=booking_id,
                    category=category.value,
                    signal=signal,
                    previous_id=recent[0].id,
                )
                return True
            recent = same_signal

        if recent:
            logger.debug(
                "Suppressing duplicate notification",
                user_id=user_id,
                booking_id=booking_id,
                category=category.value,
                lookback_hours=lookback_hours,
                existing_id=recent[0].id,
            )
            return False
        return True
