from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import and_, case, desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.db.models import Notification, NotificationCategory, Priority
from app.schemas.notification_schemas import NotificationIntent, NotificationItem
from app.utils.datetime_utils import naive_utc_now, to_naive_utc
from app.utils.errors import NotFoundError, NotificationPersistenceError
from app.utils.logging import get_logger

logger = get_logger()

_PRIORITY_ORDER = case(
    *[(Notification.priority == priority, priority.rank) for priority in Priority],
    else_=0,
)


class NotificationService:
    """Notification store: inserts, history lookups and user-facing reads"""

    def __init__(self, db_session: Session):
        self.db = db_session

    async def create_notification(
        self,
        user_id: str,
        category: NotificationCategory,
        title: str,
        message: str,
        priority: Priority = Priority.MEDIUM,
        trip_id: Optional[str] = None,
        booking_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        created_at: Optional[datetime] = None,
    ) -> Notification:
        """
        Persist a new notification.

        Raises:
            NotificationPersistenceError: if the insert fails; the session is rolled back
        """
        notification = Notification(
            user_id=user_id,
            trip_id=trip_id,
            booking_id=booking_id,
            category=category,
            title=title,
            message=message,
            priority=priority,
            notification_metadata=metadata or {},
            dismissed=False,
        )
        if created_at is not None:
            notification.created_at = to_naive_utc(created_at)
            notification.updated_at = to_naive_utc(created_at)

        try:
            self.db.add(notification)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise NotificationPersistenceError(
                f"Failed to create {category.value} notification for user {user_id}: {e}"
            ) from e

        logger.info(
            "Created notification",
            notification_id=notification.id,
            user_id=user_id,
            booking_id=booking_id,
            category=category.value,
            priority=priority.value,
        )
        return notification

    async def create_from_intent(
        self,
        user_id: str,
        intent: NotificationIntent,
        trip_id: Optional[str] = None,
        booking_id: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Notification:
        return await self.create_notification(
            user_id=user_id,
            category=intent.category,
            title=intent.title,
            message=intent.message,
            priority=intent.priority,
            trip_id=trip_id,
            booking_id=booking_id,
            metadata={
                "reason": intent.reason,
                **intent.metadata,
                **({"signal": intent.signal} if intent.signal else {}),
            },
            created_at=created_at,
        )

    async def query_recent(
        self,
        user_id: str,
        booking_id: Optional[str],
        categories: Iterable[NotificationCategory],
        since_hours: float,
        now: Optional[datetime] = None,
        trip_id: Optional[str] = None,
    ) -> List[Notification]:
        """Notifications of the given categories created within the last ``since_hours``."""
        now = to_naive_utc(now or naive_utc_now())
        since = now - timedelta(hours=since_hours)

        conditions = [
            Notification.user_id == user_id,
            Notification.category.in_(list(categories)),
            Notification.created_at >= since,
        ]
        if booking_id is not None:
            conditions.append(Notification.booking_id == booking_id)
        else:
            conditions.append(Notification.booking_id.is_(None))
            if trip_id is not None:
                conditions.append(Notification.trip_id == trip_id)

        result = self.db.execute(
            select(Notification)
            .where(and_(*conditions))
            .order_by(desc(Notification.created_at))
        )
        return list(result.scalars().all())

    async def get_latest(
        self,
        user_id: str,
        booking_id: str,
        category: NotificationCategory,
    ) -> Optional[Notification]:
        result = self.db.execute(
            select(Notification)
            .where(
                and_(
                    Notification.user_id == user_id,
                    Notification.booking_id == booking_id,
                    Notification.category == category,
                )
            )
            .order_by(desc(Notification.created_at))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_active_notifications(
        self, user_id: str, limit: int = 10
    ) -> List[NotificationItem]:
        """Undismissed notifications, most urgent first, then newest first."""
        result = self.db.execute(
            select(Notification)
            .where(
                and_(
                    Notification.user_id == user_id,
                    Notification.dismissed.is_(False),
                )
            )
            .order_by(desc(_PRIORITY_ORDER), desc(Notification.created_at))
            .limit(limit)
        )
        return [
            NotificationItem(
                id=n.id,
                trip_id=n.trip_id,
                booking_id=n.booking_id,
                category=n.category.value,
                title=n.title,
                message=n.message,
                priority=n.priority.value,
                metadata=n.notification_metadata or {},
                dismissed=n.dismissed,
                created_at=n.created_at,
            )
            for n in result.scalars().all()
        ]

    async def dismiss_notification(self, notification_id: str, user_id: str) -> None:
        """Mark one of the user's notifications as dismissed."""
        result = self.db.execute(
            select(Notification).where(
                and_(
                    Notification.id == notification_id,
                    Notification.user_id == user_id,
                )
            )
        )
        notification = result.scalar_one_or_none()
        if notification is None:
            raise NotFoundError(f"Notification {notification_id} not found")

        if not notification.dismissed:
            notification.dismissed = True
            self.db.commit()
            logger.info(
                "Dismissed notification",
                notification_id=notification_id,
                user_id=user_id,
            )
