from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from app.db.models import NotificationCategory, Priority


class NotificationIntent(BaseModel):
    """Decision to notify, produced before the dedup check and persistence"""

    category: NotificationCategory = Field(..., description="Notification category")
    priority: Priority = Field(..., description="Notification priority")
    reason: str = Field(..., description="What triggered it, e.g. gate_change")
    title: str = Field(..., description="Notification title")
    message: str = Field(..., description="Notification body")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    signal: Dict[str, Any] = Field(
        default_factory=dict,
        description="Fields that, when they differ, let it through the dedup window",
    )
    lookback_hours: float = Field(..., gt=0, description="Dedup lookback window")


class NotificationItem(BaseModel):
    """Notification as listed to a user"""

    id: str = Field(..., description="Notification ID")
    trip_id: Optional[str] = Field(None, description="Related trip ID")
    booking_id: Optional[str] = Field(None, description="Related booking ID")
    category: str = Field(..., description="Notification category")
    title: str = Field(..., description="Notification title")
    message: str = Field(..., description="Notification body")
    priority: str = Field(..., description="Notification priority")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    dismissed: bool = Field(..., description="Whether the user dismissed it")
    created_at: datetime = Field(..., description="Creation timestamp")
