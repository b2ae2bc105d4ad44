from typing import Dict, Optional

from app.db.models import NotificationCategory, Priority
from app.schemas.notification_schemas import NotificationIntent
from app.schemas.weather_schemas import WeatherReport

from . import messages
from .dedup_gate import DEFAULT_LOOKBACK_HOURS

# Condition keyword -> alert priority; matched case-insensitively as a substring
CONCERNING_CONDITIONS: Dict[str, Priority] = {
    "thunderstorm": Priority.HIGH,
    "rain": Priority.MEDIUM,
    "drizzle": Priority.MEDIUM,
    "snow": Priority.MEDIUM,
    "mist": Priority.LOW,
    "fog": Priority.LOW,
}


def concerning_priority(condition: Optional[str]) -> Optional[Priority]:
    """Priority for a concerning condition; None for anything else (e.g. Clear)."""
    if not condition:
        return None
    value = condition.lower()
    matches = [p for keyword, p in CONCERNING_CONDITIONS.items() if keyword in value]
    if not matches:
        return None
    return max(matches, key=lambda p: p.rank)


def classify_weather(
    report: WeatherReport, location: str
) -> Optional[NotificationIntent]:
    priority = concerning_priority(report.condition)
    if priority is None:
        return None

    title, message = messages.weather_message(report, location)
    return NotificationIntent(
        category=NotificationCategory.WEATHER_ALERT,
        priority=priority,
        reason="weather",
        title=title,
        message=message,
        metadata={
            "condition": report.condition,
            "description": report.description,
            "temperature": report.temperature,
            "location": location,
        },
        lookback_hours=DEFAULT_LOOKBACK_HOURS[NotificationCategory.WEATHER_ALERT],
    )
