from .change_classifier import ChangeClassifier
from .dedup_gate import DEFAULT_LOOKBACK_HOURS, DedupGate
from .engine import NotificationEngine, get_engine, reset_engine
from .notification_service import NotificationService
from .reminder_engine import ReminderEngine
from .weather_alerts import classify_weather

__all__ = [
    "ChangeClassifier",
    "DedupGate",
    "DEFAULT_LOOKBACK_HOURS",
    "NotificationEngine",
    "NotificationService",
    "ReminderEngine",
    "classify_weather",
    "get_engine",
    "reset_engine",
]
