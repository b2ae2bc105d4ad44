import threading
from datetime import datetime
from typing import Callable, Optional

from app.config.settings import Settings, settings
from app.providers.flight_status import (
    AviationStackStatusProvider,
    FlightAwareStatusProvider,
    FlightStatusChain,
    StatusCache,
)
from app.providers.weather_provider import OpenWeatherClient
from app.utils.datetime_utils import naive_utc_now
from app.utils.logging import get_logger

from .change_classifier import ChangeClassifier
from .reminder_engine import REMINDER_LEAD_HOURS, ReminderEngine

logger = get_logger()


class NotificationEngine:
    """
    Long-lived collaborators shared by every job in a worker process.

    Owns the status cache, so jobs running on the worker's threads see each
    other's flight status reads. Database sessions are not held here; each job
    opens its own.
    """

    def __init__(
        self,
        cache: StatusCache,
        chain: FlightStatusChain,
        weather: OpenWeatherClient,
        reminders: ReminderEngine,
        classifier: Optional[ChangeClassifier] = None,
    ):
        self.cache = cache
        self.chain = chain
        self.weather = weather
        self.reminders = reminders
        self.classifier = classifier or ChangeClassifier()

    @classmethod
    def from_settings(
        cls,
        config: Settings = settings,
        clock: Callable[[], datetime] = naive_utc_now,
    ) -> "NotificationEngine":
        cache = StatusCache(ttl_seconds=config.STATUS_CACHE_TTL_SECONDS, clock=clock)
        chain = FlightStatusChain(
            providers=[
                FlightAwareStatusProvider(
                    api_key=config.FLIGHTAWARE_API_KEY,
                    base_url=config.FLIGHTAWARE_BASE_URL,
                    timeout=config.PROVIDER_TIMEOUT_SECONDS,
                ),
                AviationStackStatusProvider(
                    api_key=config.AVIATIONSTACK_API_KEY,
                    base_url=config.AVIATIONSTACK_BASE_URL,
                    timeout=config.PROVIDER_TIMEOUT_SECONDS,
                ),
            ],
            cache=cache,
            clock=clock,
        )
        weather = OpenWeatherClient(
            api_key=config.OPENWEATHER_API_KEY,
            base_url=config.OPENWEATHER_BASE_URL,
            timeout=config.PROVIDER_TIMEOUT_SECONDS,
        )
        reminders = ReminderEngine(
            lead_hours=REMINDER_LEAD_HOURS,
            tolerance_hours=config.REMINDER_TOLERANCE_HOURS,
        )

        configured = [p.name for p in chain.providers if p.is_configured]
        if not configured:
            logger.warning("No flight status provider configured")
        logger.info(
            "Notification engine initialized",
            providers=configured,
            cache_ttl_seconds=config.STATUS_CACHE_TTL_SECONDS,
            reminder_tolerance_hours=config.REMINDER_TOLERANCE_HOURS,
        )
        return cls(cache=cache, chain=chain, weather=weather, reminders=reminders)


_engine: Optional[NotificationEngine] = None
_engine_lock = threading.Lock()


def get_engine() -> NotificationEngine:
    """The worker process' engine, created on first use."""
    global _engine
    with _engine_lock:
        if _engine is None:
            _engine = NotificationEngine.from_settings()
        return _engine


def reset_engine() -> None:
    global _engine
    with _engine_lock:
        _engine = None
