import re
from datetime import date, datetime
from typing import Callable, List, Optional, Sequence

from app.schemas.flight_status_schemas import FlightStatusSnapshot
from app.utils.datetime_utils import naive_utc_now
from app.utils.errors import FlightNumberValidationError, ProviderError
from app.utils.logging import get_logger

from .base import FlightStatusProvider
from .status_cache import StatusCache

logger = get_logger()

# Two or three character carrier code followed by up to four digits and an
# optional operational suffix, e.g. AA123, BAW9, U21234, DL88A
FLIGHT_NUMBER_PATTERN = re.compile(r"^[A-Z0-9]{2,3}\d{1,4}[A-Z]?$")


def validate_flight_number(flight_number: Optional[str]) -> str:
    """Normalize and validate a flight identifier; raise on a malformed one."""
    normalized = re.sub(r"\s+", "", flight_number or "").upper()
    if not FLIGHT_NUMBER_PATTERN.match(normalized) or normalized.isdigit():
        raise FlightNumberValidationError(flight_number or "")
    return normalized


class FlightStatusChain:
    """Ranked flight status providers behind a shared status cache"""

    def __init__(
        self,
        providers: Sequence[FlightStatusProvider],
        cache: StatusCache,
        clock: Callable[[], datetime] = naive_utc_now,
    ):
        self.providers: List[FlightStatusProvider] = list(providers)
        self.cache = cache
        self._clock = clock

    def last_known(
        self, flight_number: str, flight_date: date
    ) -> Optional[FlightStatusSnapshot]:
        """Most recent cached snapshot for the flight, fresh or not."""
        entry = self.cache.peek((validate_flight_number(flight_number), flight_date))
        return entry.snapshot if entry else None

    async def get_status(
        self, flight_number: str, flight_date: date
    ) -> Optional[FlightStatusSnapshot]:
        """
        Current status of a flight, or ``None`` when no provider could answer.

        Raises:
            FlightNumberValidationError: malformed flight identifier
        """
        flight_number = validate_flight_number(flight_number)
        key = (flight_number, flight_date)

        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Returning cached flight status", flight_number=flight_number)
            return cached.snapshot

        for provider in self.providers:
            if not provider.is_configured:
                logger.debug(
                    "Skipping unconfigured status provider", provider=provider.name
                )
                continue

            try:
                snapshot = await provider.get_status(
                    flight_number, flight_date, retrieved_at=self._clock()
                )
            except ProviderError as e:
                logger.warning(
                    "Flight status provider failed, trying next",
                    provider=provider.name,
                    flight_number=flight_number,
                    error=e.message,
                    error_code=e.error_code,
                )
                continue
            except Exception as e:
                logger.error(
                    "Unexpected flight status provider error, trying next",
                    provider=provider.name,
                    flight_number=flight_number,
                    error=str(e),
                    exc_info=True,
                )
                continue

            if snapshot is None:
                logger.info(
                    "Flight not found by provider",
                    provider=provider.name,
                    flight_number=flight_number,
                )
                continue

            self.cache.put(key, snapshot)
            return snapshot

        logger.info(
            "No flight status available this cycle",
            flight_number=flight_number,
            flight_date=flight_date.isoformat(),
        )
        return None
