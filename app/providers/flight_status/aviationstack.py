"""AviationStack status provider (secondary)."""

from datetime import date, datetime
from typing import Any, Dict, Optional

from app.schemas.flight_status_schemas import (
    FlightLeg,
    FlightStatus,
    FlightStatusSnapshot,
)
from app.utils.datetime_utils import parse_iso_datetime
from app.utils.errors import ProviderError
from app.utils.logging import get_logger

from .base import FlightStatusProvider, compute_delay_minutes

logger = get_logger()

AVIATIONSTACK_STATUS_MAP = {
    "scheduled": FlightStatus.SCHEDULED,
    "active": FlightStatus.ACTIVE,
    "en-route": FlightStatus.ACTIVE,
    "landed": FlightStatus.LANDED,
    "cancelled": FlightStatus.CANCELLED,
    "diverted": FlightStatus.DIVERTED,
    "delayed": FlightStatus.DELAYED,
    "boarding": FlightStatus.BOARDING,
    "incident": FlightStatus.UNKNOWN,
}


def map_aviationstack_status(raw: Optional[str]) -> FlightStatus:
    if not raw:
        return FlightStatus.UNKNOWN
    value = raw.strip().lower()
    return AVIATIONSTACK_STATUS_MAP.get(value, FlightStatus.normalize(value))


def _leg(block: Dict[str, Any]) -> FlightLeg:
    delay = block.get("delay")
    return FlightLeg(
        airport=block.get("iata"),
        scheduled=parse_iso_datetime(block.get("scheduled")),
        estimated=parse_iso_datetime(block.get("estimated")),
        actual=parse_iso_datetime(block.get("actual")),
        terminal=block.get("terminal"),
        gate=block.get("gate"),
        delay=int(delay) if delay is not None else None,
    )


class AviationStackStatusProvider(FlightStatusProvider):
    name = "aviationstack"

    async def fetch(self, flight_number: str, flight_date: date) -> Optional[Any]:
        logger.debug(
            "Fetching AviationStack status",
            flight_number=flight_number,
            flight_date=flight_date.isoformat(),
        )
        payload = await self._get_json(
            f"{self.base_url}/flights",
            params={
                "access_key": self.api_key,
                "flight_iata": flight_number,
                "flight_date": flight_date.isoformat(),
            },
        )
        if payload is None:
            return None

        # Errors such as usage_limit_reached come back with HTTP 200
        if isinstance(payload, dict) and payload.get("error"):
            error = payload["error"]
            code = error.get("code") if isinstance(error, dict) else str(error)
            raise ProviderError(
                f"aviationstack API error: {code}", provider=self.name
            )

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list) or not data:
            return None
        return data[0]

    def normalize(
        self,
        raw: Dict[str, Any],
        flight_number: str,
        flight_date: date,
        retrieved_at: datetime,
    ) -> Optional[FlightStatusSnapshot]:
        departure = _leg(raw.get("departure") or {})
        arrival = _leg(raw.get("arrival") or {})

        if departure.delay is not None:
            delay = max(0, departure.delay)
        else:
            delay = compute_delay_minutes(departure.scheduled, departure.estimated)

        return FlightStatusSnapshot(
            flight_number=flight_number,
            flight_date=flight_date,
            status=map_aviationstack_status(raw.get("flight_status")),
            delay_minutes=delay,
            departure=departure,
            arrival=arrival,
            provider=self.name,
            retrieved_at=retrieved_at,
            aircraft=(raw.get("aircraft") or {}).get("iata"),
            airline=(raw.get("airline") or {}).get("name"),
        )
