"""FlightAware AeroAPI status provider (primary)."""

from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from app.schemas.flight_status_schemas import (
    FlightLeg,
    FlightStatus,
    FlightStatusSnapshot,
)
from app.utils.datetime_utils import parse_iso_datetime
from app.utils.logging import get_logger

from .base import FlightStatusProvider, compute_delay_minutes

logger = get_logger()

# AeroAPI reports compound states such as "En Route / On Time"; the part before
# the slash is mapped.
FLIGHTAWARE_STATUS_MAP = {
    "scheduled": FlightStatus.SCHEDULED,
    "filed": FlightStatus.SCHEDULED,
    "active": FlightStatus.ACTIVE,
    "en route": FlightStatus.ACTIVE,
    "departed": FlightStatus.ACTIVE,
    "taxiing": FlightStatus.ACTIVE,
    "boarding": FlightStatus.BOARDING,
    "landed": FlightStatus.LANDED,
    "arrived": FlightStatus.LANDED,
    "cancelled": FlightStatus.CANCELLED,
    "canceled": FlightStatus.CANCELLED,
    "diverted": FlightStatus.DIVERTED,
    "delayed": FlightStatus.DELAYED,
}


def map_flightaware_status(raw: Optional[str]) -> FlightStatus:
    if not raw:
        return FlightStatus.UNKNOWN
    head = raw.split("/")[0].strip().lower()
    return FLIGHTAWARE_STATUS_MAP.get(head, FlightStatus.normalize(head))


class FlightAwareStatusProvider(FlightStatusProvider):
    name = "flightaware"

    async def fetch(self, flight_number: str, flight_date: date) -> Optional[Any]:
        logger.debug(
            "Fetching FlightAware status",
            flight_number=flight_number,
            flight_date=flight_date.isoformat(),
        )
        payload = await self._get_json(
            f"{self.base_url}/flights/{flight_number}",
            params={
                "start": flight_date.isoformat(),
                "end": (flight_date + timedelta(days=1)).isoformat(),
            },
            headers={"x-apikey": self.api_key},
        )
        if payload is None:
            return None

        flights = payload.get("flights") if isinstance(payload, dict) else None
        if not flights:
            return None
        return self._pick_flight(flights, flight_date)

    @staticmethod
    def _pick_flight(flights: list, flight_date: date) -> Dict[str, Any]:
        """Prefer the flight whose scheduled gate departure falls on the booked date."""
        for flight in flights:
            scheduled = parse_iso_datetime((flight or {}).get("scheduled_out"))
            if scheduled and scheduled.date() == flight_date:
                return flight
        return flights[0]

    def normalize(
        self,
        raw: Dict[str, Any],
        flight_number: str,
        flight_date: date,
        retrieved_at: datetime,
    ) -> Optional[FlightStatusSnapshot]:
        origin = raw.get("origin") or {}
        destination = raw.get("destination") or {}

        status = map_flightaware_status(raw.get("status"))
        if raw.get("cancelled"):
            status = FlightStatus.CANCELLED

        dep_scheduled = parse_iso_datetime(raw.get("scheduled_out"))
        dep_estimated = parse_iso_datetime(raw.get("estimated_out"))

        departure_delay = raw.get("departure_delay")
        if departure_delay is not None:
            delay = max(0, round(int(departure_delay) / 60))
        else:
            delay = compute_delay_minutes(dep_scheduled, dep_estimated)

        departure = FlightLeg(
            airport=origin.get("code_iata") or origin.get("code"),
            scheduled=dep_scheduled,
            estimated=dep_estimated,
            actual=parse_iso_datetime(raw.get("actual_out")),
            terminal=raw.get("terminal_origin") or origin.get("terminal"),
            gate=raw.get("gate_origin") or origin.get("gate"),
        )
        arrival = FlightLeg(
            airport=destination.get("code_iata") or destination.get("code"),
            scheduled=parse_iso_datetime(raw.get("scheduled_in")),
            estimated=parse_iso_datetime(raw.get("estimated_in")),
            actual=parse_iso_datetime(raw.get("actual_in")),
            terminal=raw.get("terminal_destination") or destination.get("terminal"),
            gate=raw.get("gate_destination") or destination.get("gate"),
        )

        return FlightStatusSnapshot(
            flight_number=flight_number,
            flight_date=flight_date,
            status=status,
            delay_minutes=delay,
            departure=departure,
            arrival=arrival,
            provider=self.name,
            retrieved_at=retrieved_at,
            aircraft=raw.get("aircraft_type"),
            airline=raw.get("operator_iata") or raw.get("operator"),
        )
