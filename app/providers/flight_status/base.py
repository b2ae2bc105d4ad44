from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Any, Dict, Optional

import httpx

from app.schemas.flight_status_schemas import FlightStatusSnapshot
from app.utils.errors import ProviderError, ProviderResponseError
from app.utils.logging import get_logger

logger = get_logger()


def compute_delay_minutes(
    scheduled: Optional[datetime], estimated: Optional[datetime]
) -> int:
    """Departure delay rounded to minutes, never negative."""
    if not scheduled or not estimated:
        return 0
    minutes = round((estimated - scheduled).total_seconds() / 60)
    return max(0, int(minutes))


class FlightStatusProvider(ABC):
    """
    One external flight status source.

    ``fetch`` returns the raw provider payload for a flight, ``None`` when the
    provider does not know the flight, and raises ``ProviderError`` on transport
    failures, timeouts, rate limits and error statuses. ``normalize`` turns the raw
    payload into a ``FlightStatusSnapshot`` and raises ``ProviderResponseError``
    when the payload does not have the expected shape.
    """

    name: str = "provider"

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def _get_json(
        self,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Optional[Any]:
        """GET ``url`` and decode JSON; ``None`` on 404."""
        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.timeout
            ) as client:
                response = await client.get(url, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise ProviderError(
                f"{self.name} timed out after {self.timeout}s", provider=self.name
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(
                f"{self.name} request failed: {e}", provider=self.name
            ) from e

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            raise ProviderError(
                f"{self.name} returned HTTP {response.status_code}: {response.text[:120]}",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderResponseError(
                f"{self.name} returned a non-JSON body", provider=self.name
            ) from e

    @abstractmethod
    async def fetch(self, flight_number: str, flight_date: date) -> Optional[Any]:
        """Fetch the raw status payload for one flight"""
        pass

    @abstractmethod
    def normalize(
        self,
        raw: Any,
        flight_number: str,
        flight_date: date,
        retrieved_at: datetime,
    ) -> Optional[FlightStatusSnapshot]:
        """Map the provider payload onto the canonical snapshot"""
        pass

    async def get_status(
        self, flight_number: str, flight_date: date, retrieved_at: datetime
    ) -> Optional[FlightStatusSnapshot]:
        raw = await self.fetch(flight_number, flight_date)
        if raw is None:
            return None
        try:
            return self.normalize(raw, flight_number, flight_date, retrieved_at)
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise ProviderResponseError(
                f"Unexpected {self.name} payload: {e}", provider=self.name
            ) from e
