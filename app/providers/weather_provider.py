from typing import Optional

import httpx

from app.schemas.weather_schemas import WeatherReport
from app.utils.logging import get_logger

logger = get_logger()


class OpenWeatherClient:
    """Current weather lookups against the OpenWeatherMap API."""

    name = "openweather"

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/2.5",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = (api_key or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def get_weather(self, lat: float, lng: float) -> Optional[WeatherReport]:
        """Return current conditions, or ``None`` when unavailable."""
        if not self.api_key:
            logger.debug("Weather API key not configured")
            return None

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.timeout
            ) as client:
                response = await client.get(
                    f"{self.base_url}/weather",
                    params={
                        "lat": lat,
                        "lon": lng,
                        "appid": self.api_key,
                        "units": "metric",
                    },
                )
        except httpx.HTTPError as e:
            logger.warning("Weather request failed", lat=lat, lng=lng, error=str(e))
            return None

        if response.status_code != 200:
            logger.warning(
                "Weather API returned an error",
                status_code=response.status_code,
                lat=lat,
                lng=lng,
            )
            return None

        try:
            data = response.json()
            weather = data["weather"][0]
            main = data.get("main") or {}
            wind = data.get("wind") or {}
            return WeatherReport(
                condition=weather["main"],
                description=weather.get("description", ""),
                temperature=main.get("temp"),
                humidity=main.get("humidity"),
                wind_speed=wind.get("speed"),
            )
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.warning("Unexpected weather payload", error=str(e))
            return None
