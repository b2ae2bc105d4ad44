from typing import Optional

from pydantic import BaseModel, Field


class WeatherReport(BaseModel):
    """Current conditions at a coordinate"""

    condition: str = Field(..., description="Main condition, e.g. Rain, Clear")
    description: str = Field("", description="Human readable description")
    temperature: Optional[float] = Field(None, description="Temperature in Celsius")
    humidity: Optional[float] = Field(None, description="Relative humidity %")
    wind_speed: Optional[float] = Field(None, description="Wind speed m/s")
