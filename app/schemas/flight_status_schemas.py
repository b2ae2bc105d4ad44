import enum
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class FlightStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    LANDED = "landed"
    CANCELLED = "cancelled"
    DIVERTED = "diverted"
    DELAYED = "delayed"
    BOARDING = "boarding"
    UNKNOWN = "unknown"

    @classmethod
    def normalize(cls, raw: Optional[str]) -> "FlightStatus":
        """Accept canonical names in any case; anything else is unknown."""
        if not raw:
            return cls.UNKNOWN
        value = raw.strip().lower()
        if value == "canceled":
            return cls.CANCELLED
        try:
            return cls(value)
        except ValueError:
            return cls.UNKNOWN


class FlightLeg(BaseModel):
    """One end of a flight as reported by a status provider"""

    model_config = ConfigDict(frozen=True)

    airport: Optional[str] = Field(None, description="IATA/ICAO airport code")
    scheduled: Optional[datetime] = Field(None, description="Scheduled time (naive UTC)")
    estimated: Optional[datetime] = Field(None, description="Estimated time (naive UTC)")
    actual: Optional[datetime] = Field(None, description="Actual time (naive UTC)")
    terminal: Optional[str] = Field(None, description="Terminal")
    gate: Optional[str] = Field(None, description="Gate")
    delay: Optional[int] = Field(None, description="Provider supplied delay in minutes")


class FlightStatusSnapshot(BaseModel):
    """A single normalized read of a flight's status"""

    model_config = ConfigDict(frozen=True)

    flight_number: str = Field(..., description="Carrier code + number, e.g. AA123")
    flight_date: date = Field(..., description="Scheduled departure date")
    status: FlightStatus = Field(..., description="Canonical lifecycle status")
    delay_minutes: int = Field(0, ge=0, description="Departure delay in minutes")
    departure: FlightLeg = Field(default_factory=FlightLeg)
    arrival: FlightLeg = Field(default_factory=FlightLeg)
    provider: str = Field(..., description="Name of the provider that answered")
    retrieved_at: datetime = Field(..., description="When the snapshot was fetched")
    aircraft: Optional[str] = Field(None, description="Aircraft type")
    airline: Optional[str] = Field(None, description="Airline name")

    @property
    def cache_key(self) -> tuple[str, date]:
        return (self.flight_number, self.flight_date)

    def is_comparable(self, other: Optional["FlightStatusSnapshot"]) -> bool:
        return other is not None and other.cache_key == self.cache_key
