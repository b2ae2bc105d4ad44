from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Application
    ENVIRONMENT: str = "development"
    NAME: str = "trip-notifier"
    VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./trip_notifier.db"

    # Redis & Celery
    REDIS_PASSWORD: str = ""
    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0

    # Flight status providers (ranked: FlightAware first, AviationStack second)
    FLIGHTAWARE_API_KEY: str = ""
    FLIGHTAWARE_BASE_URL: str = "https://aeroapi.flightaware.com/aeroapi"
    AVIATIONSTACK_API_KEY: str = ""
    AVIATIONSTACK_BASE_URL: str = "http://api.aviationstack.com/v1"
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # Weather
    OPENWEATHER_API_KEY: str = ""
    OPENWEATHER_BASE_URL: str = "https://api.openweathermap.org/data/2.5"

    # Status cache
    STATUS_CACHE_TTL_SECONDS: int = 5 * 60

    # Job cadence
    REMINDER_JOB_INTERVAL_MINUTES: int = 30
    FLIGHT_STATUS_JOB_INTERVAL_MINUTES: int = 15
    WEATHER_JOB_INTERVAL_HOURS: int = 6
    CACHE_SWEEP_INTERVAL_MINUTES: int = 60

    # Half-width of the window around each reminder lead-time
    REMINDER_TOLERANCE_HOURS: float = 0.5

    @model_validator(mode="after")
    def check_reminder_tolerance(self) -> "Settings":
        """Every lead-time must be visited by at least one reminder job run."""
        min_tolerance = self.REMINDER_JOB_INTERVAL_MINUTES / 60 / 2
        if self.REMINDER_TOLERANCE_HOURS < min_tolerance:
            raise ValueError(
                f"REMINDER_TOLERANCE_HOURS ({self.REMINDER_TOLERANCE_HOURS}) must be at "
                f"least half the reminder job interval ({min_tolerance}h)"
            )
        return self

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
