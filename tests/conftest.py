from datetime import date, datetime, time, timedelta
from typing import Generator, List, Optional, Union

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.models import (
    Base,
    Booking,
    BookingStatus,
    BookingType,
    Trip,
    TripStatus,
    User,
)
from app.providers.flight_status import (
    FlightStatusChain,
    FlightStatusProvider,
    StatusCache,
)
from app.providers.weather_provider import OpenWeatherClient
from app.schemas.flight_status_schemas import (
    FlightLeg,
    FlightStatus,
    FlightStatusSnapshot,
)
from app.services.notifications import NotificationEngine, ReminderEngine
from app.utils.errors import ProviderError


# Test database setup
TEST_DATABASE_URL = "sqlite://"

# Fixed evaluation time used across tests (naive UTC)
NOW = datetime(2026, 3, 10, 12, 0)


class FakeClock:
    """Mutable clock injected into the cache and provider chain."""

    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class StubStatusProvider(FlightStatusProvider):
    """
    Provider answering from a queue of canned results.

    A queued exception is raised, ``None`` means not found and the last result
    is repeated once the queue is down to one item.
    """

    def __init__(
        self,
        name: str,
        results: List[Union[FlightStatusSnapshot, Exception, None]],
        configured: bool = True,
    ):
        super().__init__(api_key="test-key" if configured else "", base_url="http://stub")
        self.name = name
        self.results = list(results)
        self.calls = 0

    async def fetch(self, flight_number: str, flight_date: date):
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, Exception):
            raise result
        return result

    def normalize(self, raw, flight_number, flight_date, retrieved_at):
        return raw.model_copy(
            update={"provider": self.name, "retrieved_at": retrieved_at}
        )


def make_snapshot(
    flight_number: str = "AA123",
    flight_date: date = NOW.date(),
    status: FlightStatus = FlightStatus.SCHEDULED,
    delay: int = 0,
    gate: Optional[str] = None,
    terminal: Optional[str] = None,
    scheduled: Optional[datetime] = None,
    provider: str = "stub",
) -> FlightStatusSnapshot:
    scheduled = scheduled or NOW + timedelta(hours=3)
    return FlightStatusSnapshot(
        flight_number=flight_number,
        flight_date=flight_date,
        status=status,
        delay_minutes=delay,
        departure=FlightLeg(
            airport="JFK",
            scheduled=scheduled,
            estimated=scheduled + timedelta(minutes=delay),
            terminal=terminal,
            gate=gate,
        ),
        arrival=FlightLeg(airport="LAX"),
        provider=provider,
        retrieved_at=NOW,
    )


@pytest.fixture
def db_session() -> Generator[Session, None, None]:
    """Fresh in-memory database per test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(engine)

    session_maker = sessionmaker(bind=engine, class_=Session, expire_on_commit=False)
    session = session_maker()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_engine(clock):
    """Build a NotificationEngine around the given status providers."""

    def _make(
        providers: Optional[List[FlightStatusProvider]] = None,
        weather: Optional[OpenWeatherClient] = None,
    ) -> NotificationEngine:
        cache = StatusCache(ttl_seconds=300, clock=clock)
        chain = FlightStatusChain(providers or [], cache=cache, clock=clock)
        return NotificationEngine(
            cache=cache,
            chain=chain,
            weather=weather or OpenWeatherClient(api_key=""),
            reminders=ReminderEngine(tolerance_hours=0.5),
        )

    return _make


# Test data factories
@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create an active user."""
    user = User(email="traveller@example.com", name="Test Traveller", is_active=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture
def sample_trip(db_session: Session, sample_user: User) -> Trip:
    """Create a trip running from today for five days."""
    trip = Trip(
        user_id=sample_user.id,
        title="Spring in Lisbon",
        destination="Lisbon",
        start_date=NOW.date(),
        end_date=NOW.date() + timedelta(days=5),
        status=TripStatus.ACTIVE,
    )
    db_session.add(trip)
    db_session.commit()
    return trip


@pytest.fixture
def make_booking(db_session: Session, sample_user: User, sample_trip: Trip):
    """Create a booking starting ``hours`` after NOW."""

    def _make(
        hours: float,
        booking_type: BookingType = BookingType.HOTEL,
        title: str = "Hotel Avenida",
        details: Optional[dict] = None,
        status: BookingStatus = BookingStatus.CONFIRMED,
        with_time: bool = True,
    ) -> Booking:
        starts_at = NOW + timedelta(hours=hours)
        booking = Booking(
            user_id=sample_user.id,
            trip_id=sample_trip.id,
            booking_type=booking_type,
            title=title,
            provider="Example Air" if booking_type == BookingType.FLIGHT else None,
            location="Lisbon",
            status=status,
            booking_date=starts_at.date(),
            booking_time=starts_at.time() if with_time else None,
            details=details or {},
        )
        db_session.add(booking)
        db_session.commit()
        return booking

    return _make


@pytest.fixture
def flight_booking(make_booking) -> Booking:
    """Flight AA123 departing three hours from NOW at gate A1."""
    return make_booking(
        3,
        booking_type=BookingType.FLIGHT,
        title="AA123 JFK-LAX",
        details={"flight_number": "aa123", "gate": "A1", "terminal": "8"},
    )


@pytest.fixture
def provider_error() -> ProviderError:
    return ProviderError("stub provider unavailable", provider="stub")
