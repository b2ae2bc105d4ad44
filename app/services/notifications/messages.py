from typing import Optional, Tuple

from app.db.models import Booking, Priority
from app.schemas.flight_status_schemas import FlightStatusSnapshot
from app.schemas.weather_schemas import WeatherReport


def _booking_kind(booking: Booking) -> str:
    return booking.booking_type.value if booking.booking_type else "booking"


def _booking_time_label(booking: Booking, default: str) -> str:
    return booking.booking_time.strftime("%H:%M") if booking.booking_time else default


def _flight_label(booking: Booking, snapshot: Optional[FlightStatusSnapshot] = None) -> str:
    if snapshot is not None:
        return snapshot.flight_number
    return booking.flight_number or booking.title


def reminder_message(booking: Booking, hours_until: float) -> Tuple[str, str, Priority]:
    """Wording and priority follow how close the booking is, not the lead-time that fired."""
    kind = _booking_kind(booking)
    if hours_until <= 2:
        return (
            f"Upcoming {kind}: {booking.title}",
            f"Your {kind} is starting soon! Time: "
            f"{_booking_time_label(booking, 'Check booking details')}",
            Priority.URGENT,
        )
    if hours_until <= 24:
        return (
            f"Tomorrow: {booking.title}",
            f"Your {kind} is tomorrow at "
            f"{_booking_time_label(booking, 'the scheduled time')}. "
            f"Location: {booking.location or 'Check booking details'}",
            Priority.HIGH,
        )
    return (
        f"Reminder: {booking.title}",
        f"Your {kind} is coming up on {booking.booking_date.isoformat()}",
        Priority.MEDIUM,
    )


def checkin_message(booking: Booking) -> Tuple[str, str]:
    return (
        "Check-in Available",
        f"Check-in is now available for your flight {_flight_label(booking)}. "
        "Check in now to select your seat!",
    )


def cancelled_message(booking: Booking, snapshot: FlightStatusSnapshot) -> Tuple[str, str]:
    return (
        "Flight Cancelled",
        f"Your flight {_flight_label(booking, snapshot)} has been cancelled. "
        f"Please contact {booking.provider or 'your airline'} immediately.",
    )


def delay_message(booking: Booking, snapshot: FlightStatusSnapshot) -> Tuple[str, str]:
    departure = snapshot.departure.estimated or snapshot.departure.scheduled
    new_time = departure.strftime("%Y-%m-%d %H:%M") if departure else "TBD"
    return (
        "Flight Delayed",
        f"Your flight {_flight_label(booking, snapshot)} has been delayed by "
        f"{snapshot.delay_minutes} minutes. New departure time: {new_time}",
    )


def gate_change_message(booking: Booking, snapshot: FlightStatusSnapshot) -> Tuple[str, str]:
    terminal = snapshot.departure.terminal
    return (
        "Gate Change",
        f"Gate change for flight {_flight_label(booking, snapshot)}. "
        f"New gate: {snapshot.departure.gate}"
        f"{f', Terminal {terminal}' if terminal else ''}",
    )


def boarding_message(booking: Booking, snapshot: FlightStatusSnapshot) -> Tuple[str, str]:
    return (
        "Now Boarding",
        f"Your flight {_flight_label(booking, snapshot)} is now boarding at gate "
        f"{snapshot.departure.gate or 'TBD'}",
    )


def weather_message(report: WeatherReport, location: str) -> Tuple[str, str]:
    condition = report.condition.lower()
    description = report.description or condition
    if "thunderstorm" in condition:
        return (
            "Severe Weather Alert",
            f"Thunderstorms forecasted for {location}. "
            "Consider rescheduling outdoor activities.",
        )
    if "rain" in condition or "drizzle" in condition:
        return (
            "Rain Expected",
            f"Rain forecasted for {location} ({description}). "
            "You might want to plan indoor activities or bring an umbrella!",
        )
    if "snow" in condition:
        return (
            "Snow Expected",
            f"Snow forecasted for {location}. Check travel conditions and dress warmly!",
        )
    temperature = (
        f", Temp: {round(report.temperature)}°C" if report.temperature is not None else ""
    )
    return (
        "Weather Notice",
        f"{report.condition} expected in {location}. Weather: {description}{temperature}",
    )
