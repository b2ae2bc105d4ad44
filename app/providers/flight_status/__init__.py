from .aviationstack import AviationStackStatusProvider
from .base import FlightStatusProvider, compute_delay_minutes
from .chain import FlightStatusChain, validate_flight_number
from .flightaware import FlightAwareStatusProvider
from .status_cache import CacheEntry, StatusCache

__all__ = [
    "FlightStatusProvider",
    "FlightAwareStatusProvider",
    "AviationStackStatusProvider",
    "FlightStatusChain",
    "StatusCache",
    "CacheEntry",
    "compute_delay_minutes",
    "validate_flight_number",
]
