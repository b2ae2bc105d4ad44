import threading
from datetime import date, datetime, timedelta
from typing import Callable, Dict, NamedTuple, Optional, Tuple

from app.config.settings import settings
from app.schemas.flight_status_schemas import FlightStatusSnapshot
from app.utils.datetime_utils import naive_utc_now

CacheKey = Tuple[str, date]


class CacheEntry(NamedTuple):
    snapshot: FlightStatusSnapshot
    inserted_at: datetime


class StatusCache:
    """
    Short-lived flight status cache keyed by (flight number, date).

    Entries older than the freshness window are never served by ``get``; they
    stay in the map until ``sweep`` removes them so the previous observation
    remains available through ``peek``.
    """

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = naive_utc_now,
    ):
        self.ttl = timedelta(
            seconds=settings.STATUS_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        )
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def _is_fresh(self, entry: CacheEntry, now: datetime) -> bool:
        return now - entry.inserted_at <= self.ttl

    def get(self, key: CacheKey) -> Optional[CacheEntry]:
        """Return the entry if it is still fresh, otherwise a miss."""
        with self._lock:
            entry = self._entries.get(key)
        if entry is None or not self._is_fresh(entry, self._clock()):
            return None
        return entry

    def peek(self, key: CacheKey) -> Optional[CacheEntry]:
        """Return the entry regardless of age."""
        with self._lock:
            return self._entries.get(key)

    def put(self, key: CacheKey, snapshot: FlightStatusSnapshot) -> CacheEntry:
        entry = CacheEntry(snapshot=snapshot, inserted_at=self._clock())
        with self._lock:
            self._entries[key] = entry
        return entry

    def sweep(self) -> int:
        """Remove every stale entry and return how many were removed."""
        now = self._clock()
        with self._lock:
            stale = [k for k, e in self._entries.items() if not self._is_fresh(e, now)]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
