from datetime import timedelta

from app.providers.flight_status import StatusCache

from tests.conftest import NOW, FakeClock, make_snapshot


class TestStatusCacheFreshness:
    """Entries are served only within the freshness window."""

    def test_entry_served_within_window(self):
        clock = FakeClock()
        cache = StatusCache(ttl_seconds=300, clock=clock)
        snapshot = make_snapshot()
        cache.put(snapshot.cache_key, snapshot)

        clock.advance(minutes=4)
        entry = cache.get(snapshot.cache_key)

        assert entry is not None
        assert entry.snapshot == snapshot
        assert entry.inserted_at == NOW

    def test_stale_entry_is_a_miss_but_kept(self):
        clock = FakeClock()
        cache = StatusCache(ttl_seconds=300, clock=clock)
        snapshot = make_snapshot()
        cache.put(snapshot.cache_key, snapshot)

        clock.advance(minutes=6)

        assert cache.get(snapshot.cache_key) is None
        assert cache.peek(snapshot.cache_key).snapshot == snapshot
        assert len(cache) == 1

    def test_last_write_wins(self):
        clock = FakeClock()
        cache = StatusCache(ttl_seconds=300, clock=clock)
        first = make_snapshot(gate="A1")
        second = make_snapshot(gate="B3")

        cache.put(first.cache_key, first)
        clock.advance(minutes=1)
        cache.put(second.cache_key, second)

        entry = cache.get(first.cache_key)
        assert entry.snapshot.departure.gate == "B3"
        assert entry.inserted_at == NOW + timedelta(minutes=1)

    def test_keys_include_the_flight_date(self):
        cache = StatusCache(ttl_seconds=300, clock=FakeClock())
        today = make_snapshot()
        tomorrow = make_snapshot(flight_date=NOW.date() + timedelta(days=1))
        cache.put(today.cache_key, today)

        assert cache.get(tomorrow.cache_key) is None


class TestStatusCacheSweep:
    """Sweeping removes stale entries only."""

    def test_sweep_removes_stale_entries(self):
        clock = FakeClock()
        cache = StatusCache(ttl_seconds=300, clock=clock)
        old = make_snapshot(flight_number="AA123")
        cache.put(old.cache_key, old)

        clock.advance(minutes=10)
        fresh = make_snapshot(flight_number="DL88")
        cache.put(fresh.cache_key, fresh)

        assert cache.sweep() == 1
        assert len(cache) == 1
        assert cache.peek(old.cache_key) is None
        assert cache.get(fresh.cache_key) is not None

    def test_sweep_on_empty_cache(self):
        cache = StatusCache(ttl_seconds=300, clock=FakeClock())
        assert cache.sweep() == 0

    def test_clear(self):
        cache = StatusCache(ttl_seconds=300, clock=FakeClock())
        snapshot = make_snapshot()
        cache.put(snapshot.cache_key, snapshot)

        cache.clear()

        assert len(cache) == 0
