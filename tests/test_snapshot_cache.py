# File: /tests/test_snapshot_cache.py | Title: Read-through snapshot cache
from inline_db.engine.cache import SnapshotCache

from engine_helpers import snapshot


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_hit_miss_ttl_and_invalidate():
    clock = FakeClock()
    cache = SnapshotCache(ttl=10, clock=clock)
    loads = []

    def loader(key):
        loads.append(key)
        return snapshot(key, [{"id": "c", "name": "C", "type": "TEXT"}], [])

    first = cache.get("db1", loader)
    assert cache.get("db1", loader) is first
    assert loads == ["db1"]

    clock.now = 11
    assert cache.get("db1", loader) is not first
    assert loads == ["db1", "db1"]

    cache.invalidate("db1")
    cache.get("db1", loader)
    assert len(loads) == 3
    assert cache.stats() == {"size": 1, "hits": 1, "misses": 3}


def test_misses_are_not_cached():
    cache = SnapshotCache()
    calls = []

    def loader(key):
        calls.append(key)

    assert cache.get("gone", loader) is None
    assert cache.get("gone", loader) is None
    assert calls == ["gone", "gone"]


def test_invalidation_during_load_wins():
    cache = SnapshotCache()

    def loader(key):
        # a write commits while this snapshot is being built
        cache.invalidate(key)
        return snapshot(key, [{"id": "c", "name": "C", "type": "TEXT"}], [])

    cache.get("db1", loader)
    assert cache.stats()["size"] == 0
