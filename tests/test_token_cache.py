"""Unit tests for cache/store.py -- in-memory token cache with per-entry TTL."""

import pytest

from cache.store import TokenCache


@pytest.fixture
def clock(monkeypatch):
    """Controllable monotonic clock: clock[0] is the current time in seconds."""
    now = [1000.0]
    monkeypatch.setattr("cache.store.time.monotonic", lambda: now[0])
    return now


def test_get_missing_returns_none():
    assert TokenCache().get("nope") is None


def test_set_then_get(clock):
    cache = TokenCache()
    cache.set("tok", {"user_id": 1})
    assert cache.get("tok") == {"user_id": 1}
    assert len(cache) == 1


def test_default_ttl_applies(clock):
    cache = TokenCache(ttl=60)
    cache.set("tok", {"user_id": 1})
    clock[0] += 59
    assert cache.get("tok") is not None
    clock[0] += 1
    assert cache.get("tok") is None


def test_per_entry_ttl_overrides_default(clock):
    cache = TokenCache(ttl=3600)
    cache.set("short", {"user_id": 1}, ttl=5)
    cache.set("long", {"user_id": 2})
    clock[0] += 10
    assert cache.get("short") is None
    assert cache.get("long") == {"user_id": 2}


def test_expired_entry_is_evicted_on_read(clock):
    cache = TokenCache()
    cache.set("tok", {"user_id": 1}, ttl=1)
    clock[0] += 2
    assert cache.get("tok") is None
    assert len(cache) == 0


def test_purge_expired(clock):
    cache = TokenCache()
    cache.set("a", {"user_id": 1}, ttl=1)
    cache.set("b", {"user_id": 2}, ttl=1)
    cache.set("c", {"user_id": 3}, ttl=100)
    clock[0] += 5
    assert cache.purge_expired() == 2
    assert len(cache) == 1
    assert cache.get("c") == {"user_id": 3}


def test_set_replaces_existing_entry(clock):
    cache = TokenCache()
    cache.set("tok", {"user_id": 1}, ttl=1)
    cache.set("tok", {"user_id": 1}, ttl=100)
    clock[0] += 5
    assert cache.get("tok") == {"user_id": 1}


def test_clear():
    cache = TokenCache()
    cache.set("a", {"user_id": 1})
    cache.set("b", {"user_id": 2})
    cache.clear()
    assert len(cache) == 0
    assert cache.get("a") is None
