"""
Tests for matchscore.cache.score_cache

Covers:
- Order-independent pair keys
- Lazy TTL expiry and evict() sweeps
- Capacity eviction of the oldest entries
- Invalidation by profile id
- Stats counters and config construction
"""

import pytest

from matchscore.cache import ScoreCache, pair_key
from matchscore.scoring import MatchBreakdown


def _breakdown(a, b, total=50.0):
    return MatchBreakdown(
        profile_id=a, candidate_id=b,
        bio_similarity=0.0, interest_overlap=0.0, age_proximity=0.0, location_bonus=0.0,
        total=total,
    )


def test_pair_key_is_order_independent():
    assert pair_key("b", "a") == pair_key("a", "b") == ("a", "b")


def test_get_is_symmetric(clock):
    cache = ScoreCache(clock=clock)
    cache.put("a", "b", _breakdown("a", "b"))
    assert cache.get("b", "a") is cache.get("a", "b")


def test_put_is_idempotent_last_write_wins(clock):
    cache = ScoreCache(clock=clock)
    cache.put("a", "b", _breakdown("a", "b", 40.0))
    cache.put("b", "a", _breakdown("b", "a", 60.0))
    assert len(cache) == 1
    assert cache.get("a", "b").total == 60.0


def test_entry_expires_after_ttl(clock):
    cache = ScoreCache(ttl_seconds=300, clock=clock)
    cache.put("a", "b", _breakdown("a", "b"))
    clock.advance(299)
    assert cache.get("a", "b") is not None
    clock.advance(1)
    assert cache.get("a", "b") is None
    assert len(cache) == 0


def test_evict_sweeps_expired_entries(clock):
    cache = ScoreCache(ttl_seconds=10, clock=clock)
    cache.put("a", "b", _breakdown("a", "b"))
    clock.advance(5)
    cache.put("a", "c", _breakdown("a", "c"))
    clock.advance(6)
    assert cache.evict() == 1
    assert ("a", "c") in cache
    assert ("a", "b") not in cache


def test_capacity_evicts_oldest_fraction(clock):
    cache = ScoreCache(max_entries=10, evict_fraction=0.2, clock=clock)
    for i in range(11):
        cache.put("u", f"c{i:02d}", _breakdown("u", f"c{i:02d}"))
        clock.advance(1)
    assert len(cache) == 9
    assert cache.get("u", "c00") is None
    assert cache.get("u", "c01") is None
    assert cache.get("u", "c02") is not None
    assert cache.stats().evictions == 2


def test_reinserting_refreshes_position(clock):
    cache = ScoreCache(max_entries=3, evict_fraction=0.2, clock=clock)
    for other in ["x", "y", "z"]:
        cache.put("u", other, _breakdown("u", other))
    cache.put("u", "x", _breakdown("u", "x"))
    cache.put("u", "w", _breakdown("u", "w"))
    assert ("u", "x") in cache
    assert ("u", "y") not in cache


def test_invalidate_removes_every_pair_with_profile(clock):
    cache = ScoreCache(clock=clock)
    cache.put("a", "b", _breakdown("a", "b"))
    cache.put("c", "a", _breakdown("c", "a"))
    cache.put("b", "c", _breakdown("b", "c"))
    assert cache.invalidate("a") == 2
    assert len(cache) == 1
    assert cache.get("b", "c") is not None
    assert cache.invalidate("zzz") == 0


def test_stats_counts_hits_and_misses(clock):
    cache = ScoreCache(clock=clock)
    cache.get("a", "b")
    cache.put("a", "b", _breakdown("a", "b"))
    cache.get("a", "b")
    stats = cache.stats()
    assert (stats.hits, stats.misses, stats.size) == (1, 1, 1)
    assert stats.to_dict()["hits"] == 1


def test_clear(clock):
    cache = ScoreCache(clock=clock)
    cache.put("a", "b", _breakdown("a", "b"))
    cache.clear()
    assert len(cache) == 0


@pytest.mark.parametrize("kwargs", [
    {"ttl_seconds": 0},
    {"max_entries": 0},
    {"evict_fraction": 0.0},
    {"evict_fraction": 1.5},
])
def test_invalid_arguments_rejected(kwargs):
    with pytest.raises(ValueError):
        ScoreCache(**kwargs)


def test_from_config():
    cache = ScoreCache.from_config({"cache": {"ttl_seconds": 60, "max_entries": 5}})
    assert cache.ttl_seconds == 60
    assert cache.max_entries == 5
    assert ScoreCache.from_config({"cache": {"enabled": False}}) is None
