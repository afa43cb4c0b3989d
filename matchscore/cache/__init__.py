"""Pairwise score cache."""

from .score_cache import ScoreCache, ScoreCacheEntry, CacheStats, pair_key

__all__ = ["ScoreCache", "ScoreCacheEntry", "CacheStats", "pair_key"]
