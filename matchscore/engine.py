"""
Pairwise and batch match scoring.

This module provides the entry points used by API/UI layers:
1. score_one: score one profile against another
2. score_candidates / rank_candidates: score a user against many
   candidates, then filter, sort and truncate
3. invalidate_profile: drop cached scores after a profile edit

How candidates were selected (explicit list, all other profiles, event
attendees) is the caller's concern; see matchscore.data_loading.store.

Failure policy:
- Bad profile data degrades the affected signal, never the batch
- An embedding provider failure drops only the bio signal for that pair
- A failing cache falls through to live computation
- Any other error for one candidate is logged and the candidate skipped
"""

import logging
import time
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from joblib import Parallel, delayed

from .cache.score_cache import ScoreCache
from .embeddings.provider import EmbeddingProvider, HashingEmbeddingProvider, resolve_bio_embedding
from .errors import EmbeddingProviderError
from .privacy.visibility import visible_fields
from .scoring.combiner import CombinerConfig, ScoreCombiner
from .scoring.schema import MatchBreakdown, Profile
from .similarity.geo import Geocoder, load_postal_code_table

logger = logging.getLogger(__name__)


@dataclass
class BatchOptions:
    """
    Options for batch scoring.

    Attributes:
        limit: Maximum number of results (None for no limit)
        min_score: Minimum total for a result to be kept
        force_recalculate: Skip cache reads (results are still written back)
        n_jobs: Parallel workers for candidate scoring (1 = sequential)
    """
    limit: Optional[int] = 50
    min_score: float = 0.0
    force_recalculate: bool = False
    n_jobs: int = 1

    def validate(self) -> None:
        """Validate option values."""
        if self.limit is not None and self.limit <= 0:
            raise ValueError(f"limit must be positive, got {self.limit}")
        if self.n_jobs == 0:
            raise ValueError("n_jobs must be non-zero")

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "BatchOptions":
        """Create from main config dictionary."""
        batch = config.get("batch", {})
        return cls(
            limit=batch.get("limit", 50),
            min_score=batch.get("min_score", 0.0),
            force_recalculate=batch.get("force_recalculate", False),
            n_jobs=batch.get("n_jobs", 1),
        )


@dataclass
class BatchResult:
    """
    Outcome of one batch scoring call.

    Attributes:
        matches: Breakdowns sorted by total desc, then candidate id asc
        scored: Number of candidates scored (before filtering/truncation)
        cache_hits: Number of candidates served from the cache
        skipped: Candidate ids dropped because their computation failed
        processing_time: Wall time in seconds
    """
    matches: List[MatchBreakdown]
    scored: int = 0
    cache_hits: int = 0
    skipped: List[str] = field(default_factory=list)
    processing_time: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        result = asdict(self)
        result["matches"] = [m.to_dict() for m in self.matches]
        return result


class MatchEngine:
    """
    Match scoring orchestrator.

    Attributes:
        combiner: ScoreCombiner applying the canonical weighting
        cache: Optional ScoreCache shared across calls
        geocoder: Optional postal code resolver for the location signal
        embedding_provider: Optional provider for bios without embeddings
    """

    def __init__(
        self,
        combiner: Optional[ScoreCombiner] = None,
        cache: Optional[ScoreCache] = None,
        geocoder: Optional[Geocoder] = None,
        embedding_provider: Optional[EmbeddingProvider] = None
    ):
        """
        Initialize the engine.

        Args:
            combiner: ScoreCombiner instance (canonical defaults if None)
            cache: Score cache (None disables caching)
            geocoder: Postal code resolver
            embedding_provider: Text embedding provider
        """
        self.combiner = combiner or ScoreCombiner()
        self.cache = cache
        self.geocoder = geocoder
        self.embedding_provider = embedding_provider
        logger.info(
            f"Initialized MatchEngine (cache={'on' if cache is not None else 'off'}, "
            f"geocoder={'on' if geocoder is not None else 'off'}, "
            f"embeddings={'on' if embedding_provider is not None else 'off'})"
        )

    def _resolve(self, profile: Profile) -> Tuple[Profile, bool]:
        """Fill in a missing bio embedding; returns (profile, failed)."""
        try:
            return resolve_bio_embedding(profile, self.embedding_provider), False
        except EmbeddingProviderError as e:
            logger.warning(f"Bio embedding unavailable for profile {profile.id}: {e}")
            return profile, True

    def _score_resolved(
        self,
        profile_a: Profile,
        profile_b: Profile,
        failed: Iterable[str] = ()
    ) -> MatchBreakdown:
        visibility = visible_fields(profile_a.visibility, profile_b.visibility)
        inputs = self.combiner.signal_inputs(
            profile_a, profile_b, visibility, geocoder=self.geocoder, failed=failed
        )
        return self.combiner.combine(
            inputs, visibility, profile_id=profile_a.id, candidate_id=profile_b.id
        )

    def score_one(self, profile_a: Profile, profile_b: Profile) -> MatchBreakdown:
        """
        Compute the match score between two profiles.

        Pure computation: the cache is neither read nor written.

        Args:
            profile_a: Profile the score is computed for
            profile_b: Profile being scored

        Returns:
            MatchBreakdown with total in [0, scale]
        """
        profile_a, failed_a = self._resolve(profile_a)
        profile_b, failed_b = self._resolve(profile_b)
        failed = ["bio"] if failed_a or failed_b else []
        return self._score_resolved(profile_a, profile_b, failed)

    def _cache_get(self, id_a: str, id_b: str) -> Optional[MatchBreakdown]:
        if self.cache is None:
            return None
        try:
            return self.cache.get(id_a, id_b)
        except Exception as e:
            logger.warning(f"Score cache read failed, computing live: {e}")
            return None

    def _cache_put(self, id_a: str, id_b: str, breakdown: MatchBreakdown) -> None:
        if self.cache is None:
            return
        try:
            self.cache.put(id_a, id_b, breakdown)
        except Exception as e:
            logger.warning(f"Score cache write failed: {e}")

    def _score_candidate(
        self,
        user: Profile,
        user_failed: bool,
        candidate: Profile,
        force_recalculate: bool
    ) -> Tuple[Optional[MatchBreakdown], bool]:
        """Score one candidate; returns (breakdown or None on failure, cache_hit)."""
        try:
            if not force_recalculate:
                cached = self._cache_get(user.id, candidate.id)
                if cached is not None:
                    return cached.oriented(user.id), True

            candidate, candidate_failed = self._resolve(candidate)
            failed = ["bio"] if user_failed or candidate_failed else []
            breakdown = self._score_resolved(user, candidate, failed)
        except Exception:
            logger.exception(f"Scoring failed for candidate {candidate.id}; skipping")
            return None, False

        # Degraded bio scores are not cached so a recovered provider is used next time
        if not failed:
            self._cache_put(user.id, candidate.id, breakdown)
        return breakdown, False

    def rank_candidates(
        self,
        profile: Profile,
        candidates: Iterable[Profile],
        options: Optional[BatchOptions] = None
    ) -> BatchResult:
        """
        Score a profile against candidates and rank the results.

        The profile itself and repeated candidate ids are skipped.

        Args:
            profile: Profile to find matches for
            candidates: Candidate profiles
            options: BatchOptions (defaults if None)

        Returns:
            BatchResult with sorted, filtered, truncated matches
        """
        options = options or BatchOptions()
        options.validate()
        start = time.perf_counter()

        pool = []
        seen = {profile.id}
        for candidate in candidates:
            if candidate.id in seen:
                continue
            seen.add(candidate.id)
            pool.append(candidate)

        user, user_failed = self._resolve(profile)

        if options.n_jobs != 1 and len(pool) > 1:
            outcomes = Parallel(n_jobs=options.n_jobs, prefer="threads")(
                delayed(self._score_candidate)(user, user_failed, c, options.force_recalculate)
                for c in pool
            )
        else:
            outcomes = [
                self._score_candidate(user, user_failed, c, options.force_recalculate)
                for c in pool
            ]

        results = []
        skipped = []
        cache_hits = 0
        for candidate, (breakdown, hit) in zip(pool, outcomes):
            if breakdown is None:
                skipped.append(candidate.id)
                continue
            cache_hits += int(hit)
            results.append(breakdown)

        matches = [b for b in results if b.total >= options.min_score]
        matches.sort(key=lambda b: (-b.total, b.candidate_id))
        if options.limit is not None:
            matches = matches[:options.limit]

        elapsed = time.perf_counter() - start
        logger.info(
            f"Scored {len(results)} candidates for {profile.id} "
            f"({cache_hits} cached, {len(skipped)} skipped) in {elapsed:.3f}s; "
            f"returning {len(matches)}"
        )

        return BatchResult(
            matches=matches,
            scored=len(results),
            cache_hits=cache_hits,
            skipped=skipped,
            processing_time=elapsed,
        )

    def score_candidates(
        self,
        profile: Profile,
        candidates: Iterable[Profile],
        options: Optional[BatchOptions] = None
    ) -> List[MatchBreakdown]:
        """
        Score a profile against candidates.

        Returns:
            Breakdowns sorted by total desc (ties by candidate id asc),
            with total >= options.min_score and at most options.limit items
        """
        return self.rank_candidates(profile, candidates, options).matches

    def invalidate_profile(self, profile_id: str) -> int:
        """
        Drop cached scores involving a profile.

        Call whenever the profile's matching-relevant fields change.

        Returns:
            Number of cache entries removed
        """
        if self.cache is None:
            return 0
        try:
            return self.cache.invalidate(profile_id)
        except Exception as e:
            logger.warning(f"Score cache invalidation failed for {profile_id}: {e}")
            return 0


def create_engine_from_config(
    config: Dict[str, Any],
    base_dir: Optional[str] = None
) -> MatchEngine:
    """
    Factory function to create a MatchEngine from config.

    Args:
        config: Main configuration dictionary
        base_dir: Directory relative paths in the config resolve against

    Returns:
        Configured MatchEngine instance
    """
    combiner = ScoreCombiner(CombinerConfig.from_config(config))
    cache = ScoreCache.from_config(config)

    geocoder = None
    postal_codes_file = config.get("geocoding", {}).get("postal_codes_file")
    if postal_codes_file:
        path = Path(postal_codes_file)
        if base_dir is not None and not path.is_absolute():
            path = Path(base_dir) / path
        if path.exists():
            geocoder = load_postal_code_table(str(path))
        else:
            logger.warning(f"Postal code table not found at {path}; using prefix matching only")

    provider = None
    embeddings_config = config.get("embeddings", {})
    provider_name = embeddings_config.get("provider")
    if provider_name == "hashing":
        provider = HashingEmbeddingProvider(
            dimensions=embeddings_config.get("dimensions", 1536)
        )
    elif provider_name:
        raise ValueError(f"Unknown embedding provider: {provider_name}")

    return MatchEngine(combiner, cache=cache, geocoder=geocoder, embedding_provider=provider)
