"""
Weighted combination of per-signal sub-scores.

This module turns raw similarity sub-scores into one bounded match score.
There is exactly one canonical weighting, held in CombinerConfig.

Combination Formula:
    total = scale * sum(raw_i * w_i for available i) / sum(w_i for available i)

A signal is available only if its field is mutually visible and the data
on both sides is usable. Rescaling by the available weight keeps profiles
with private fields from being capped below fully open ones. If nothing is
available the total is 0 and the breakdown is flagged insufficient_data.

Canonical weights:
    interests 0.40, bio 0.25, age 0.20, location 0.15
"""

import logging
import math
import numbers
from dataclasses import dataclass, asdict, field
from typing import Any, Dict, Iterable, List, Optional
import json

import numpy as np

from ..privacy.visibility import VisibilityDecision
from ..similarity.primitives import (
    cosine_similarity,
    interest_similarity,
    age_proximity,
    DEFAULT_CATEGORY_KEYWORDS,
)
from ..similarity.geo import Geocoder, location_proximity
from .schema import (
    BREAKDOWN_FIELDS,
    SIGNAL_ORDER,
    MatchBreakdown,
    Profile,
    SignalInput,
    SignalScore,
    SignalStatus,
)

logger = logging.getLogger(__name__)

CANONICAL_WEIGHTS = {
    "interests": 0.40,
    "bio": 0.25,
    "age": 0.20,
    "location": 0.15,
}


@dataclass
class CombinerConfig:
    """
    Configuration for score combination.

    Attributes:
        weights: Weight per signal (must sum to 1)
        scale: Upper bound of the total score
        neutral_score: Sub-score used when data is missing
        exact_weight: Weight of Jaccard overlap inside the interest signal
        fuzzy_weight: Weight of fuzzy overlap inside the interest signal
        substring_credit: Fuzzy credit for substring containment
        keyword_credit: Fuzzy credit for a shared category keyword
        category_keywords: Keywords that mark two tags as same-category
        age_sigma: Standard deviation (years) of the age decay
    """
    weights: Dict[str, float] = field(default_factory=lambda: dict(CANONICAL_WEIGHTS))
    scale: float = 100.0
    neutral_score: float = 0.5
    exact_weight: float = 0.7
    fuzzy_weight: float = 0.3
    substring_credit: float = 0.5
    keyword_credit: float = 0.3
    category_keywords: List[str] = field(default_factory=lambda: list(DEFAULT_CATEGORY_KEYWORDS))
    age_sigma: float = 5.0

    def validate(self) -> None:
        """Validate configuration values."""
        unknown = set(self.weights) - set(SIGNAL_ORDER)
        if unknown:
            raise ValueError(f"Unknown signals in weights: {sorted(unknown)}")
        for name in SIGNAL_ORDER:
            if name not in self.weights:
                raise ValueError(f"Missing weight for signal: {name}")
            if not 0 <= self.weights[name] <= 1:
                raise ValueError(f"Weight for {name} must be in [0, 1], got {self.weights[name]}")
        total = sum(self.weights.values())
        if abs(total - 1.0) > 1e-6:
            raise ValueError(f"Weights must sum to 1, got {total}")
        if self.scale <= 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if not 0 <= self.neutral_score <= 1:
            raise ValueError(f"neutral_score must be in [0, 1], got {self.neutral_score}")
        if abs(self.exact_weight + self.fuzzy_weight - 1.0) > 1e-6:
            raise ValueError(
                f"Interest weights must sum to 1: {self.exact_weight} + {self.fuzzy_weight}"
            )
        for name in ["substring_credit", "keyword_credit"]:
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.age_sigma <= 0:
            raise ValueError(f"age_sigma must be positive, got {self.age_sigma}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CombinerConfig":
        """Create from dictionary."""
        return cls(**d)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "CombinerConfig":
        """Create from main config dictionary."""
        scoring = config.get("scoring", {})
        interests = scoring.get("interests", {})

        return cls(
            weights=dict(scoring.get("weights", CANONICAL_WEIGHTS)),
            scale=float(scoring.get("scale", 100.0)),
            neutral_score=scoring.get("neutral_score", 0.5),
            exact_weight=interests.get("exact_weight", 0.7),
            fuzzy_weight=interests.get("fuzzy_weight", 0.3),
            substring_credit=interests.get("substring_credit", 0.5),
            keyword_credit=interests.get("keyword_credit", 0.3),
            category_keywords=list(interests.get("category_keywords", DEFAULT_CATEGORY_KEYWORDS)),
            age_sigma=scoring.get("age", {}).get("sigma", 5.0),
        )

    def save(self, filepath: str) -> None:
        """Save to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved combiner config to {filepath}")

    @classmethod
    def load(cls, filepath: str) -> "CombinerConfig":
        """Load from JSON file."""
        with open(filepath, "r") as f:
            d = json.load(f)
        return cls.from_dict(d)


def _as_vector(values: Any) -> Optional[np.ndarray]:
    """Convert an embedding to a finite 1-D float vector, or None if malformed."""
    try:
        vec = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError):
        return None
    if vec.ndim != 1 or vec.size == 0 or not np.all(np.isfinite(vec)):
        return None
    return vec


def _valid_age(age: Any) -> bool:
    if isinstance(age, bool) or not isinstance(age, numbers.Real):
        return False
    if not math.isfinite(age) or age <= 0:
        return False
    return float(age).is_integer()


class ScoreCombiner:
    """
    Computes raw signal inputs for a pair and combines them into a
    MatchBreakdown.

    Attributes:
        config: CombinerConfig with weights and primitive parameters
    """

    def __init__(self, config: Optional[CombinerConfig] = None):
        """
        Initialize the combiner.

        Args:
            config: CombinerConfig instance (canonical defaults if None)
        """
        self.config = config or CombinerConfig()
        self.config.validate()
        logger.info(f"Initialized ScoreCombiner with weights={self.config.weights}")

    def signal_inputs(
        self,
        profile_a: Profile,
        profile_b: Profile,
        visibility: VisibilityDecision,
        geocoder: Optional[Geocoder] = None,
        failed: Iterable[str] = ()
    ) -> Dict[str, SignalInput]:
        """
        Compute raw sub-scores for every mutually visible signal.

        Hidden fields are never read. Malformed data yields an INVALID
        input instead of raising.

        Args:
            profile_a: First profile
            profile_b: Second profile
            visibility: Mutual visibility decision for the pair
            geocoder: Optional postal code resolver for the location signal
            failed: Signals whose external dependency failed for this pair

        Returns:
            Dictionary of signal name -> SignalInput
        """
        failed = set(failed)
        inputs = {}

        for name in SIGNAL_ORDER:
            if not visibility.is_eligible(name):
                inputs[name] = SignalInput.absent(SignalStatus.HIDDEN, "not shared by both profiles")
            elif name in failed:
                inputs[name] = SignalInput.absent(SignalStatus.FAILED, "embedding provider failed")
            elif name == "bio":
                inputs[name] = self._bio_input(profile_a, profile_b)
            elif name == "interests":
                inputs[name] = self._interests_input(profile_a, profile_b)
            elif name == "age":
                inputs[name] = self._age_input(profile_a, profile_b)
            else:
                inputs[name] = self._location_input(profile_a, profile_b, geocoder)

        return inputs

    def _bio_input(self, profile_a: Profile, profile_b: Profile) -> SignalInput:
        if profile_a.bio_embedding is None or profile_b.bio_embedding is None:
            return SignalInput(raw=self.config.neutral_score, status=SignalStatus.SCORED, neutral=True)

        vec_a = _as_vector(profile_a.bio_embedding)
        vec_b = _as_vector(profile_b.bio_embedding)
        if vec_a is None or vec_b is None:
            return SignalInput.absent(SignalStatus.INVALID, "malformed bio embedding")
        if vec_a.size != vec_b.size:
            return SignalInput.absent(
                SignalStatus.INVALID,
                f"embedding dimensions differ: {vec_a.size} vs {vec_b.size}"
            )
        if not np.any(vec_a) or not np.any(vec_b):
            # Blank or stop-word-only bios embed to zeros; score them like a missing bio
            return SignalInput(raw=self.config.neutral_score, status=SignalStatus.SCORED, neutral=True)

        # Opposed bios count as unrelated, not as negative evidence
        return SignalInput(raw=max(0.0, cosine_similarity(vec_a, vec_b)), status=SignalStatus.SCORED)

    def _interests_input(self, profile_a: Profile, profile_b: Profile) -> SignalInput:
        if not profile_a.interests or not profile_b.interests:
            return SignalInput(raw=0.0, status=SignalStatus.SCORED)

        raw = interest_similarity(
            profile_a.interests,
            profile_b.interests,
            exact_weight=self.config.exact_weight,
            fuzzy_weight=self.config.fuzzy_weight,
            category_keywords=self.config.category_keywords,
            substring_credit=self.config.substring_credit,
            keyword_credit=self.config.keyword_credit,
        )
        return SignalInput(raw=raw, status=SignalStatus.SCORED)

    def _age_input(self, profile_a: Profile, profile_b: Profile) -> SignalInput:
        for age in (profile_a.age, profile_b.age):
            if age is not None and not _valid_age(age):
                return SignalInput.absent(SignalStatus.INVALID, f"invalid age: {age!r}")

        neutral = profile_a.age is None or profile_b.age is None
        raw = age_proximity(
            profile_a.age,
            profile_b.age,
            sigma=self.config.age_sigma,
            neutral=self.config.neutral_score
        )
        return SignalInput(raw=raw, status=SignalStatus.SCORED, neutral=neutral)

    def _location_input(
        self,
        profile_a: Profile,
        profile_b: Profile,
        geocoder: Optional[Geocoder]
    ) -> SignalInput:
        for location in (profile_a.location, profile_b.location):
            if location is None:
                continue
            if not isinstance(location, str) or not location.strip():
                return SignalInput.absent(SignalStatus.INVALID, f"malformed location: {location!r}")

        neutral = profile_a.location is None or profile_b.location is None
        raw = location_proximity(
            profile_a.location,
            profile_b.location,
            geocoder=geocoder,
            neutral=self.config.neutral_score
        )
        return SignalInput(raw=raw, status=SignalStatus.SCORED, neutral=neutral)

    def combine(
        self,
        inputs: Dict[str, SignalInput],
        visibility: VisibilityDecision,
        profile_id: str = "",
        candidate_id: str = ""
    ) -> MatchBreakdown:
        """
        Weight, rescale and bound the signal inputs.

        Args:
            inputs: Signal name -> SignalInput (missing names are absent)
            visibility: Mutual visibility decision; ineligible signals are
                dropped even if an input was supplied
            profile_id: Profile the score is computed for
            candidate_id: Profile being scored

        Returns:
            MatchBreakdown with bounded total and per-signal contributions
        """
        scale = self.config.scale
        signals = {}
        weighted_sum = 0.0
        available_weight = 0.0

        for name in SIGNAL_ORDER:
            weight = self.config.weights[name]
            signal = inputs.get(name) or SignalInput.absent(SignalStatus.MISSING, "not computed")

            if not visibility.is_eligible(name):
                signal = SignalInput.absent(SignalStatus.HIDDEN, "not shared by both profiles")

            if signal.raw is None:
                signals[name] = SignalScore(
                    name=name, raw=None, weight=weight, contribution=0.0,
                    status=signal.status, detail=signal.detail
                )
                continue

            raw = min(1.0, max(0.0, float(signal.raw)))
            weighted_sum += raw * weight
            available_weight += weight
            signals[name] = SignalScore(
                name=name, raw=raw, weight=weight,
                contribution=round(raw * weight * scale, 4),
                status=SignalStatus.SCORED, neutral=signal.neutral
            )

        insufficient = available_weight <= 0
        if insufficient:
            total = 0.0
            logger.debug(f"No signals available for ({profile_id}, {candidate_id})")
        else:
            total = weighted_sum / available_weight * scale
            total = round(min(scale, max(0.0, total)), 2)

        contributions = {
            BREAKDOWN_FIELDS[name]: signals[name].contribution for name in SIGNAL_ORDER
        }

        return MatchBreakdown(
            profile_id=profile_id,
            candidate_id=candidate_id,
            total=total,
            insufficient_data=insufficient,
            signals=signals,
            **contributions
        )

    def get_effective_weights(self, visibility: VisibilityDecision) -> Dict[str, float]:
        """
        Weights after rescaling for a given visibility decision.

        Returns:
            Dictionary of signal -> rescaled weight (sums to 1 unless
            nothing is visible)
        """
        available = {n: self.config.weights[n] for n in visibility.eligible_fields()}
        total = sum(available.values())
        if total <= 0:
            return {n: 0.0 for n in SIGNAL_ORDER}
        return {n: available.get(n, 0.0) / total for n in SIGNAL_ORDER}


def create_combiner_from_config(config: Dict[str, Any]) -> ScoreCombiner:
    """
    Factory function to create ScoreCombiner from config.

    Args:
        config: Main configuration dictionary

    Returns:
        Configured ScoreCombiner instance
    """
    return ScoreCombiner(CombinerConfig.from_config(config))
