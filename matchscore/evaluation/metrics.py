"""
Evaluation metrics for match scores.

There are no ground-truth compatibility labels, so evaluation focuses on:
1. Score distribution analysis
2. Sanity checks (symmetry: score(A, B) == score(B, A))
3. Sanity checks (monotonicity: higher input similarity should give
   higher totals)

This module DOES NOT claim real-world predictive accuracy.
"""

import json
import logging
from dataclasses import dataclass, field
from itertools import combinations
from typing import Any, Dict, Optional, Sequence

import numpy as np
import pandas as pd
from scipy.stats import spearmanr

from ..scoring.schema import BREAKDOWN_FIELDS, SIGNAL_ORDER, MatchBreakdown, Profile

logger = logging.getLogger(__name__)

DEFAULT_QUANTILES = (0.1, 0.25, 0.5, 0.75, 0.9)


@dataclass
class ScoreDistributionStats:
    """Statistics about the distribution of match totals."""
    n: int
    mean: float
    std: float
    min: float
    max: float
    quantiles: Dict[str, float]  # e.g., {"p10": 32.5, "p50": 51.0, "p90": 74.2}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "n": int(self.n),
            "mean": float(self.mean),
            "std": float(self.std),
            "min": float(self.min),
            "max": float(self.max),
            "quantiles": {k: float(v) for k, v in self.quantiles.items()}
        }


@dataclass
class SymmetryCheck:
    """Results of the symmetry sanity check."""
    n_pairs: int
    max_difference: float
    n_asymmetric: int
    is_symmetric: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "n_pairs": int(self.n_pairs),
            "max_difference": float(self.max_difference),
            "n_asymmetric": int(self.n_asymmetric),
            "is_symmetric": bool(self.is_symmetric)
        }


@dataclass
class MonotonicityCheck:
    """Results of the monotonicity sanity check."""
    correlation_with_similarity: float
    is_monotonic: bool
    n_violations: int
    violation_rate: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correlation_with_similarity": float(self.correlation_with_similarity),
            "is_monotonic": bool(self.is_monotonic),
            "n_violations": int(self.n_violations),
            "violation_rate": float(self.violation_rate)
        }


@dataclass
class EvaluationReport:
    """
    Evaluation report for a batch of match scores.

    Documents how the scores behave WITHOUT claiming predictive validity.
    """
    name: str
    distribution_stats: ScoreDistributionStats
    symmetry_check: Optional[SymmetryCheck] = None
    monotonicity_check: Optional[MonotonicityCheck] = None
    additional_metrics: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "name": self.name,
            "distribution_stats": self.distribution_stats.to_dict(),
            "additional_metrics": self.additional_metrics
        }
        if self.symmetry_check:
            result["symmetry_check"] = self.symmetry_check.to_dict()
        if self.monotonicity_check:
            result["monotonicity_check"] = self.monotonicity_check.to_dict()
        return result

    def save(self, filepath: str) -> None:
        """Save report to JSON file."""
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info(f"Saved evaluation report to {filepath}")

    def summary(self) -> str:
        """Generate text summary of the report."""
        stats = self.distribution_stats
        lines = [
            f"Evaluation Report: {self.name}",
            "=" * 50,
            "",
            f"Score Distribution ({stats.n} matches):",
            f"  Mean: {stats.mean:.2f}",
            f"  Std:  {stats.std:.2f}",
            f"  Min:  {stats.min:.2f}",
            f"  Max:  {stats.max:.2f}",
        ]

        for q_name, q_value in stats.quantiles.items():
            lines.append(f"  {q_name}: {q_value:.2f}")

        if self.symmetry_check:
            lines.extend([
                "",
                f"Symmetry Check ({self.symmetry_check.n_pairs} pairs):",
                f"  Max difference: {self.symmetry_check.max_difference:.4f}",
                f"  Is symmetric: {self.symmetry_check.is_symmetric}",
            ])

        if self.monotonicity_check:
            lines.extend([
                "",
                "Monotonicity Check:",
                f"  Correlation with similarity: {self.monotonicity_check.correlation_with_similarity:.4f}",
                f"  Is monotonic: {self.monotonicity_check.is_monotonic}",
                f"  Violation rate: {self.monotonicity_check.violation_rate:.2%}",
            ])

        return "\n".join(lines)


def compute_score_distribution_stats(
    totals: Sequence[float],
    quantiles: Sequence[float] = DEFAULT_QUANTILES
) -> ScoreDistributionStats:
    """
    Compute distribution statistics for match totals.

    Args:
        totals: Match totals
        quantiles: Quantile values to compute (default: p10, p25, p50, p75, p90)

    Returns:
        ScoreDistributionStats instance

    Raises:
        ValueError: If totals is empty
    """
    scores = np.asarray(totals, dtype=float)
    if scores.size == 0:
        raise ValueError("Cannot compute distribution stats for zero scores")

    quantile_dict = {
        f"p{int(round(q * 100))}": float(np.percentile(scores, q * 100))
        for q in quantiles
    }

    return ScoreDistributionStats(
        n=int(scores.size),
        mean=float(np.mean(scores)),
        std=float(np.std(scores)),
        min=float(np.min(scores)),
        max=float(np.max(scores)),
        quantiles=quantile_dict
    )


def sanity_check_symmetry(
    engine,
    profiles: Sequence[Profile],
    tolerance: float = 1e-9
) -> SymmetryCheck:
    """
    Check that score(A, B) == score(B, A) over every pair of profiles.

    Args:
        engine: MatchEngine used to score pairs
        profiles: Profiles to pair up
        tolerance: Largest difference still counted as symmetric

    Returns:
        SymmetryCheck instance
    """
    n_pairs = 0
    n_asymmetric = 0
    max_difference = 0.0

    for profile_a, profile_b in combinations(profiles, 2):
        forward = engine.score_one(profile_a, profile_b).total
        backward = engine.score_one(profile_b, profile_a).total
        difference = abs(forward - backward)
        n_pairs += 1
        max_difference = max(max_difference, difference)
        if difference > tolerance:
            n_asymmetric += 1
            logger.warning(
                f"Asymmetric score for ({profile_a.id}, {profile_b.id}): "
                f"{forward} vs {backward}"
            )

    return SymmetryCheck(
        n_pairs=n_pairs,
        max_difference=max_difference,
        n_asymmetric=n_asymmetric,
        is_symmetric=n_asymmetric == 0
    )


def sanity_check_monotonicity(
    totals: Sequence[float],
    similarity: Sequence[float],
    threshold: float = 0.5,
    max_comparisons: int = 1000
) -> MonotonicityCheck:
    """
    Check if match totals are monotonic with an input similarity measure.

    Higher similarity should generally lead to a higher total. This is a
    sanity check, not a validation of predictive accuracy.

    Args:
        totals: Match totals
        similarity: Input similarity for the same pairs (e.g. interest overlap)
        threshold: Correlation threshold for the "is_monotonic" flag
        max_comparisons: Only the first this-many items are compared pairwise

    Returns:
        MonotonicityCheck instance
    """
    scores = np.asarray(totals, dtype=float)
    sims = np.asarray(similarity, dtype=float)
    if scores.shape != sims.shape:
        raise ValueError(
            f"totals and similarity must have the same length, got {scores.size} and {sims.size}"
        )

    # Spearman is undefined for constant inputs
    if scores.size < 2 or np.all(scores == scores[0]) or np.all(sims == sims[0]):
        correlation = 0.0
    else:
        correlation, _ = spearmanr(sims, scores)
        correlation = float(correlation)

    n = min(scores.size, max_comparisons)
    n_comparisons = 0
    n_violations = 0
    for i in range(n):
        for j in range(i + 1, n):
            n_comparisons += 1
            # Violation: similarity increases but the total decreases (or vice versa)
            if (sims[j] - sims[i]) * (scores[j] - scores[i]) < 0:
                n_violations += 1

    violation_rate = n_violations / n_comparisons if n_comparisons > 0 else 0.0

    return MonotonicityCheck(
        correlation_with_similarity=correlation,
        is_monotonic=correlation >= threshold,
        n_violations=n_violations,
        violation_rate=violation_rate
    )


def breakdowns_to_frame(breakdowns: Sequence[MatchBreakdown]) -> pd.DataFrame:
    """
    Flatten breakdowns into a DataFrame, one row per match.

    Columns: profile_id, candidate_id, the four per-signal fields, total,
    insufficient_data.
    """
    columns = ["profile_id", "candidate_id", *BREAKDOWN_FIELDS.values(), "total", "insufficient_data"]
    rows = [{c: getattr(b, c) for c in columns} for b in breakdowns]
    return pd.DataFrame(rows, columns=columns)


def create_evaluation_report(
    name: str,
    breakdowns: Sequence[MatchBreakdown],
    similarity: Optional[Sequence[float]] = None,
    engine=None,
    profiles: Optional[Sequence[Profile]] = None,
    quantiles: Sequence[float] = DEFAULT_QUANTILES
) -> EvaluationReport:
    """
    Create an evaluation report for a set of breakdowns.

    Args:
        name: Report name
        breakdowns: Scored matches
        similarity: Input similarity per breakdown (for the monotonicity
            check); defaults to each breakdown's interest overlap
        engine: MatchEngine for the symmetry check (skipped if None)
        profiles: Profiles for the symmetry check
        quantiles: Quantiles to compute

    Returns:
        EvaluationReport instance
    """
    df = breakdowns_to_frame(breakdowns)
    dist_stats = compute_score_distribution_stats(df["total"].to_numpy(), quantiles)

    symmetry = None
    if engine is not None and profiles:
        symmetry = sanity_check_symmetry(engine, profiles)

    if similarity is None:
        similarity = df["interest_overlap"].fillna(0.0).to_numpy()
    monotonicity = sanity_check_monotonicity(df["total"].to_numpy(), similarity)

    additional = {
        "insufficient_data_rate": float(df["insufficient_data"].mean()),
        "signal_availability": {
            name: float(np.mean([name in b.available_signals() for b in breakdowns]))
            for name in SIGNAL_ORDER
        },
    }

    return EvaluationReport(
        name=name,
        distribution_stats=dist_stats,
        symmetry_check=symmetry,
        monotonicity_check=monotonicity,
        additional_metrics=additional
    )
