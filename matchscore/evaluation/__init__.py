"""Evaluation module for match score analysis."""

from .metrics import (
    compute_score_distribution_stats,
    sanity_check_symmetry,
    sanity_check_monotonicity,
    breakdowns_to_frame,
    EvaluationReport,
    create_evaluation_report
)

__all__ = [
    "compute_score_distribution_stats",
    "sanity_check_symmetry",
    "sanity_check_monotonicity",
    "breakdowns_to_frame",
    "EvaluationReport",
    "create_evaluation_report"
]
