"""
Tests for matchscore.evaluation.metrics

Covers:
- Score distribution statistics
- Monotonicity check (Spearman correlation and violation counting)
- Symmetry check over an engine
- DataFrame export and full report save/summary
"""

import json

import numpy as np
import pytest

from matchscore.evaluation import (
    breakdowns_to_frame,
    compute_score_distribution_stats,
    create_evaluation_report,
    sanity_check_monotonicity,
    sanity_check_symmetry,
)

from conftest import make_profile


@pytest.fixture
def profiles():
    return [
        make_profile("a", interests=["hiking", "cooking"], age=28, location="94110"),
        make_profile("b", interests=["hiking", "travel"], age=31, location="94103"),
        make_profile("c", interests=["jazz"], age=45, location="Oakland, CA"),
        make_profile("d", interests=["cooking", "food"], age=29),
    ]


def test_distribution_stats():
    stats = compute_score_distribution_stats([10.0, 20.0, 30.0, 40.0, 50.0])
    assert stats.n == 5
    assert stats.mean == pytest.approx(30.0)
    assert stats.min == 10.0
    assert stats.max == 50.0
    assert stats.quantiles["p50"] == pytest.approx(30.0)
    assert set(stats.quantiles) == {"p10", "p25", "p50", "p75", "p90"}


def test_distribution_stats_rejects_empty():
    with pytest.raises(ValueError):
        compute_score_distribution_stats([])


def test_monotonicity_perfect_ordering():
    check = sanity_check_monotonicity([10, 20, 30, 40], [0.1, 0.2, 0.3, 0.4])
    assert check.correlation_with_similarity == pytest.approx(1.0)
    assert check.is_monotonic
    assert check.n_violations == 0


def test_monotonicity_counts_violations():
    check = sanity_check_monotonicity([40, 30, 20, 10], [0.1, 0.2, 0.3, 0.4])
    assert check.correlation_with_similarity == pytest.approx(-1.0)
    assert not check.is_monotonic
    assert check.n_violations == 6
    assert check.violation_rate == pytest.approx(1.0)


def test_monotonicity_constant_input():
    check = sanity_check_monotonicity([50, 50, 50], [0.1, 0.2, 0.3])
    assert check.correlation_with_similarity == 0.0
    assert check.n_violations == 0


def test_monotonicity_length_mismatch():
    with pytest.raises(ValueError):
        sanity_check_monotonicity([1, 2], [0.1])


def test_symmetry_check(engine, profiles):
    check = sanity_check_symmetry(engine, profiles)
    assert check.n_pairs == 6
    assert check.is_symmetric
    assert check.max_difference == 0.0


def test_breakdowns_to_frame(engine, profiles):
    breakdowns = engine.score_candidates(profiles[0], profiles[1:])
    df = breakdowns_to_frame(breakdowns)
    assert len(df) == 3
    assert list(df.columns) == [
        "profile_id", "candidate_id", "bio_similarity", "interest_overlap",
        "age_proximity", "location_bonus", "total", "insufficient_data",
    ]
    assert (df["profile_id"] == "a").all()


def test_create_report_save_and_summary(engine, profiles, tmp_path):
    breakdowns = engine.score_candidates(profiles[0], profiles[1:])
    report = create_evaluation_report("demo", breakdowns, engine=engine, profiles=profiles)

    assert report.symmetry_check.is_symmetric
    assert report.additional_metrics["signal_availability"]["interests"] == pytest.approx(1.0)
    assert report.additional_metrics["insufficient_data_rate"] == 0.0

    summary = report.summary()
    assert "Evaluation Report: demo" in summary
    assert "Symmetry Check (6 pairs)" in summary

    path = tmp_path / "report.json"
    report.save(str(path))
    saved = json.loads(path.read_text())
    assert saved["name"] == "demo"
    assert saved["distribution_stats"]["n"] == 3
    assert np.isfinite(saved["monotonicity_check"]["correlation_with_similarity"])
