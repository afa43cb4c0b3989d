"""
Tests for matchscore.similarity.geo

Covers:
- Distance step function
- Postal code prefix matching and shape detection
- Free-form place heuristic
- Resolution order in location_proximity
- Loading the postal code table
- Nearby checks, radius search and clustering of postal codes
"""

import pytest

from matchscore.similarity.geo import (
    Coordinates,
    StaticGeocoder,
    are_codes_nearby,
    cluster_codes,
    distance_to_score,
    haversine_km,
    load_postal_code_table,
    location_proximity,
    looks_like_postal_code,
    nearby_codes,
    place_proximity,
    prefix_proximity,
)


# =============================================================================
# Distance
# =============================================================================

@pytest.mark.parametrize("distance, expected", [
    (0.0, 1.0),
    (1.0, 1.0),
    (5.0, 0.8),
    (10.0, 0.5),
    (20.0, 0.2),
    (30.0, 0.1),
    (500.0, 0.1),
])
def test_distance_to_score_breakpoints(distance, expected):
    assert distance_to_score(distance) == pytest.approx(expected)


def test_distance_to_score_non_increasing():
    scores = [distance_to_score(d / 2) for d in range(0, 80)]
    assert all(a >= b for a, b in zip(scores, scores[1:]))


def test_haversine_km_known_distance():
    sf = Coordinates(37.7749, -122.4194)
    la = Coordinates(34.0522, -118.2437)
    assert haversine_km(sf, la) == pytest.approx(559, abs=5)
    assert haversine_km(sf, sf) == pytest.approx(0.0)


# =============================================================================
# Postal codes and places
# =============================================================================

def test_prefix_proximity_weights_leading_digits():
    assert prefix_proximity("94110", "94103") == pytest.approx(0.9)
    assert prefix_proximity("94110", "10001") == 0.0
    assert prefix_proximity("94110", "94110") == pytest.approx(1.0)


@pytest.mark.parametrize("value, expected", [
    ("94110", True),
    ("sw1a 1aa", True),
    ("94110-1234", True),
    ("san francisco", False),
    ("ab", False),
])
def test_looks_like_postal_code(value, expected):
    assert looks_like_postal_code(value) is expected


def test_place_proximity_levels():
    assert place_proximity("san francisco, ca", "san francisco, california") == 0.95
    assert place_proximity("san francisco, ca", "oakland, ca") == 0.5
    assert place_proximity("portland, or", "austin, tx") == 0.2


# =============================================================================
# location_proximity
# =============================================================================

def test_missing_location_is_neutral():
    assert location_proximity(None, "94110") == 0.5
    assert location_proximity("94110", "") == 0.5


def test_exact_match_ignores_case_and_whitespace():
    assert location_proximity(" San  Francisco, CA", "san francisco, ca") == 1.0


def test_nearby_codes_use_geocoded_distance(geocoder):
    score = location_proximity("94110", "94103", geocoder=geocoder)
    assert 0.8 < score < 1.0


def test_distant_codes_hit_floor(geocoder):
    assert location_proximity("94110", "98101", geocoder=geocoder) == pytest.approx(0.1)


def test_unknown_codes_fall_back_to_prefix(geocoder):
    assert location_proximity("94110", "94199", geocoder=geocoder) == pytest.approx(0.9)


def test_prefix_used_without_geocoder():
    assert location_proximity("94110", "94103") == pytest.approx(0.9)


def test_location_proximity_is_symmetric(geocoder):
    for a, b in [("94110", "94612"), ("Oakland, CA", "Berkeley, CA"), ("94110", "Oakland, CA")]:
        assert location_proximity(a, b, geocoder) == location_proximity(b, a, geocoder)


# =============================================================================
# Geocoder table
# =============================================================================

def test_static_geocoder_accepts_tuples_and_normalizes_keys():
    geo = StaticGeocoder({" SW1A ": (51.501, -0.141)})
    assert geo.resolve("sw1a") == Coordinates(51.501, -0.141)
    assert geo.resolve("") is None
    assert len(geo) == 1


def test_load_postal_code_table_from_configs(config_path):
    geo = load_postal_code_table(str(config_path.parent / "postal_codes.csv"))
    assert len(geo) > 0
    assert geo.resolve("94110") == Coordinates(37.7484, -122.4156)


def test_load_postal_code_table_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_postal_code_table(str(tmp_path / "nope.csv"))


def test_load_postal_code_table_missing_columns(tmp_path):
    path = tmp_path / "codes.csv"
    path.write_text("postal_code,latitude\n94110,37.7\n")
    with pytest.raises(ValueError, match="missing columns"):
        load_postal_code_table(str(path))


def test_load_postal_code_table_keeps_leading_zeros(tmp_path):
    path = tmp_path / "codes.csv"
    path.write_text("postal_code,lat,lng\n02139,42.3647,-71.1042\n")
    geo = load_postal_code_table(str(path))
    assert geo.resolve("02139") is not None


# =============================================================================
# Nearby codes and clusters
# =============================================================================

def test_are_codes_nearby_by_distance(geocoder):
    assert are_codes_nearby("94110", "94103", geocoder)
    assert not are_codes_nearby("94110", "94612", geocoder)
    assert are_codes_nearby("94110", "94612", geocoder, max_distance_km=20)


def test_are_codes_nearby_falls_back_to_prefix():
    assert are_codes_nearby("94110", "94199")
    assert not are_codes_nearby("94110", "98101")
    assert not are_codes_nearby("94110", "  ")


def test_nearby_codes_sorted_by_distance(geocoder):
    assert nearby_codes("94110", geocoder) == ["94103"]
    assert nearby_codes("94110", geocoder, max_distance_km=20) == ["94103", "94612"]


def test_nearby_codes_for_unknown_code_uses_prefix(geocoder):
    assert nearby_codes("94199", geocoder) == ["94103", "94110"]


def test_cluster_codes_seeds_in_input_order(geocoder):
    clusters = cluster_codes(["94110", "98101", "94103", "94612", "94110"], geocoder)
    assert clusters == {
        "94110": ["94110", "94103"],
        "98101": ["98101"],
        "94612": ["94612"],
    }
    assert list(clusters) == ["94110", "98101", "94612"]
