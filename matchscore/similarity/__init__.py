"""Similarity primitives for pairwise profile comparison."""

from .primitives import (
    cosine_similarity,
    set_overlap,
    fuzzy_set_overlap,
    interest_similarity,
    age_proximity,
    normalize_tags,
    NEUTRAL_SCORE,
)
from .geo import (
    Coordinates,
    Geocoder,
    StaticGeocoder,
    load_postal_code_table,
    location_proximity,
    are_codes_nearby,
    nearby_codes,
    cluster_codes,
)

__all__ = [
    "cosine_similarity",
    "set_overlap",
    "fuzzy_set_overlap",
    "interest_similarity",
    "age_proximity",
    "normalize_tags",
    "NEUTRAL_SCORE",
    "Coordinates",
    "Geocoder",
    "StaticGeocoder",
    "load_postal_code_table",
    "location_proximity",
    "are_codes_nearby",
    "nearby_codes",
    "cluster_codes",
]
