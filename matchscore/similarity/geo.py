"""
Geographic proximity between two profile locations.

Locations are either postal codes or free-form place strings. Postal
codes are resolved to coordinates through an injected Geocoder, so the
engine does not depend on which regions a deployment supports.

Resolution order:
1. Missing on either side -> neutral score (absence is not distance)
2. Exact (normalized) match -> 1.0
3. Both codes resolvable -> haversine distance mapped by distance_to_score
4. Both look like postal codes -> weighted common-prefix match
5. Free-form "city, region" strings -> same city / same region heuristic

The nearby, radius-search and clustering helpers at the bottom reuse the
same distance and prefix rules for event planning.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from sklearn.metrics.pairwise import haversine_distances

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
PREFIX_WEIGHTS = [0.4, 0.3, 0.2, 0.1, 0.05]
MIN_DISTANCE_SCORE = 0.1
NEARBY_PREFIX_LENGTH = 3

_POSTAL_CODE_RE = re.compile(r"^(?=.*\d)[a-z0-9][a-z0-9 \-]{2,9}$")


@dataclass(frozen=True)
class Coordinates:
    """Latitude/longitude in decimal degrees."""
    lat: float
    lng: float


class Geocoder(ABC):
    """Resolves a postal code to coordinates."""

    @abstractmethod
    def resolve(self, postal_code: str) -> Optional[Coordinates]:
        """Return coordinates for the code, or None if unknown."""


class StaticGeocoder(Geocoder):
    """
    Dictionary-backed geocoder.

    Attributes:
        table: Mapping of postal code -> Coordinates
    """

    def __init__(self, table: Dict[str, Union[Coordinates, Tuple[float, float]]]):
        self.table = {
            str(code).strip().lower(): (
                coords if isinstance(coords, Coordinates) else Coordinates(*coords)
            )
            for code, coords in table.items()
        }

    def resolve(self, postal_code: str) -> Optional[Coordinates]:
        if not postal_code:
            return None
        return self.table.get(postal_code.strip().lower())

    def __len__(self) -> int:
        return len(self.table)


def load_postal_code_table(filepath: str) -> StaticGeocoder:
    """
    Load a postal code coordinate table from CSV.

    The file must contain the columns postal_code, lat, lng. Extra
    columns (e.g. an area label) are ignored.

    Args:
        filepath: Path to the CSV file

    Returns:
        StaticGeocoder over the loaded table

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If required columns are missing
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Postal code table not found: {filepath}")

    df = pd.read_csv(filepath, dtype={"postal_code": str})

    missing = [c for c in ["postal_code", "lat", "lng"] if c not in df.columns]
    if missing:
        raise ValueError(f"Postal code table is missing columns: {missing}")

    df = df.dropna(subset=["postal_code", "lat", "lng"])
    table = {
        row.postal_code: Coordinates(float(row.lat), float(row.lng))
        for row in df.itertuples(index=False)
    }

    logger.info(f"Loaded {len(table)} postal code coordinates from {filepath}")
    return StaticGeocoder(table)


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    """Great-circle distance between two coordinates in kilometers."""
    points = np.radians([[a.lat, a.lng], [b.lat, b.lng]])
    return float(haversine_distances(points)[0, 1] * EARTH_RADIUS_KM)


def distance_to_score(distance_km: float) -> float:
    """
    Map a physical distance to a proximity score.

    Piecewise linear and non-increasing:
    0-1 km = 1.0, 5 km = 0.8, 10 km = 0.5, 20 km = 0.2, 30+ km = 0.1

    Args:
        distance_km: Distance in kilometers

    Returns:
        Score in [0.1, 1.0]
    """
    d = max(0.0, distance_km)
    if d <= 1:
        return 1.0
    if d <= 5:
        return 0.8 + 0.2 * (5 - d) / 4
    if d <= 10:
        return 0.5 + 0.3 * (10 - d) / 5
    if d <= 20:
        return 0.2 + 0.3 * (20 - d) / 10
    if d <= 30:
        return MIN_DISTANCE_SCORE + 0.1 * (30 - d) / 10
    return MIN_DISTANCE_SCORE


def prefix_proximity(code_a: str, code_b: str) -> float:
    """
    Weighted common-prefix match of two postal codes.

    Earlier positions weigh more; matching stops at the first differing
    character.

    Returns:
        Score in [0, 1]
    """
    score = 0.0
    for i in range(min(len(code_a), len(code_b), len(PREFIX_WEIGHTS))):
        if code_a[i] != code_b[i]:
            break
        score += PREFIX_WEIGHTS[i]
    return min(1.0, score)


def looks_like_postal_code(value: str) -> bool:
    """Whether a normalized location string has the shape of a postal code."""
    return bool(_POSTAL_CODE_RE.match(value))


def place_proximity(place_a: str, place_b: str) -> float:
    """
    Coarse proximity of two free-form "city, region" strings.

    Same city -> 0.95, same region -> 0.5, otherwise 0.2.
    """
    city_a, _, region_a = (p.strip() for p in place_a.partition(","))
    city_b, _, region_b = (p.strip() for p in place_b.partition(","))

    if city_a and city_a == city_b:
        return 0.95
    if region_a and region_a == region_b:
        return 0.5
    return 0.2


def normalize_location(location: str) -> str:
    """Trim, lower-case and collapse whitespace."""
    return " ".join(location.strip().lower().split())


def location_proximity(
    location_a: Optional[str],
    location_b: Optional[str],
    geocoder: Optional[Geocoder] = None,
    neutral: float = 0.5
) -> float:
    """
    Compute geographic proximity of two locations.

    Args:
        location_a: Location of Person A (postal code or place string)
        location_b: Location of Person B
        geocoder: Optional postal code resolver
        neutral: Value returned when either location is missing

    Returns:
        Proximity in [0, 1]
    """
    if not location_a or not location_b:
        return neutral

    loc_a = normalize_location(location_a)
    loc_b = normalize_location(location_b)

    if not loc_a or not loc_b:
        return neutral

    if loc_a == loc_b:
        return 1.0

    if geocoder is not None:
        coords_a = geocoder.resolve(loc_a)
        coords_b = geocoder.resolve(loc_b)
        if coords_a is not None and coords_b is not None:
            return distance_to_score(haversine_km(coords_a, coords_b))

    if looks_like_postal_code(loc_a) and looks_like_postal_code(loc_b):
        return prefix_proximity(loc_a, loc_b)

    return place_proximity(loc_a, loc_b)


def are_codes_nearby(
    code_a: str,
    code_b: str,
    geocoder: Optional[Geocoder] = None,
    max_distance_km: float = 10.0
) -> bool:
    """
    Whether two postal codes are close enough for regular meetups.

    Resolvable pairs are compared by haversine distance. Otherwise the
    codes count as nearby when they share their first three characters.

    Args:
        code_a: First postal code
        code_b: Second postal code
        geocoder: Optional postal code resolver
        max_distance_km: Largest distance that still counts as nearby

    Returns:
        True if the codes are nearby
    """
    a = normalize_location(code_a)
    b = normalize_location(code_b)
    if not a or not b:
        return False

    if geocoder is not None:
        coords_a = geocoder.resolve(a)
        coords_b = geocoder.resolve(b)
        if coords_a is not None and coords_b is not None:
            return haversine_km(coords_a, coords_b) <= max_distance_km

    return a[:NEARBY_PREFIX_LENGTH] == b[:NEARBY_PREFIX_LENGTH]


def nearby_codes(
    code: str,
    geocoder: StaticGeocoder,
    max_distance_km: float = 10.0
) -> List[str]:
    """
    List the known postal codes near a given code, closest first.

    Distances from the code to every entry of the geocoder table are
    computed in one haversine_distances call. An unresolvable code falls
    back to the shared-prefix rule of are_codes_nearby.

    Args:
        code: Postal code to search around (excluded from the result)
        geocoder: Geocoder whose table is searched
        max_distance_km: Search radius

    Returns:
        Postal codes within the radius
    """
    center = normalize_location(code)
    others = [c for c in geocoder.table if c != center]
    if not center or not others:
        return []

    coords = geocoder.resolve(center)
    if coords is None:
        prefix = center[:NEARBY_PREFIX_LENGTH]
        return sorted(c for c in others if c[:NEARBY_PREFIX_LENGTH] == prefix)

    points = np.radians([[geocoder.table[c].lat, geocoder.table[c].lng] for c in others])
    origin = np.radians([[coords.lat, coords.lng]])
    distances = haversine_distances(origin, points)[0] * EARTH_RADIUS_KM

    order = np.argsort(distances, kind="stable")
    return [others[i] for i in order if distances[i] <= max_distance_km]


def cluster_codes(
    codes: Iterable[str],
    geocoder: Optional[Geocoder] = None,
    max_distance_km: float = 5.0
) -> Dict[str, List[str]]:
    """
    Group postal codes into clusters for organizing group events.

    Clusters are seeded greedily in input order: each unassigned code
    starts a cluster and claims every later unassigned code nearby.

    Args:
        codes: Postal codes to group (duplicates are ignored)
        geocoder: Optional postal code resolver
        max_distance_km: Radius around each seed

    Returns:
        Dictionary of seed code -> codes in its cluster (seed first)
    """
    unique = list(dict.fromkeys(normalize_location(c) for c in codes if c and c.strip()))
    clusters = {}
    assigned = set()

    for seed in unique:
        if seed in assigned:
            continue
        members = [seed]
        assigned.add(seed)
        for other in unique:
            if other not in assigned and are_codes_nearby(seed, other, geocoder, max_distance_km):
                members.append(other)
                assigned.add(other)
        clusters[seed] = members

    logger.debug(f"Grouped {len(unique)} postal codes into {len(clusters)} clusters")
    return clusters
