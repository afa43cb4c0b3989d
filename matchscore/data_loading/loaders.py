"""
Profile loading for batch scoring and offline analysis.

This module reads profile rows from CSV or JSON files into Profile
snapshots. No scoring is done here.

Accepted columns:
- id (or user_id): required
- bio, age, location: optional scalars
- interests: list (JSON) or ";"/","-separated string (CSV)
- bio_embedding: list (JSON) or JSON-encoded list string (CSV)
- visibility: nested mapping (JSON), or share_<field> boolean columns
"""

import json
import logging
import numbers
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from ..privacy.visibility import MATCH_FIELDS
from ..scoring.schema import Profile

logger = logging.getLogger(__name__)

SHARE_PREFIX = "share_"


def load_profiles_frame(filepath: str) -> pd.DataFrame:
    """
    Load raw profile rows from a CSV or JSON file.

    Args:
        filepath: Path to a .csv or .json file (JSON: list of records)

    Returns:
        DataFrame with one row per profile

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the format is unsupported or the file has no rows
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Profiles file not found: {filepath}")

    suffix = path.suffix.lower()
    logger.info(f"Loading profiles from {filepath}")
    if suffix == ".csv":
        df = pd.read_csv(filepath, dtype={"id": str, "user_id": str, "location": str})
    elif suffix == ".json":
        # dtype=False keeps postal codes and ids exactly as written
        df = pd.read_json(filepath, orient="records", dtype=False)
    else:
        raise ValueError(f"Unsupported profiles format: {suffix}")

    if df.empty:
        raise ValueError(f"Profiles file is empty: {filepath}")

    if "id" not in df.columns and "user_id" not in df.columns:
        raise ValueError(f"Profiles file has no id column: {filepath}")

    logger.info(f"Loaded {len(df)} rows with {len(df.columns)} columns")
    return df


def _clean(value: Any) -> Any:
    """Map pandas missing markers to None."""
    if isinstance(value, (list, dict)):
        return value
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        return value
    return value


def _parse_embedding(value: Any) -> Optional[List[float]]:
    value = _clean(value)
    if value is None or isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Ignoring unparseable bio_embedding value")
            return None
        return parsed if isinstance(parsed, list) else None
    return None


def _parse_age(value: Any) -> Any:
    value = _clean(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def _parse_code(value: Any) -> Any:
    value = _clean(value)
    # Numeric ids and postal codes, possibly widened to float by pandas
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, numbers.Integral) and not isinstance(value, bool):
        return str(value)
    return value


def _parse_visibility(row: Dict[str, Any]) -> Optional[Dict[str, bool]]:
    visibility = _clean(row.get("visibility"))
    if isinstance(visibility, str):
        try:
            visibility = json.loads(visibility)
        except json.JSONDecodeError:
            visibility = None
    if isinstance(visibility, dict):
        return {k: v is True for k, v in visibility.items()}

    share_columns = {f: row.get(f"{SHARE_PREFIX}{f}") for f in MATCH_FIELDS}
    if all(_clean(v) is None for v in share_columns.values()):
        return None
    return {f: _clean(v) in (True, 1, "true", "True", "yes") for f, v in share_columns.items()}


def row_to_profile(row: Dict[str, Any]) -> Profile:
    """
    Convert one raw row into a Profile.

    Args:
        row: Column -> value mapping

    Returns:
        Profile snapshot
    """
    profile_id = _parse_code(row.get("id"))
    if profile_id is None:
        profile_id = _parse_code(row.get("user_id"))

    return Profile(
        id=profile_id,
        bio=_clean(row.get("bio")),
        bio_embedding=_parse_embedding(row.get("bio_embedding")),
        interests=_clean(row.get("interests")),
        age=_parse_age(row.get("age")),
        location=_parse_code(row.get("location")),
        visibility=_parse_visibility(row),
    )


def frame_to_profiles(df: pd.DataFrame) -> List[Profile]:
    """
    Convert a DataFrame of rows into Profiles, skipping rows without an id.

    Args:
        df: Raw profile rows

    Returns:
        List of Profile snapshots in row order
    """
    profiles = []
    n_skipped = 0
    for row in df.to_dict(orient="records"):
        try:
            profiles.append(row_to_profile(row))
        except ValueError as e:
            n_skipped += 1
            logger.warning(f"Skipping profile row: {e}")

    if n_skipped:
        logger.warning(f"Skipped {n_skipped} rows without a usable id")
    return profiles


def load_profiles(filepath: str) -> List[Profile]:
    """
    Load Profiles from a CSV or JSON file.

    Args:
        filepath: Path to the profiles file

    Returns:
        List of Profile snapshots
    """
    profiles = frame_to_profiles(load_profiles_frame(filepath))
    logger.info(f"Built {len(profiles)} profiles from {filepath}")
    return profiles
