"""
Configuration loading and validation.

This module handles loading of YAML configuration files and
validates that all required fields are present.
"""

import logging
from pathlib import Path
from typing import Dict, Any, List

import yaml

from ..privacy.visibility import MATCH_FIELDS

logger = logging.getLogger(__name__)


def load_config(filepath: str) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    Args:
        filepath: Path to the YAML configuration file

    Returns:
        Configuration dictionary

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {filepath}")

    logger.info(f"Loading configuration from {filepath}")
    with open(filepath, "r") as f:
        config = yaml.safe_load(f)

    if config is None:
        raise ValueError(f"Configuration file is empty: {filepath}")

    return config


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration and return list of warnings/errors.

    Args:
        config: Configuration dictionary

    Returns:
        List of warning/error messages (empty if valid)
    """
    issues = []

    required_sections = ["global", "scoring", "cache", "batch"]

    for section in required_sections:
        if section not in config:
            issues.append(f"Missing required section: {section}")

    if "scoring" in config:
        scoring = config["scoring"]
        weights = scoring.get("weights", {})
        for name in MATCH_FIELDS:
            if name not in weights:
                issues.append(f"Missing scoring.weights.{name}")
            elif not 0 <= weights[name] <= 1:
                issues.append(f"Weight for {name} must be in [0, 1], got {weights[name]}")
        if weights:
            total = sum(weights.values())
            if abs(total - 1.0) > 0.01:
                issues.append(f"Scoring weights don't sum to 1: {total}")

        interests = scoring.get("interests", {})
        w_exact = interests.get("exact_weight", 0.7)
        w_fuzzy = interests.get("fuzzy_weight", 0.3)
        if abs(w_exact + w_fuzzy - 1.0) > 0.01:
            issues.append(f"Interest weights don't sum to 1: {w_exact} + {w_fuzzy}")

        sigma = scoring.get("age", {}).get("sigma", 5.0)
        if sigma <= 0:
            issues.append(f"scoring.age.sigma must be positive, got {sigma}")

    if "cache" in config:
        cache = config["cache"]
        if cache.get("ttl_seconds", 300) <= 0:
            issues.append(f"cache.ttl_seconds must be positive, got {cache.get('ttl_seconds')}")
        if cache.get("max_entries", 1000) <= 0:
            issues.append(f"cache.max_entries must be positive, got {cache.get('max_entries')}")
        fraction = cache.get("evict_fraction", 0.2)
        if not 0 < fraction <= 1:
            issues.append(f"cache.evict_fraction must be in (0, 1], got {fraction}")

    if "batch" in config:
        limit = config["batch"].get("limit", 50)
        if limit is not None and limit <= 0:
            issues.append(f"batch.limit must be positive, got {limit}")

    return issues


def get_config_value(config: Dict[str, Any], path: str, default: Any = None) -> Any:
    """
    Get a nested configuration value using dot notation.

    Args:
        config: Configuration dictionary
        path: Dot-separated path (e.g., "cache.ttl_seconds")
        default: Default value if path doesn't exist

    Returns:
        Configuration value or default
    """
    keys = path.split(".")
    value = config
    for key in keys:
        if isinstance(value, dict) and key in value:
            value = value[key]
        else:
            return default
    return value
