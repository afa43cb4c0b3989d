"""
Mutual visibility rule for matching signals.

A profile field may contribute to a match score only if BOTH parties
have opted to share it: a user can only be matched on attributes they
themselves expose.

The decision is a pure AND over the two visibility maps. A missing map
shares nothing (fail-closed), and only a literal True counts as opt-in.
"""

import logging
from dataclasses import dataclass, asdict
from typing import Dict, Any, List, Mapping, Optional

logger = logging.getLogger(__name__)

MATCH_FIELDS = ("bio", "interests", "age", "location")


@dataclass(frozen=True)
class VisibilityDecision:
    """
    Per-field eligibility for one pairwise computation.

    Attributes:
        bio: Bio text/embedding may be compared
        interests: Interest tags may be compared
        age: Ages may be compared
        location: Locations may be compared
    """
    bio: bool = False
    interests: bool = False
    age: bool = False
    location: bool = False

    def is_eligible(self, field_name: str) -> bool:
        """Whether a field may contribute."""
        if field_name not in MATCH_FIELDS:
            raise ValueError(f"Unknown match field: {field_name}")
        return getattr(self, field_name)

    def eligible_fields(self) -> List[str]:
        """Fields that may contribute, in canonical order."""
        return [f for f in MATCH_FIELDS if getattr(self, f)]

    def to_dict(self) -> Dict[str, bool]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def all_visible(cls) -> "VisibilityDecision":
        """Decision with every field eligible."""
        return cls(bio=True, interests=True, age=True, location=True)


def _shares(settings: Optional[Mapping[str, Any]], field_name: str) -> bool:
    if not settings:
        return False
    return settings.get(field_name) is True


def visible_fields(
    owner_settings: Optional[Mapping[str, Any]],
    other_settings: Optional[Mapping[str, Any]]
) -> VisibilityDecision:
    """
    Determine which fields are mutually visible between two profiles.

    Args:
        owner_settings: Visibility flags of the requesting user
        other_settings: Visibility flags of the other user

    Returns:
        VisibilityDecision with a field True only if both share it
    """
    decision = VisibilityDecision(**{
        f: _shares(owner_settings, f) and _shares(other_settings, f)
        for f in MATCH_FIELDS
    })
    logger.debug(f"Mutually visible fields: {decision.eligible_fields()}")
    return decision
