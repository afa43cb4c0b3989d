"""
Template explanations for a match breakdown.

Only signals that actually contributed are described, so hidden fields
never leak into the text. Neutral defaults (missing data) are not
presented as strengths.
"""

from typing import List

from ..similarity.geo import normalize_location
from .schema import MatchBreakdown, Profile, SignalStatus

MAX_LISTED_INTERESTS = 3


def _contributed(breakdown: MatchBreakdown, name: str) -> bool:
    signal = breakdown.signals.get(name)
    return (
        signal is not None
        and signal.status == SignalStatus.SCORED
        and not signal.neutral
    )


def shared_interests(profile_a: Profile, profile_b: Profile) -> List[str]:
    """Interests both profiles list, sorted."""
    return sorted(profile_a.interests & profile_b.interests)


def explain_match(breakdown: MatchBreakdown, profile_a: Profile, profile_b: Profile) -> str:
    """
    Generate a short human-readable explanation of a match.

    Args:
        breakdown: Breakdown computed for (profile_a, profile_b)
        profile_a: Profile the score was computed for
        profile_b: Profile being scored

    Returns:
        One or more sentences ending with a period
    """
    if breakdown.insufficient_data:
        return "There isn't enough shared profile information to explain this match yet."

    explanations = []

    if _contributed(breakdown, "interests"):
        common = shared_interests(profile_a, profile_b)
        if common:
            explanations.append(f"You both enjoy {', '.join(common[:MAX_LISTED_INTERESTS])}")

    if _contributed(breakdown, "age"):
        age_diff = abs(float(profile_a.age) - float(profile_b.age))
        if age_diff <= 2:
            explanations.append("You're very close in age")
        elif age_diff <= 5:
            explanations.append("You're similar in age")

    if _contributed(breakdown, "location"):
        raw = breakdown.signals["location"].raw
        same_place = normalize_location(profile_a.location) == normalize_location(profile_b.location)
        if raw >= 1.0 and same_place:
            explanations.append(f"You're both in {profile_a.location.strip()}")
        elif raw >= 0.5:
            explanations.append("You live close to each other")

    if _contributed(breakdown, "bio") and breakdown.signals["bio"].raw >= 0.4:
        explanations.append("Your profiles show good compatibility")

    if not explanations:
        explanations.append("This could be an interesting connection")

    return f"{'. '.join(explanations)}."
