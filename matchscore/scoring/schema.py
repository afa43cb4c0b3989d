"""
Data structures consumed and produced by the scoring engine.

Profile is an immutable per-call snapshot owned by the surrounding
application. MatchBreakdown is the ephemeral result of one pairwise
computation; only the score cache keeps it around.

Signals (fixed order):
- bio: semantic similarity of bio embeddings
- interests: exact + fuzzy overlap of interest tags
- age: Gaussian age proximity
- location: geographic proximity
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Mapping, Optional, Sequence

from ..privacy.visibility import MATCH_FIELDS
from ..similarity.primitives import normalize_tags

SIGNAL_ORDER = MATCH_FIELDS

# Breakdown attribute holding each signal's contribution points
BREAKDOWN_FIELDS = {
    "bio": "bio_similarity",
    "interests": "interest_overlap",
    "age": "age_proximity",
    "location": "location_bonus",
}


class SignalStatus(Enum):
    """Why a signal did or did not contribute to a score."""
    SCORED = "scored"    # Raw sub-score computed and weighted
    HIDDEN = "hidden"    # Not mutually visible
    MISSING = "missing"  # No usable data and no neutral default
    INVALID = "invalid"  # Malformed user data
    FAILED = "failed"    # External dependency (embedding provider) failed


def _parse_interests(value: Any) -> FrozenSet[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        separator = ";" if ";" in value else ","
        return normalize_tags(value.split(separator))
    try:
        return normalize_tags(list(value))
    except TypeError:
        return frozenset()


@dataclass(frozen=True)
class Profile:
    """
    Matching-relevant snapshot of one user.

    The engine never mutates a Profile. Values are kept as supplied except
    for interests, which are normalized (lower-cased, trimmed, deduplicated);
    malformed ages, locations or embeddings are detected at scoring time and
    dropped from that computation.

    Attributes:
        id: Profile identifier
        bio: Free-text bio
        bio_embedding: Precomputed bio embedding vector
        interests: Normalized interest tags
        age: Age in years
        location: Postal code or free-form place string
        visibility: Per-field sharing flags (None shares nothing)
    """
    id: str
    bio: Optional[str] = None
    bio_embedding: Optional[Sequence[float]] = field(default=None, compare=False, repr=False)
    interests: FrozenSet[str] = frozenset()
    age: Optional[Any] = None
    location: Optional[Any] = None
    visibility: Optional[Mapping[str, bool]] = field(default=None, compare=False)

    def __post_init__(self):
        """Normalize identifier and interest tags."""
        if self.id is None or str(self.id).strip() == "":
            raise ValueError("Profile id must be a non-empty value")
        object.__setattr__(self, "id", str(self.id))
        object.__setattr__(self, "interests", _parse_interests(self.interests))
        if self.visibility is not None:
            object.__setattr__(self, "visibility", dict(self.visibility))

    def with_embedding(self, embedding: Sequence[float]) -> "Profile":
        """Return a copy carrying the given bio embedding."""
        return replace(self, bio_embedding=embedding)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        embedding = self.bio_embedding
        if embedding is not None:
            embedding = [float(x) for x in embedding]
        return {
            "id": self.id,
            "bio": self.bio,
            "bio_embedding": embedding,
            "interests": sorted(self.interests),
            "age": self.age,
            "location": self.location,
            "visibility": dict(self.visibility) if self.visibility is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Profile":
        """
        Create from dictionary.

        Accepts "id" or "user_id" as identifier and "visibility" or
        "privacy_settings" as the sharing map.
        """
        profile_id = data.get("id", data.get("user_id"))
        visibility = data.get("visibility", data.get("privacy_settings"))
        return cls(
            id=profile_id,
            bio=data.get("bio"),
            bio_embedding=data.get("bio_embedding"),
            interests=_parse_interests(data.get("interests")),
            age=data.get("age"),
            location=data.get("location"),
            visibility=visibility,
        )


@dataclass(frozen=True)
class SignalInput:
    """
    Raw sub-score for one signal before weighting.

    Attributes:
        raw: Sub-score in [0, 1], or None when the signal is absent
        status: Why the signal is present or absent
        neutral: True when raw is a neutral default for missing data
        detail: Short human-readable reason for absent signals
    """
    raw: Optional[float]
    status: SignalStatus
    neutral: bool = False
    detail: Optional[str] = None

    @classmethod
    def absent(cls, status: SignalStatus, detail: Optional[str] = None) -> "SignalInput":
        return cls(raw=None, status=status, detail=detail)


@dataclass(frozen=True)
class SignalScore:
    """Weighted result of one signal."""
    name: str
    raw: Optional[float]
    weight: float
    contribution: float
    status: SignalStatus
    neutral: bool = False
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "raw": self.raw,
            "weight": self.weight,
            "contribution": self.contribution,
            "status": self.status.value,
            "neutral": self.neutral,
            "detail": self.detail,
        }


@dataclass(frozen=True)
class MatchBreakdown:
    """
    Result of one pairwise score computation.

    Contribution fields are points on the score scale (raw * weight *
    scale) and are 0 for absent signals. total is rescaled over the
    signals that were available and always within [0, scale].

    Attributes:
        profile_id: Profile the score was computed for
        candidate_id: Profile being scored
        bio_similarity: Bio signal contribution
        interest_overlap: Interest signal contribution
        age_proximity: Age signal contribution
        location_bonus: Location signal contribution
        total: Bounded total score
        insufficient_data: True when no signal was available
        signals: Per-signal detail
    """
    profile_id: str
    candidate_id: str
    bio_similarity: float
    interest_overlap: float
    age_proximity: float
    location_bonus: float
    total: float
    insufficient_data: bool = False
    signals: Dict[str, SignalScore] = field(default_factory=dict, compare=False)

    def oriented(self, profile_id: str) -> "MatchBreakdown":
        """
        Return this breakdown as seen from profile_id.

        Scores are symmetric, so only the two identifiers swap.
        """
        if profile_id == self.profile_id:
            return self
        if profile_id != self.candidate_id:
            raise ValueError(
                f"Profile {profile_id} is not part of pair "
                f"({self.profile_id}, {self.candidate_id})"
            )
        return replace(self, profile_id=self.candidate_id, candidate_id=self.profile_id)

    def available_signals(self):
        """Names of signals that contributed."""
        return [n for n, s in self.signals.items() if s.status == SignalStatus.SCORED]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "profile_id": self.profile_id,
            "candidate_id": self.candidate_id,
            "bio_similarity": self.bio_similarity,
            "interest_overlap": self.interest_overlap,
            "age_proximity": self.age_proximity,
            "location_bonus": self.location_bonus,
            "total": self.total,
            "insufficient_data": self.insufficient_data,
            "signals": {n: s.to_dict() for n, s in self.signals.items()},
        }
