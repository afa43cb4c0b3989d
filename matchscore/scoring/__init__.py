"""Score combination and the data structures it consumes and produces."""

from .schema import (
    Profile,
    MatchBreakdown,
    SignalInput,
    SignalScore,
    SignalStatus,
    SIGNAL_ORDER,
)
from .combiner import ScoreCombiner, CombinerConfig, CANONICAL_WEIGHTS

__all__ = [
    "Profile",
    "MatchBreakdown",
    "SignalInput",
    "SignalScore",
    "SignalStatus",
    "SIGNAL_ORDER",
    "ScoreCombiner",
    "CombinerConfig",
    "CANONICAL_WEIGHTS",
]
