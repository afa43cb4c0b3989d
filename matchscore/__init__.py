"""
Match Scoring Engine

This package computes compatibility scores between two user profiles from
heterogeneous signals (bio embeddings, interest tags, age, geography) and
ranks candidates for a user.

Key Design Decisions:
- One canonical weighting, defined in a single place (CombinerConfig)
- Signals that are not mutually shared are dropped and the remaining
  weights are rescaled, never scored as zero
- Missing data falls back to neutral defaults instead of worst case
- The score cache is an injected object, never module-level state
"""

__version__ = "1.0.0"
