"""Field visibility filter for privacy-aware matching."""

from .visibility import VisibilityDecision, visible_fields, MATCH_FIELDS

__all__ = ["VisibilityDecision", "visible_fields", "MATCH_FIELDS"]
