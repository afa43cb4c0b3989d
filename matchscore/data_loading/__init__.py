"""Profile loading and candidate selection."""

from .loaders import load_profiles, load_profiles_frame, frame_to_profiles, row_to_profile
from .store import ProfileStore, explicit_candidates, all_other_profiles, event_attendees

__all__ = [
    "load_profiles",
    "load_profiles_frame",
    "frame_to_profiles",
    "row_to_profile",
    "ProfileStore",
    "explicit_candidates",
    "all_other_profiles",
    "event_attendees",
]
