"""
In-memory profile store and candidate selection.

The engine scores whatever candidate sequence it is handed. This module
produces those sequences for the three ways callers pick candidates:
- explicit_candidates: a given list of profile ids
- all_other_profiles: every stored profile except the user
- event_attendees: the attendees of an event, minus the user

Key Design Decisions:
- Unknown ids are skipped with a warning rather than failing the batch
- Selection preserves the caller's order; ranking is the engine's job
- Self-pairs are removed here as well as in the engine
"""

import logging
from typing import Dict, Iterable, Iterator, List

from ..scoring.schema import Profile

logger = logging.getLogger(__name__)


class ProfileStore:
    """
    Profiles keyed by id.

    Adding a profile with an existing id replaces the stored snapshot.

    Attributes:
        profiles: id -> Profile mapping in insertion order
    """

    def __init__(self, profiles: Iterable[Profile] = ()):
        self.profiles: Dict[str, Profile] = {}
        for profile in profiles:
            self.add(profile)

    def add(self, profile: Profile) -> None:
        if profile.id in self.profiles:
            logger.debug(f"Replacing stored profile {profile.id}")
        self.profiles[profile.id] = profile

    def get(self, profile_id: str) -> Profile:
        """
        Look up a profile.

        Raises:
            KeyError: If no profile has this id
        """
        try:
            return self.profiles[str(profile_id)]
        except KeyError:
            raise KeyError(f"Unknown profile id: {profile_id}") from None

    def all(self) -> List[Profile]:
        return list(self.profiles.values())

    def ids(self) -> List[str]:
        return list(self.profiles)

    def __len__(self) -> int:
        return len(self.profiles)

    def __contains__(self, profile_id: object) -> bool:
        return str(profile_id) in self.profiles

    def __iter__(self) -> Iterator[Profile]:
        return iter(self.profiles.values())


def explicit_candidates(store: ProfileStore, candidate_ids: Iterable[str]) -> List[Profile]:
    """
    Resolve an explicit list of candidate ids.

    Args:
        store: Profile store
        candidate_ids: Ids to score against

    Returns:
        Profiles for the known ids, in the given order
    """
    candidates = []
    for candidate_id in candidate_ids:
        if candidate_id not in store:
            logger.warning(f"Skipping unknown candidate id {candidate_id}")
            continue
        candidates.append(store.get(candidate_id))
    return candidates


def all_other_profiles(store: ProfileStore, user_id: str) -> List[Profile]:
    """Every stored profile except the user's own."""
    user_id = str(user_id)
    return [p for p in store if p.id != user_id]


def event_attendees(
    store: ProfileStore,
    attendee_ids: Iterable[str],
    user_id: str
) -> List[Profile]:
    """
    Candidates drawn from an event's attendee list.

    Args:
        store: Profile store
        attendee_ids: Ids of everyone attending the event
        user_id: Requesting user, excluded from the result

    Returns:
        Attendee profiles other than the user
    """
    user_id = str(user_id)
    attendees = explicit_candidates(store, attendee_ids)
    return [p for p in attendees if p.id != user_id]
