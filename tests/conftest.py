"""Shared fixtures for the matchscore test suite."""

from pathlib import Path

import pytest

from matchscore.cache import ScoreCache
from matchscore.engine import MatchEngine
from matchscore.scoring import Profile
from matchscore.similarity import StaticGeocoder

PROJECT_ROOT = Path(__file__).parent.parent

ALL_VISIBLE = {"bio": True, "interests": True, "age": True, "location": True}


def make_profile(profile_id, **overrides):
    """
    Create a Profile sharing every field.

    Pass keyword arguments to override any field, including visibility.
    """
    overrides.setdefault("visibility", dict(ALL_VISIBLE))
    return Profile(id=profile_id, **overrides)


class FakeClock:
    """Manually advanced time source for cache tests."""

    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def profile_a():
    return make_profile(
        "a", interests=["hiking", "cooking", "reading"], age=28, location="94110"
    )


@pytest.fixture
def profile_b():
    return make_profile(
        "b", interests=["hiking", "cooking", "travel"], age=30, location="94110"
    )


@pytest.fixture
def geocoder():
    return StaticGeocoder({
        "94110": (37.7484, -122.4156),
        "94103": (37.7725, -122.4116),
        "94612": (37.8044, -122.2712),
        "98101": (47.6113, -122.3305),
    })


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def engine():
    return MatchEngine()


@pytest.fixture
def cached_engine(clock):
    return MatchEngine(cache=ScoreCache(clock=clock))


@pytest.fixture
def config_path():
    return PROJECT_ROOT / "configs" / "config.yaml"
