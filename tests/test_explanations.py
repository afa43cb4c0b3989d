"""
Tests for matchscore.scoring.explanations

Covers:
- Sentences for shared interests, age and location
- "Both in" only for the same normalized place
- Hidden and neutral signals never described
- Fallback and insufficient-data messages
"""

from matchscore.scoring.explanations import explain_match, shared_interests
from matchscore.similarity import StaticGeocoder

from conftest import make_profile


def test_scenario_explanation(engine, profile_a, profile_b):
    breakdown = engine.score_one(profile_a, profile_b)
    assert explain_match(breakdown, profile_a, profile_b) == (
        "You both enjoy cooking, hiking. You're very close in age. You're both in 94110."
    )


def test_shared_interests_capped_at_three(engine):
    tags = ["cooking", "hiking", "jazz", "reading", "yoga"]
    a = make_profile("a", interests=tags)
    b = make_profile("b", interests=tags)
    text = explain_match(engine.score_one(a, b), a, b)
    assert text.startswith("You both enjoy cooking, hiking, jazz.")


def test_hidden_fields_are_not_described(engine):
    private = {"interests": True}
    a = make_profile("a", interests=["hiking"], age=30, location="94110", visibility=private)
    b = make_profile("b", interests=["hiking"], age=30, location="94110", visibility=private)
    text = explain_match(engine.score_one(a, b), a, b)
    assert "age" not in text
    assert "94110" not in text


def test_neutral_signals_fall_back(engine):
    a = make_profile("a", interests=["hiking"])
    b = make_profile("b", interests=["knitting"])
    text = explain_match(engine.score_one(a, b), a, b)
    assert text == "This could be an interesting connection."


def test_nearby_location_and_bio(engine, geocoder):
    engine.geocoder = geocoder
    a = make_profile("a", location="94110", bio_embedding=[1.0, 0.2])
    b = make_profile("b", location="94103", bio_embedding=[1.0, 0.3])
    text = explain_match(engine.score_one(a, b), a, b)
    assert "You live close to each other" in text
    assert "Your profiles show good compatibility" in text


def test_distinct_codes_within_a_kilometer_are_close_not_same(engine):
    engine.geocoder = StaticGeocoder({
        "94110": (37.7484, -122.4156),
        "94111": (37.7490, -122.4150),
    })
    a = make_profile("a", location="94110")
    b = make_profile("b", location="94111")
    breakdown = engine.score_one(a, b)
    assert breakdown.signals["location"].raw == 1.0
    text = explain_match(breakdown, a, b)
    assert "You live close to each other" in text
    assert "both in" not in text


def test_same_place_with_different_spelling(engine):
    a = make_profile("a", location="Oakland, CA")
    b = make_profile("b", location="  oakland,  ca ")
    text = explain_match(engine.score_one(a, b), a, b)
    assert "You're both in Oakland, CA" in text


def test_insufficient_data_message(engine):
    a = make_profile("a", interests=["hiking"], visibility=None)
    b = make_profile("b", interests=["hiking"])
    text = explain_match(engine.score_one(a, b), a, b)
    assert "enough" in text


def test_shared_interests_sorted():
    a = make_profile("a", interests=["yoga", "art", "jazz"])
    b = make_profile("b", interests=["jazz", "yoga"])
    assert shared_interests(a, b) == ["jazz", "yoga"]
