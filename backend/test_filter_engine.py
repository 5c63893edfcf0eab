"""
test_filter_engine.py
──────────────────────────────────────────────────────────────────────────────
Filter predicate engine: each predicate on its own, the AND composition,
monotonicity (adding a filter never grows the result) and the mood presets.

Run:
    pytest backend/test_filter_engine.py
──────────────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from schemas.experience import Experience, GeoPoint, UserPreferences
from modules.filtering import (
    MOODS,
    FilterCriteria,
    UnknownMoodError,
    active_filters,
    filter_experiences,
    matches,
    mood_keywords,
)


def _exp(id: str, **kw) -> Experience:
    defaults = dict(title=id, city="Austin", category="outdoor adventures", price=20.0)
    defaults.update(kw)
    return Experience(id=id, **defaults)


_CATALOG = [
    _exp("hike", title="Greenbelt Hike", tags=("hiking", "nature"), price=0.0,
         coordinates=GeoPoint(30.258, -97.805),
         start_time=datetime(2026, 3, 1, 8, tzinfo=timezone.utc)),
    _exp("tacos", title="Taco Tour", category="food & drinks", tags=("tacos", "food"), price=35.0,
         description="Breakfast tacos to brisket.", coordinates=GeoPoint(30.262, -97.723),
         start_time=datetime(2026, 3, 1, 18, tzinfo=timezone.utc)),
    _exp("spa", title="Hill Country Spa", category="wellness & fitness", tags=("spa",), price=90.0,
         availability="limited"),
    _exp("club", title="Sixth Street Crawl", category="nightlife & entertainment",
         tags=("nightlife",), price=None,
         start_time=datetime(2026, 3, 2, 22, tzinfo=timezone.utc)),
    _exp("sf", title="Cocktail Class", city="San Francisco", category="food & drinks",
         location_label="Downtown San Francisco", price=65.0),
]


def _ids(experiences) -> list[str]:
    return [e.id for e in experiences]


# ─────────────────────────────────────────────────────────────────────────────
# Individual predicates
# ─────────────────────────────────────────────────────────────────────────────

def test_no_criteria_matches_everything_in_order():
    assert _ids(filter_experiences(_CATALOG, FilterCriteria())) == _ids(_CATALOG)
    assert active_filters(FilterCriteria()) == []


@pytest.mark.parametrize("city", ["", "All", "all"])
def test_city_filter_is_off_for_blank_and_all(city):
    assert len(filter_experiences(_CATALOG, FilterCriteria(city=city))) == len(_CATALOG)


def test_city_filter_is_case_insensitive_substring():
    assert _ids(filter_experiences(_CATALOG, FilterCriteria(city="san fran"))) == ["sf"]


def test_city_falls_back_to_location_label():
    exp = _exp("loc", city="", location_label="Brooklyn, New York")
    assert matches(exp, FilterCriteria(city="New York"))
    assert not matches(exp, FilterCriteria(city="Austin"))


def test_category_uses_first_word_of_label():
    criteria = FilterCriteria(categories=("Food & Drinks",))
    assert _ids(filter_experiences(_CATALOG, criteria)) == ["tacos", "sf"]
    criteria = FilterCriteria(categories=("Food & Drinks", "Wellness & Fitness"))
    assert _ids(filter_experiences(_CATALOG, criteria)) == ["tacos", "spa", "sf"]


def test_hyphenated_category_word_is_kept_whole():
    catalog = [
        _exp("retreat", category="self-care retreats"),
        _exp("defense", category="self defense class"),
    ]
    criteria = FilterCriteria(categories=("Self-care Retreats",))
    assert _ids(filter_experiences(catalog, criteria)) == ["retreat"]


def test_interests_match_tags_or_description():
    assert _ids(filter_experiences(_CATALOG, FilterCriteria(interests=("Hiking",)))) == ["hike"]
    assert _ids(filter_experiences(_CATALOG, FilterCriteria(interests=("brisket",)))) == ["tacos"]


def test_budget_excludes_unpriced_and_expensive():
    result = filter_experiences(_CATALOG, FilterCriteria(max_price=35))
    assert _ids(result) == ["hike", "tacos"]
    assert all(e.price is not None and e.price <= 35 for e in result)


def test_date_filter_uses_utc_day_and_drops_ongoing():
    result = filter_experiences(_CATALOG, FilterCriteria(on_date=date(2026, 3, 1)))
    assert _ids(result) == ["hike", "tacos"]


def test_search_spans_title_description_location_city_category():
    def search(q):
        return _ids(filter_experiences(_CATALOG, FilterCriteria(search=q)))

    assert search("taco") == ["tacos"]
    assert search("BRISKET") == ["tacos"]
    assert search("downtown") == ["sf"]
    assert search("nightlife") == ["club"]
    assert search("   ") == _ids(_CATALOG)


def test_radius_drops_unlocated_experiences():
    zilker = GeoPoint(30.2669, -97.7729)
    result = filter_experiences(_CATALOG, FilterCriteria(near=zilker, radius_km=10))
    assert _ids(result) == ["hike", "tacos"]
    result = filter_experiences(_CATALOG, FilterCriteria(near=zilker, radius_km=4))
    assert _ids(result) == ["hike"]


def test_availability_filter():
    assert _ids(filter_experiences(_CATALOG, FilterCriteria(availability="limited"))) == ["spa"]


# ─────────────────────────────────────────────────────────────────────────────
# Moods
# ─────────────────────────────────────────────────────────────────────────────

def test_relaxed_mood_keeps_spa_and_drops_nightlife():
    spa = _exp("a", tags=("spa",))
    club = _exp("b", tags=("nightlife",))
    assert _ids(filter_experiences([spa, club], FilterCriteria(mood="relaxed"))) == ["a"]


def test_mood_keywords_also_search_title_and_description():
    exp = _exp("c", title="Sunset Dinner Cruise")
    assert matches(exp, FilterCriteria(mood="romantic"))
    assert not matches(exp, FilterCriteria(mood="relaxed"))


def test_mood_lookup():
    assert "spa" in mood_keywords("Relaxed")
    assert set(MOODS) == {
        "adventurous", "relaxed", "social", "creative",
        "romantic", "foodie", "cultural", "spontaneous",
    }
    with pytest.raises(UnknownMoodError, match="ERROR_UNKNOWN_MOOD"):
        FilterCriteria(mood="grumpy")


# ─────────────────────────────────────────────────────────────────────────────
# Composition
# ─────────────────────────────────────────────────────────────────────────────

def test_seattle_preferences_match_nothing():
    prefs = UserPreferences(city="Seattle")
    assert filter_experiences(_CATALOG, FilterCriteria.from_preferences(prefs)) == []


def test_from_preferences_maps_every_field():
    prefs = UserPreferences(
        city="Austin", experience_types=("Food & Drinks",), interests=("tacos",),
        budget=40, mood="foodie", on_date=date(2026, 3, 1), search="tour",
    )
    criteria = FilterCriteria.from_preferences(prefs)
    assert active_filters(criteria) == [
        "city", "category", "mood", "interests", "budget", "date", "search",
    ]
    assert _ids(filter_experiences(_CATALOG, criteria)) == ["tacos"]

    relaxed = FilterCriteria.from_preferences(prefs, max_price=None, search="")
    assert "budget" not in active_filters(relaxed)


_STEPS = [
    dict(city="Austin"),
    dict(categories=("Food & Drinks", "Outdoor Adventures")),
    dict(max_price=30.0),
    dict(on_date=date(2026, 3, 1)),
    dict(interests=("hiking",)),
]


def test_adding_filters_never_grows_the_result():
    applied: dict = {}
    previous = set(_ids(_CATALOG))
    for step in _STEPS:
        applied.update(step)
        current = set(_ids(filter_experiences(_CATALOG, FilterCriteria(**applied))))
        assert current <= previous
        previous = current
    assert previous == {"hike"}
