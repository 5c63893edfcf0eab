"""
test_experience_scoring.py
──────────────────────────────────────────────────────────────────────────────
Scoring strategies and ranking: point values, peak-window modifiers, the
[0, 100] bound, stable tie order and the seeded trending scorer.

Run:
    pytest backend/test_experience_scoring.py
──────────────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from schemas.experience import Experience, TimeOfDay, UserPreferences
from modules.planning.experience_scoring import (
    IntensityScorer,
    PreferenceScorer,
    ScoringContext,
    TrendingScorer,
    UnknownStrategyError,
    category_family,
    get_strategy,
    peak_modifier,
    rank,
)

_NOON = datetime(2026, 3, 4, 12, tzinfo=timezone.utc)
_EVENING = datetime(2026, 3, 4, 19, tzinfo=timezone.utc)


def _ctx(prefs: UserPreferences | None = None, now: datetime = _NOON, time_range: str = "now"):
    return ScoringContext(now=now, preferences=prefs or UserPreferences(), time_range=time_range)


# ─────────────────────────────────────────────────────────────────────────────
# Preference scorer
# ─────────────────────────────────────────────────────────────────────────────

def test_preference_points_add_up():
    prefs = UserPreferences(
        city="Austin", interests=("hiking",), budget=40, time_of_day=("morning",),
    )
    exp = Experience(
        id="hike", tags=("hiking",), description="A hiking loop", price=10.0,
        start_time=datetime(2026, 3, 5, 8, tzinfo=timezone.utc),
    )
    scored = PreferenceScorer().score(exp, _ctx(prefs))
    # 10 (tag) + 5 (description) + 5 (ratio .25) + 3 (morning) + 2 (paid)
    assert scored.score == 25
    assert "Great value for money" in scored.reasons


@pytest.mark.parametrize("price,expected", [(20.0, 5 + 2), (30.0, 3 + 2), (40.0, 1 + 2), (41.0, 2)])
def test_preference_budget_ratio_bands(price, expected):
    prefs = UserPreferences(budget=40)
    assert PreferenceScorer().score(Experience(id="x", price=price), _ctx(prefs)).score == expected


def test_preference_free_unpriced_and_ongoing():
    prefs = UserPreferences(budget=40, time_of_day=("evening",))
    # free: best budget band, no paid bonus; ongoing: no time-of-day bonus
    assert PreferenceScorer().score(Experience(id="free", price=0.0), _ctx(prefs)).score == 5
    assert PreferenceScorer().score(Experience(id="unpriced", price=None), _ctx(prefs)).score == 0


def test_preference_score_is_capped():
    prefs = UserPreferences(interests=tuple(f"tag{i}" for i in range(12)))
    exp = Experience(id="x", tags=prefs.interests, description=" ".join(prefs.interests))
    assert PreferenceScorer().score(exp, _ctx(prefs)).score == 100


# ─────────────────────────────────────────────────────────────────────────────
# Intensity scorer
# ─────────────────────────────────────────────────────────────────────────────

def test_category_families():
    assert category_family("food & drinks") == "food"
    assert category_family("nightlife & entertainment") == "nightlife"
    assert category_family("wellness & fitness") == "wellness"
    assert category_family("outdoor adventures") == "outdoor"
    assert category_family("arts & culture") == "arts"
    assert category_family("", ("yoga",)) == "wellness"
    assert category_family("workshop") == "other"


def test_peak_modifiers():
    at = lambda h: datetime(2026, 3, 4, h, tzinfo=timezone.utc)  # noqa: E731
    assert peak_modifier("food", "now", at(18)) == 1.5
    assert peak_modifier("food", "now", at(12)) == 1.0
    assert peak_modifier("nightlife", "now", at(21)) == 2.0
    assert peak_modifier("wellness", "now", at(7)) == 1.3
    assert peak_modifier("food", "evening", at(9)) == 1.8
    assert peak_modifier("arts", "weekend", at(9)) == 1.6
    assert peak_modifier("food", "weekend", at(9)) == 1.0


def test_intensity_uses_engagement_and_peak_window():
    exp = Experience(id="f", category="food & drinks", like_count=10, save_count=6, review_count=4)
    scorer = IntensityScorer(weight=0.5)
    assert scorer.score(exp, _ctx(now=_NOON)).score == 10
    assert scorer.score(exp, _ctx(now=_EVENING)).score == 15
    assert scorer.score(exp, _ctx(time_range="evening")).score == 18


def test_intensity_is_capped_and_monotonic_in_engagement():
    scorer = IntensityScorer(weight=0.5)
    low = Experience(id="a", category="music", like_count=10)
    high = Experience(id="b", category="music", like_count=20)
    huge = Experience(id="c", category="music", like_count=10_000)
    ctx = _ctx()
    assert scorer.score(low, ctx).score <= scorer.score(high, ctx).score
    assert scorer.score(huge, ctx).score == 100


# ─────────────────────────────────────────────────────────────────────────────
# Trending scorer
# ─────────────────────────────────────────────────────────────────────────────

def test_trending_is_deterministic_for_a_seed_and_bounded():
    prefs = UserPreferences(city="Austin", experience_types=("Food & Drinks",))
    catalog = [
        Experience(id=f"e{i}", category="food & drinks", city="Austin", price=30.0,
                   rating=4.8, like_count=60 + i)
        for i in range(20)
    ]
    first = [s.score for s in rank(catalog, TrendingScorer(seed=7), _ctx(prefs))]
    second = [s.score for s in rank(catalog, TrendingScorer(seed=7), _ctx(prefs))]
    assert first == second
    # 30 + 20 + 24 + 15 + 10 + 5 = 104 before the random parts
    assert all(s == 100 for s in first)


def test_trending_base_points_without_random_parts():
    exp = Experience(id="plain", category="workshop", price=5.0, rating=0.0,
                     availability="sold_out")
    score = TrendingScorer(seed=1).score(exp, _ctx()).score
    assert 0 <= score < 8 + 5


# ─────────────────────────────────────────────────────────────────────────────
# Ranking
# ─────────────────────────────────────────────────────────────────────────────

def test_rank_is_descending_with_stable_ties():
    prefs = UserPreferences(interests=("jazz",))
    catalog = [
        Experience(id="tie-1", price=0.0),
        Experience(id="jazz", tags=("jazz",), price=0.0),
        Experience(id="tie-2", price=0.0),
        Experience(id="tie-3", price=0.0),
    ]
    ranked = rank(catalog, PreferenceScorer(), _ctx(prefs))
    assert [s.experience.id for s in ranked] == ["jazz", "tie-1", "tie-2", "tie-3"]
    assert [s.score for s in ranked] == [10, 0, 0, 0]


def test_get_strategy():
    assert isinstance(get_strategy("preference"), PreferenceScorer)
    assert isinstance(get_strategy(" Intensity "), IntensityScorer)
    assert isinstance(get_strategy("trending"), TrendingScorer)
    with pytest.raises(UnknownStrategyError, match="ERROR_UNKNOWN_STRATEGY"):
        get_strategy("astrology")


def test_context_rejects_unknown_time_range():
    with pytest.raises(ValueError):
        ScoringContext(now=_NOON, time_range="tomorrow")


def test_time_of_day_bucket_match_adds_three():
    prefs = UserPreferences(time_of_day=(TimeOfDay.night,))
    late = Experience(id="late", price=0.0, start_time=datetime(2026, 3, 4, 23, tzinfo=timezone.utc))
    early = Experience(id="early", price=0.0, start_time=datetime(2026, 3, 4, 9, tzinfo=timezone.utc))
    assert PreferenceScorer().score(late, _ctx(prefs)).score == 3
    assert PreferenceScorer().score(early, _ctx(prefs)).score == 0
