"""
test_itinerary_assembler.py
──────────────────────────────────────────────────────────────────────────────
Itinerary assembly: item cap, synthetic slots, cost / duration aggregates,
reason / insight / recommendation templates and the book-all projection.

Run:
    pytest backend/test_itinerary_assembler.py
──────────────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from schemas.experience import Experience, UserPreferences
from modules.planning.experience_scoring import ScoredExperience
from modules.planning.itinerary_assembler import (
    ItineraryPolicy,
    assemble_itinerary,
    booking_requests,
    build_reason,
    build_recommendations,
)
from modules.tool_usage.time_tool import FixedClock

NOW = datetime(2026, 3, 4, 9, 30, tzinfo=timezone.utc)
CLOCK = FixedClock(NOW)


def _ranked(count: int, price: float | None = 20.0, category: str = "outdoor adventures"):
    return [
        ScoredExperience(
            Experience(id=f"e{i}", title=f"Experience {i}", category=category, price=price),
            score=float(100 - i),
        )
        for i in range(count)
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Structure
# ─────────────────────────────────────────────────────────────────────────────

def test_empty_ranking_gives_empty_plan_with_generic_text():
    itinerary = assemble_itinerary([], UserPreferences(city="Seattle"), clock=CLOCK)
    assert itinerary.items == ()
    assert itinerary.is_empty
    assert itinerary.total_cost == 0
    assert itinerary.total_duration_hours == 0
    assert itinerary.insights and all(line for line in itinerary.insights)
    assert itinerary.recommendations
    assert itinerary.top_score == 0


def test_ten_experiences_give_four_slots_two_hours_apart():
    itinerary = assemble_itinerary(_ranked(10), UserPreferences(city="Austin"), clock=CLOCK)
    assert [it.experience_id for it in itinerary.items] == ["e0", "e1", "e2", "e3"]
    slots = [(it.start_time - NOW, it.end_time - NOW) for it in itinerary.items]
    assert slots == [
        (timedelta(hours=1), timedelta(hours=2)),
        (timedelta(hours=3), timedelta(hours=4)),
        (timedelta(hours=5), timedelta(hours=6)),
        (timedelta(hours=7), timedelta(hours=8)),
    ]
    assert itinerary.total_duration_hours == 8
    assert itinerary.top_score == 100


@pytest.mark.parametrize("count", [0, 1, 3, 4, 5, 12])
def test_item_count_is_capped(count):
    itinerary = assemble_itinerary(_ranked(count), UserPreferences(city="Austin"), clock=CLOCK)
    assert len(itinerary.items) == min(4, count)


def test_slots_never_overlap_and_start_after_now():
    itinerary = assemble_itinerary(_ranked(4), UserPreferences(city="Austin"), clock=CLOCK)
    items = itinerary.items
    assert items[0].start_time > NOW
    for prev, nxt in zip(items, items[1:]):
        assert prev.end_time <= nxt.start_time
        assert prev.start_time < nxt.start_time


def test_cost_is_sum_of_prices_with_unpriced_as_zero():
    ranked = _ranked(2, price=15.0) + [ScoredExperience(Experience(id="unpriced", price=None), 1.0)]
    itinerary = assemble_itinerary(ranked, UserPreferences(city="Austin"), clock=CLOCK)
    assert itinerary.total_cost == 30.0
    assert itinerary.items[2].price is None
    assert itinerary.items[2].cost == 0.0


def test_custom_policy():
    policy = ItineraryPolicy(
        max_items=2, first_slot_offset_hours=0.5, slot_spacing_hours=3,
        slot_length_hours=1.5, hours_per_item=1.5,
    )
    itinerary = assemble_itinerary(_ranked(5), UserPreferences(city="Austin"), CLOCK, policy)
    assert len(itinerary.items) == 2
    assert itinerary.items[1].start_time == NOW + timedelta(hours=3.5)
    assert itinerary.items[1].duration_hours == 1.5
    assert itinerary.total_duration_hours == 3.0


@pytest.mark.parametrize("overrides", [
    {"slot_spacing_hours": 1, "slot_length_hours": 2},
    {"slot_spacing_hours": -1, "slot_length_hours": -2},
    {"slot_spacing_hours": 0, "slot_length_hours": 0},
    {"slot_length_hours": -1},
    {"first_slot_offset_hours": -1},
    {"max_items": -1},
])
def test_unordered_or_overlapping_policy_is_rejected(overrides):
    with pytest.raises(ValueError):
        ItineraryPolicy(**overrides)


def test_default_slots_increase_without_overlap():
    itinerary = assemble_itinerary(_ranked(4), UserPreferences(city="Austin"), clock=CLOCK)
    starts = [it.start_time for it in itinerary.items]
    assert starts[0] >= NOW
    for earlier, later in zip(itinerary.items, itinerary.items[1:]):
        assert earlier.start_time < earlier.end_time <= later.start_time


def test_rebuilding_gives_a_new_itinerary_with_same_content():
    prefs = UserPreferences(city="Austin")
    first = assemble_itinerary(_ranked(6), prefs, clock=CLOCK)
    second = assemble_itinerary(_ranked(6), prefs, clock=CLOCK)
    assert first.id != second.id
    assert first.items == second.items
    assert first.total_cost == second.total_cost


# ─────────────────────────────────────────────────────────────────────────────
# Text templates
# ─────────────────────────────────────────────────────────────────────────────

def test_title_description_and_insights():
    prefs = UserPreferences(
        city="Austin", experience_types=("Outdoor Adventures",), interests=("Hiking",),
        time_of_day=("morning", "evening"), group_size=2,
    )
    itinerary = assemble_itinerary(_ranked(2, price=30.0), prefs, clock=CLOCK)
    assert itinerary.title == "Perfect Austin Experience"
    assert itinerary.description == "AI-curated based on your Outdoor Adventures preferences"
    assert itinerary.insights == (
        "Austin is perfect for Hiking",
        "Best time to visit: Morning, Evening",
        "Recommended group size: 2 people",
        "Average experience cost: $30",
        "Experience mix: outdoor adventures",
    )


def test_reason_templates():
    exp = Experience(id="x", tags=("hiking",), price=10.0)
    prefs = UserPreferences(interests=("Hiking",), budget=40, group_size=3)
    assert build_reason(exp, prefs) == "Perfect for Hiking, Great value for money, Perfect for small groups"
    assert build_reason(Experience(id="y", price=30.0), UserPreferences(budget=40)) == "Fits your budget well"
    assert build_reason(Experience(id="z"), UserPreferences(group_size=1)) == "Ideal for couples"
    assert build_reason(Experience(id="z"), UserPreferences(group_size=8)) == "Great for larger groups"
    assert build_reason(Experience(id="z"), UserPreferences()) == "Highly recommended experience"


def test_recommendations():
    base = build_recommendations(UserPreferences())
    assert len(base) == 4
    extra = build_recommendations(UserPreferences(
        time_of_day=("night",), interests=("Museums", "Hiking"), group_size=6,
    ))
    assert extra[4:] == [
        "Plan for dinner reservations in advance",
        "Check opening hours for cultural venues",
        "Pack appropriate gear for outdoor activities",
        "Consider booking group discounts",
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Book-all projection
# ─────────────────────────────────────────────────────────────────────────────

def test_booking_requests_follow_items():
    itinerary = assemble_itinerary(_ranked(3, price=25.0), UserPreferences(city="Austin"), clock=CLOCK)
    requests = booking_requests(itinerary, number_of_people=2)
    assert [r.experience_id for r in requests] == ["e0", "e1", "e2"]
    assert all(r.total_amount == 50.0 for r in requests)
    assert requests[0].start_time == itinerary.items[0].start_time
    assert requests[0].metadata["itinerary_id"] == itinerary.id
    with pytest.raises(ValueError):
        booking_requests(itinerary, number_of_people=0)


def test_to_dict_is_json_ready():
    data = assemble_itinerary(_ranked(1), UserPreferences(city="Austin"), clock=CLOCK).to_dict()
    assert data["items"][0]["start_time"] == "2026-03-04T10:30:00+00:00"
    assert data["total_cost"] == 20.0
    assert data["generated_at"] == NOW.isoformat()
