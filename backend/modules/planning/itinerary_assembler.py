"""
modules/planning/itinerary_assembler.py
---------------------------------------
Builds a GeneratedItinerary from a ranked list of experiences.

Steps:
  1. Keep the top policy.max_items entries (ranking order is preserved).
  2. Give item i the synthetic slot
       start = now + first_offset + i × spacing
       end   = start + slot_length
     With the defaults (1h / 2h / 1h) slots are [now+1h, now+2h],
     [now+3h, now+4h], ... so windows never overlap.
  3. total_cost = Σ item prices (unpriced items count as 0).
  4. total_duration_hours = item count × hours_per_item.
  5. Reasons, insights and recommendations come from fixed templates.

The slots are display-only: they do not come from the experiences' own
start times.  An empty ranking yields an empty plan with generic text.
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Sequence

from schemas.experience import BookingRequest, Experience, TimeOfDay, UserPreferences
from schemas.itinerary import GeneratedItinerary, ItineraryItem
from modules.planning.experience_scoring import ScoredExperience
from modules.tool_usage.time_tool import Clock, SystemClock
import config


@dataclass(frozen=True)
class ItineraryPolicy:
    """Synthetic scheduling constants; defaults come from config."""
    max_items: int = field(default_factory=lambda: config.ITINERARY_MAX_ITEMS)
    first_slot_offset_hours: float = field(
        default_factory=lambda: config.ITINERARY_FIRST_SLOT_OFFSET_HOURS
    )
    slot_spacing_hours: float = field(default_factory=lambda: config.ITINERARY_SLOT_SPACING_HOURS)
    slot_length_hours: float = field(default_factory=lambda: config.ITINERARY_SLOT_LENGTH_HOURS)
    hours_per_item: float = field(default_factory=lambda: config.ITINERARY_HOURS_PER_ITEM)

    def __post_init__(self) -> None:
        if self.max_items < 0:
            raise ValueError("max_items must be >= 0")
        if self.first_slot_offset_hours < 0:
            raise ValueError("first_slot_offset_hours must be >= 0; slots start from now")
        if self.slot_spacing_hours <= 0 or self.slot_length_hours <= 0:
            raise ValueError(
                "slot_spacing_hours and slot_length_hours must be > 0 "
                f"(got {self.slot_spacing_hours}, {self.slot_length_hours})"
            )
        if self.slot_length_hours > self.slot_spacing_hours:
            raise ValueError(
                "slot_length_hours must not exceed slot_spacing_hours "
                f"({self.slot_length_hours} > {self.slot_spacing_hours}); slots would overlap"
            )

    def slot(self, now: datetime, index: int) -> tuple[datetime, datetime]:
        start = now + timedelta(
            hours=self.first_slot_offset_hours + index * self.slot_spacing_hours
        )
        return start, start + timedelta(hours=self.slot_length_hours)


# ── Text templates ───────────────────────────────────────────────────────────

_BASE_RECOMMENDATIONS: tuple[str, ...] = (
    "Book experiences in advance for better availability",
    "Consider local transportation options",
    "Check weather forecasts for outdoor activities",
    "Bring comfortable walking shoes",
)
_CULTURAL_INTERESTS = {"photography", "art galleries", "museums"}
_OUTDOOR_INTERESTS = {"hiking", "outdoor", "water sports"}
_LATE_BUCKETS = {TimeOfDay.evening, TimeOfDay.night}


def _matching_interest(exp: Experience, interests: Sequence[str]) -> Optional[str]:
    tags = [t.lower() for t in exp.tags]
    description = exp.description.lower()
    for interest in interests:
        needle = interest.lower()
        if any(needle in t for t in tags) or needle in description:
            return interest
    return None


def build_reason(exp: Experience, prefs: UserPreferences) -> str:
    """Short human-readable justification for including *exp* in the plan."""
    reasons: list[str] = []

    interest = _matching_interest(exp, prefs.interests)
    if interest:
        reasons.append(f"Perfect for {interest}")

    if prefs.budget and exp.price is not None:
        ratio = exp.price / prefs.budget
        if ratio <= 0.5:
            reasons.append("Great value for money")
        elif ratio <= 0.8:
            reasons.append("Fits your budget well")

    if prefs.group_size:
        if prefs.group_size <= 2:
            reasons.append("Ideal for couples")
        elif prefs.group_size <= 4:
            reasons.append("Perfect for small groups")
        else:
            reasons.append("Great for larger groups")

    return ", ".join(reasons) if reasons else "Highly recommended experience"


def build_insights(
    city: str, prefs: UserPreferences, items: Sequence[ItineraryItem], currency: str = "USD",
) -> list[str]:
    insights: list[str] = []
    place = city or "This city"
    if prefs.interests:
        insights.append(f"{place} is perfect for {', '.join(prefs.interests)}")
    if prefs.time_of_day:
        labels = ", ".join(t.value.capitalize() for t in prefs.time_of_day)
        insights.append(f"Best time to visit: {labels}")
    if prefs.group_size:
        insights.append(f"Recommended group size: {prefs.group_size} people")

    if not items:
        insights.append(f"No experiences in {place} match these preferences yet")
        insights.append("Try removing a filter or raising your budget to see more options")
        return insights

    average = sum(it.cost for it in items) / len(items)
    symbol = "$" if currency == "USD" else f"{currency} "
    insights.append(f"Average experience cost: {symbol}{average:.0f}")
    categories = list(dict.fromkeys(it.category for it in items if it.category))
    if categories:
        insights.append(f"Experience mix: {', '.join(categories)}")
    return insights


def build_recommendations(prefs: UserPreferences) -> list[str]:
    recommendations = list(_BASE_RECOMMENDATIONS)
    if _LATE_BUCKETS.intersection(prefs.time_of_day):
        recommendations.append("Plan for dinner reservations in advance")
    interests = {i.lower() for i in prefs.interests}
    if interests & _CULTURAL_INTERESTS:
        recommendations.append("Check opening hours for cultural venues")
    if interests & _OUTDOOR_INTERESTS:
        recommendations.append("Pack appropriate gear for outdoor activities")
    if prefs.group_size and prefs.group_size > 4:
        recommendations.append("Consider booking group discounts")
    return recommendations


def _description(prefs: UserPreferences) -> str:
    if prefs.experience_types:
        return f"AI-curated based on your {', '.join(prefs.experience_types)} preferences"
    return "AI-curated picks based on what's popular nearby"


# ── Assembly ─────────────────────────────────────────────────────────────────

def assemble_itinerary(
    ranked: Sequence[ScoredExperience],
    preferences: UserPreferences,
    clock: Optional[Clock] = None,
    policy: Optional[ItineraryPolicy] = None,
) -> GeneratedItinerary:
    """Turn a ranked list into a time-sequenced plan of at most policy.max_items items."""
    clock = clock or SystemClock()
    policy = policy or ItineraryPolicy()
    now = clock.now()

    items: list[ItineraryItem] = []
    for index, scored in enumerate(ranked[: policy.max_items]):
        exp = scored.experience
        start, end = policy.slot(now, index)
        items.append(ItineraryItem(
            experience_id=exp.id,
            title=exp.title,
            description=exp.description,
            location_label=exp.location_label,
            category=exp.category,
            price=exp.price,
            image_url=exp.image_url,
            start_time=start,
            end_time=end,
            reason=build_reason(exp, preferences),
            score=scored.score,
        ))

    currency = ranked[0].experience.currency if items else config.DEFAULT_CURRENCY
    city = preferences.city.strip()
    return GeneratedItinerary(
        id=f"itinerary-{uuid.uuid4().hex[:12]}",
        city=city,
        title=f"Perfect {city} Experience" if city else "Your Local Experience",
        description=_description(preferences),
        items=tuple(items),
        total_cost=sum(it.cost for it in items),
        total_duration_hours=len(items) * policy.hours_per_item,
        insights=tuple(build_insights(city, preferences, items, currency)),
        recommendations=tuple(build_recommendations(preferences)),
        top_score=items[0].score if items else 0.0,
        generated_at=now,
        currency=currency,
    )


def booking_requests(
    itinerary: GeneratedItinerary, number_of_people: int = 1,
) -> list[BookingRequest]:
    """One BookingRequest per item ("book all"); submitting them is someone else's job."""
    if number_of_people < 1:
        raise ValueError("number_of_people must be >= 1")
    return [
        BookingRequest(
            experience_id=it.experience_id,
            number_of_people=number_of_people,
            start_time=it.start_time,
            unit_price=it.cost,
            metadata={"itinerary_id": itinerary.id, "title": it.title},
        )
        for it in itinerary.items
    ]
