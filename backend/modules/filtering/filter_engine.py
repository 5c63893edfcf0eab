"""
modules/filtering/filter_engine.py
----------------------------------
Filter predicate engine for the discovery feed and the itinerary planner.

Every predicate is independent and the active ones are AND-ed; a filter that
is not set is vacuously true.  Adding a criterion can therefore only shrink
the matching set.

  city          case-insensitive exact/substring on city (location as fallback); "All" = off
  categories    first word of any selected label ⊆ experience category
  mood          any mood keyword ⊆ tags / title / description
  interests     any interest ⊆ tags / description
  max_price     price ≤ ceiling (unpriced experiences fail)
  on_date       UTC calendar day of start_time == date (ongoing experiences fail)
  search        query ⊆ title | description | location | city | category
  near/radius   haversine distance ≤ radius_km (unlocated experiences fail)
  availability  exact availability label

All substring tests are case-insensitive.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Optional

from schemas.experience import Experience, GeoPoint, UserPreferences
from modules.tool_usage.distance_tool import DistanceTool


class UnknownMoodError(ValueError):
    """Raised when criteria name a mood preset that does not exist."""


# ---------------------------------------------------------------------------
# Mood presets
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MoodPreset:
    id: str
    label: str
    keywords: tuple[str, ...]
    description: str = ""


MOODS: dict[str, MoodPreset] = {
    m.id: m for m in (
        MoodPreset("adventurous", "Adventurous",
                   ("outdoor", "adventure", "hiking", "extreme", "thrill", "exploration"),
                   "Seek thrills and new challenges"),
        MoodPreset("relaxed", "Relaxed",
                   ("spa", "wellness", "meditation", "peaceful", "calm", "yoga"),
                   "Unwind and find your zen"),
        MoodPreset("social", "Social",
                   ("party", "social", "group", "networking", "friends", "nightlife"),
                   "Connect with people and have fun"),
        MoodPreset("creative", "Creative",
                   ("art", "creative", "workshop", "music", "craft", "design"),
                   "Express yourself and learn new skills"),
        MoodPreset("romantic", "Romantic",
                   ("romantic", "date", "intimate", "sunset", "dinner", "couples"),
                   "Perfect for date nights and special moments"),
        MoodPreset("foodie", "Foodie",
                   ("food", "dining", "culinary", "taste", "restaurant", "cooking"),
                   "Discover amazing flavors and cuisines"),
        MoodPreset("cultural", "Cultural",
                   ("culture", "history", "museum", "art", "heritage", "educational"),
                   "Explore history, art, and local culture"),
        MoodPreset("spontaneous", "Spontaneous",
                   ("random", "surprise", "spontaneous", "last-minute", "unexpected", "available"),
                   "Let serendipity guide your experience"),
    )
}


def mood_keywords(mood_id: str) -> tuple[str, ...]:
    """Keyword set of a mood preset (lookup is case-insensitive)."""
    preset = MOODS.get(mood_id.strip().lower())
    if preset is None:
        raise UnknownMoodError(
            f"ERROR_UNKNOWN_MOOD: {mood_id!r} is not one of {sorted(MOODS)}"
        )
    return preset.keywords


# ---------------------------------------------------------------------------
# Criteria
# ---------------------------------------------------------------------------

_ALL_CITIES = "all"


@dataclass(frozen=True)
class FilterCriteria:
    """Immutable set of filter settings; empty / None fields are inactive."""
    city: str = ""
    categories: tuple[str, ...] = ()
    mood: Optional[str] = None
    mood_keywords: tuple[str, ...] = field(default=(), compare=False)
    interests: tuple[str, ...] = ()
    max_price: Optional[float] = None
    on_date: Optional[date] = None
    search: str = ""
    near: Optional[GeoPoint] = None
    radius_km: Optional[float] = None
    availability: str = ""

    def __post_init__(self) -> None:
        if self.mood and not self.mood_keywords:
            object.__setattr__(self, "mood_keywords", mood_keywords(self.mood))

    @classmethod
    def from_preferences(cls, prefs: UserPreferences, **overrides) -> "FilterCriteria":
        """Map planner preferences onto filter criteria."""
        values = dict(
            city=prefs.city,
            categories=prefs.experience_types,
            mood=prefs.mood or None,
            interests=prefs.interests,
            max_price=prefs.budget,
            on_date=prefs.on_date,
            search=prefs.search,
        )
        values.update(overrides)
        return cls(**values)


def active_filters(criteria: FilterCriteria) -> list[str]:
    """Names of the predicates that will actually constrain the result."""
    active: list[str] = []
    if _city_active(criteria.city):
        active.append("city")
    if criteria.categories:
        active.append("category")
    if criteria.mood_keywords:
        active.append("mood")
    if criteria.interests:
        active.append("interests")
    if criteria.max_price is not None:
        active.append("budget")
    if criteria.on_date is not None:
        active.append("date")
    if criteria.search.strip():
        active.append("search")
    if criteria.near is not None and criteria.radius_km is not None:
        active.append("radius")
    if criteria.availability:
        active.append("availability")
    return active


# ---------------------------------------------------------------------------
# Individual predicates
# ---------------------------------------------------------------------------

_distance = DistanceTool()


def _city_active(city: str) -> bool:
    c = city.strip().lower()
    return bool(c) and c != _ALL_CITIES


def _contains(haystack: str, needle: str) -> bool:
    return needle.lower() in haystack.lower()


def matches_city(exp: Experience, city: str) -> bool:
    if not _city_active(city):
        return True
    target = exp.city or exp.location_label
    return _contains(target, city.strip())


def _first_word(label: str) -> str:
    """ "Food & Dining" → "food"; "Self-care Retreats" → "self-care". """
    words = label.lower().split()
    return words[0] if words else ""


def matches_categories(exp: Experience, categories: Iterable[str]) -> bool:
    labels = [_first_word(c) for c in categories]
    labels = [w for w in labels if w]
    if not labels:
        return True
    return any(w in exp.category.lower() for w in labels)


def matches_keywords(exp: Experience, keywords: Iterable[str]) -> bool:
    """Any keyword found in a tag, the title or the description."""
    keywords = [k.lower() for k in keywords if k]
    if not keywords:
        return True
    fields = [t.lower() for t in exp.tags] + [exp.title.lower(), exp.description.lower()]
    return any(k in f for k in keywords for f in fields)


def matches_interests(exp: Experience, interests: Iterable[str]) -> bool:
    interests = [i.lower() for i in interests if i]
    if not interests:
        return True
    tags = [t.lower() for t in exp.tags]
    description = exp.description.lower()
    return any(
        any(i in t for t in tags) or i in description
        for i in interests
    )


def matches_budget(exp: Experience, max_price: Optional[float]) -> bool:
    if max_price is None:
        return True
    if exp.price is None:
        return False
    return exp.price <= max_price


def matches_date(exp: Experience, on_date: Optional[date]) -> bool:
    if on_date is None:
        return True
    if exp.start_time is None:
        return False
    return exp.start_time.date() == on_date


def matches_search(exp: Experience, query: str) -> bool:
    q = query.strip().lower()
    if not q:
        return True
    return any(
        q in f.lower()
        for f in (exp.title, exp.description, exp.location_label, exp.city, exp.category)
    )


def matches_radius(exp: Experience, near: Optional[GeoPoint], radius_km: Optional[float]) -> bool:
    if near is None or radius_km is None:
        return True
    return _distance.within_radius(near, exp, radius_km)


def matches_availability(exp: Experience, availability: str) -> bool:
    if not availability:
        return True
    return exp.availability == availability.strip().lower()


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

def matches(exp: Experience, criteria: FilterCriteria) -> bool:
    """True when *exp* satisfies every active filter in *criteria*."""
    return (
        matches_city(exp, criteria.city)
        and matches_categories(exp, criteria.categories)
        and matches_keywords(exp, criteria.mood_keywords)
        and matches_interests(exp, criteria.interests)
        and matches_budget(exp, criteria.max_price)
        and matches_date(exp, criteria.on_date)
        and matches_search(exp, criteria.search)
        and matches_radius(exp, criteria.near, criteria.radius_km)
        and matches_availability(exp, criteria.availability)
    )


def filter_experiences(
    experiences: Iterable[Experience],
    criteria: FilterCriteria,
) -> list[Experience]:
    """Experiences that satisfy *criteria*, in input order."""
    return [exp for exp in experiences if matches(exp, criteria)]
