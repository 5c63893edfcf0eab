"""
schemas/experience.py
---------------------
Dataclass definitions for the planner's inputs.

  Experience             canonical, read-only record of a bookable activity/event
  GeoPoint               latitude/longitude pair (absent location = None, never 0/0)
  UserPreferences        transient, client-held planning preferences
  ExperienceFetchResult  explicit success/failure signal from the data source

All values are frozen: the planner never mutates its inputs, and a change of
preferences always produces a new UserPreferences value.
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Iterable, Optional


class TimeOfDay(str, Enum):
    morning = "morning"
    afternoon = "afternoon"
    evening = "evening"
    night = "night"

    @classmethod
    def parse(cls, value: "str | TimeOfDay") -> "TimeOfDay":
        """Accept enum members or labels in any case ("Morning", "EVENING")."""
        if isinstance(value, TimeOfDay):
            return value
        return cls(str(value).strip().lower())


@dataclass(frozen=True)
class GeoPoint:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Experience:
    """
    A bookable local activity/event after normalization.

    price is None only when the source supplied a price that could not be
    parsed; a missing price is normalized to 0.0 / type "free".
    """
    id: str
    title: str = ""
    description: str = ""
    category: str = ""
    tags: tuple[str, ...] = ()
    host_name: str = ""
    image_url: str = ""

    location_label: str = ""
    city: str = ""
    coordinates: Optional[GeoPoint] = None

    start_time: Optional[datetime] = None      # None → ongoing / flexible
    end_time: Optional[datetime] = None

    price: Optional[float] = 0.0
    type: str = "free"                         # "free" | "paid"
    currency: str = "USD"

    like_count: int = 0
    save_count: int = 0
    view_count: int = 0
    review_count: int = 0
    rating: float = 0.0                        # 0.0 = absent

    availability: str = "available"            # "available" | "limited" | "sold_out"
    external_source: str = "internal"

    @property
    def has_location(self) -> bool:
        return self.coordinates is not None

    @property
    def engagement(self) -> int:
        """Popularity signal used by the intensity heuristics."""
        return self.like_count + self.save_count + self.review_count

    def to_dict(self) -> dict:
        """JSON-ready representation (ISO-8601 timestamps, null location when unknown)."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "tags": list(self.tags),
            "host_name": self.host_name,
            "image_url": self.image_url,
            "location": self.location_label,
            "city": self.city,
            "latitude": self.coordinates.latitude if self.coordinates else None,
            "longitude": self.coordinates.longitude if self.coordinates else None,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "price": self.price,
            "type": self.type,
            "currency": self.currency,
            "like_count": self.like_count,
            "save_count": self.save_count,
            "view_count": self.view_count,
            "review_count": self.review_count,
            "rating": self.rating,
            "availability": self.availability,
            "external_source": self.external_source,
        }


def parse_number(value: Any) -> Optional[float]:
    """Parse numbers and numeric strings ("25", "$25.00"); None when not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = str(value).strip().replace(",", "").lstrip("$€£")
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def _unique(values: Iterable) -> tuple:
    """Drop duplicates, keeping the order of first appearance."""
    seen: list = []
    for v in values:
        if v not in seen:
            seen.append(v)
    return tuple(seen)


_SET_FIELDS = ("experience_types", "interests", "time_of_day")


@dataclass(frozen=True)
class UserPreferences:
    """
    Preferences collected by the planner UI.

    The set-valued fields (experience_types, interests, time_of_day) never
    hold duplicates; use toggled() to flip membership of a single value.

    budget and group_size accept the raw form inputs ("25", ""): blank or
    non-numeric values mean "no constraint" and are stored as None.
    """
    city: str = ""
    experience_types: tuple[str, ...] = ()
    interests: tuple[str, ...] = ()
    time_of_day: tuple[TimeOfDay, ...] = ()
    budget: Optional[float] = None
    group_size: Optional[int] = None
    special_requirements: str = ""
    mood: Optional[str] = None
    on_date: Optional[date] = None
    search: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "experience_types", _unique(self.experience_types))
        object.__setattr__(self, "interests", _unique(self.interests))
        object.__setattr__(
            self, "time_of_day", _unique(TimeOfDay.parse(t) for t in self.time_of_day)
        )
        object.__setattr__(self, "budget", parse_number(self.budget))
        size = parse_number(self.group_size)
        object.__setattr__(self, "group_size", int(size) if size is not None and size >= 1 else None)

    @property
    def is_ready(self) -> bool:
        """A city must be chosen before the planner can go past step one."""
        return bool(self.city.strip())

    def toggled(self, field_name: str, value) -> "UserPreferences":
        """Return a copy with *value* added to or removed from a set-valued field."""
        if field_name not in _SET_FIELDS:
            raise ValueError(f"{field_name!r} is not a set-valued preference ({_SET_FIELDS})")
        if field_name == "time_of_day":
            value = TimeOfDay.parse(value)
        current = getattr(self, field_name)
        if value in current:
            updated = tuple(v for v in current if v != value)
        else:
            updated = current + (value,)
        return replace(self, **{field_name: updated})


@dataclass(frozen=True)
class ExperienceFetchResult:
    """
    Outcome of loading the experience listing.

    Distinguishes "the source answered with no experiences" (ok=True, empty)
    from "the source could not be reached" (ok=False).
    """
    ok: bool
    experiences: tuple[Experience, ...] = ()
    error: Optional[str] = None
    source: str = ""
    fetched_at: Optional[datetime] = None
    skipped: int = 0                           # raw records rejected by the normalizer

    @classmethod
    def success(
        cls,
        experiences: Iterable[Experience],
        source: str = "",
        fetched_at: Optional[datetime] = None,
        skipped: int = 0,
    ) -> "ExperienceFetchResult":
        return cls(
            ok=True, experiences=tuple(experiences), source=source,
            fetched_at=fetched_at, skipped=skipped,
        )

    @classmethod
    def failure(cls, error: str, source: str = "") -> "ExperienceFetchResult":
        return cls(ok=False, error=error, source=source)


@dataclass(frozen=True)
class BookingRequest:
    """One booking the booking service would issue for a plan item."""
    experience_id: str
    number_of_people: int = 1
    start_time: Optional[datetime] = None
    unit_price: float = 0.0
    metadata: dict = field(default_factory=dict, compare=False)

    @property
    def total_amount(self) -> float:
        return self.unit_price * self.number_of_people
