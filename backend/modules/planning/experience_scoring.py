"""
modules/planning/experience_scoring.py
--------------------------------------
Relevance / intensity scoring and ranking of filtered experiences.

Scores are presentation heuristics, not statistical estimates.  Each
strategy is deterministic for a given input, monotonic in the factors it
reads, and bounded to [0, SCORE_CAP].

Strategies (swap via config.SCORING_STRATEGY or get_strategy()):

  preference  Interest / budget / time-of-day fit against UserPreferences.
              +10 per interest found in a tag, +5 per interest in the description
              budget ratio ≤ 0.5 → +5, ≤ 0.8 → +3, ≤ 1.0 → +1
              +3 per selected time-of-day bucket matching the start hour
              +2 for paid experiences

  intensity   Heat-map popularity: INTENSITY_WEIGHT × (likes + saves + reviews),
              × peak modifier when the evaluation window hits the category's
              peak (see peak_modifier()).

  trending    Demo recommendation blend with a seeded random "trending" boost:
              category 30, price range 20, rating/5 × 25, available 15,
              popular 10, in city 5, trending 8 (p = 0.3), jitter [0, 5).

Ranking is descending by score; equal scores keep their input order.
"""

from __future__ import annotations
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, Optional

from schemas.experience import Experience, UserPreferences
from modules.tool_usage.time_tool import bucket_for
import config


class UnknownStrategyError(ValueError):
    """Raised when a scoring strategy name is not registered."""


TIME_RANGES: tuple[str, ...] = ("now", "evening", "weekend")


@dataclass(frozen=True)
class ScoringContext:
    """Everything a strategy may read besides the experience itself."""
    now: datetime
    preferences: UserPreferences = field(default_factory=UserPreferences)
    time_range: str = "now"                 # "now" | "evening" | "weekend"

    def __post_init__(self) -> None:
        if self.time_range not in TIME_RANGES:
            raise ValueError(f"time_range must be one of {TIME_RANGES}, got {self.time_range!r}")


@dataclass(frozen=True)
class ScoredExperience:
    """An experience with its score and the human-readable reasons behind it."""
    experience: Experience
    score: float
    reasons: tuple[str, ...] = ()


def _cap(score: float) -> float:
    return max(0.0, min(score, config.SCORE_CAP))


# ---------------------------------------------------------------------------
# Category families and peak windows
# ---------------------------------------------------------------------------

# Checked in order; first family whose keyword appears in the category wins.
CATEGORY_FAMILIES: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("nightlife", ("nightlife", "entertainment", "party", "concert", "club", "music")),
    ("food",      ("food", "dining", "drink", "culinary", "restaurant", "coffee", "cafe")),
    ("wellness",  ("wellness", "spa", "fitness", "yoga", "meditation")),
    ("outdoor",   ("outdoor", "adventure", "park", "hiking", "sport", "nature")),
    ("arts",      ("arts", "art", "culture", "museum", "theater", "theatre", "history")),
)


def category_family(category: str, tags: Iterable[str] = ()) -> str:
    """Map a free-form category (falling back to tags) to a peak-window family."""
    candidates = [category.lower()] + [t.lower() for t in tags]
    for text in candidates:
        if not text:
            continue
        for family, keywords in CATEGORY_FAMILIES:
            if any(k in text for k in keywords):
                return family
    return "other"


# "now" windows are (first_hour, last_hour) inclusive
_NOW_PEAKS: dict[str, tuple[int, int, float]] = {
    "food":      (17, 22, 1.5),
    "nightlife": (20, 23, 2.0),
    "wellness":  (6, 10, 1.3),
}
_EVENING_PEAKS: dict[str, float] = {"food": 1.8, "nightlife": 1.8}
_WEEKEND_PEAKS: dict[str, float] = {"outdoor": 1.6, "arts": 1.6}


def peak_modifier(family: str, time_range: str, now: datetime) -> float:
    """Multiplier applied when the evaluation window matches the family's peak."""
    if time_range == "now":
        window = _NOW_PEAKS.get(family)
        if window and window[0] <= now.hour <= window[1]:
            return window[2]
        return 1.0
    if time_range == "evening":
        return _EVENING_PEAKS.get(family, 1.0)
    if time_range == "weekend":
        return _WEEKEND_PEAKS.get(family, 1.0)
    return 1.0


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

class ScoringStrategy(ABC):
    """Abstract base for every scoring heuristic."""

    NAME: str = ""

    @abstractmethod
    def score(self, experience: Experience, context: ScoringContext) -> ScoredExperience:
        """Score one experience; the result must lie in [0, SCORE_CAP]."""


class IntensityScorer(ScoringStrategy):
    """Popularity × peak-window heuristic used by the heat map."""

    NAME = "intensity"

    def __init__(self, weight: float = config.INTENSITY_WEIGHT) -> None:
        self.weight = weight

    def score(self, experience: Experience, context: ScoringContext) -> ScoredExperience:
        base = self.weight * experience.engagement
        family = category_family(experience.category, experience.tags)
        modifier = peak_modifier(family, context.time_range, context.now)
        reasons: list[str] = []
        if modifier > 1.0:
            reasons.append(f"Peak time for {family}")
        if experience.engagement > 0:
            reasons.append(f"{experience.engagement} people engaged")
        return ScoredExperience(experience, _cap(base * modifier), tuple(reasons))


class PreferenceScorer(ScoringStrategy):
    """Interest, budget and time-of-day fit against the user's preferences."""

    NAME = "preference"

    def score(self, experience: Experience, context: ScoringContext) -> ScoredExperience:
        prefs = context.preferences
        score = 0.0
        reasons: list[str] = []

        tags = [t.lower() for t in experience.tags]
        description = experience.description.lower()
        for interest in prefs.interests:
            needle = interest.lower()
            if any(needle in t for t in tags):
                score += 10
                reasons.append(f"Tagged for {interest}")
            if needle in description:
                score += 5

        if prefs.budget and experience.price is not None:
            ratio = experience.price / prefs.budget
            if ratio <= 0.5:
                score += 5
                reasons.append("Great value for money")
            elif ratio <= 0.8:
                score += 3
                reasons.append("Fits your budget well")
            elif ratio <= 1.0:
                score += 1

        bucket = bucket_for(experience.start_time)
        if bucket is not None and bucket in prefs.time_of_day:
            score += 3
            reasons.append(f"Happens in the {bucket.value}")

        if experience.price is not None and experience.price > 0:
            score += 2

        return ScoredExperience(experience, _cap(score), tuple(reasons))


class TrendingScorer(ScoringStrategy):
    """
    Demo recommendation blend.  The trending boost and the diversity jitter
    are random, drawn from a generator seeded with (seed, experience id) so a
    given experience always gets the same draw.
    """

    NAME = "trending"

    def __init__(
        self,
        seed: int = config.TRENDING_SEED,
        price_range: tuple[float, float] = (20.0, 100.0),
        popular_threshold: int = 50,
    ) -> None:
        self.seed = seed
        self.price_range = price_range
        self.popular_threshold = popular_threshold

    def score(self, experience: Experience, context: ScoringContext) -> ScoredExperience:
        prefs = context.preferences
        rng = random.Random(f"{self.seed}:{experience.id}")
        score = 0.0
        reasons: list[str] = []

        wanted = [c.lower().split(" ")[0] for c in prefs.experience_types] + [
            i.lower() for i in prefs.interests
        ]
        if any(w and w in experience.category for w in wanted):
            score += 30
            reasons.append("Matches your interests")

        low, high = self.price_range
        if experience.price is not None and low <= experience.price <= high:
            score += 20
            reasons.append("In your price range")

        score += (min(experience.rating, 5.0) / 5.0) * 25
        if experience.rating > 4.5:
            reasons.append("Highly rated")

        if experience.availability == "available":
            score += 15
            reasons.append("Available now")

        if experience.like_count > self.popular_threshold:
            score += 10
            reasons.append("Popular choice")

        if prefs.city and prefs.city.lower() in (experience.location_label + " " + experience.city).lower():
            score += 5
            reasons.append("In your city")

        if rng.random() > 0.7:
            score += 8
            reasons.append("Trending now")
        score += rng.random() * 5

        return ScoredExperience(experience, _cap(score), tuple(reasons))


_STRATEGIES: dict[str, type[ScoringStrategy]] = {
    cls.NAME: cls for cls in (PreferenceScorer, IntensityScorer, TrendingScorer)
}


def get_strategy(name: Optional[str] = None) -> ScoringStrategy:
    """Instantiate a registered strategy (defaults to config.SCORING_STRATEGY)."""
    key = (name or config.SCORING_STRATEGY).strip().lower()
    cls = _STRATEGIES.get(key)
    if cls is None:
        raise UnknownStrategyError(
            f"ERROR_UNKNOWN_STRATEGY: {key!r} is not one of {sorted(_STRATEGIES)}"
        )
    return cls()


def rank(
    experiences: Iterable[Experience],
    strategy: ScoringStrategy,
    context: ScoringContext,
) -> list[ScoredExperience]:
    """
    Score every experience and sort descending by score.
    sorted() is stable, so ties keep their input order.
    """
    scored = [strategy.score(exp, context) for exp in experiences]
    return sorted(scored, key=lambda s: s.score, reverse=True)
