"""
modules/filtering package: composable filter predicates over experiences.
"""
from modules.filtering.filter_engine import (
    MOODS,
    FilterCriteria,
    MoodPreset,
    UnknownMoodError,
    active_filters,
    filter_experiences,
    matches,
    mood_keywords,
)

__all__ = [
    "MOODS",
    "FilterCriteria",
    "MoodPreset",
    "UnknownMoodError",
    "active_filters",
    "filter_experiences",
    "matches",
    "mood_keywords",
]
