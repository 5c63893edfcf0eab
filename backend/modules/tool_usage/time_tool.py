"""
modules/tool_usage/time_tool.py
-------------------------------
Clock abstraction plus the time-of-day helpers shared by the filter, scoring
and assembly stages.

The planner never reads the wall clock directly: every stage receives a
Clock, so tests can pin "now" with FixedClock.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Optional

from schemas.experience import TimeOfDay


class Clock(ABC):
    """Source of the current time (always timezone-aware)."""

    @abstractmethod
    def now(self) -> datetime:
        ...


class SystemClock(Clock):
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Always returns the same instant; naive datetimes are taken as UTC."""

    def __init__(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant

    def now(self) -> datetime:
        return self._instant


def time_of_day_bucket(hour: int) -> TimeOfDay:
    """
    Bucket an hour (0-23) the way the planner UI labels it.

      morning    06:00-11:59
      afternoon  12:00-16:59
      evening    17:00-20:59
      night      21:00-05:59
    """
    if 6 <= hour < 12:
        return TimeOfDay.morning
    if 12 <= hour < 17:
        return TimeOfDay.afternoon
    if 17 <= hour < 21:
        return TimeOfDay.evening
    return TimeOfDay.night


def bucket_for(moment: Optional[datetime]) -> Optional[TimeOfDay]:
    """Time-of-day bucket of a timestamp, or None for ongoing experiences."""
    if moment is None:
        return None
    return time_of_day_bucket(moment.hour)


def format_hour(hour: int) -> str:
    """24h hour → "7:00 PM" style label."""
    suffix = "AM" if hour < 12 else "PM"
    display = hour % 12 or 12
    return f"{display}:00 {suffix}"
