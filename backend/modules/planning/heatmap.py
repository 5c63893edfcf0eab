"""
modules/planning/heatmap.py
---------------------------
Activity heat map and per-category trends for a city's experiences.

Located experiences are bucketed into lat/lon grid cells of
config.HEATMAP_CELL_DEGREES.  Each cell becomes a HeatArea whose intensity is

    experience_count × 5 × peak_modifier(top category family, time_range)

capped at SCORE_CAP.  Experiences without coordinates never appear on the map
(they still count towards category_trends).
"""

from __future__ import annotations
import math
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

from schemas.experience import Experience, GeoPoint
from modules.planning.experience_scoring import (
    ScoringContext,
    category_family,
    peak_modifier,
)
from modules.tool_usage.time_tool import format_hour, time_of_day_bucket
import config

_POINTS_PER_EXPERIENCE = 5


@dataclass(frozen=True)
class HeatArea:
    center: GeoPoint
    label: str
    experience_count: int
    avg_price: float
    top_category: str
    peak_time: str                  # "7:00 PM", or "Flexible" when no start times are known
    intensity: float

    def to_dict(self) -> dict:
        return {
            "lat": self.center.latitude,
            "lng": self.center.longitude,
            "label": self.label,
            "experience_count": self.experience_count,
            "avg_price": round(self.avg_price, 2),
            "top_category": self.top_category,
            "peak_time": self.peak_time,
            "intensity": round(self.intensity, 1),
        }


@dataclass(frozen=True)
class CategoryTrend:
    category: str
    count: int
    avg_price: float
    popularity: float               # share of total engagement, 0-100
    peak_time_of_day: Optional[str]

    def to_dict(self) -> dict:
        return {
            "category": self.category,
            "count": self.count,
            "avg_price": round(self.avg_price, 2),
            "popularity": round(self.popularity, 1),
            "peak_time_of_day": self.peak_time_of_day,
        }


def _avg_price(experiences: list[Experience]) -> float:
    prices = [e.price for e in experiences if e.price is not None]
    return sum(prices) / len(prices) if prices else 0.0


def _cell_key(point: GeoPoint, cell_degrees: float) -> tuple[int, int]:
    return (
        math.floor(point.latitude / cell_degrees),
        math.floor(point.longitude / cell_degrees),
    )


def _peak_hour_label(experiences: list[Experience]) -> str:
    hours = Counter(e.start_time.hour for e in experiences if e.start_time is not None)
    if not hours:
        return "Flexible"
    return format_hour(hours.most_common(1)[0][0])


def build_heatmap(
    experiences: Iterable[Experience],
    context: ScoringContext,
    cell_degrees: Optional[float] = None,
) -> list[HeatArea]:
    """Group located experiences into grid cells, hottest first."""
    cell_degrees = cell_degrees or config.HEATMAP_CELL_DEGREES
    if cell_degrees <= 0:
        raise ValueError("cell_degrees must be positive")

    cells: dict[tuple[int, int], list[Experience]] = {}
    for exp in experiences:
        if exp.coordinates is None:
            continue
        cells.setdefault(_cell_key(exp.coordinates, cell_degrees), []).append(exp)

    areas: list[HeatArea] = []
    for members in cells.values():
        lat = sum(e.coordinates.latitude for e in members) / len(members)
        lon = sum(e.coordinates.longitude for e in members) / len(members)
        top_category = Counter(e.category for e in members).most_common(1)[0][0]
        labels = Counter(e.location_label for e in members if e.location_label)
        family = category_family(top_category)
        intensity = len(members) * _POINTS_PER_EXPERIENCE * peak_modifier(
            family, context.time_range, context.now
        )
        areas.append(HeatArea(
            center=GeoPoint(lat, lon),
            label=labels.most_common(1)[0][0] if labels else top_category.title(),
            experience_count=len(members),
            avg_price=_avg_price(members),
            top_category=top_category,
            peak_time=_peak_hour_label(members),
            intensity=min(intensity, config.SCORE_CAP),
        ))

    areas.sort(key=lambda a: a.intensity, reverse=True)
    return areas


def category_trends(experiences: Iterable[Experience]) -> list[CategoryTrend]:
    """Per-category counts, prices and engagement share, most popular first."""
    by_category: dict[str, list[Experience]] = {}
    for exp in experiences:
        by_category.setdefault(exp.category or "other", []).append(exp)

    total_engagement = sum(e.engagement for group in by_category.values() for e in group)
    trends: list[CategoryTrend] = []
    for category, members in by_category.items():
        engagement = sum(e.engagement for e in members)
        buckets = Counter(
            time_of_day_bucket(e.start_time.hour).value
            for e in members if e.start_time is not None
        )
        trends.append(CategoryTrend(
            category=category,
            count=len(members),
            avg_price=_avg_price(members),
            popularity=100.0 * engagement / total_engagement if total_engagement else 0.0,
            peak_time_of_day=buckets.most_common(1)[0][0] if buckets else None,
        ))

    trends.sort(key=lambda t: (t.popularity, t.count), reverse=True)
    return trends
