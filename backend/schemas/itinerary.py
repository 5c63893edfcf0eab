"""
schemas/itinerary.py
--------------------
Dataclass definitions for the planner's output.

A GeneratedItinerary is rebuilt on every planning pass and never mutated in
place; its items carry synthetic (display-only) time slots.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class ItineraryItem:
    """
    A single stop in a generated plan: an Experience projection plus a
    synthetic time slot and the reason it was picked.
    """
    experience_id: str
    title: str
    description: str
    location_label: str
    category: str
    price: Optional[float]                  # None when the source price was unparseable
    image_url: str
    start_time: datetime
    end_time: datetime
    reason: str = ""
    score: float = 0.0

    @property
    def cost(self) -> float:
        """Price used for totals; unparseable prices count as 0."""
        return self.price if self.price is not None else 0.0

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 3600.0


@dataclass(frozen=True)
class GeneratedItinerary:
    """Top-level output of the planning pipeline."""
    id: str
    city: str
    title: str
    description: str
    items: tuple[ItineraryItem, ...] = ()
    total_cost: float = 0.0
    total_duration_hours: float = 0.0
    insights: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    top_score: float = 0.0
    generated_at: Optional[datetime] = None
    currency: str = "USD"

    @property
    def is_empty(self) -> bool:
        return not self.items

    def to_dict(self) -> dict:
        """JSON-ready representation (ISO-8601 timestamps)."""
        return {
            "id": self.id,
            "city": self.city,
            "title": self.title,
            "description": self.description,
            "total_cost": round(self.total_cost, 2),
            "total_duration_hours": self.total_duration_hours,
            "currency": self.currency,
            "top_score": round(self.top_score, 2),
            "generated_at": self.generated_at.isoformat() if self.generated_at else None,
            "insights": list(self.insights),
            "recommendations": list(self.recommendations),
            "items": [
                {
                    "experience_id":  it.experience_id,
                    "title":          it.title,
                    "description":    it.description,
                    "location":       it.location_label,
                    "category":       it.category,
                    "price":          it.price,
                    "image_url":      it.image_url,
                    "start_time":     it.start_time.isoformat(),
                    "end_time":       it.end_time.isoformat(),
                    "reason":         it.reason,
                    "score":          round(it.score, 2),
                }
                for it in self.items
            ],
        }


@dataclass(frozen=True)
class PlanningResult:
    """Everything one planning pass produced, for callers that need more than the plan."""
    itinerary: GeneratedItinerary
    ranked: tuple = ()                      # tuple[ScoredExperience, ...]
    candidates: int = 0                     # experiences fed into the filter
    matched: int = 0                        # experiences that passed every active filter
    active_filters: tuple[str, ...] = field(default_factory=tuple)
    strategy: str = ""
