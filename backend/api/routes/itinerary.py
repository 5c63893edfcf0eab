"""
api/routes/itinerary.py
------------------------
POST /v1/itinerary/generate
GET  /v1/itinerary/{itinerary_id}
POST /v1/itinerary/{itinerary_id}/bookings

Fetches the city's experiences, runs one planning pass and returns the
itinerary JSON.  Generated itineraries are kept in an in-memory store so the
"book all" projection can be requested afterwards; a process restart clears it.
"""

from __future__ import annotations

from collections import OrderedDict
from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from schemas.experience import UserPreferences
from schemas.itinerary import GeneratedItinerary
from modules.filtering import UnknownMoodError
from modules.planning.experience_scoring import UnknownStrategyError
from modules.planning.itinerary_assembler import booking_requests
from modules.tool_usage.experience_tool import ExperienceFetchError, ExperienceTool
from modules.tool_usage.time_tool import SystemClock
from main import run_pipeline
import config

router = APIRouter()

# ── In-memory itinerary store ──────────────────────────────────────────────────
# key: itinerary id, value: GeneratedItinerary (insertion order = age)
_store: OrderedDict[str, GeneratedItinerary] = OrderedDict()


def _remember(itinerary: GeneratedItinerary) -> None:
    _store[itinerary.id] = itinerary
    while len(_store) > max(config.ITINERARY_STORE_MAX, 1):
        _store.popitem(last=False)


# ── Request schemas ────────────────────────────────────────────────────────────

class GenerateRequest(BaseModel):
    city: str = Field(..., description="City to plan in (required)")
    experience_types: list[str] = Field(default_factory=list, description='e.g. ["Food & Drinks"]')
    interests: list[str] = Field(default_factory=list)
    time_of_day: list[str] = Field(default_factory=list, description="morning | afternoon | evening | night")
    budget: Optional[float] = Field(None, ge=0, description="Per-experience price ceiling")
    group_size: Optional[int] = Field(None, ge=1)
    special_requirements: str = ""
    mood: Optional[str] = Field(None, description="Mood preset id, see /v1/moods")
    date: Optional[str] = Field(None, description="ISO-8601 date YYYY-MM-DD")
    search: str = ""
    # Planning options
    time_range: str = Field("now", pattern="^(now|evening|weekend)$")
    strategy: Optional[str] = Field(None, description="preference | intensity | trending")


class BookingRequestBody(BaseModel):
    number_of_people: int = Field(1, ge=1)


def _to_preferences(req: GenerateRequest) -> UserPreferences:
    on_date = None
    if req.date:
        try:
            on_date = date_type.fromisoformat(req.date)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=f"Invalid date format: {exc}") from exc
    try:
        return UserPreferences(
            city=req.city.strip(),
            experience_types=tuple(req.experience_types),
            interests=tuple(req.interests),
            time_of_day=tuple(req.time_of_day),
            budget=req.budget,
            group_size=req.group_size,
            special_requirements=req.special_requirements,
            mood=req.mood or None,
            on_date=on_date,
            search=req.search,
        )
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=f"Invalid preferences: {exc}") from exc


# ── Endpoints ──────────────────────────────────────────────────────────────────

@router.post("/generate", summary="Generate a mock itinerary for a city")
def generate_itinerary(req: GenerateRequest) -> dict:
    """
    Runs one planning pass:
      1. Fetch the city's experiences
      2. Filter by type, interests, budget, mood, date and search
      3. Rank with the chosen scoring strategy
      4. Assemble up to four time-sequenced items

    An empty match is not an error: the itinerary simply has no items.
    """
    prefs = _to_preferences(req)
    if not prefs.is_ready:
        raise HTTPException(status_code=422, detail="city must not be blank")

    clock = SystemClock()
    fetch = ExperienceTool(clock=clock).fetch(city=prefs.city)
    try:
        result = run_pipeline(
            prefs, fetch, clock=clock, strategy=req.strategy, time_range=req.time_range,
        )
    except ExperienceFetchError as exc:
        raise HTTPException(status_code=502, detail=f"Experience source unavailable: {exc}") from exc
    except (UnknownMoodError, UnknownStrategyError) as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    _remember(result.itinerary)
    return {
        "itinerary": result.itinerary.to_dict(),
        "meta": {
            "candidates": result.candidates,
            "matched": result.matched,
            "active_filters": list(result.active_filters),
            "strategy": result.strategy,
        },
    }


def get_itinerary(itinerary_id: str) -> GeneratedItinerary:
    """Retrieve a stored itinerary or raise 404."""
    itinerary = _store.get(itinerary_id)
    if itinerary is None:
        raise HTTPException(
            status_code=404,
            detail=f"Itinerary '{itinerary_id}' not found. Call /v1/itinerary/generate first.",
        )
    return itinerary


@router.get("/{itinerary_id}", summary="Fetch a previously generated itinerary")
def read_itinerary(itinerary_id: str) -> dict:
    return get_itinerary(itinerary_id).to_dict()


@router.post("/{itinerary_id}/bookings", summary="Book-all projection of an itinerary")
def itinerary_bookings(itinerary_id: str, body: BookingRequestBody) -> dict:
    """One booking request per item; nothing is charged or reserved here."""
    itinerary = get_itinerary(itinerary_id)
    bookings = booking_requests(itinerary, body.number_of_people)
    return {
        "itinerary_id": itinerary.id,
        "total_amount": round(sum(r.total_amount for r in bookings), 2),
        "bookings": [
            {
                "experience_id": r.experience_id,
                "number_of_people": r.number_of_people,
                "start_time": r.start_time.isoformat() if r.start_time else None,
                "unit_price": r.unit_price,
                "total_amount": r.total_amount,
            }
            for r in bookings
        ],
    }
