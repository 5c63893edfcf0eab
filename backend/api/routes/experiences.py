"""
api/routes/experiences.py
-------------------------
GET /v1/experiences   normalized, filtered discovery listing
GET /v1/moods         mood presets and their keyword sets
GET /v1/heatmap       activity areas and category trends for a city
"""

from __future__ import annotations

from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from modules.filtering import MOODS, FilterCriteria, UnknownMoodError, active_filters, filter_experiences
from modules.planning.experience_scoring import ScoringContext
from modules.planning.heatmap import build_heatmap, category_trends
from modules.tool_usage.experience_tool import ExperienceTool
from modules.tool_usage.time_tool import SystemClock

router = APIRouter()


def _fetch_or_502(tool: ExperienceTool, city: str, category: str = "", search: str = ""):
    result = tool.fetch(city=city, category=category, search=search)
    if not result.ok:
        raise HTTPException(status_code=502, detail=result.error)
    return result


@router.get("/experiences", summary="List experiences matching the discovery filters")
def list_experiences(
    city: str = Query("", description='City name; "All" or empty disables the city filter'),
    category: str = Query("", description='Category label, e.g. "Food & Drinks"'),
    search: str = Query("", description="Free-text search across title, description and location"),
    date: Optional[str] = Query(None, description="ISO-8601 date YYYY-MM-DD"),
    mood: Optional[str] = Query(None, description="Mood preset id, see /v1/moods"),
    max_price: Optional[float] = Query(None, ge=0),
    availability: str = Query("", description="available | limited | sold_out"),
) -> dict:
    on_date = None
    if date:
        try:
            on_date = date_type.fromisoformat(date)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=f"Invalid date format: {exc}") from exc

    try:
        criteria = FilterCriteria(
            city=city,
            categories=(category,) if category else (),
            mood=mood or None,
            max_price=max_price,
            on_date=on_date,
            search=search,
            availability=availability,
        )
    except UnknownMoodError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    # The upstream listing is only narrowed by city; every other filter runs locally.
    result = _fetch_or_502(ExperienceTool(), city if city.lower() != "all" else "")
    matched = filter_experiences(result.experiences, criteria)
    return {
        "count": len(matched),
        "source": result.source,
        "active_filters": active_filters(criteria),
        "experiences": [exp.to_dict() for exp in matched],
    }


@router.get("/moods", summary="Mood presets")
def list_moods() -> dict:
    return {
        "moods": [
            {
                "id": m.id,
                "label": m.label,
                "description": m.description,
                "keywords": list(m.keywords),
            }
            for m in MOODS.values()
        ]
    }


@router.get("/heatmap", summary="Activity heat map and category trends")
def heatmap(
    city: str = Query(..., min_length=1),
    time_range: str = Query("now", pattern="^(now|evening|weekend)$"),
) -> dict:
    clock = SystemClock()
    result = _fetch_or_502(ExperienceTool(clock=clock), city)
    context = ScoringContext(now=clock.now(), time_range=time_range)
    areas = build_heatmap(result.experiences, context)
    return {
        "city": city,
        "time_range": time_range,
        "areas": [a.to_dict() for a in areas],
        "trends": [t.to_dict() for t in category_trends(result.experiences)],
    }
