"""
modules/tool_usage/experience_tool.py
-------------------------------------
Loads the experience listing for a city, either from the bundled demo catalog
(stub mode) or from the LocalVibe experiences endpoint (live mode).

Stub mode: USE_STUB_EXPERIENCES=true (default).  No HTTP calls are made.
           Start times are laid out relative to the tool's clock so the demo
           catalog always looks "upcoming".
Live mode: GET EXPERIENCES_API_URL?city=&category=&search=
           The body may be a JSON list of rows or {"experiences": [...]}.

fetch() never raises for transport problems: it returns
ExperienceFetchResult.failure(...) so callers can tell "the source had no
experiences" apart from "the source could not be reached".
"""

from __future__ import annotations
import logging
from datetime import datetime, timedelta
from typing import Any, Optional

import requests

from schemas.experience import ExperienceFetchResult
from modules.validation.experience_normalizer import normalize_all
from modules.tool_usage.time_tool import Clock, SystemClock
import config

logger = logging.getLogger(__name__)


class ExperienceFetchError(RuntimeError):
    """The experience listing could not be loaded (as opposed to being empty)."""


# ── Demo catalog ──────────────────────────────────────────────────────────────
# start_in / hours are relative offsets in hours; None start = ongoing.

def _row(id, title, category, city, location, lat, lng, price, tags,
         start_in=None, hours=2, likes=0, saves=0, reviews=0, rating=0.0,
         description="", availability="available"):
    return {
        "id": id, "title": title, "category": category, "city": city,
        "location": location, "latitude": lat, "longitude": lng,
        "price": price, "tags": tags, "start_in": start_in, "hours": hours,
        "likeCount": likes, "saveCount": saves, "reviewCount": reviews,
        "rating": rating, "description": description, "availability": availability,
    }


_STUB_CATALOG: list[dict[str, Any]] = [
    # San Francisco
    _row("sf-001", "Rooftop Cocktail Making Class", "food & drinks", "San Francisco",
         "Downtown San Francisco", 37.7749, -122.4194, "65.00",
         ["cocktails", "rooftop", "evening", "social"], start_in=8, likes=142, saves=37,
         reviews=21, rating=4.8,
         description="Learn to shake three signature cocktails above the city lights."),
    _row("sf-002", "Street Art Walking Tour", "arts & culture", "San Francisco",
         "Mission District, SF", 37.7599, -122.4148, "25.00",
         ["art", "walking", "culture", "local"], start_in=3, likes=88, saves=19, reviews=12,
         rating=4.6, description="Murals, history and the artists behind Balmy Alley."),
    _row("sf-003", "Golden Gate Sunrise Hike", "outdoor adventures", "San Francisco",
         "Marin Headlands", 37.8270, -122.4994, "0",
         ["hiking", "sunrise", "photography", "nature"], start_in=16, hours=3, likes=203,
         saves=64, reviews=30, rating=4.9,
         description="A guided hike to catch first light over the bridge."),
    _row("sf-004", "Jazz Jam Session", "nightlife & entertainment", "San Francisco",
         "North Beach Jazz Club", 37.8067, -122.4103, "15.00",
         ["jazz", "music", "live", "instruments"], start_in=10, likes=57, saves=9,
         reviews=8, rating=4.4, description="Bring an instrument or just listen."),
    _row("sf-005", "Pottery Wheel Workshop", "arts & culture", "San Francisco",
         "SOMA Art Studio", 37.7726, -122.4099, "85.00",
         ["pottery", "art", "handmade", "creative"], start_in=26, hours=3, likes=61,
         saves=22, reviews=14, rating=4.7, availability="limited",
         description="Throw your first bowl in a small, hands-on workshop."),
    _row("sf-006", "Sunset Yoga in the Park", "wellness & fitness", "San Francisco",
         "Dolores Park", 37.7596, -122.4269, "20.00",
         ["yoga", "sunset", "outdoor", "wellness"], start_in=6, hours=1, likes=95,
         saves=31, reviews=17, rating=4.5,
         description="A gentle flow as the sun drops behind Twin Peaks."),
    # Austin
    _row("atx-001", "Barton Creek Greenbelt Hike", "outdoor adventures", "Austin",
         "Barton Creek Greenbelt", 30.2580, -97.8050, "0",
         ["hiking", "nature", "swimming"], start_in=18, hours=3, likes=120, saves=40,
         reviews=25, rating=4.7, description="Limestone trails and swimming holes."),
    _row("atx-002", "Sixth Street Live Music Crawl", "nightlife & entertainment", "Austin",
         "Sixth Street", 30.2672, -97.7390, "20",
         ["music", "nightlife", "live"], start_in=9, hours=3, likes=310, saves=75,
         reviews=44, rating=4.6, description="Three venues, three bands, one wristband."),
    _row("atx-003", "Food Truck Taco Tour", "food & drinks", "Austin",
         "East Austin", 30.2620, -97.7230, "35",
         ["tacos", "food", "walking"], start_in=5, likes=180, saves=52, reviews=33,
         rating=4.8, description="Breakfast tacos to brisket on a guided walking tour."),
    _row("atx-004", "Congress Bridge Bat Watch", "outdoor adventures", "Austin",
         "Congress Avenue Bridge", 30.2615, -97.7453, "0",
         ["nature", "sunset", "photography"], start_in=7, hours=1, likes=140, saves=28,
         reviews=19, rating=4.5,
         description="Watch 1.5 million bats take flight at dusk."),
    _row("atx-005", "Lady Bird Lake Paddleboard", "outdoor adventures", "Austin",
         "Lady Bird Lake", 30.2638, -97.7520, "25",
         ["water sports", "outdoor", "hiking"], start_in=2, likes=76, saves=18,
         reviews=10, rating=4.3, description="Rent a board and paddle past the skyline."),
    _row("atx-006", "Blanton Museum Highlights", "arts & culture", "Austin",
         "Blanton Museum of Art", 30.2808, -97.7375, "15",
         ["museums", "art", "culture"], likes=64, saves=12, reviews=9, rating=4.4,
         description="Self-guided tour of the permanent collection."),
    # New York
    _row("nyc-001", "Brooklyn Bridge Photo Walk", "arts & culture", "New York",
         "DUMBO, Brooklyn", 40.7033, -73.9881, "30",
         ["photography", "walking", "culture"], start_in=4, likes=175, saves=60,
         reviews=27, rating=4.7, description="Golden-hour shots from the best angles."),
    _row("nyc-002", "Comedy Cellar Late Show", "nightlife & entertainment", "New York",
         "Greenwich Village", 40.7302, -74.0005, "25",
         ["comedy", "nightlife", "social"], start_in=11, likes=260, saves=80,
         reviews=51, rating=4.8, description="Stand-up from surprise headliners."),
    _row("nyc-003", "Chelsea Market Tasting Tour", "food & drinks", "New York",
         "Chelsea Market", 40.7424, -74.0061, "70",
         ["food", "tasting", "walking"], start_in=5, hours=3, likes=150, saves=45,
         reviews=29, rating=4.6, description="Eight tastings across the market halls."),
]


def _materialize(row: dict[str, Any], now: datetime) -> dict[str, Any]:
    """Turn a catalog row's relative offsets into absolute ISO timestamps."""
    record = {k: v for k, v in row.items() if k not in ("start_in", "hours")}
    if row["start_in"] is not None:
        start = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=row["start_in"])
        record["startTime"] = start.isoformat()
        record["endTime"] = (start + timedelta(hours=row["hours"])).isoformat()
    return record


def _matches_request(row: dict[str, Any], city: str, category: str, search: str) -> bool:
    if city and city.lower() != "all" and city.lower() not in row["city"].lower():
        return False
    if category and category.lower() not in row["category"].lower():
        return False
    if search:
        q = search.lower()
        haystack = " ".join([row["title"], row["description"], row["location"], row["city"]])
        if q not in haystack.lower():
            return False
    return True


# ── ExperienceTool ────────────────────────────────────────────────────────────

class ExperienceTool:
    """Fetches normalized experiences from the demo catalog or the live endpoint."""

    def __init__(
        self,
        clock: Optional[Clock] = None,
        api_url: Optional[str] = None,
        use_stub: Optional[bool] = None,
        timeout: Optional[float] = None,
    ) -> None:
        self.clock = clock or SystemClock()
        self.api_url = api_url or config.EXPERIENCES_API_URL
        self.use_stub = config.USE_STUB_EXPERIENCES if use_stub is None else use_stub
        self.timeout = timeout or config.EXPERIENCES_REQUEST_TIMEOUT

    def fetch(self, city: str = "", category: str = "", search: str = "") -> ExperienceFetchResult:
        """Return the experience listing for *city* (optionally pre-filtered upstream)."""
        if self.use_stub:
            return self._fetch_stub(city, category, search)
        return self._fetch_live(city, category, search)

    def _fetch_stub(self, city: str, category: str, search: str) -> ExperienceFetchResult:
        now = self.clock.now()
        raw = [
            _materialize(row, now)
            for row in _STUB_CATALOG
            if _matches_request(row, city.strip(), category.strip(), search.strip())
        ]
        experiences, rejected = normalize_all(raw)
        logger.info(
            "[ExperienceTool] Returning stub experience data for %r (%d records)",
            city or "all cities", len(experiences),
        )
        return ExperienceFetchResult.success(
            experiences, source="stub", fetched_at=now, skipped=rejected,
        )

    def _fetch_live(self, city: str, category: str, search: str) -> ExperienceFetchResult:
        params = {k: v for k, v in (("city", city), ("category", category), ("search", search)) if v}
        try:
            resp = requests.get(self.api_url, params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            logger.warning("[ExperienceTool] fetch failed: %s", exc)
            return ExperienceFetchResult.failure(
                f"ERROR_FETCH_FAILED: {self.api_url} unreachable ({exc})", source=self.api_url,
            )

        try:
            payload = resp.json()
        except ValueError as exc:
            logger.warning("[ExperienceTool] invalid JSON from %s: %s", self.api_url, exc)
            return ExperienceFetchResult.failure(
                f"ERROR_BAD_PAYLOAD: {self.api_url} returned invalid JSON", source=self.api_url,
            )

        rows = payload.get("experiences", []) if isinstance(payload, dict) else payload
        if not isinstance(rows, list):
            return ExperienceFetchResult.failure(
                f"ERROR_BAD_PAYLOAD: expected a list of experiences, got {type(rows).__name__}",
                source=self.api_url,
            )

        experiences, rejected = normalize_all(r for r in rows if isinstance(r, dict))
        logger.info(
            "[ExperienceTool] %s returned %d experiences (%d rejected)",
            self.api_url, len(experiences), rejected,
        )
        return ExperienceFetchResult.success(
            experiences, source=self.api_url, fetched_at=self.clock.now(), skipped=rejected,
        )
