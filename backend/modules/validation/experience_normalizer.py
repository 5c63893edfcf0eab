"""
modules/validation/experience_normalizer.py
-------------------------------------------
Turns raw experience records from any source into canonical Experience values.

Sources seen in practice:
  internal rows       camelCase (imageUrl, startTime, likeCount, ...) or snake_case
  Ticketmaster        Discovery API event objects      → from_ticketmaster()
  Eventbrite          /events/search event objects     → from_eventbrite()
  Google Places       Places (New) place objects       → from_google_place()

Policy: permissive display over rejection.  The identity field is the only
hard requirement; every other field degrades to a default:

  ✓ missing price                 → 0.0, type "free"
  ✓ unparseable price             → None ("unpriced"; fails an active budget filter)
  ✓ negative price                → 0.0
  ✓ missing image / description   → config placeholders
  ✓ missing / invalid coordinates → None (never 0/0: null island is not a venue)
  ✓ unparseable timestamps        → None (ongoing / flexible)
  ✓ bad counters                  → 0

Usage:
    from modules.validation import normalize_experience, normalize_all

    exp = normalize_experience(row)            # raises ExperienceValidationError on missing id
    clean, rejected = normalize_all(rows)      # skips (and logs) rejected rows
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from schemas.experience import Experience, GeoPoint, parse_number
import config

logger = logging.getLogger(__name__)


class ExperienceValidationError(ValueError):
    """Raised when a raw record cannot be turned into an Experience at all."""


# ── Result dataclass ───────────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    """
    Outcome of inspecting a raw record.

    Attributes:
        valid:    True iff the record can be normalized (has an identity).
        errors:   Problems that block normalization.
        warnings: Fields that will be replaced by defaults.
        record:   The input record (for logging purposes).
    """
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    record: dict = field(default_factory=dict, repr=False)

    def __bool__(self) -> bool:
        return self.valid


# ── Field coercion helpers ─────────────────────────────────────────────────────

def _pick(record: dict[str, Any], *keys: str) -> Any:
    """First non-None value among *keys* (camelCase and snake_case aliases)."""
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


def _to_count(value: Any) -> int:
    number = parse_number(value)
    if number is None or number < 0:
        return 0
    return int(number)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """ISO-8601 string / datetime / epoch-millis → aware UTC datetime, else None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError:
            return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_coordinates(lat: Any, lon: Any) -> Optional[GeoPoint]:
    """Return a GeoPoint, or None for missing, non-numeric, out-of-range or (0, 0)."""
    lat_f, lon_f = parse_number(lat), parse_number(lon)
    if lat_f is None or lon_f is None:
        return None
    if not (-90.0 <= lat_f <= 90.0) or not (-180.0 <= lon_f <= 180.0):
        return None
    if lat_f == 0.0 and lon_f == 0.0:
        return None
    return GeoPoint(latitude=lat_f, longitude=lon_f)


def _parse_tags(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    tags: list[str] = []
    for tag in value:
        t = _text(tag)
        if t and t not in tags:
            tags.append(t)
    return tuple(tags)


def _parse_price(record: dict[str, Any]) -> tuple[Optional[float], str]:
    """Return (price, type).  See module docstring for the defaulting rules."""
    raw_price = record.get("price")
    raw_type = _text(record.get("type")).lower()
    if raw_price is None or (isinstance(raw_price, str) and not raw_price.strip()):
        return 0.0, "free"
    price = parse_number(raw_price)
    if price is None:
        return None, raw_type if raw_type in ("free", "paid") else "paid"
    price = max(0.0, price)
    if raw_type in ("free", "paid"):
        return price, raw_type
    return price, "paid" if price > 0 else "free"


# ── Validation (non-raising) ───────────────────────────────────────────────────

def validate_experience_record(record: dict[str, Any]) -> ValidationResult:
    """
    Inspect a raw record without normalizing it.

    Errors (block normalization):
      - id: non-empty
    Warnings (defaults will be applied):
      - price unparseable, image/description missing, coordinates unusable
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not _text(record.get("id")):
        errors.append("id must not be empty or NULL")

    raw_price = record.get("price")
    if raw_price not in (None, "") and parse_number(raw_price) is None:
        warnings.append(f"price={raw_price!r} is not numeric; record will be unpriced")

    if not _text(_pick(record, "imageUrl", "image_url")):
        warnings.append("image missing; placeholder will be used")
    if not _text(record.get("description")):
        warnings.append("description missing; placeholder will be used")

    lat = _pick(record, "latitude", "lat")
    lon = _pick(record, "longitude", "lng", "lon")
    if (lat is not None or lon is not None) and parse_coordinates(lat, lon) is None:
        warnings.append(
            f"coordinates (lat={lat!r}, lon={lon!r}) are unusable; "
            "record will have no map location"
        )

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings, record=record)


# ── Normalization ──────────────────────────────────────────────────────────────

def normalize_experience(record: dict[str, Any]) -> Experience:
    """
    Build a canonical Experience from a raw record.

    Raises ExperienceValidationError only when the identity field is absent
    or blank; everything else falls back to defaults.
    """
    exp_id = _text(record.get("id"))
    if not exp_id:
        raise ExperienceValidationError(
            f"ERROR_MISSING_ID: experience record has no identity "
            f"(title={record.get('title')!r})"
        )

    price, price_type = _parse_price(record)
    location_label = _text(_pick(record, "location", "location_label", "address"))
    rating = parse_number(record.get("rating"))

    return Experience(
        id=exp_id,
        title=_text(_pick(record, "title", "name")),
        description=_text(record.get("description")) or config.PLACEHOLDER_DESCRIPTION,
        category=_text(_pick(record, "category", "categoryId", "category_id")).lower(),
        tags=_parse_tags(record.get("tags")),
        host_name=_text(_pick(record, "hostName", "host_name")),
        image_url=_text(_pick(record, "imageUrl", "image_url")) or config.PLACEHOLDER_IMAGE_URL,
        location_label=location_label,
        city=_text(record.get("city")),
        coordinates=parse_coordinates(
            _pick(record, "latitude", "lat"),
            _pick(record, "longitude", "lng", "lon"),
        ),
        start_time=parse_timestamp(_pick(record, "startTime", "start_time")),
        end_time=parse_timestamp(_pick(record, "endTime", "end_time")),
        price=price,
        type=price_type,
        currency=_text(record.get("currency")).upper() or config.DEFAULT_CURRENCY,
        like_count=_to_count(_pick(record, "likeCount", "like_count")),
        save_count=_to_count(_pick(record, "saveCount", "save_count")),
        view_count=_to_count(_pick(record, "viewCount", "view_count")),
        review_count=_to_count(_pick(record, "reviewCount", "review_count")),
        rating=max(0.0, rating) if rating is not None else 0.0,
        availability=_text(record.get("availability")).lower() or "available",
        external_source=_text(_pick(record, "externalSource", "external_source")) or "internal",
    )


def normalize_all(records: Iterable[dict[str, Any]]) -> tuple[list[Experience], int]:
    """
    Normalize every record, skipping (and logging) the ones without an identity.

    Returns:
        (experiences, rejected_count)
    """
    experiences: list[Experience] = []
    rejected = 0
    seen_ids: set[str] = set()

    for record in records:
        check = validate_experience_record(record)
        if check.valid:
            for warning in check.warnings:
                logger.debug("[Normalizer] %s: %s", record.get("id"), warning)
        try:
            exp = normalize_experience(record)
        except ExperienceValidationError as exc:
            rejected += 1
            logger.warning("[Normalizer] REJECTED record: %s", exc)
            continue
        if exp.id in seen_ids:
            logger.debug("[Normalizer] duplicate id %r ignored", exp.id)
            continue
        seen_ids.add(exp.id)
        experiences.append(exp)

    if rejected:
        logger.info(
            "[Normalizer] %d/%d records rejected; %d passed.",
            rejected, rejected + len(experiences), len(experiences),
        )
    return experiences, rejected


# ── Third-party catalog shapes ─────────────────────────────────────────────────
# Each adapter returns a raw dict in the internal row shape; pass the result
# through normalize_experience() to get an Experience.

def from_ticketmaster(event: dict[str, Any]) -> dict[str, Any]:
    """Ticketmaster Discovery API event → internal row."""
    venues = (event.get("_embedded") or {}).get("venues") or [{}]
    venue = venues[0] or {}
    price_ranges = event.get("priceRanges") or [{}]
    price_range = price_ranges[0] or {}
    classifications = event.get("classifications") or [{}]
    classification = classifications[0] or {}
    images = event.get("images") or []
    image = next(
        (img for img in images if not img.get("fallback") and (img.get("width") or 0) >= 640),
        images[0] if images else {},
    )
    start = ((event.get("dates") or {}).get("start")) or {}
    status = (((event.get("dates") or {}).get("status")) or {}).get("code", "")

    city = ((venue.get("city") or {}).get("name")) or ""
    state = ((venue.get("state") or {}).get("stateCode")) or ""
    location = ", ".join(part for part in (city, state) if part) or "Venue TBD"
    tags = [
        (classification.get(level) or {}).get("name")
        for level in ("segment", "genre", "subGenre")
    ]
    start_time = start.get("dateTime")
    if not start_time and start.get("localDate"):
        start_time = f"{start['localDate']}T{start.get('localTime') or '19:00:00'}"

    name = event.get("name") or ""
    min_price = price_range.get("min")
    return {
        "id": f"tm-{event['id']}" if event.get("id") else "",
        "title": name,
        "description": event.get("info") or f"{name} - Experience live entertainment!",
        "imageUrl": image.get("url"),
        "location": location,
        "city": city,
        "latitude": (venue.get("location") or {}).get("latitude"),
        "longitude": (venue.get("location") or {}).get("longitude"),
        "price": min_price if min_price is not None else 0,
        "currency": price_range.get("currency"),
        "type": "paid" if min_price else "free",
        "tags": [t for t in tags if t and t != "Undefined"],
        "category": (classification.get("segment") or {}).get("name", "").lower(),
        "availability": "available" if status == "onsale" else "limited",
        "startTime": start_time,
        "externalSource": "ticketmaster",
    }


def from_eventbrite(event: dict[str, Any]) -> dict[str, Any]:
    """Eventbrite event (expanded with venue + ticket_availability) → internal row."""
    venue = event.get("venue") or {}
    address = venue.get("address") or {}
    ticket = (event.get("ticket_availability") or {}).get("minimum_ticket_price") or {}
    price = ticket.get("major_value")
    if event.get("is_free"):
        price = 0
    name = (event.get("name") or {}).get("text", "")
    return {
        "id": f"eb-{event['id']}" if event.get("id") else "",
        "title": name,
        "description": (event.get("description") or {}).get("text", ""),
        "imageUrl": (event.get("logo") or {}).get("url"),
        "location": venue.get("name") or address.get("localized_address_display", ""),
        "city": address.get("city", ""),
        "latitude": venue.get("latitude") or address.get("latitude"),
        "longitude": venue.get("longitude") or address.get("longitude"),
        "price": price,
        "currency": ticket.get("currency"),
        "category": _text(event.get("category")).lower(),
        "tags": event.get("tags") or [],
        "hostName": (event.get("organizer") or {}).get("name", ""),
        "startTime": (event.get("start") or {}).get("utc"),
        "endTime": (event.get("end") or {}).get("utc"),
        "externalSource": "eventbrite",
    }


# Google Places price_level (0–4) → indicative per-person spend
_PRICE_LEVEL_AMOUNT: dict[int, float] = {0: 0.0, 1: 15.0, 2: 35.0, 3: 75.0, 4: 150.0}


def from_google_place(place: dict[str, Any], city: str = "") -> dict[str, Any]:
    """Google Places (New) place → internal row (venues are ongoing: no start time)."""
    types: list[str] = place.get("types") or []
    loc = place.get("location") or {}
    level = place.get("priceLevel")
    if isinstance(level, str):
        level = {
            "PRICE_LEVEL_FREE": 0, "PRICE_LEVEL_INEXPENSIVE": 1,
            "PRICE_LEVEL_MODERATE": 2, "PRICE_LEVEL_EXPENSIVE": 3,
            "PRICE_LEVEL_VERY_EXPENSIVE": 4,
        }.get(level)
    return {
        "id": f"gp-{place['id']}" if place.get("id") else "",
        "title": (place.get("displayName") or {}).get("text", ""),
        "description": (place.get("editorialSummary") or {}).get("text", ""),
        "location": place.get("formattedAddress", ""),
        "city": city,
        "latitude": loc.get("latitude"),
        "longitude": loc.get("longitude"),
        "price": _PRICE_LEVEL_AMOUNT.get(level) if level is not None else None,
        "category": types[0] if types else "",
        "tags": ["google-places", *types[:3]],
        "rating": place.get("rating"),
        "reviewCount": place.get("userRatingCount"),
        "externalSource": "google-places",
    }
