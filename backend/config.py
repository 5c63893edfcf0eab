"""
config.py
---------
Central configuration for the LocalVibe planner backend.
Everything is read from environment variables; nothing secret is hard-coded.

Scheduling constants encode a display policy (one-hour synthetic slots spaced
two hours apart, four items per plan), not a property of the experiences
themselves.  Override them here or per call via ItineraryPolicy.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the backend directory (if it exists).
_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Experience data source ───────────────────────────────────────────────────
# Stub mode serves the bundled demo catalog; no HTTP calls are made.
# Set USE_STUB_EXPERIENCES=false and point EXPERIENCES_API_URL at a listing
# endpoint (GET, ?city=&category=&search=) for live data.
USE_STUB_EXPERIENCES: bool = _flag("USE_STUB_EXPERIENCES", "true")
EXPERIENCES_API_URL: str = os.getenv("EXPERIENCES_API_URL", "http://localhost:5000/api/experiences")
EXPERIENCES_REQUEST_TIMEOUT: int = int(os.getenv("EXPERIENCES_REQUEST_TIMEOUT", "10"))

# ── Normalizer defaults ──────────────────────────────────────────────────────
PLACEHOLDER_IMAGE_URL: str = os.getenv(
    "PLACEHOLDER_IMAGE_URL",
    "https://images.unsplash.com/photo-1540575467063-178a50c2df87",
)
PLACEHOLDER_DESCRIPTION: str = os.getenv("PLACEHOLDER_DESCRIPTION", "No description available yet.")
DEFAULT_CURRENCY: str = os.getenv("DEFAULT_CURRENCY", "USD")

# ── Itinerary policy ─────────────────────────────────────────────────────────
ITINERARY_MAX_ITEMS: int                 = int(os.getenv("ITINERARY_MAX_ITEMS", "4"))
ITINERARY_FIRST_SLOT_OFFSET_HOURS: float = float(os.getenv("ITINERARY_FIRST_SLOT_OFFSET_HOURS", "1"))
ITINERARY_SLOT_SPACING_HOURS: float      = float(os.getenv("ITINERARY_SLOT_SPACING_HOURS", "2"))
ITINERARY_SLOT_LENGTH_HOURS: float       = float(os.getenv("ITINERARY_SLOT_LENGTH_HOURS", "1"))
ITINERARY_HOURS_PER_ITEM: float          = float(os.getenv("ITINERARY_HOURS_PER_ITEM", "2"))
# Generated itineraries kept by the API for GET/bookings; oldest evicted first.
ITINERARY_STORE_MAX: int                 = int(os.getenv("ITINERARY_STORE_MAX", "500"))

# ── Scoring ──────────────────────────────────────────────────────────────────
# Scores are presentation heuristics bounded to [0, SCORE_CAP].
SCORE_CAP: float        = float(os.getenv("SCORE_CAP", "100"))
INTENSITY_WEIGHT: float = float(os.getenv("INTENSITY_WEIGHT", "0.5"))   # points per engagement
# Options: "preference" | "intensity" | "trending"
SCORING_STRATEGY: str   = os.getenv("SCORING_STRATEGY", "preference")
TRENDING_SEED: int      = int(os.getenv("TRENDING_SEED", "42"))

# ── Heat map ─────────────────────────────────────────────────────────────────
HEATMAP_CELL_DEGREES: float = float(os.getenv("HEATMAP_CELL_DEGREES", "0.01"))   # ~1.1 km

# ── Observability ────────────────────────────────────────────────────────────
LOGS_DIR: str  = os.getenv("LOGS_DIR", str(Path(__file__).parent / "logs"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
