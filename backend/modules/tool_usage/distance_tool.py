"""
modules/tool_usage/distance_tool.py
-------------------------------------
Great-circle distances for the radius filter.
No external HTTP calls are made.

Experiences without coordinates have no distance (None): they are never
placed at 0/0 and never pass an active radius filter.
"""

from __future__ import annotations
import math
from typing import Optional

from schemas.experience import Experience, GeoPoint

# ---------------------------------------------------------------------------
# Pure maths
# ---------------------------------------------------------------------------

_EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points (Haversine formula) in km."""
    r = _EARTH_RADIUS_KM
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    return 2 * r * math.asin(math.sqrt(a))


# ---------------------------------------------------------------------------
# DistanceTool
# ---------------------------------------------------------------------------


class DistanceTool:
    """Distance helpers between GeoPoints and experiences."""

    def between(self, a: GeoPoint, b: GeoPoint) -> float:
        """Distance in km between two points."""
        if a == b:
            return 0.0
        return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)

    def distance_to(self, origin: GeoPoint, experience: Experience) -> Optional[float]:
        """Distance in km from *origin* to an experience, None when it has no location."""
        if experience.coordinates is None:
            return None
        return self.between(origin, experience.coordinates)

    def within_radius(self, origin: GeoPoint, experience: Experience, radius_km: float) -> bool:
        distance = self.distance_to(origin, experience)
        return distance is not None and distance <= radius_km
