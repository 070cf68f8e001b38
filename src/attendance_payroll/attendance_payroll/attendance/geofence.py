from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

from ..core.constants import EARTH_RADIUS_M
from ..policy.model import Policy
from .model import GeoPoint

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeoCheck:
    accepted: bool
    distance_m: Optional[float]
    skipped: bool = False


class GeoValidator:
    @staticmethod
    def distance_m(a: GeoPoint, b: GeoPoint) -> float:
        """Great-circle distance in metres (haversine)."""
        lat1, lon1, lat2, lon2 = map(float, [a.lat, a.lng, b.lat, b.lng])

        phi1 = math.radians(lat1)
        phi2 = math.radians(lat2)
        dphi = math.radians(lat2 - lat1)
        dlambda = math.radians(lon2 - lon1)

        h = math.sin(dphi / 2.0) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2.0) ** 2
        # Rounding can push h just past 1 for near-antipodal points.
        h = min(1.0, max(0.0, h))
        return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

    def check(self, punch: Optional[GeoPoint], office: Optional[GeoPoint], radius_m: float) -> GeoCheck:
        """Accept or reject a punch location.

        An office without coordinates disables the geofence: the result is
        accepted with ``skipped=True``. A configured office with no punch
        coordinate is rejected.
        """
        if office is None:
            logger.debug("geofence skipped: office location not configured")
            return GeoCheck(accepted=True, distance_m=None, skipped=True)
        if punch is None:
            return GeoCheck(accepted=False, distance_m=None)

        dist = self.distance_m(punch, office)
        return GeoCheck(accepted=dist <= float(radius_m), distance_m=dist)

    def check_policy(self, punch: Optional[GeoPoint], policy: Policy) -> GeoCheck:
        office = GeoPoint(policy.office_lat, policy.office_lng) if policy.has_office_location else None
        return self.check(punch, office, policy.location_radius_m)
