from math import radians, sin, cos, atan2, sqrt, isfinite
from typing import Iterable, List, Optional, Union

from .models import FireObservation, FireReport, GeoPoint, ProximityMatch

EARTH_RADIUS_KM = 6371.0
KM_TO_MILES = 0.621371


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    dlat = radians(lat2 - lat1)
    dlon = radians(lon2 - lon1)
    h = sin(dlat/2)**2 + cos(radians(lat1))*cos(radians(lat2))*sin(dlon/2)**2
    # rounding can push h a hair outside [0, 1] for antipodal points
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_KM * atan2(sqrt(h), sqrt(1 - h))


def distance_miles(a: GeoPoint, b: GeoPoint) -> float:
    """Great-circle distance between two points, in statute miles."""
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude) * KM_TO_MILES


def find_nearby(origin: GeoPoint, candidates: Iterable[Union[FireObservation, FireReport]],
                radius_miles: float, max_results: int) -> List[ProximityMatch]:
    """
    Return the candidates within ``radius_miles`` of ``origin``, nearest first,
    at most ``max_results`` of them.

    Candidates are fire observations or user reports; anything else is skipped,
    as is any candidate whose distance is not finite. Ties keep their input
    order; duplicates are not merged.
    """
    # written as "not >" so a NaN radius also yields nothing
    if not radius_miles > 0 or max_results <= 0:
        return []

    matches: List[ProximityMatch] = []
    for candidate in candidates:
        if not isinstance(candidate, (FireObservation, FireReport)):
            continue
        d = distance_miles(origin, candidate.position)
        if not isfinite(d) or d > radius_miles:
            continue
        matches.append(ProximityMatch(observation=candidate, distance_miles=d))

    matches.sort(key=lambda m: m.distance_miles)
    return matches[:max_results]


def find_nearest(origin: GeoPoint, candidates: Iterable[Union[FireObservation, FireReport]],
                 radius_miles: float = float("inf")) -> Optional[ProximityMatch]:
    found = find_nearby(origin, candidates, radius_miles, 1)
    return found[0] if found else None
