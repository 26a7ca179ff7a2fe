from math import isfinite
from numbers import Real
from typing import Dict, Iterable, Optional

from .models import BucketStat, FireObservation, SeverityBand

EXTREME_FRP_MW = 1000.0
ACRES_PER_MW = 0.5

# (minimum FRP in MW, level), checked top-down
LEVEL_THRESHOLDS = ((800.0, 5), (600.0, 4), (400.0, 3), (200.0, 2))


def _finite_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and isfinite(value)


def scale_continuous(frp: float) -> float:
    """
    Map fire radiative power onto a 0-10 severity scale.

    Linear from 1 at 0 MW to 10 at 1000 MW; anything at or above 1000 MW is 10.
    """
    if frp >= EXTREME_FRP_MW:
        return 10.0
    return max(0.0, 1 + (frp * 9 / EXTREME_FRP_MW))


def scale_bucket(frp) -> Optional[int]:
    """Discrete level 1-5 for a FRP reading, or None when the reading is not a finite number."""
    if not _finite_number(frp):
        return None
    for floor, level in LEVEL_THRESHOLDS:
        if frp >= floor:
            return level
    return 1


def scale_bucket_extended(frp) -> Optional[int]:
    """Like scale_bucket, with a sixth "severe" level above 1000 MW."""
    if _finite_number(frp) and frp > EXTREME_FRP_MW:
        return 6
    return scale_bucket(frp)


def severity_band(score: float) -> SeverityBand:
    if score > 7:
        return "high"
    if score > 4:
        return "elevated"
    return "moderate"


def heat_intensity(frp: float) -> float:
    """Heatmap weight for one detection; never below 0.5 so small fires stay visible."""
    return max(frp / 10, 0.5)


def summarize_buckets(observations: Iterable[FireObservation]) -> Dict[int, BucketStat]:
    """Count fires and estimate burned acres per level 1-5."""
    table = {level: BucketStat() for level in range(1, 6)}
    for obs in observations:
        level = scale_bucket(obs.radiative_power)
        if level is None:
            continue
        stat = table[level]
        stat.count += 1
        stat.acres += obs.radiative_power * ACRES_PER_MW
    return table
