"""
Proximity + severity pipeline behind the dashboard.

    observations -> find_nearby(origin) -> nearest match
                 -> scale_continuous(frp) x adjustment_factor(weather)
                 -> RiskAssessment (score, level, band, ranked neighbours)

The caller's selection (clicked point, local weather, region, population) is
passed in explicitly as a SelectionContext; nothing is kept between calls.
"""
from typing import Iterable, Optional

from .geo import find_nearby
from .models import (
    FireObservation, FireReport, ReportSnippet, RiskAssessment,
    SelectionContext, SuggestionContext,
)
from .severity import scale_bucket, scale_continuous, severity_band
from .weather_risk import adjustment_factor


def assess(context: SelectionContext, observations: Iterable[FireObservation],
           radius_miles: float, max_results: int) -> RiskAssessment:
    matches = find_nearby(context.origin, observations, radius_miles, max_results)
    if not matches:
        return RiskAssessment(origin=context.origin, matches=[], weather=context.weather)

    nearest = matches[0]
    obs = nearest.observation
    # weather measured at the fire beats weather at the selected point
    weather = obs.weather if obs.weather is not None else context.weather

    base = scale_continuous(obs.radiative_power)
    factor = adjustment_factor(weather)
    score = min(10.0, base * factor)
    return RiskAssessment(
        origin=context.origin,
        matches=matches,
        nearest=nearest,
        base_severity=base,
        adjustment=factor,
        severity=score,
        level=scale_bucket(obs.radiative_power),
        band=severity_band(score),
        weather=weather,
    )


def build_suggestion_context(context: SelectionContext, assessment: Optional[RiskAssessment],
                             reports: Iterable[FireReport], total_fires: int,
                             report_radius_miles: float = 15.0,
                             max_reports: int = 30) -> SuggestionContext:
    """
    Collect the inputs the recommendation generator is given.

    The weather reported is the one the assessment was scored with, so the
    description agrees with the severity. Unknown weather stays unknown: the
    description falls back to "Unknown" and missing readings stay None.
    """
    nearby = find_nearby(context.origin, reports, report_radius_miles, max_reports)
    weather = assessment.weather if assessment is not None else context.weather
    return SuggestionContext(
        lat=context.origin.latitude,
        lng=context.origin.longitude,
        weather=(weather.description if weather and weather.description else "Unknown"),
        temperature_f=weather.temperature_f if weather else None,
        wind_speed_mph=weather.wind_speed_mph if weather else None,
        humidity_percent=weather.humidity_percent if weather else None,
        severity=assessment.severity if assessment else None,
        total_fires=total_fires,
        population=context.population,
        region=context.region,
        nearby_reports=[
            ReportSnippet(entry=m.observation.entry, distance_miles=round(m.distance_miles, 1))
            for m in nearby
        ],
    )
