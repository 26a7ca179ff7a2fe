from typing import Optional

from .models import WeatherSnapshot
from .severity import scale_continuous

MIN_FACTOR = 0.5
MAX_FACTOR = 1.7

# First matching row wins; matching is a case-insensitive substring test.
CONDITION_ADJUSTMENTS = (
    (("snow", "sleet"), -0.5),
    (("rain", "shower"), -0.3),
    (("fog", "mist"), -0.2),
    (("thunder", "lightning"), 0.2),
    (("clear", "sunny"), 0.1),
)


def condition_adjustment(description: Optional[str]) -> float:
    text = (description or "").lower()
    for keywords, delta in CONDITION_ADJUSTMENTS:
        if any(k in text for k in keywords):
            return delta
    return 0.0


def adjustment_factor(weather: Optional[WeatherSnapshot]) -> float:
    """
    Multiplicative severity adjustment for the ambient weather, within [0.5, 1.7].

    Wind and heat push the factor up, humidity and precipitation pull it down.
    Readings that are missing contribute nothing; no weather at all is neutral (1.0).
    """
    if weather is None:
        return 1.0

    factor = 1.0
    if weather.wind_speed_mph is not None:
        factor += min((weather.wind_speed_mph / 15) * 0.3, 0.5)
    if weather.humidity_percent is not None:
        factor -= min((weather.humidity_percent / 100) * 0.4, 0.4)
    if weather.temperature_f is not None and weather.temperature_f > 80:
        factor += min(((weather.temperature_f - 80) / 30) * 0.3, 0.3)
    factor += condition_adjustment(weather.description)

    return min(MAX_FACTOR, max(MIN_FACTOR, factor))


def scaled_severity(frp: float, weather: Optional[WeatherSnapshot] = None) -> float:
    return min(10.0, scale_continuous(frp) * adjustment_factor(weather))
