"""
Turn upstream payloads into FireObservation lists.

Providers hand back several shapes for the same rows:

    [ {...}, {...} ]                       plain array
    {"data": [ ... ]}                      wrapped array
    {"results": [ ... ]}                   wrapped array
    {"a1": {...}, "a2": {...}}             keyed object of rows
    "latitude,longitude,..."               FIRMS CSV text

``normalize`` resolves the shape by inspection and builds one observation per
usable row. Rows missing a numeric latitude, longitude or FRP are dropped; an
unrecognised shape gives an empty list. Nothing here raises for bad input.
"""
import logging
from datetime import date, datetime, timezone
from math import isfinite
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Optional

from pydantic import ValidationError

from .models import FireObservation, FireReport, GeoPoint, WeatherSnapshot

logger = logging.getLogger(__name__)

LATITUDE_KEYS = ("latitude", "lat")
LONGITUDE_KEYS = ("longitude", "lon", "lng")
FRP_KEYS = ("frp", "radiative_power")
BRIGHTNESS_KEYS = ("bright_ti4", "brightness")
SECONDARY_BRIGHTNESS_KEYS = ("bright_ti5", "bright_t31", "secondary_brightness")

CONFIDENCE_CODES = {"h": 90.0, "n": 50.0, "l": 30.0}
DEFAULT_CSV_CONFIDENCE = 80.0


def _is_number(value) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool) and isfinite(value)


def _first(row: Mapping, keys: Iterable[str]):
    for k in keys:
        if k in row:
            return row[k]
    return None


def _first_number(row: Mapping, keys: Iterable[str]) -> Optional[float]:
    value = _first(row, keys)
    return float(value) if _is_number(value) else None


def _to_float(text, default: Optional[float] = 0.0) -> Optional[float]:
    try:
        value = float(text)
    except (TypeError, ValueError):
        return default
    return value if isfinite(value) else default


def _to_date(value) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            return None
    return None


def _text(value) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def parse_confidence(raw) -> Optional[float]:
    """FIRMS confidence: VIIRS letter codes or a MODIS percentage."""
    if _is_number(raw):
        return min(100.0, max(0.0, float(raw)))
    if isinstance(raw, str):
        code = raw.strip().lower()
        if code in CONFIDENCE_CODES:
            return CONFIDENCE_CODES[code]
        value = _to_float(code, None)
        if value is not None:
            return min(100.0, max(0.0, value))
    return None


# =========================
# Shape resolution
# =========================

def extract_candidates(raw: Any) -> List[Any]:
    if isinstance(raw, (list, tuple)):
        return list(raw)
    if not isinstance(raw, Mapping):
        return []

    data = raw.get("data")
    if isinstance(data, (list, tuple)):
        return list(data)
    results = raw.get("results")
    if isinstance(results, (list, tuple)):
        return list(results)

    values = list(raw.values())
    if values and isinstance(values[0], Mapping) \
            and "latitude" in values[0] and "longitude" in values[0]:
        return values
    return []


def observation_from_row(row: Any) -> Optional[FireObservation]:
    """Build one observation from an already-parsed JSON row, or None if it is unusable."""
    if not isinstance(row, Mapping):
        return None
    lat = _first_number(row, LATITUDE_KEYS)
    lon = _first_number(row, LONGITUDE_KEYS)
    frp = _first_number(row, FRP_KEYS)
    if lat is None or lon is None or frp is None:
        return None

    weather = row.get("weather")
    try:
        return FireObservation(
            position=GeoPoint(latitude=lat, longitude=lon),
            radiative_power=frp,
            acquired_date=_to_date(row.get("acq_date")),
            acquired_time=_text(row.get("acq_time")) or "0000",
            confidence_percent=parse_confidence(row.get("confidence")),
            brightness=_first_number(row, BRIGHTNESS_KEYS) or 0.0,
            secondary_brightness=_first_number(row, SECONDARY_BRIGHTNESS_KEYS) or 0.0,
            satellite=_text(row.get("satellite")),
            instrument=_text(row.get("instrument")),
            daynight=_text(row.get("daynight")),
            weather=weather_from_record(weather) if isinstance(weather, Mapping) else None,
        )
    except ValidationError:
        return None


def _build_all(rows: Iterable[Any]) -> List[FireObservation]:
    out: List[FireObservation] = []
    dropped = 0
    for row in rows:
        obs = observation_from_row(row)
        if obs is None:
            dropped += 1
            continue
        out.append(obs)
    if dropped:
        logger.debug("[Feed] dropped %d malformed row(s), kept %d", dropped, len(out))
    return out


def normalize(raw: Any) -> List[FireObservation]:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        return parse_firms_csv(raw)
    return _build_all(extract_candidates(raw))


def normalize_documents(docs: Iterable[Mapping]) -> List[FireObservation]:
    """
    Flatten document-store records whose fire rows sit in arbitrarily keyed
    arrays (e.g. ``{"timestamp": ..., "data": [...]}``).
    """
    rows: List[Any] = []
    for doc in docs:
        if not isinstance(doc, Mapping):
            continue
        for group in doc.values():
            if isinstance(group, list):
                rows.extend(group)
    return _build_all(rows)


# =========================
# FIRMS CSV
# =========================

def parse_firms_csv(text: str, delimiter: str = ",",
                    strict_coordinates: bool = True) -> List[FireObservation]:
    """
    Parse a FIRMS area/country CSV response.

    Lines whose field count differs from the header are skipped. Numeric columns
    fall back to 0 when unparsable. With ``strict_coordinates`` (the default) a row
    whose latitude or longitude does not parse is dropped; with it off such a row is
    placed at 0 on that axis (the legacy dashboard behaviour).
    """
    lines = text.split("\n")
    if not lines or not lines[0].strip():
        logger.warning("[Feed] CSV response is empty or missing headers")
        return []

    headers = [h.strip() for h in lines[0].rstrip("\r").split(delimiter)]
    today = datetime.now(timezone.utc).date()
    out: List[FireObservation] = []
    skipped = 0

    for line in lines[1:]:
        line = line.rstrip("\r")
        if not line.strip():
            continue
        values = line.split(delimiter)
        if len(values) != len(headers):
            skipped += 1
            continue
        row: Dict[str, str] = {h: v.strip() for h, v in zip(headers, values)}

        coord_default = None if strict_coordinates else 0.0
        lat = _to_float(row.get("latitude"), coord_default)
        lon = _to_float(row.get("longitude"), coord_default)
        if lat is None or lon is None:
            skipped += 1
            continue

        confidence = parse_confidence(row.get("confidence"))
        try:
            out.append(FireObservation(
                position=GeoPoint(latitude=lat, longitude=lon),
                radiative_power=_to_float(row.get("frp")),
                acquired_date=_to_date(row.get("acq_date")) or today,
                acquired_time=row.get("acq_time") or "0000",
                confidence_percent=DEFAULT_CSV_CONFIDENCE if confidence is None else confidence,
                brightness=_to_float(_first(row, BRIGHTNESS_KEYS)),
                secondary_brightness=_to_float(_first(row, SECONDARY_BRIGHTNESS_KEYS)),
                satellite=_text(row.get("satellite")),
                instrument=_text(row.get("instrument")),
                daynight=_text(row.get("daynight")),
            ))
        except ValidationError:
            skipped += 1

    if skipped:
        logger.debug("[Feed] skipped %d CSV line(s), parsed %d", skipped, len(out))
    return out


# =========================
# Weather + user reports
# =========================

def _snapshot(description, humidity, temperature, wind_speed, wind_direction) -> Optional[WeatherSnapshot]:
    readings = {
        "humidity_percent": float(humidity) if _is_number(humidity) else None,
        "temperature_f": float(temperature) if _is_number(temperature) else None,
        "wind_speed_mph": float(wind_speed) if _is_number(wind_speed) else None,
        "wind_direction_deg": float(wind_direction) if _is_number(wind_direction) else None,
    }
    description = description if isinstance(description, str) else ""
    if not description and all(v is None for v in readings.values()):
        return None
    return WeatherSnapshot(description=description, **readings)


def weather_from_record(record: Mapping) -> Optional[WeatherSnapshot]:
    """Stored weather record: weather_desc, humidity, temperature, wind_speed, wind_direction."""
    return _snapshot(
        record.get("weather_desc", record.get("description")),
        record.get("humidity", record.get("humidity_percent")),
        record.get("temperature", record.get("temperature_f")),
        record.get("wind_speed", record.get("wind_speed_mph")),
        record.get("wind_direction", record.get("wind_direction_deg")),
    )


def weather_from_openweather(payload: Any) -> Optional[WeatherSnapshot]:
    """OpenWeather /data/2.5/weather response requested with units=imperial."""
    if not isinstance(payload, Mapping):
        return None
    conditions = payload.get("weather")
    description = None
    if isinstance(conditions, list) and conditions and isinstance(conditions[0], Mapping):
        description = conditions[0].get("description")
    main = payload.get("main") if isinstance(payload.get("main"), Mapping) else {}
    wind = payload.get("wind") if isinstance(payload.get("wind"), Mapping) else {}
    return _snapshot(description, main.get("humidity"), main.get("temp"),
                     wind.get("speed"), wind.get("deg"))


def weather_to_record(weather: WeatherSnapshot) -> Dict[str, Any]:
    return {
        "weather_desc": weather.description,
        "humidity": weather.humidity_percent,
        "temperature": weather.temperature_f,
        "wind_speed": weather.wind_speed_mph,
        "wind_direction": weather.wind_direction_deg,
    }


def report_from_record(record: Any) -> Optional[FireReport]:
    """User report stored as ``{entry, coordinates: {lat, lng}, timestamp}``."""
    if not isinstance(record, Mapping):
        return None
    coords = record.get("coordinates")
    if not isinstance(coords, Mapping):
        return None
    lat = _first_number(coords, LATITUDE_KEYS)
    lon = _first_number(coords, LONGITUDE_KEYS)
    if lat is None or lon is None:
        return None
    reported_at = record.get("timestamp")
    if isinstance(reported_at, str):
        try:
            reported_at = datetime.fromisoformat(reported_at)
        except ValueError:
            reported_at = None
    elif not isinstance(reported_at, datetime):
        reported_at = None
    try:
        return FireReport(
            entry=_text(record.get("entry")) or "No description",
            position=GeoPoint(latitude=lat, longitude=lon),
            reported_at=reported_at,
        )
    except ValidationError:
        return None


def report_to_record(report: FireReport) -> Dict[str, Any]:
    return {
        "entry": report.entry,
        "coordinates": {"lat": report.position.latitude, "lng": report.position.longitude},
        "timestamp": (report.reported_at or datetime.now(timezone.utc)).isoformat(),
    }
