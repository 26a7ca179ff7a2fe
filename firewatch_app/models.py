from datetime import date, datetime
from typing import Optional, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

SeverityBand = Literal["moderate", "elevated", "high"]


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class WeatherSnapshot(BaseModel):
    # every reading is optional; missing means "unknown", never zero
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    description: str = ""
    humidity_percent: Optional[float] = None
    temperature_f: Optional[float] = None
    wind_speed_mph: Optional[float] = None
    wind_direction_deg: Optional[float] = None


class FireObservation(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    position: GeoPoint
    radiative_power: float = Field(ge=0)       # FRP, megawatts
    acquired_date: Optional[date] = None
    acquired_time: str = "0000"                # HHMM, UTC
    confidence_percent: Optional[float] = Field(default=None, ge=0, le=100)
    brightness: float = 0.0
    secondary_brightness: float = 0.0
    satellite: Optional[str] = None
    instrument: Optional[str] = None
    daynight: Optional[str] = None
    weather: Optional[WeatherSnapshot] = None


class FireReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    entry: str = Field(max_length=500)
    position: GeoPoint
    reported_at: Optional[datetime] = None


class ProximityMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    observation: Union[FireObservation, FireReport]
    distance_miles: float = Field(ge=0)


class BucketStat(BaseModel):
    count: int = 0
    acres: float = 0.0


class SelectionContext(BaseModel):
    origin: GeoPoint
    weather: Optional[WeatherSnapshot] = None
    region: Optional[str] = None
    population: Optional[int] = None


class RiskAssessment(BaseModel):
    origin: GeoPoint
    matches: list[ProximityMatch] = Field(default_factory=list)
    nearest: Optional[ProximityMatch] = None
    base_severity: Optional[float] = None      # scale_continuous of the nearest FRP
    adjustment: float = 1.0
    severity: Optional[float] = None           # base_severity * adjustment, capped at 10
    level: Optional[int] = None
    band: Optional[SeverityBand] = None
    weather: Optional[WeatherSnapshot] = None  # the weather the adjustment was computed from


class ReportSnippet(BaseModel):
    entry: str
    distance_miles: float


class SuggestionContext(BaseModel):
    lat: float
    lng: float
    weather: str = "Unknown"
    temperature_f: Optional[float] = None
    wind_speed_mph: Optional[float] = None
    humidity_percent: Optional[float] = None
    severity: Optional[float] = None
    total_fires: int = 0
    population: Optional[int] = None
    region: Optional[str] = None
    nearby_reports: list[ReportSnippet] = Field(default_factory=list)
