import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import aiosqlite
from fastapi import FastAPI, Query
from pydantic import BaseModel, Field

# --- relative imports (package-local) ---
from .config import settings
from .models import (
    FireObservation, FireReport, GeoPoint, ProximityMatch, RiskAssessment,
    SelectionContext, SuggestionContext, WeatherSnapshot,
)
from .storage import (
    init_db, add_document, query_collection,
    FIRMS_UPDATES, WEATHER, USER_ENTRIES,
)
from .ingestors import firms_stream, weather_stream
from .feeds import (
    normalize_documents, report_from_record, report_to_record,
    weather_from_record, weather_to_record,
)
from .geo import find_nearby
from .pipeline import assess, build_suggestion_context
from .severity import summarize_buckets

logging.basicConfig(level=settings.LOG_LEVEL,
                    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="Firewatch")


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# =========================
# Request / response bodies
# =========================

class AssessRequest(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)
    radius_miles: Optional[float] = Field(default=None, gt=0)
    max_results: Optional[int] = Field(default=None, gt=0)
    weather: Optional[WeatherSnapshot] = None
    region: Optional[str] = None
    population: Optional[int] = None


class AssessResponse(BaseModel):
    assessment: RiskAssessment
    suggestion_context: SuggestionContext


class ReportRequest(BaseModel):
    entry: str = Field(min_length=1, max_length=500)
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


# =========================
# Document store reads
# =========================

async def load_observations() -> List[FireObservation]:
    return normalize_documents(await query_collection(FIRMS_UPDATES))


async def load_reports() -> List[FireReport]:
    reports = (report_from_record(r) for r in await query_collection(USER_ENTRIES))
    return [r for r in reports if r is not None]


async def latest_weather() -> Optional[WeatherSnapshot]:
    records = await query_collection(WEATHER)
    return weather_from_record(records[-1]) if records else None


# =========================
# Routes
# =========================

@app.get("/health")
async def health():
    return {"ok": True, "time": now_iso()}


@app.get("/fires", response_model=List[FireObservation])
async def list_fires():
    return await load_observations()


@app.get("/fires/nearby", response_model=List[ProximityMatch])
async def nearby_fires(
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
    radius_miles: Optional[float] = Query(default=None),
    limit: Optional[int] = Query(default=None),
):
    origin = GeoPoint(latitude=lat, longitude=lon)
    radius = settings.DEFAULT_RADIUS_MILES if radius_miles is None else radius_miles
    max_results = settings.DEFAULT_MAX_RESULTS if limit is None else limit
    return find_nearby(origin, await load_observations(), radius, max_results)


@app.get("/fires/summary")
async def fire_summary() -> Dict[str, Any]:
    observations = await load_observations()
    table = summarize_buckets(observations)
    return {
        "total": len(observations),
        "levels": {str(level): stat.model_dump() for level, stat in table.items()},
    }


@app.post("/assess", response_model=AssessResponse)
async def assess_point(req: AssessRequest):
    """
    POST JSON like:
    {"lat": 45.0, "lon": -122.0, "radius_miles": 50, "region": "Oregon"}
    Without a weather body the latest stored weather snapshot is used.
    """
    weather = req.weather if req.weather is not None else await latest_weather()
    context = SelectionContext(
        origin=GeoPoint(latitude=req.lat, longitude=req.lon),
        weather=weather,
        region=req.region,
        population=req.population,
    )
    observations = await load_observations()
    assessment = assess(
        context, observations,
        req.radius_miles or settings.DEFAULT_RADIUS_MILES,
        req.max_results or settings.DEFAULT_MAX_RESULTS,
    )
    suggestion = build_suggestion_context(
        context, assessment, await load_reports(), total_fires=len(observations),
        report_radius_miles=settings.REPORT_RADIUS_MILES, max_reports=settings.MAX_REPORTS,
    )
    return AssessResponse(assessment=assessment, suggestion_context=suggestion)


@app.post("/reports", status_code=201)
async def submit_report(req: ReportRequest):
    report = FireReport(
        entry=req.entry.strip(),
        position=GeoPoint(latitude=req.lat, longitude=req.lng),
        reported_at=datetime.now(timezone.utc),
    )
    doc_id = await add_document(USER_ENTRIES, report_to_record(report))
    logger.info("[Report] stored %s at (%.4f, %.4f)", doc_id, req.lat, req.lng)
    return {"ok": True, "id": doc_id}


# =========================
# Lifecycle
# =========================

@app.on_event("startup")
async def on_start():
    await init_db()
    if settings.POLLING_ENABLED:
        asyncio.create_task(run_ingestion())


# =========================
# Ingestion runner
# =========================

async def store_firms_batch(batch: List[FireObservation]) -> Optional[str]:
    if not batch:
        logger.warning("[FIRMS] no data returned; skipping write")
        return None
    try:
        doc_id = await add_document(FIRMS_UPDATES, {
            "timestamp": now_iso(),
            "data": [obs.model_dump(mode="json") | _provider_fields(obs) for obs in batch],
        })
    except aiosqlite.OperationalError as e:
        logger.error("[DB][ERROR] dropped batch of %d detection(s): %s", len(batch), e)
        return None
    logger.info("[DB] stored %d detection(s) as %s", len(batch), doc_id)
    return doc_id


def _provider_fields(obs: FireObservation) -> Dict[str, Any]:
    # stored rows keep the provider's flat field names so normalize() reads them back
    return {
        "latitude": obs.position.latitude,
        "longitude": obs.position.longitude,
        "frp": obs.radiative_power,
        "acq_date": obs.acquired_date.isoformat() if obs.acquired_date else None,
        "acq_time": obs.acquired_time,
        "confidence": obs.confidence_percent,
    }


async def store_weather(weather: WeatherSnapshot) -> Optional[str]:
    try:
        doc_id = await add_document(WEATHER, weather_to_record(weather))
    except aiosqlite.OperationalError as e:
        logger.error("[DB][ERROR] dropped weather snapshot: %s", e)
        return None
    logger.info("[Weather] stored snapshot %s (%s)", doc_id, weather.description or "no description")
    return doc_id


async def run_ingestion():
    async def firms_feeder():
        async for batch in firms_stream(settings.FIRMS_API_KEY, settings.FIRMS_SOURCE,
                                        settings.FIRMS_REGION, settings.FIRMS_DAYS,
                                        settings.FIRMS_POLL_SECS):
            await store_firms_batch(batch)

    async def weather_feeder():
        point = GeoPoint(latitude=settings.WEATHER_LAT, longitude=settings.WEATHER_LON)
        async for weather in weather_stream(settings.OPENWEATHER_API_KEY, point,
                                            settings.WEATHER_POLL_SECS):
            await store_weather(weather)

    results = await asyncio.gather(firms_feeder(), weather_feeder(), return_exceptions=True)
    for r in results:
        if isinstance(r, Exception):
            logger.error("[Ingest] feeder stopped: %s", r)
