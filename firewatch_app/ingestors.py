import asyncio
import logging
from typing import AsyncGenerator, List, Optional

import httpx

from .feeds import parse_firms_csv, weather_from_openweather
from .models import FireObservation, GeoPoint, WeatherSnapshot

logger = logging.getLogger(__name__)

FIRMS_BASE = "https://firms.modaps.eosdis.nasa.gov/api/country/csv"
OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"


def firms_url(api_key: str, source: str = "VIIRS_SNPP_NRT", region: str = "USA", days: int = 1) -> str:
    # FIRMS only serves 1..10 day windows
    days = min(max(int(days), 1), 10)
    return f"{FIRMS_BASE}/{api_key}/{source}/{region}/{days}"


def observation_key(obs: FireObservation) -> str:
    return f"{obs.position.latitude}_{obs.position.longitude}_{obs.acquired_date}_{obs.acquired_time}"


# ---- NASA FIRMS active fires (CSV) ----
async def fetch_firms(client: httpx.AsyncClient, api_key: str, source: str = "VIIRS_SNPP_NRT",
                      region: str = "USA", days: int = 1) -> List[FireObservation]:
    """
    Fetch and parse the latest FIRMS detections for a country.

    Get a free MAP_KEY at https://firms.modaps.eosdis.nasa.gov/api/ and set
    FIRMS_API_KEY. Any failure (no key, HTTP error, bad status) yields [].
    """
    if not api_key:
        logger.warning("[FIRMS] no API key configured; set FIRMS_API_KEY")
        return []

    try:
        r = await client.get(firms_url(api_key, source, region, days))
    except httpx.HTTPError as e:
        logger.error("[FIRMS] request failed: %s", e)
        return []

    if r.status_code == 403:
        logger.warning("[FIRMS] API key invalid or expired")
        return []
    if r.status_code != 200:
        logger.warning("[FIRMS] unexpected status %d", r.status_code)
        return []

    fires = parse_firms_csv(r.text)
    logger.info("[FIRMS] parsed %d detection(s) for %s/%s", len(fires), source, region)
    return fires


# ---- OpenWeather current conditions ----
async def fetch_weather(client: httpx.AsyncClient, api_key: str, point: GeoPoint) -> Optional[WeatherSnapshot]:
    if not api_key:
        logger.warning("[Weather] no API key configured; set OPENWEATHER_API_KEY")
        return None

    params = {
        "lat": point.latitude,
        "lon": point.longitude,
        "appid": api_key,
        "units": "imperial",
    }
    try:
        r = await client.get(OPENWEATHER_URL, params=params)
        r.raise_for_status()
        payload = r.json()
    except httpx.HTTPError as e:
        logger.error("[Weather] request failed: %s", e)
        return None
    except ValueError as e:
        logger.error("[Weather] response was not JSON: %s", e)
        return None

    return weather_from_openweather(payload)


async def firms_stream(api_key: str, source: str = "VIIRS_SNPP_NRT", region: str = "USA",
                       days: int = 1, poll_secs: int = 900) -> AsyncGenerator[List[FireObservation], None]:
    """Poll FIRMS forever, yielding each cycle's detections that were not seen before."""
    seen_ids = set()
    async with httpx.AsyncClient(timeout=20) as client:
        while True:
            fires = await fetch_firms(client, api_key, source, region, days)
            fresh = []
            for obs in fires:
                key = observation_key(obs)
                if key not in seen_ids:
                    seen_ids.add(key)
                    fresh.append(obs)
            if fresh:
                yield fresh
            await asyncio.sleep(poll_secs)


async def weather_stream(api_key: str, point: GeoPoint,
                         poll_secs: int = 600) -> AsyncGenerator[WeatherSnapshot, None]:
    async with httpx.AsyncClient(timeout=10) as client:
        while True:
            weather = await fetch_weather(client, api_key, point)
            if weather is not None:
                yield weather
            await asyncio.sleep(poll_secs)
