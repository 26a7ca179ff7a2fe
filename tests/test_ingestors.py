import asyncio

import httpx

from firewatch_app import ingestors
from firewatch_app.ingestors import (
    fetch_firms, fetch_weather, firms_stream, firms_url, observation_key, weather_stream,
)
from firewatch_app.models import GeoPoint

from conftest import make_fire, make_weather

CSV = "latitude,longitude,frp,acq_date,acq_time\n45.1,-122.0,12.5,2024-07-15,0712\n"


def _client(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def test_firms_url_clamps_days():
    assert firms_url("KEY", "VIIRS_SNPP_NRT", "USA", 0).endswith("/KEY/VIIRS_SNPP_NRT/USA/1")
    assert firms_url("KEY", days=30).endswith("/10")
    assert firms_url("KEY", days=3).endswith("/USA/3")


def test_fetch_firms_parses_csv():
    seen = []

    def handler(request):
        seen.append(str(request.url))
        return httpx.Response(200, text=CSV)

    async def run():
        async with _client(handler) as client:
            return await fetch_firms(client, "KEY", days=2)

    [obs] = asyncio.run(run())
    assert obs.radiative_power == 12.5
    assert seen[0].endswith("/KEY/VIIRS_SNPP_NRT/USA/2")
    assert observation_key(obs) == "45.1_-122.0_2024-07-15_0712"


def test_fetch_firms_degrades_to_empty():
    def forbidden(request):
        return httpx.Response(403, text="Invalid MAP_KEY")

    def broken(request):
        raise httpx.ConnectError("down", request=request)

    async def run(handler, key="KEY"):
        async with _client(handler) as client:
            return await fetch_firms(client, key)

    assert asyncio.run(run(forbidden)) == []
    assert asyncio.run(run(broken)) == []
    assert asyncio.run(run(lambda r: httpx.Response(500))) == []
    assert asyncio.run(run(forbidden, key="")) == []


def test_fetch_weather():
    params = {}

    def handler(request):
        params.update(request.url.params)
        return httpx.Response(200, json={
            "weather": [{"description": "clear sky"}],
            "main": {"temp": 88.0, "humidity": 15},
            "wind": {"speed": 20.0, "deg": 90},
        })

    async def run():
        async with _client(handler) as client:
            return await fetch_weather(client, "KEY", GeoPoint(latitude=45.0, longitude=-122.0))

    weather = asyncio.run(run())
    assert weather.description == "clear sky"
    assert weather.wind_speed_mph == 20.0
    assert params["units"] == "imperial"
    assert params["lat"] == "45.0"


def test_fetch_weather_failures_return_none():
    async def run(handler):
        async with _client(handler) as client:
            return await fetch_weather(client, "KEY", GeoPoint(latitude=45.0, longitude=-122.0))

    assert asyncio.run(run(lambda r: httpx.Response(401, json={"cod": 401}))) is None
    assert asyncio.run(run(lambda r: httpx.Response(200, text="<html>"))) is None


def _no_wait(monkeypatch):
    real_sleep = asyncio.sleep
    naps = []

    async def nap(secs):
        naps.append(secs)
        await real_sleep(0)

    monkeypatch.setattr(ingestors.asyncio, "sleep", nap)
    return naps


def test_firms_stream_yields_only_new_detections(monkeypatch):
    a, b, c = make_fire(45.1, -122.0), make_fire(45.2, -122.0), make_fire(45.3, -122.0)
    polls = iter([[a, b], [b, c], [a, b, c]])

    async def fake_fetch(client, api_key, source, region, days):
        return next(polls, [])

    monkeypatch.setattr(ingestors, "fetch_firms", fake_fetch)
    naps = _no_wait(monkeypatch)

    async def run():
        stream = firms_stream("KEY", poll_secs=60)
        first = await stream.__anext__()
        second = await stream.__anext__()
        await stream.aclose()
        return first, second

    first, second = asyncio.run(run())
    assert first == [a, b]
    assert second == [c]
    assert naps == [60]


def test_firms_stream_skips_polls_with_nothing_new(monkeypatch):
    a, b = make_fire(45.1, -122.0), make_fire(45.2, -122.0)
    polls = iter([[a], [], [a], [a, b]])

    async def fake_fetch(client, api_key, source, region, days):
        return next(polls, [])

    monkeypatch.setattr(ingestors, "fetch_firms", fake_fetch)
    naps = _no_wait(monkeypatch)

    async def run():
        stream = firms_stream("KEY", poll_secs=5)
        batches = [await stream.__anext__(), await stream.__anext__()]
        await stream.aclose()
        return batches

    assert asyncio.run(run()) == [[a], [b]]
    assert naps == [5, 5, 5]


def test_weather_stream_skips_failed_polls(monkeypatch):
    clear = make_weather(description="clear sky", temperature_f=80.0)
    polls = iter([None, clear])

    async def fake_fetch(client, api_key, point):
        return next(polls, None)

    monkeypatch.setattr(ingestors, "fetch_weather", fake_fetch)
    naps = _no_wait(monkeypatch)

    async def run():
        stream = weather_stream("KEY", GeoPoint(latitude=45.0, longitude=-122.0), poll_secs=30)
        weather = await stream.__anext__()
        await stream.aclose()
        return weather

    assert asyncio.run(run()) == clear
    assert naps == [30]
