import pytest

from firewatch_app.config import Settings
from firewatch_app.models import FireObservation, GeoPoint, WeatherSnapshot


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = str(tmp_path / "firewatch.sqlite")
    monkeypatch.setattr(Settings, "DB_PATH", path)
    monkeypatch.setattr(Settings, "POLLING_ENABLED", False)
    return path


def make_fire(lat, lon, frp=10.0, weather=None):
    return FireObservation(
        position=GeoPoint(latitude=lat, longitude=lon),
        radiative_power=frp,
        weather=weather,
    )


def make_weather(**kw):
    return WeatherSnapshot(**kw)
