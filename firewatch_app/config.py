import os

from dotenv import load_dotenv

load_dotenv()


def _getenv_float(key: str, default: float) -> float:
    try:
        return float(os.getenv(key, default))
    except ValueError:
        return default


def _getenv_int(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, default))
    except ValueError:
        return default


class Settings:
    """
    Runtime configuration, read from the environment (and a local .env file).

    Attributes are plain class attributes so tests can patch them in place.
    """
    # NASA FIRMS
    FIRMS_API_KEY = os.getenv("FIRMS_API_KEY", "")
    FIRMS_SOURCE = os.getenv("FIRMS_SOURCE", "VIIRS_SNPP_NRT")
    FIRMS_REGION = os.getenv("FIRMS_REGION", "USA")
    FIRMS_DAYS = _getenv_int("FIRMS_DAYS", 1)
    FIRMS_POLL_SECS = _getenv_int("FIRMS_POLL_SECS", 900)

    # OpenWeather, sampled at one configured point
    OPENWEATHER_API_KEY = os.getenv("OPENWEATHER_API_KEY", "")
    WEATHER_LAT = _getenv_float("WEATHER_LAT", 45.0)
    WEATHER_LON = _getenv_float("WEATHER_LON", -122.0)
    WEATHER_POLL_SECS = _getenv_int("WEATHER_POLL_SECS", 600)

    DB_PATH = os.getenv("DB_PATH", "firewatch.sqlite")

    # Query defaults
    DEFAULT_RADIUS_MILES = _getenv_float("DEFAULT_RADIUS_MILES", 50.0)
    DEFAULT_MAX_RESULTS = _getenv_int("DEFAULT_MAX_RESULTS", 30)
    REPORT_RADIUS_MILES = _getenv_float("REPORT_RADIUS_MILES", 15.0)
    MAX_REPORTS = _getenv_int("MAX_REPORTS", 30)

    POLLING_ENABLED = os.getenv("POLLING_ENABLED", "1") == "1"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()
