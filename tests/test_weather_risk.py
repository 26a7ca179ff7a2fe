import pytest

from firewatch_app.weather_risk import adjustment_factor, condition_adjustment, scaled_severity

from conftest import make_weather


def test_no_weather_is_neutral():
    assert adjustment_factor(None) == 1.0
    assert adjustment_factor(make_weather()) == 1.0


def test_precipitation_lowers_the_factor():
    rain = adjustment_factor(make_weather(description="light rain"))
    snow = adjustment_factor(make_weather(description="Heavy SNOW"))
    assert rain < 1.0
    assert snow < rain


@pytest.mark.parametrize("description,delta", [
    ("sleet", -0.5),
    ("scattered showers", -0.3),
    ("mist", -0.2),
    ("thunderstorm", 0.2),
    ("clear sky", 0.1),
    ("overcast clouds", 0.0),
    # snow outranks rain when both appear
    ("rain and snow", -0.5),
    (None, 0.0),
])
def test_condition_adjustment(description, delta):
    assert condition_adjustment(description) == delta


def test_individual_readings():
    assert adjustment_factor(make_weather(wind_speed_mph=15)) == pytest.approx(1.3)
    assert adjustment_factor(make_weather(wind_speed_mph=60)) == pytest.approx(1.5)
    assert adjustment_factor(make_weather(humidity_percent=50)) == pytest.approx(0.8)
    assert adjustment_factor(make_weather(temperature_f=95)) == pytest.approx(1.15)
    assert adjustment_factor(make_weather(temperature_f=70)) == pytest.approx(1.0)


@pytest.mark.parametrize("kw", [
    dict(description="clear thunder", wind_speed_mph=500, humidity_percent=0, temperature_f=140),
    dict(description="snow", wind_speed_mph=0, humidity_percent=100, temperature_f=-40),
    dict(wind_speed_mph=-1000, humidity_percent=1000),
    dict(humidity_percent=-1000),
])
def test_factor_is_clamped(kw):
    assert 0.5 <= adjustment_factor(make_weather(**kw)) <= 1.7


def test_scaled_severity_caps_at_ten():
    assert scaled_severity(500) == pytest.approx(5.5)
    assert scaled_severity(900, make_weather(wind_speed_mph=40, temperature_f=110)) == 10.0
    assert scaled_severity(500, make_weather(description="snow")) == pytest.approx(2.75)
