import math

import pytest

from firewatch_app.severity import (
    heat_intensity, scale_bucket, scale_bucket_extended, scale_continuous,
    severity_band, summarize_buckets,
)

from conftest import make_fire


@pytest.mark.parametrize("frp,expected", [(0, 1.0), (500, 5.5), (1000, 10.0), (2000, 10.0)])
def test_scale_continuous(frp, expected):
    assert scale_continuous(frp) == pytest.approx(expected)


@pytest.mark.parametrize("frp,level", [
    (0, 1), (199, 1), (200, 2), (399.9, 2), (400, 3), (600, 4), (799, 4), (800, 5), (5000, 5),
])
def test_scale_bucket(frp, level):
    assert scale_bucket(frp) == level


@pytest.mark.parametrize("bad", [math.nan, math.inf, None, "450", True])
def test_scale_bucket_rejects_non_numbers(bad):
    assert scale_bucket(bad) is None


def test_extended_bucket_adds_severe_tier():
    assert scale_bucket_extended(1000) == 5
    assert scale_bucket_extended(1000.1) == 6
    assert scale_bucket_extended(250) == 2
    assert scale_bucket_extended(math.nan) is None


def test_severity_band():
    assert severity_band(7.5) == "high"
    assert severity_band(7.0) == "elevated"
    assert severity_band(4.0) == "moderate"


def test_heat_intensity_floor():
    assert heat_intensity(1.0) == 0.5
    assert heat_intensity(45.0) == 4.5


def test_summarize_buckets():
    fires = [make_fire(40, -120, frp) for frp in (10, 150, 250, 900, 1500)]
    table = summarize_buckets(fires)
    assert sorted(table) == [1, 2, 3, 4, 5]
    assert table[1].count == 2
    assert table[1].acres == pytest.approx(80.0)
    assert table[2].count == 1
    assert table[3].count == 0
    # above 1000 MW still lands in the top level
    assert table[5].count == 2
    assert table[5].acres == pytest.approx(1200.0)
