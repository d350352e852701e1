import math
from datetime import datetime, timezone

import numpy as np

from spurious_chart.scales import LinearScale, TimeScale, format_integer, format_year


def test_linear_scale_maps_endpoints_and_midpoint():
    scale = LinearScale((-20, 100), (329, 59))
    assert scale(-20) == 329
    assert scale(100) == 59
    assert scale(40) == 194


def test_linear_scale_maps_arrays():
    scale = LinearScale((0, 10), (0, 100))
    np.testing.assert_allclose(scale([0, 5, 10]), [0, 50, 100])


def test_linear_scale_collapsed_domain_maps_to_middle():
    scale = LinearScale((5, 5), (0, 100))
    assert scale(5) == 50


def test_linear_scale_propagates_nan():
    scale = LinearScale((-20, 100), (329, 59))
    assert math.isnan(scale(float("nan")))


def test_time_scale_measures_elapsed_time():
    start = datetime(2020, 1, 1, tzinfo=timezone.utc)
    end = datetime(2020, 1, 11, tzinfo=timezone.utc)
    scale = TimeScale((start, end), (0, 100))
    assert scale(start) == 0
    assert scale(end) == 100
    assert abs(scale(datetime(2020, 1, 2, tzinfo=timezone.utc)) - 10) < 1e-6


def test_time_scale_invalid_date_is_nan():
    start = datetime(2020, 1, 1, tzinfo=timezone.utc)
    assert math.isnan(TimeScale((None, None), (0, 100))(start))
    assert math.isnan(TimeScale((start, datetime(2021, 1, 1, tzinfo=timezone.utc)), (0, 100))(None))


def test_tick_formats():
    assert format_year(datetime(2020, 1, 1, tzinfo=timezone.utc)) == "2020"
    assert format_year(None) == "NaN"
    assert format_integer(72.4) == "72"
    assert format_integer(100.0) == "100"
    assert format_integer(float("nan")) == "NaN"
