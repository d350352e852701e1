import math
from datetime import date, datetime, timedelta, timezone

import pytest
import yaml

from conftest import NOW, FakeMeasurer
from spurious_chart.errors import InvalidInputError
from spurious_chart.geometry import (
    ChartInput,
    GeometryPlanner,
    parse_start_date,
    parse_value,
    validate_input,
)


@pytest.mark.parametrize("value", [-20, -5.5, 0, 33, 50, 99.9, 100])
def test_y_ticks_are_value_midpoint_and_max(planner, value):
    plan = planner.plan(ChartInput("t", value, parse_start_date("2020-01-01")))
    assert plan.y_ticks == (value, (100 + value) / 2, 100)


def test_y_ticks_keep_duplicates_at_max(planner):
    plan = planner.plan(ChartInput.from_strings("t", "100", "2020-01-01"))
    assert plan.y_ticks == (100, 100, 100)
    assert plan.y_tick_labels == ("100", "100", "100")


@pytest.mark.parametrize("start", ["1990-06-15", "2020-01-01", "2025-12-31T23:59:59", "2040-03-01"])
def test_projection_mirrors_history(planner, start):
    plan = planner.plan(ChartInput.from_strings("t", "10", start))
    assert plan.now == NOW
    assert abs((plan.end - plan.now) - (plan.now - plan.start)) <= timedelta(microseconds=1)


def test_future_start_still_symmetric(planner):
    plan = planner.plan(ChartInput.from_strings("t", "10", "2030-01-01"))
    assert plan.start > plan.now > plan.end
    assert plan.pivot[0] == pytest.approx(sum(plan.x_range) / 2)


def test_scenario_a_vector(planner, scenario_a):
    plan = planner.plan(scenario_a, "vector")

    assert plan.y_ticks == (50, 75, 100)
    assert plan.y_tick_labels == ("50", "75", "100")
    assert plan.x_tick_labels == ("2020", "2026", "2032")

    # "100" is the widest label, sized in the 20px sketchy body font
    assert plan.max_label_width == 30
    assert plan.left_margin == 30 + 6 + 3
    # "2032" overhangs the right end by half of its 40px width
    assert plan.x_range == (39, 600 - 3 - 20)
    assert plan.y_range == (329, 59)

    assert plan.pivot[0] == pytest.approx(plan.x_scale(plan.now))
    assert plan.pivot[0] == pytest.approx((39 + 577) / 2)
    assert plan.pivot[1] == pytest.approx(171.5)
    assert plan.x_scale(plan.end) == pytest.approx(577)


@pytest.mark.parametrize("value", ["-20", "7", "50", "100"])
def test_labels_fit_margins_in_every_style(planner, measurer, sizing, fonts, value):
    plan = planner.plan(ChartInput.from_strings("t", value, "1999-07-01"))
    for style in ("vector", "sketchy"):
        body = fonts.body(style)
        for label in plan.y_tick_labels:
            assert measurer.measure(label, body) <= plan.left_margin - sizing.tick_size
        end_half = measurer.measure(plan.x_tick_labels[-1], body) / 2
        assert plan.x_range[1] + end_half <= sizing.width


def test_top_tick_and_pivot_rows(planner):
    for value in (-19, 0, 42, 99):
        plan = planner.plan(ChartInput("t", value, parse_start_date("2020-01-01")))
        bottom, top = plan.y_range
        assert plan.y_scale(100) == top
        assert plan.y_scale(value) == plan.pivot[1]
        assert top < plan.pivot[1] < bottom


def test_left_margin_is_monotonic(planner):
    base = [10.0, 20.0, 30.0]
    for i in range(3):
        for extra in (0.0, 1.0, 25.0):
            widened = list(base)
            widened[i] += extra
            assert planner.left_margin(widened) >= planner.left_margin(base)


def test_wider_font_widens_margin(sizing, fonts, clock, scenario_a):
    narrow = GeometryPlanner(sizing, fonts, FakeMeasurer(0.5), clock).plan(scenario_a)
    wide = GeometryPlanner(sizing, fonts, FakeMeasurer(0.8), clock).plan(scenario_a)
    assert wide.left_margin > narrow.left_margin
    assert wide.x_range[1] < narrow.x_range[1]


@pytest.mark.parametrize(
    "title, style, expected",
    [
        ("Test", "vector", 25),
        ("x" * 60, "vector", 20),
        ("x" * 200, "vector", 12),
        ("x" * 30, "sketchy", 35),
        ("x" * 40, "sketchy", 30),
        ("", "sketchy", 35),
    ],
)
def test_title_size_fit(planner, title, style, expected):
    assert planner.fit_title_size(title, style) == expected


def test_title_size_is_largest_fitting(planner, sizing, fonts, measurer):
    for length in range(1, 120, 7):
        title = "m" * length
        size = planner.fit_title_size(title, "vector")
        fitting = [
            s for s in range(int(fonts.svg_title), int(sizing.title_floor) - 1, -1)
            if measurer.measure(title, fonts.title("vector", s)) <= sizing.width
        ]
        assert size == (fitting[0] if fitting else sizing.title_floor)


def test_plan_uses_style_title_font(planner, scenario_a, fonts):
    assert planner.plan(scenario_a, "vector").title_font.family == fonts.svg_type
    assert planner.plan(scenario_a, "sketchy").title_font.family == fonts.rough_type


def test_styles_share_geometry(planner, scenario_a):
    vector = planner.plan(scenario_a, "vector")
    sketchy = planner.plan(scenario_a, "sketchy")
    assert vector.pivot == sketchy.pivot
    assert vector.x_range == sketchy.x_range
    assert vector.y_range == sketchy.y_range


def test_unknown_style_rejected(planner, scenario_a):
    with pytest.raises(ValueError):
        planner.plan(scenario_a, "pastel")


def test_invalid_inputs_propagate_nan(planner):
    plan = planner.plan(ChartInput.from_strings("t", "abc", "not a date"))
    assert math.isnan(plan.value)
    assert plan.start is None and plan.end is None
    assert math.isnan(plan.pivot[0])
    assert math.isnan(plan.pivot[1])
    assert plan.x_tick_labels == ("NaN", "2026", "NaN")
    assert not plan.has_finite_pivot


def test_plan_dumps_to_yaml(planner, scenario_a):
    data = yaml.safe_load(yaml.safe_dump(planner.plan(scenario_a).to_dict()))
    assert data["y_ticks"] == [50.0, 75.0, 100.0]
    assert data["start"] == "2020-01-01T00:00:00+00:00"
    assert data["title_font"] == {"size": 25, "family": "serif"}


def test_parse_start_date():
    assert parse_start_date("2020-01-01") == datetime(2020, 1, 1, tzinfo=timezone.utc)
    assert parse_start_date(date(2021, 5, 4)) == datetime(2021, 5, 4, tzinfo=timezone.utc)
    assert parse_start_date("2020-01-01T00:00:00Z") == datetime(2020, 1, 1, tzinfo=timezone.utc)
    assert parse_start_date("2020-06-30T12:30:00z") == datetime(2020, 6, 30, 12, 30, tzinfo=timezone.utc)
    assert parse_start_date("2020-13-45") is None
    assert parse_start_date("Z") is None
    assert parse_start_date("") is None
    assert parse_start_date(None) is None


def test_parse_value():
    assert parse_value("42") == 42.0
    assert parse_value(" -3.5 ") == -3.5
    assert parse_value("") == 0.0
    assert math.isnan(parse_value("lots"))


def test_validate_input():
    good = ChartInput.from_strings("t", "50", "2020-01-01")
    assert validate_input(good) is good
    with pytest.raises(InvalidInputError):
        validate_input(ChartInput.from_strings("t", "x", "2020-01-01"))
    with pytest.raises(InvalidInputError):
        validate_input(ChartInput.from_strings("t", "5", "yesterday"))


def test_validate_input_warns_out_of_domain(caplog):
    validate_input(ChartInput.from_strings("t", "150", "2020-01-01"))
    assert "outside the axis domain" in caplog.text
