from datetime import datetime, timezone

import matplotlib
matplotlib.use("Agg")  # Non-interactive backend
import pytest

from spurious_chart.app import SpuriousChart
from spurious_chart.config import Fonts, Sizing
from spurious_chart.geometry import ChartInput, GeometryPlanner

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FakeMeasurer:
    """Every character is half the font size wide."""

    def __init__(self, ratio=0.5):
        self.ratio = ratio
        self.calls = []

    def measure(self, text, font):
        self.calls.append((text, font))
        return len(str(text)) * font.size * self.ratio


@pytest.fixture
def measurer():
    return FakeMeasurer()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def sizing():
    return Sizing()


@pytest.fixture
def fonts():
    return Fonts(rough_type="DejaVu Sans")


@pytest.fixture
def planner(sizing, fonts, measurer, clock):
    return GeometryPlanner(sizing, fonts, measurer, clock)


@pytest.fixture
def chart(sizing, fonts, measurer, clock):
    return SpuriousChart(sizing, fonts, measurer=measurer, clock=clock, resolve_fonts=False)


@pytest.fixture
def scenario_a():
    return ChartInput.from_strings("Test", "50", "2020-01-01")
