"""Chart geometry planning.

The planner turns a :class:`ChartInput` into a :class:`GeometryPlan`: scales,
ticks, margins, the fitted title size and the pivot pixel where the
historical line turns into the projection. Both renderers draw from the same
plan, so the geometry is computed once and never touches a drawing surface.

Coordinates are canvas pixels with the origin at the top left.
"""

import logging
import math
from dataclasses import asdict, dataclass
from datetime import date, datetime, timezone
from typing import Callable, Protocol

from matplotlib.backends.backend_agg import RendererAgg
from matplotlib.font_manager import FontProperties

from spurious_chart.config import Fonts, FontSpec, Sizing
from spurious_chart.errors import InvalidInputError
from spurious_chart.scales import LinearScale, TimeScale, format_integer, format_year

logger = logging.getLogger(__name__)

STYLES = ("vector", "sketchy")
Y_DOMAIN = (-20.0, 100.0)
Y_MAX = 100.0


class TextMeasurer(Protocol):
    def measure(self, text: str, font: FontSpec) -> float:
        ...


class AggTextMeasurer:
    """Measure text widths in pixels with matplotlib's Agg renderer."""

    def __init__(self, dpi: float = 72):
        self.dpi = dpi
        self._renderer = RendererAgg(10, 10, dpi)

    def measure(self, text: str, font: FontSpec) -> float:
        if not text:
            return 0.0
        prop = FontProperties(family=font.family, size=font.size)
        width, _, _ = self._renderer.get_text_width_height_descent(text, prop, ismath=False)
        return float(width)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_start_date(raw) -> datetime | None:
    """Parse a start date, returning ``None`` for an invalid date.

    Dates without a time or zone are read as UTC midnight.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, date):
        value = datetime(raw.year, raw.month, raw.day)
    else:
        text = str(raw).strip()
        if text[-1:] in ("Z", "z"):
            # fromisoformat only learned the Zulu suffix in 3.11
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            return None

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def parse_value(raw) -> float:
    """Convert a form value to a number; blank is 0, garbage is ``nan``."""
    if isinstance(raw, (int, float)):
        return float(raw)
    text = str(raw).strip()
    if not text:
        return 0.0
    try:
        return float(text)
    except ValueError:
        return float("nan")


@dataclass(frozen=True)
class ChartInput:
    title: str
    value: float
    start_date: datetime | None

    @classmethod
    def from_strings(cls, title: str, value, start) -> "ChartInput":
        return cls(title=title or "", value=parse_value(value),
                   start_date=parse_start_date(start))


def validate_input(chart_input: ChartInput) -> ChartInput:
    """Reject inputs the planner would turn into a broken chart."""
    if math.isnan(chart_input.value):
        raise InvalidInputError("Value must be a number")
    if chart_input.start_date is None:
        raise InvalidInputError("Start date must be an ISO date, e.g. 2020-01-01")
    if not Y_DOMAIN[0] <= chart_input.value <= Y_MAX:
        logger.warning("Value %s is outside the axis domain %s", chart_input.value, Y_DOMAIN)
    return chart_input


@dataclass(frozen=True)
class GeometryPlan:
    style: str
    title: str
    value: float
    title_font: FontSpec
    start: datetime | None
    now: datetime
    end: datetime | None
    left_margin: float
    max_label_width: float
    y_domain: tuple
    y_range: tuple
    x_range: tuple
    y_ticks: tuple
    y_tick_labels: tuple
    x_ticks: tuple
    x_tick_labels: tuple
    x_scale: TimeScale
    y_scale: LinearScale
    pivot: tuple

    @property
    def x_domain(self) -> tuple:
        return (self.start, self.end)

    @property
    def baseline(self) -> float:
        """Pixel row of the x axis."""
        return self.y_range[0]

    @property
    def has_finite_pivot(self) -> bool:
        return all(math.isfinite(v) for v in self.pivot)

    def to_dict(self) -> dict:
        """Plain data view, suitable for YAML or JSON dumps."""
        data = {
            k: v for k, v in asdict(self).items()
            if k not in ("x_scale", "y_scale", "title_font")
        }
        data["title_font"] = {"size": self.title_font.size, "family": self.title_font.family}
        for key in ("start", "now", "end"):
            data[key] = data[key].isoformat() if data[key] is not None else None
        data["x_ticks"] = [t.isoformat() if t is not None else None for t in self.x_ticks]
        for key in ("y_domain", "y_range", "x_range", "y_ticks", "y_tick_labels",
                    "x_tick_labels", "pivot"):
            data[key] = list(data[key])
        return data


class GeometryPlanner:
    """Compute chart geometry from sizing, fonts and a text measurer."""

    def __init__(self, sizing: Sizing, fonts: Fonts, measurer: TextMeasurer,
                 clock: Callable[[], datetime] = utc_now):
        self.sizing = sizing
        self.fonts = fonts
        self.measurer = measurer
        self.clock = clock

    def y_ticks(self, value: float) -> tuple:
        return (value, (Y_MAX + value) / 2, Y_MAX)

    def y_range(self) -> tuple:
        s = self.sizing
        bottom_margin = s.font_size + s.tick_size + s.margin
        return (s.height - bottom_margin, s.margin + s.font_size / 2 + s.title_size)

    def label_fonts(self) -> tuple:
        # Labels are sized for every style so both renderings share one geometry
        return (self.fonts.body("vector"), self.fonts.body("sketchy"))

    def label_width(self, label: str) -> float:
        """Widest rendering of ``label`` across the styles' body fonts."""
        return max(self.measurer.measure(label, font) for font in self.label_fonts())

    def left_margin(self, label_widths) -> float:
        return max(label_widths, default=0.0) + self.sizing.tick_size + self.sizing.margin

    def right_edge(self, max_width: float, end_label: str) -> float:
        """Right end of the x range, leaving room for the last label's overhang."""
        overhang = max(max_width, self.label_width(end_label)) / 2
        return self.sizing.width - self.sizing.margin - overhang

    def fit_title_size(self, title: str, style: str) -> float:
        """Largest title size not wider than the canvas, else the floor."""
        size = self.fonts.title(style).size
        floor = self.sizing.title_floor
        while size >= floor:
            width = self.measurer.measure(title, self.fonts.title(style, size))
            if width <= self.sizing.width:
                return size
            size -= 1
        logger.debug("Title %r overflows even at %spx", title, floor)
        return floor

    def time_span(self, start: datetime | None, now: datetime) -> datetime | None:
        """End of the projection, mirroring the history around ``now``."""
        if start is None:
            return None
        try:
            return now + (now - start)
        except OverflowError:
            logger.warning("Projection from %s overflows the calendar", start.isoformat())
            return None

    def plan(self, chart_input: ChartInput, style: str = "vector") -> GeometryPlan:
        if style not in STYLES:
            raise ValueError(f"Unknown style {style!r}, expected one of {STYLES}")

        s = self.sizing
        value = chart_input.value
        y_ticks = self.y_ticks(value)
        y_labels = tuple(format_integer(t) for t in y_ticks)
        widths = [self.label_width(label) for label in y_labels]
        max_width = max(widths, default=0.0)
        left = self.left_margin(widths)

        start = chart_input.start_date
        now = self.clock()
        end = self.time_span(start, now)
        if start is not None and start > now:
            logger.debug("Start date %s lies in the future", start.isoformat())

        x_ticks = (start, now, end)
        x_labels = tuple(format_year(t) for t in x_ticks)

        x_range = (left, self.right_edge(max_width, x_labels[-1]))
        y_range = self.y_range()
        x_scale = TimeScale((start, end), x_range)
        y_scale = LinearScale(Y_DOMAIN, y_range)

        title_size = self.fit_title_size(chart_input.title, style)

        return GeometryPlan(
            style=style,
            title=chart_input.title,
            value=value,
            title_font=self.fonts.title(style, title_size),
            start=start,
            now=now,
            end=end,
            left_margin=left,
            max_label_width=max_width,
            y_domain=Y_DOMAIN,
            y_range=y_range,
            x_range=x_range,
            y_ticks=y_ticks,
            y_tick_labels=y_labels,
            x_ticks=x_ticks,
            x_tick_labels=x_labels,
            x_scale=x_scale,
            y_scale=y_scale,
            pivot=(x_scale(now), y_scale(value)),
        )
