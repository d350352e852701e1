"""Forward domain-to-pixel scales.

Both scales interpolate proportionally:
``pixel = r0 + (v - d0) / (d1 - d0) * (r1 - r0)``.
The time scale works on matplotlib date numbers (days since the epoch), so
differences between dates are measured as elapsed time.
"""

import math
from datetime import datetime, timezone

import matplotlib.dates as mdates
import numpy as np

NAN = float("nan")


def to_num(value: datetime | None) -> float:
    """Convert a datetime to a matplotlib date number, ``nan`` when invalid."""
    if value is None:
        return NAN
    return float(mdates.date2num(value))


def format_year(value: datetime | None) -> str:
    """Four digit UTC year, ``NaN`` for an invalid date."""
    if value is None:
        return "NaN"
    return f"{value.astimezone(timezone.utc).year:04d}"


def format_integer(value: float) -> str:
    """Round to an integer label, the ``%.0f`` tick format."""
    if math.isnan(value):
        return "NaN"
    return "%.0f" % value


class LinearScale:
    """Map a numeric domain onto a pixel range."""

    def __init__(self, domain: tuple[float, float], range_: tuple[float, float]):
        self.domain = (float(domain[0]), float(domain[1]))
        self.range = (float(range_[0]), float(range_[1]))

    def __call__(self, value):
        d0, d1 = self.domain
        r0, r1 = self.range
        span = d1 - d0
        with np.errstate(invalid="ignore", divide="ignore"):
            if span == 0:
                # Collapsed domain maps everything to the middle of the range
                t = np.full_like(np.asarray(value, dtype=float), 0.5)
            else:
                t = (np.asarray(value, dtype=float) - d0) / span
            pixels = r0 + t * (r1 - r0)
        if np.ndim(pixels) == 0:
            return float(pixels)
        return pixels

    def __repr__(self):
        return f"LinearScale(domain={self.domain}, range={self.range})"


class TimeScale(LinearScale):
    """Map a datetime domain onto a pixel range."""

    def __init__(self, domain: tuple[datetime | None, datetime | None],
                 range_: tuple[float, float]):
        self.dates = tuple(domain)
        super().__init__((to_num(domain[0]), to_num(domain[1])), range_)

    def __call__(self, value):
        if isinstance(value, datetime) or value is None:
            return super().__call__(to_num(value))
        return super().__call__(np.array([to_num(v) for v in value], dtype=float))

    def __repr__(self):
        return f"TimeScale(domain={self.dates}, range={self.range})"
