"""Pixel-addressed matplotlib surfaces.

Figures are created at 72 dpi so one point is one pixel, and overlay axes
span the whole figure with the y axis inverted. Drawing code can then use
canvas coordinates (origin top left) directly.
"""

import math

import numpy as np
from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.lines import Line2D
from matplotlib.patches import Arc
from PIL import Image

from spurious_chart.config import FontSpec

DPI = 72

# matplotlib's xkcd() defaults: scale, length, randomness
SKETCH_PARAMS = (1.0, 100.0, 2.0)


def new_pixel_figure(width: int, height: int):
    """Create a figure, its Agg canvas and full-size pixel axes."""
    figure = Figure(figsize=(width / DPI, height / DPI), dpi=DPI, facecolor="white")
    agg = FigureCanvasAgg(figure)
    overlay = figure.add_axes((0, 0, 1, 1))
    reset_pixel_axes(overlay, width, height)
    return figure, agg, overlay


def reset_pixel_axes(ax, width: int, height: int):
    ax.set_xlim(0, width)
    ax.set_ylim(height, 0)
    ax.set_axis_off()
    ax.patch.set_alpha(0)


def figure_to_image(agg: FigureCanvasAgg) -> Image.Image:
    """Draw the figure and copy its pixels into a Pillow image."""
    agg.draw()
    pixels = np.asarray(agg.buffer_rgba()).copy()
    return Image.fromarray(pixels)


def _dash_pattern(dash):
    # Canvas dash arrays repeat when odd, e.g. [4] means 4 on 4 off
    dash = list(dash)
    if len(dash) % 2:
        dash = dash * 2
    return (0, tuple(dash))


class SketchCanvas:
    """A bitmap canvas with hand-drawn line and arc primitives.

    Mirrors the small subset of a rough canvas the sketchy chart needs.
    Strokes get matplotlib sketch parameters, text is drawn crisp.
    """

    def __init__(self, width: int, height: int, measurer=None, sketch=SKETCH_PARAMS):
        self.width = width
        self.height = height
        self.measurer = measurer
        self.sketch = sketch
        self.figure, self._agg, self.ax = new_pixel_figure(width, height)

    def clear(self):
        self.ax.clear()
        reset_pixel_axes(self.ax, self.width, self.height)

    def line(self, x1, y1, x2, y2, dash=None, stroke="black", stroke_width=1.0):
        line = Line2D([x1, x2], [y1, y2], color=stroke, linewidth=stroke_width,
                      solid_capstyle="round")
        if dash:
            line.set_linestyle(_dash_pattern(dash))
        line.set_sketch_params(*self.sketch)
        self.ax.add_line(line)
        return line

    def arc(self, x, y, width, height, start, stop, stroke="black", stroke_width=1.0):
        """Elliptical arc centred on (x, y), angles in radians."""
        arc = Arc((x, y), width, height, theta1=math.degrees(start),
                  theta2=math.degrees(stop), color=stroke, linewidth=stroke_width)
        arc.set_sketch_params(*self.sketch)
        self.ax.add_patch(arc)
        return arc

    def fill_text(self, text, x, y, font: FontSpec, color="black"):
        return self.ax.text(x, y, str(text), fontsize=font.size, family=font.family,
                            color=color, ha="left", va="baseline")

    def measure_text(self, text, font: FontSpec) -> float:
        if self.measurer is None:
            raise RuntimeError("SketchCanvas has no text measurer")
        return self.measurer.measure(str(text), font)

    def to_image(self) -> Image.Image:
        return figure_to_image(self._agg)
