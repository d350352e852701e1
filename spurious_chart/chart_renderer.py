"""Chart rendering in two styles.

``VectorRenderer`` builds a retained matplotlib scene, serializes it to SVG
and rasterizes it asynchronously. ``SketchyRenderer`` draws hand-drawn
primitives straight onto a :class:`~spurious_chart.canvas.SketchCanvas`.
Both draw from the same :class:`~spurious_chart.geometry.GeometryPlan`.
"""

import asyncio
import io
import logging
import math
from dataclasses import dataclass
from urllib.parse import quote, unquote

import cairosvg
from matplotlib.figure import Figure
from matplotlib.patches import FancyArrowPatch
from matplotlib.path import Path
from PIL import Image

from spurious_chart.canvas import SketchCanvas, new_pixel_figure
from spurious_chart.config import Fonts, Sizing
from spurious_chart.errors import RasterizeError
from spurious_chart.geometry import GeometryPlan
from spurious_chart.scales import to_num

logger = logging.getLogger(__name__)

ANNOTATION = "Extrapolated from data"
DASH = (4, 4)


def _finite(*values) -> bool:
    return all(math.isfinite(v) for v in values)


def annotation_curve(x: float, y: float) -> Path:
    """Cubic curve from the label down to just beside the pivot."""
    dx, dy = x + 30, y - 10
    return Path(
        [(x + 95, y - 30), (dx, dy - 30), (dx - 5, dy + 3), (dx, dy)],
        [Path.MOVETO, Path.CURVE4, Path.CURVE4, Path.CURVE4],
    )


@dataclass
class VectorScene:
    """A retained vector chart and its serialized SVG markup."""

    plan: GeometryPlan
    figure: Figure
    svg: str = ""

    @property
    def data_uri(self) -> str:
        return f"data:image/svg+xml,{quote(self.svg)}"


class VectorRenderer:
    """Draw a plan as a clean vector chart."""

    def __init__(self, sizing: Sizing, fonts: Fonts):
        self.sizing = sizing
        self.fonts = fonts

    def _axes_box(self, plan: GeometryPlan) -> tuple:
        w, h = self.sizing.width, self.sizing.height
        (x0, x1), (y0, y1) = plan.x_range, plan.y_range
        return (x0 / w, 1 - y0 / h, (x1 - x0) / w, (y0 - y1) / h)

    def _draw_axes(self, figure: Figure, plan: GeometryPlan):
        body = self.fonts.body("vector")
        ax = figure.add_axes(self._axes_box(plan))
        ax.set_facecolor("none")
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        ax.tick_params(direction="out", length=self.sizing.tick_size, pad=3, width=1)

        ax.set_ylim(*plan.y_domain)
        y_ticks = [(t, l) for t, l in zip(plan.y_ticks, plan.y_tick_labels) if _finite(t)]
        ax.set_yticks([t for t, _ in y_ticks], labels=[l for _, l in y_ticks],
                      fontsize=body.size, fontfamily=body.family)

        x_lo, x_hi = to_num(plan.start), to_num(plan.end)
        if _finite(x_lo, x_hi) and x_lo != x_hi:
            ax.set_xlim(x_lo, x_hi)
            ax.set_xticks([to_num(t) for t in plan.x_ticks], labels=list(plan.x_tick_labels),
                          fontsize=body.size, fontfamily=body.family)
        else:
            logger.warning("Date domain %s..%s is unusable, drawing a bare x axis",
                           plan.start, plan.end)
            ax.set_xticks([])
        return ax

    def _draw_trend(self, overlay, plan: GeometryPlan):
        body = self.fonts.body("vector")
        x, y = plan.pivot
        x_start = plan.x_scale(plan.start)
        x_end = plan.x_scale(plan.end)

        overlay.plot([x_start, x], [y, y], color="black", linewidth=2)
        overlay.plot([x, x_end], [y, y], color="black", linewidth=2,
                     linestyle=(0, DASH))

        if not plan.has_finite_pivot:
            logger.warning("Pivot %s is not finite, skipping annotation", plan.pivot)
            return
        overlay.text(x + 100, y - 25, ANNOTATION, fontsize=body.size,
                     family=body.family, va="baseline")
        arrow = FancyArrowPatch(path=annotation_curve(x, y), arrowstyle="-|>",
                                mutation_scale=8, color="grey", linewidth=1)
        overlay.add_patch(arrow)

    def render(self, plan: GeometryPlan) -> VectorScene:
        """Build the scene for ``plan`` and serialize it to SVG."""
        figure, _, overlay = new_pixel_figure(self.sizing.width, self.sizing.height)
        overlay.set_zorder(1)

        overlay.text(0, self.sizing.title_baseline, plan.title,
                     fontsize=plan.title_font.size, family=plan.title_font.family,
                     va="baseline")
        self._draw_axes(figure, plan)
        self._draw_trend(overlay, plan)

        scene = VectorScene(plan=plan, figure=figure)
        scene.svg = self.serialize(scene)
        return scene

    def serialize(self, scene: VectorScene) -> str:
        buf = io.BytesIO()
        scene.figure.savefig(buf, format="svg", facecolor="white")
        return buf.getvalue().decode("utf-8")

    def _decode(self, scene: VectorScene, canvas: Image.Image | None) -> Image.Image:
        """Rasterize the scene's SVG data URI and paint it onto ``canvas``."""
        _, payload = scene.data_uri.split(",", 1)
        png_bytes = cairosvg.svg2png(
            bytestring=unquote(payload).encode("utf-8"),
            output_width=self.sizing.width,
            output_height=self.sizing.height,
        )
        image = Image.open(io.BytesIO(png_bytes)).convert("RGBA")
        if canvas is None:
            return image
        if image.size != canvas.size:
            image = image.resize(canvas.size)
        canvas.paste(image.convert(canvas.mode), (0, 0))
        return canvas

    async def rasterize(self, scene: VectorScene, canvas: Image.Image | None = None) -> Image.Image:
        """Decode ``scene`` into pixels, painting onto ``canvas`` when given.

        Raises:
            RasterizeError: if the SVG markup cannot be decoded.
        """
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, self._decode, scene, canvas)
        except Exception as e:
            raise RasterizeError(f"Could not rasterize chart: {e}") from e


class SketchyRenderer:
    """Draw a plan with hand-drawn strokes onto a sketch canvas."""

    def __init__(self, sizing: Sizing, fonts: Fonts):
        self.sizing = sizing
        self.fonts = fonts

    def render(self, plan: GeometryPlan, canvas: SketchCanvas) -> Image.Image:
        s = self.sizing
        body = self.fonts.body("sketchy")
        canvas.clear()

        canvas.fill_text(plan.title, 0, s.title_baseline, plan.title_font)

        (x0, x1), (base, top) = plan.x_range, plan.y_range

        # x axis
        canvas.line(x0, base, x1, base)
        for tick, label in zip(plan.x_ticks, plan.x_tick_labels):
            pos = plan.x_scale(tick)
            if not _finite(pos):
                continue
            offset = canvas.measure_text(label, body) / 2
            canvas.line(pos, base, pos, base + s.tick_size)
            canvas.fill_text(label, pos - offset, s.height, body)

        # y axis
        canvas.line(x0, base, x0, top)
        for tick, label in zip(plan.y_ticks, plan.y_tick_labels):
            pos = plan.y_scale(tick)
            if not _finite(pos):
                continue
            canvas.line(x0 - s.tick_size, pos, x0, pos)
            canvas.fill_text(label, 0, pos + 5, body)

        if plan.has_finite_pivot:
            x, y = plan.pivot
            canvas.line(x0, y, x, y)
            canvas.line(x, y - 1, x1, y - 1, dash=[DASH[0]])

            canvas.fill_text(ANNOTATION, x + 100, y - 25, body)
            canvas.arc(x + 95, y - 10, 120, 40, math.pi, math.pi * 3 / 2)
            canvas.line(x + 35, y - 10, x + 30, y - 20)
            canvas.line(x + 35, y - 10, x + 45, y - 15)
        else:
            logger.warning("Pivot %s is not finite, skipping trend line", plan.pivot)

        return canvas.to_image()
