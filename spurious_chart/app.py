"""Chart context tying planning, rendering and export together."""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable

from PIL import Image

from spurious_chart.canvas import SketchCanvas
from spurious_chart.chart_renderer import SketchyRenderer, VectorRenderer, VectorScene
from spurious_chart.config import Fonts, Sizing, resolve_font_family
from spurious_chart.errors import RasterizeError
from spurious_chart.exporter import DisplayContainer, DisplayImage, ImageExporter
from spurious_chart.geometry import (
    AggTextMeasurer,
    ChartInput,
    GeometryPlan,
    GeometryPlanner,
    TextMeasurer,
    utc_now,
)

logger = logging.getLogger(__name__)


class SpuriousChart:
    """One chart context: configuration, capabilities and the reused canvases.

    ``generate`` calls on the same instance share the sketch and export
    canvases and must not overlap.
    """

    def __init__(self, sizing: Sizing | None = None, fonts: Fonts | None = None,
                 measurer: TextMeasurer | None = None,
                 clock: Callable[[], datetime] = utc_now,
                 resolve_fonts: bool = True):
        self.sizing = sizing or Sizing()
        fonts = fonts or Fonts()
        if resolve_fonts:
            family = resolve_font_family((fonts.rough_type, *fonts.rough_fallbacks))
            fonts = replace(fonts, rough_type=family)
        self.fonts = fonts
        self.measurer = measurer or AggTextMeasurer()

        self.planner = GeometryPlanner(self.sizing, self.fonts, self.measurer, clock)
        self.vector = VectorRenderer(self.sizing, self.fonts)
        self.sketchy = SketchyRenderer(self.sizing, self.fonts)

        self.canvas = SketchCanvas(self.sizing.width, self.sizing.height, self.measurer)
        self.export_canvas = Image.new("RGBA", (self.sizing.width, self.sizing.height), "white")
        self.container = DisplayContainer()
        self.exporter = ImageExporter(self.container)
        self.last_scene: VectorScene | None = None

    def plan(self, chart_input: ChartInput, sketch: bool = False) -> GeometryPlan:
        plan = self.planner.plan(chart_input, "sketchy" if sketch else "vector")
        logger.info("Planned %s chart, pivot at (%.1f, %.1f)", plan.style, *plan.pivot)
        return plan

    def render_sketchy(self, chart_input: ChartInput) -> DisplayImage:
        plan = self.plan(chart_input, sketch=True)
        image = self.sketchy.render(plan, self.canvas)
        return self.exporter.export(image)

    async def render_vector(self, chart_input: ChartInput) -> DisplayImage | None:
        plan = self.plan(chart_input, sketch=False)
        scene = self.vector.render(plan)
        self.last_scene = scene
        try:
            canvas = await self.vector.rasterize(scene, self.export_canvas)
        except RasterizeError as e:
            logger.error("Vector chart export failed: %s", e)
            return None
        return self.exporter.export(canvas)

    async def generate(self, chart_input: ChartInput, sketch: bool = False) -> DisplayImage | None:
        """Render one chart and append it to the (cleared) display container."""
        self.container.clear()
        if sketch:
            return self.render_sketchy(chart_input)
        return await self.render_vector(chart_input)

    def generate_sync(self, chart_input: ChartInput, sketch: bool = False) -> DisplayImage | None:
        return asyncio.run(self.generate(chart_input, sketch))
