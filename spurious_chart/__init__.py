"""spurious-chart: render spurious correlation charts in vector or sketchy style."""

from spurious_chart.app import SpuriousChart
from spurious_chart.geometry import ChartInput, GeometryPlan, GeometryPlanner

__all__ = ["ChartInput", "GeometryPlan", "GeometryPlanner", "SpuriousChart"]
