"""Exceptions raised by spurious-chart."""


class SpuriousChartError(Exception):
    """Base class for all spurious-chart errors."""


class ConfigError(SpuriousChartError):
    """Configuration file is unreadable or has unknown keys."""


class InvalidInputError(SpuriousChartError, ValueError):
    """Chart input failed validation at the CLI boundary."""


class RasterizeError(SpuriousChartError):
    """The vector scene could not be decoded into pixels."""
