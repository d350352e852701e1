"""Layout and font configuration.

Sizing and font settings are fixed for the lifetime of a chart context.
Defaults live in the dataclasses below; a YAML file may override any field.
"""

import logging
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

import matplotlib.font_manager as fm
import yaml

from spurious_chart.errors import ConfigError

logger = logging.getLogger(__name__)

HANDWRITING = "Nanum Pen Script"

# Tried in order when the handwriting face is not installed
HANDWRITING_FALLBACKS = [
    HANDWRITING,
    "Humor Sans",
    "xkcd Script",
    "xkcd",
    "Comic Neue",
    "Comic Sans MS",
]


@dataclass(frozen=True)
class FontSpec:
    size: float
    family: str


@dataclass(frozen=True)
class Sizing:
    width: int = 600
    height: int = 350
    font_size: float = 12
    tick_size: float = 6
    margin: float = 3
    title_size: float = 50
    title_floor: float = 12
    title_baseline: float = 30


@dataclass(frozen=True)
class Fonts:
    svg_title: float = 25
    svg_body: float = 12
    svg_type: str = "serif"
    rough_title: float = 35
    rough_body: float = 20
    rough_type: str = HANDWRITING
    rough_fallbacks: tuple = field(default_factory=lambda: tuple(HANDWRITING_FALLBACKS))

    def title(self, style: str, size: float | None = None) -> FontSpec:
        if style == "sketchy":
            return FontSpec(self.rough_title if size is None else size, self.rough_type)
        return FontSpec(self.svg_title if size is None else size, self.svg_type)

    def body(self, style: str) -> FontSpec:
        if style == "sketchy":
            return FontSpec(self.rough_body, self.rough_type)
        return FontSpec(self.svg_body, self.svg_type)


def resolve_font_family(preferred: list[str] | tuple, default: str = "DejaVu Sans") -> str:
    """Return the first family in ``preferred`` that matplotlib can find."""
    available_fonts = {f.name for f in fm.fontManager.ttflist}

    for font_name in preferred:
        if font_name in available_fonts:
            return font_name

    logger.debug("None of %s installed, using %s", list(preferred), default)
    return default


def _apply_overrides(base, overrides: dict | None, section: str):
    if not overrides:
        return base
    if not isinstance(overrides, dict):
        raise ConfigError(f"'{section}' must be a mapping, got {type(overrides).__name__}")

    known = {f.name for f in fields(base)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        raise ConfigError(f"Unknown {section} keys: {', '.join(unknown)}")

    values = dict(overrides)
    if "rough_fallbacks" in values:
        values["rough_fallbacks"] = tuple(values["rough_fallbacks"])
    return replace(base, **values)


def load_config(config_path: str | Path | None = None) -> tuple[Sizing, Fonts]:
    """Load sizing and font settings, optionally overridden by a YAML file.

    Args:
        config_path: Path to a YAML file with optional ``sizing`` and
            ``fonts`` mappings.

    Returns:
        Tuple of (sizing, fonts).
    """
    sizing, fonts = Sizing(), Fonts()
    if config_path is None:
        return sizing, fonts

    path = Path(config_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read config {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config {path} must contain a mapping")

    unknown = sorted(set(data) - {"sizing", "fonts"})
    if unknown:
        raise ConfigError(f"Unknown config sections: {', '.join(unknown)}")

    sizing = _apply_overrides(sizing, data.get("sizing"), "sizing")
    fonts = _apply_overrides(fonts, data.get("fonts"), "fonts")
    logger.info("Loaded config from %s", path)
    return sizing, fonts
