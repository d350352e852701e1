"""Image export and display.

The exporter PNG-encodes a finished canvas and appends it to a display
container. The container stands in for the page element that shows charts
and renders itself to HTML with Jinja2.
"""

import base64
import io
import logging
from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from PIL import Image

logger = logging.getLogger(__name__)


def _create_html_env() -> Environment:
    """Create Jinja2 environment with template directory."""
    template_dir = Path(__file__).parent / "templates"
    return Environment(loader=FileSystemLoader(template_dir), autoescape=True)


@dataclass(frozen=True)
class DisplayImage:
    png: bytes
    width: int
    height: int

    @property
    def data_uri(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.png).decode("ascii")

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(self.png)
        return path


class DisplayContainer:
    """Ordered collection of exported images, cleared once per generate call."""

    def __init__(self, title: str = "Spurious chart"):
        self.title = title
        self.images: list[DisplayImage] = []

    def __len__(self):
        return len(self.images)

    def __iter__(self):
        return iter(self.images)

    def clear(self):
        self.images.clear()

    def append(self, image: DisplayImage):
        self.images.append(image)

    def render_html(self, template_name: str = "index.html") -> str:
        template = _create_html_env().get_template(template_name)
        return template.render(title=self.title, images=self.images)

    def save_html(self, path: str | Path, template_name: str = "index.html") -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.render_html(template_name))
        return path


class ImageExporter:
    """Encode canvases as PNG images and append them to a container."""

    def __init__(self, container: DisplayContainer):
        self.container = container

    def encode(self, canvas: Image.Image) -> DisplayImage:
        buf = io.BytesIO()
        canvas.save(buf, format="PNG")
        return DisplayImage(png=buf.getvalue(), width=canvas.width, height=canvas.height)

    def export(self, canvas: Image.Image) -> DisplayImage:
        image = self.encode(canvas)
        self.container.append(image)
        logger.debug("Exported %dx%d PNG (%d bytes)", image.width, image.height, len(image.png))
        return image
