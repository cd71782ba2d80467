"""
Raster preview of a design layout.

Produces a PNG close enough to what the editor canvas shows for previews
and quick exports. Fonts are looked up by family name and fall back to
DejaVu or Pillow's built-in font, so typography is approximate.
"""

from __future__ import annotations

import logging
import math
import re
from io import BytesIO
from typing import List, Tuple

import numpy as np
from PIL import Image, ImageColor, ImageDraw, ImageFont

from app.api.v1.schemas import MAX_FONT_SIZE
from app.models.design import Layout, TextElement

logger = logging.getLogger(__name__)

RGB = Tuple[int, int, int]

FALLBACK_COLOR: RGB = (0, 0, 0)

GRADIENT_RE = re.compile(
    r"^\s*linear-gradient\(\s*(?P<angle>-?\d+(?:\.\d+)?)deg\s*,(?P<stops>.+)\)\s*$",
    re.IGNORECASE,
)
STOP_RE = re.compile(r"^\s*(?P<color>\S+)(?:\s+(?P<position>\d+(?:\.\d+)?)%)?\s*$")
# Plain family names only; anything else renders with the fallback font.
FONT_FAMILY_RE = re.compile(r"^[A-Za-z][A-Za-z0-9 _-]{0,63}$")


def parse_color(value: str) -> RGB:
    """Parse a CSS-style color string; unknown colors render black."""
    try:
        return ImageColor.getrgb(value.strip())[:3]
    except (ValueError, AttributeError):
        logger.warning(f"Unparsable color {value!r}, using black")
        return FALLBACK_COLOR


def parse_gradient(value: str) -> Tuple[float, List[Tuple[float, RGB]]] | None:
    """
    Parse `linear-gradient(<angle>deg, <color> [<pct>%], ...)`.

    Returns the angle and (position in [0, 1], color) stops sorted by
    position, or None if `value` is not such a gradient. Stops without a
    position are spread evenly.
    """
    match = GRADIENT_RE.match(value or "")
    if not match:
        return None

    raw_stops = [part for part in match.group("stops").split(",") if part.strip()]
    if len(raw_stops) < 2:
        return None

    stops: List[Tuple[float, RGB]] = []
    last = len(raw_stops) - 1
    for index, raw in enumerate(raw_stops):
        stop = STOP_RE.match(raw)
        if not stop:
            return None
        position = stop.group("position")
        offset = float(position) / 100.0 if position is not None else index / last
        stops.append((min(max(offset, 0.0), 1.0), parse_color(stop.group("color"))))

    stops.sort(key=lambda item: item[0])
    return float(match.group("angle")), stops


def linear_gradient(width: int, height: int, angle: float, stops: List[Tuple[float, RGB]]) -> Image.Image:
    """
    Render a CSS linear gradient.

    CSS angles run clockwise from "to top", so 90deg goes left to right and
    135deg runs towards the bottom-right corner.
    """
    radians = math.radians(angle)
    dx, dy = math.sin(radians), -math.cos(radians)
    length = abs(width * dx) + abs(height * dy) or 1.0

    xs = np.arange(width, dtype=np.float64) - (width - 1) / 2.0
    ys = np.arange(height, dtype=np.float64) - (height - 1) / 2.0
    grid_x, grid_y = np.meshgrid(xs, ys)
    t = np.clip((grid_x * dx + grid_y * dy) / length + 0.5, 0.0, 1.0)

    positions = [position for position, _ in stops]
    channels = [
        np.interp(t, positions, [color[channel] for _, color in stops]) for channel in range(3)
    ]
    pixels = np.rint(np.stack(channels, axis=-1)).astype(np.uint8)
    return Image.fromarray(pixels)


def render_background(layout: Layout) -> Image.Image:
    dimensions = layout.dimensions
    gradient = parse_gradient(layout.background_color)
    if gradient is not None:
        angle, stops = gradient
        return linear_gradient(dimensions.width, dimensions.height, angle, stops)
    return Image.new("RGB", (dimensions.width, dimensions.height), parse_color(layout.background_color))


def _is_bold(weight: str) -> bool:
    if weight.lower() in ("bold", "bolder"):
        return True
    return weight.isdecimal() and int(weight) >= 600


def font_file_name(family: str) -> str | None:
    """Font file for a family name, or None if the name is not a plain family name."""
    if not FONT_FAMILY_RE.match(family or ""):
        logger.warning(f"Ignoring font family {family!r}")
        return None
    return f"{family}.ttf"


def load_font(element: TextElement) -> ImageFont.ImageFont | ImageFont.FreeTypeFont:
    size = max(1, min(element.font_size, MAX_FONT_SIZE))
    fallback = "DejaVuSans-Bold.ttf" if _is_bold(element.font_weight) else "DejaVuSans.ttf"
    for name in (font_file_name(element.font_family), fallback):
        if name is None:
            continue
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def draw_text(draw: ImageDraw.ImageDraw, element: TextElement) -> None:
    """Draw one element so that (x, y) is its horizontal anchor and vertical middle."""
    font = load_font(element)
    left, top, right, bottom = draw.textbbox((0, 0), element.text, font=font)
    text_width, text_height = right - left, bottom - top

    if element.align == "left":
        x = element.x
    elif element.align == "right":
        x = element.x - text_width
    else:
        x = element.x - text_width / 2
    y = element.y - text_height / 2

    draw.text((x - left, y - top), element.text, fill=parse_color(element.color), font=font)


def render_layout(layout: Layout) -> Image.Image:
    image = render_background(layout)
    draw = ImageDraw.Draw(image)
    for element in layout.text_elements:
        draw_text(draw, element)
    return image


def render_layout_png(layout: Layout) -> bytes:
    """Render a layout and return PNG bytes."""
    buffer = BytesIO()
    render_layout(layout).save(buffer, format="PNG")
    return buffer.getvalue()
