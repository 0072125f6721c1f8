import base64
import io
import os
import re
import time
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Union

import numpy as np
from PIL import Image, ImageDraw, ImageFont, ImageFilter

from canvas_types import WeatherState

logger = logging.getLogger("CanvasCompositor")

# Sizes and offsets are fractions of the image width
CITY_FONT_RATIO = 0.09
TEMP_FONT_RATIO = 0.045
DATE_FONT_RATIO = 0.025
TEXT_TOP_RATIO = 0.15
TEMP_OFFSET_RATIO = 0.08
DATE_OFFSET_RATIO = 0.12

GRADIENT_HEIGHT_RATIO = 0.4
GRADIENT_TOP_ALPHA = 0.6

SHADOW_COLOR = (0, 0, 0, int(255 * 0.7))
SHADOW_BLUR = 15

BOLD_FONT_CANDIDATES = [
    "arialbd.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
]
REGULAR_FONT_CANDIDATES = [
    "arial.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
]


@dataclass
class OverlayStyle:
    light: bool
    primary_color: str
    secondary_color: str
    shadow: bool
    gradient: bool


@dataclass
class CanvasExport:
    filename: str
    data: bytes
    composited: bool
    media_type: str = "image/png"


def overlay_style(state: WeatherState) -> OverlayStyle:
    if state.is_light:
        return OverlayStyle(True, "#0f172a", "#64748b", shadow=False, gradient=False)
    return OverlayStyle(False, "#ffffff", "#cbd5e1", shadow=True, gradient=True)


def build_download_filename(city: str, timestamp_ms: Optional[int] = None) -> str:
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    city_name = re.sub(r"\s+", "", city.split(",")[0])
    return f"WeatherCanvas-{city_name}-{timestamp_ms}.png"


def fallback_filename(city: str) -> str:
    return f"weather-canvas-{city.split(',')[0]}.png"


def decode_image_url(image_url: Union[str, bytes]) -> bytes:
    """Accepts a data:...;base64, URL or raw bytes."""
    if isinstance(image_url, bytes):
        return image_url
    if image_url.startswith("data:"):
        header, _, payload = image_url.partition(",")
        if ";base64" not in header:
            raise ValueError("Only base64 data URLs are supported")
        return base64.b64decode(payload)
    raise ValueError("Unsupported image URL")


def _load_font(size: int, bold: bool, font_paths: Optional[Dict[str, str]] = None):
    font_paths = font_paths or {}
    configured = font_paths.get("bold" if bold else "regular")
    candidates = ([configured] if configured else []) + (BOLD_FONT_CANDIDATES if bold else REGULAR_FONT_CANDIDATES)
    for path in candidates:
        if not path:
            continue
        if os.path.isabs(path) and not os.path.exists(path):
            continue
        try:
            return ImageFont.truetype(path, size)
        except IOError:
            continue
    # Pillow's bundled scalable font
    return ImageFont.load_default(size=size)


def _paint_gradient(canvas: Image.Image) -> Image.Image:
    width, height = canvas.size
    grad_h = max(1, int(height * GRADIENT_HEIGHT_RATIO))
    alpha = np.linspace(255 * GRADIENT_TOP_ALPHA, 0, grad_h).astype(np.uint8)
    alpha = np.tile(alpha[:, None], (1, width))
    overlay = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    shade = Image.new("RGBA", (width, grad_h), (0, 0, 0, 255))
    shade.putalpha(Image.fromarray(alpha))
    overlay.paste(shade, (0, 0))
    return Image.alpha_composite(canvas, overlay)


def _draw_lines(canvas: Image.Image, lines, shadow: bool) -> Image.Image:
    """lines: (text, xy, font, fill) tuples drawn with a middle/baseline anchor."""
    width, height = canvas.size
    if shadow:
        shadow_layer = Image.new("RGBA", (width, height), (0, 0, 0, 0))
        shadow_draw = ImageDraw.Draw(shadow_layer)
        for text, xy, font, _ in lines:
            shadow_draw.text(xy, text, font=font, fill=SHADOW_COLOR, anchor="ms")
        shadow_layer = shadow_layer.filter(ImageFilter.GaussianBlur(SHADOW_BLUR / 2))
        canvas = Image.alpha_composite(canvas, shadow_layer)
    draw = ImageDraw.Draw(canvas)
    for text, xy, font, fill in lines:
        draw.text(xy, text, font=font, fill=fill, anchor="ms")
    return canvas


def render_overlay(image: Image.Image, state: WeatherState,
                   font_paths: Optional[Dict[str, str]] = None) -> Image.Image:
    """
    Bakes the preview overlay (city, temperature/condition, date) into the
    image at its native resolution. Returns an RGB image of the same size.
    """
    style = overlay_style(state)
    canvas = image.convert("RGBA")
    w = canvas.width
    center_x = w / 2
    start_y = w * TEXT_TOP_RATIO

    if style.gradient:
        canvas = _paint_gradient(canvas)

    city_font = _load_font(max(1, int(w * CITY_FONT_RATIO)), True, font_paths)
    temp_font = _load_font(max(1, int(w * TEMP_FONT_RATIO)), True, font_paths)
    date_font = _load_font(max(1, int(w * DATE_FONT_RATIO)), False, font_paths)

    condition = getattr(state.condition, "value", state.condition)
    primary_lines = [
        (f"[ {state.city_name.upper()} ]", (center_x, start_y), city_font, style.primary_color),
        (f"{state.temperature}°{state.unit}, {condition}", (center_x, start_y + w * TEMP_OFFSET_RATIO),
         temp_font, style.primary_color),
    ]
    canvas = _draw_lines(canvas, primary_lines, style.shadow)

    # Date line never gets a shadow
    date_line = [(state.date, (center_x, start_y + w * DATE_OFFSET_RATIO), date_font, style.secondary_color)]
    canvas = _draw_lines(canvas, date_line, False)
    return canvas.convert("RGB")


def compose_download(image_url: Union[str, bytes], state: WeatherState,
                     font_paths: Optional[Dict[str, str]] = None,
                     timestamp_ms: Optional[int] = None) -> Optional[CanvasExport]:
    """
    Returns the composited PNG with its download filename. On any compositing
    failure the untouched source image is returned instead; None only when the
    source itself cannot be decoded.
    """
    try:
        raw = decode_image_url(image_url)
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            result = render_overlay(img, state, font_paths)
        buf = io.BytesIO()
        result.save(buf, format="PNG")
        filename = build_download_filename(state.city, timestamp_ms)
        logger.info(f"Composited {result.width}x{result.height} canvas as {filename}")
        return CanvasExport(filename, buf.getvalue(), composited=True)
    except Exception as e:
        logger.error(f"Download composition failed: {e}")

    try:
        raw = decode_image_url(image_url)
    except Exception as e:
        logger.error(f"Raw image fallback failed: {e}")
        return None
    return CanvasExport(fallback_filename(state.city), raw, composited=False)
