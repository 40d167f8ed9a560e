#!/usr/bin/env python3
"""
Caption band rendering.

Adds a band under a frame, writes the caption text into it and places the
status icon bound to the caption glyph right after the text.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Mapping, Protocol, Union

from PIL import Image, ImageDraw, ImageFont, UnidentifiedImageError

from caption_segmenter import CaptionToken
from errors import RenderError, SegmentationError

log = logging.getLogger("GifText")

FontType = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


@dataclass(frozen=True)
class OverlayStyle:
    band_height: int = 25
    background: tuple[int, int, int] = (255, 255, 255)
    foreground: tuple[int, int, int] = (0, 0, 0)
    text_x: int = 10
    baseline_offset: int = 20
    icon_size: int = 20
    icon_margin: int = 5
    font_path: str = ""
    font_size: int = 13

    @classmethod
    def from_config(cls, cfg: dict) -> "OverlayStyle":
        band = cfg.get("caption_band", {})
        return cls(
            band_height=int(band.get("height", 25)),
            background=tuple(band.get("background", (255, 255, 255))),
            foreground=tuple(band.get("foreground", (0, 0, 0))),
            text_x=int(band.get("text_x", 10)),
            baseline_offset=int(band.get("baseline_offset", 20)),
            icon_size=int(band.get("icon_size", 20)),
            icon_margin=int(band.get("icon_margin", 5)),
            font_path=str(band.get("font_path") or ""),
            font_size=int(band.get("font_size", 13)),
        )


class IconStore(Protocol):
    def load(self, identifier: str) -> Image.Image:
        ...


@lru_cache(maxsize=64)
def _read_icon_bytes(path: str) -> bytes:
    return Path(path).read_bytes()


class FileIconStore:
    """Reads icon assets from a folder by file name."""

    def __init__(self, folder: Union[str, Path], cache: bool = True):
        self.folder = str(folder)
        self.cache = cache

    def load(self, identifier: str) -> Image.Image:
        path = Path(self.folder) / identifier
        try:
            data = _read_icon_bytes(str(path)) if self.cache else path.read_bytes()
            icon = Image.open(io.BytesIO(data))
            icon.load()
        except (OSError, UnidentifiedImageError) as exc:
            raise RenderError(f"Icon asset unavailable: {path} ({exc})") from exc
        return icon


@lru_cache(maxsize=8)
def load_font(path: str, size: int) -> FontType:
    """Load a TrueType font, falling back to Pillow's bundled default."""
    if path:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            log.warning("Font '%s' not found, using default", path)
    return ImageFont.load_default(size=size)


def _text_top(font: FontType, baseline: int) -> int:
    if isinstance(font, ImageFont.FreeTypeFont):
        ascent, _ = font.getmetrics()
        return baseline - ascent
    return baseline - font.getbbox("Mg")[3]


def _scale_icon(icon: Image.Image, size: int) -> Image.Image:
    scale = size / icon.width
    width = max(1, int(icon.width * scale))
    height = max(1, int(icon.height * scale))
    return icon.convert("RGBA").resize((width, height), Image.Resampling.LANCZOS)


def render_caption(
    image: Image.Image,
    token: CaptionToken,
    icon_map: Mapping[str, str],
    icon_store: IconStore,
    style: OverlayStyle = OverlayStyle(),
) -> Image.Image:
    """
    Return a new RGB image: ``image`` on top, a caption band below it.

    The icon sits ``icon_margin`` pixels after the measured text and its
    bottom edge one pixel above the canvas bottom.
    """
    if not token.glyph:
        raise SegmentationError(f"Caption has no status glyph: {token.text!r}")
    icon_id = icon_map.get(token.glyph)
    if icon_id is None:
        raise RenderError(f"No icon bound to glyph {token.glyph!r}")

    icon = _scale_icon(icon_store.load(icon_id), style.icon_size)

    width, height = image.size
    canvas = Image.new("RGB", (width, height + style.band_height), style.background)
    canvas.paste(image.convert("RGB"), (0, 0))

    draw = ImageDraw.Draw(canvas)
    font = load_font(style.font_path, style.font_size)
    baseline = height + style.baseline_offset
    draw.text(
        (style.text_x, _text_top(font, baseline)),
        token.text,
        font=font,
        fill=style.foreground,
    )

    text_width = draw.textlength(token.text, font=font)
    icon_x = int(style.text_x + text_width + style.icon_margin)
    icon_y = canvas.height - icon.height - 1
    canvas.paste(icon, (icon_x, icon_y), icon)
    return canvas
