"""Text measurement.

Layout needs label widths but never draws anything. A measurer carries a
mutable ``font`` (a canvas-style font string such as ``"10px sans-serif"``);
code that measures in a different font must restore the previous one, which
``font_override`` guarantees even when measuring raises.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Protocol

from PIL import ImageFont

from sdfg_layout.constants import DEFAULT_FONT, DEFAULT_FONT_SIZE

logger = logging.getLogger(__name__)

_FONT_SIZE_RE = re.compile(r"(\d+(?:\.\d+)?)px")

# Tried in order when no explicit font file is given.
_FONT_CANDIDATES: tuple[str, ...] = (
    "DejaVuSans.ttf",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "Arial.ttf",
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "C:/Windows/Fonts/arial.ttf",
)


class TextMeasurer(Protocol):
    """Anything that can report the rendered width of a string in its current font."""

    font: str

    def measure_text(self, text: str) -> float: ...


def parse_font_size(font: str) -> float:
    """Pixel size of a canvas font string, or the default size if it has none."""
    match = _FONT_SIZE_RE.search(font)
    if match is None:
        return DEFAULT_FONT_SIZE
    return float(match.group(1))


@contextmanager
def font_override(measurer: TextMeasurer, font: str) -> Iterator[TextMeasurer]:
    """Measure with ``font`` inside the block; the previous font is restored on exit."""
    previous = measurer.font
    measurer.font = font
    try:
        yield measurer
    finally:
        measurer.font = previous


class MonospaceMeasurer:
    """Every character is ``char_width_ratio`` times the font size wide."""

    def __init__(self, char_width_ratio: float = 0.6, font: str = DEFAULT_FONT) -> None:
        self.char_width_ratio = char_width_ratio
        self.font = font

    def measure_text(self, text: str) -> float:
        return len(text) * parse_font_size(self.font) * self.char_width_ratio


class PillowMeasurer:
    """Measures with a TrueType font through Pillow, one loaded face per pixel size."""

    def __init__(self, font_path: str | None = None, font: str = DEFAULT_FONT) -> None:
        self.font_path = font_path
        self.font = font
        self._cache: dict[int, ImageFont.FreeTypeFont | ImageFont.ImageFont] = {}

    def _face(self) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
        size = max(1, int(round(parse_font_size(self.font))))
        if size in self._cache:
            return self._cache[size]

        candidates = [self.font_path] if self.font_path else list(_FONT_CANDIDATES)
        face: ImageFont.FreeTypeFont | ImageFont.ImageFont | None = None
        for candidate in candidates:
            try:
                face = ImageFont.truetype(candidate, size)
                break
            except OSError:
                continue
        if face is None:
            if self.font_path:
                logger.warning("Could not load font %s, using the default font", self.font_path)
            face = ImageFont.load_default(size=size)

        self._cache[size] = face
        return face

    def measure_text(self, text: str) -> float:
        return float(self._face().getlength(text))
