"""
Text measurement for layout.

The layout engine only needs two numbers per label: how wide and how tall
the text will be when drawn. Measurement is abstracted behind the
``TextMeasurer`` protocol so layout stays independent of fonts and
rendering backends.

Classes:
    FontConfig: Font family, size and line height.
    TextDimensions: Measured width/height in pixels.
    TextMeasurer: Protocol implemented by measurers.
    HeuristicTextMeasurer: Font-free estimate based on display cell width.
    PillowTextMeasurer: Measures with a real font loaded through Pillow.
"""

import math
import os
from dataclasses import dataclass
from typing import List, Optional, Protocol

from PIL import Image, ImageDraw, ImageFont
from wcwidth import wcswidth, wcwidth

# Average glyph advance as a fraction of the font size
AVERAGE_CHAR_WIDTH = 0.6

# Fonts tried when the requested family cannot be loaded by name
FALLBACK_FONT_PATHS = [
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "/usr/share/fonts/truetype/freefont/FreeSans.ttf",
    "/Library/Fonts/Arial.ttf",
    "C:\\Windows\\Fonts\\arial.ttf",
]


@dataclass(frozen=True)
class FontConfig:
    """Font settings shared by measurement and rendering."""

    family: str = "Arial"
    size: int = 12
    line_height: float = 1.2

    def __post_init__(self):
        if self.size <= 0:
            raise ValueError(f"Font size must be positive, got {self.size}")
        if self.line_height <= 0:
            raise ValueError(f"Line height must be positive, got {self.line_height}")


@dataclass(frozen=True)
class TextDimensions:
    width: int
    height: int


class TextMeasurer(Protocol):
    """Anything the layout engine can ask for text and minimum box sizes."""

    def measure(self, text: Optional[str], font_size: Optional[int] = None) -> TextDimensions:
        ...

    def minimum_box_size(self, font_size: Optional[int] = None) -> TextDimensions:
        ...


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def display_width(line: str) -> int:
    """
    Number of terminal cells a line occupies.

    Wide East Asian characters count as two cells; control and combining
    characters count as zero.
    """
    width = wcswidth(line)
    if width >= 0:
        return width
    # wcswidth gives -1 when any character is non-printable
    return sum(max(wcwidth(char), 0) for char in line)


def split_lines(text: str) -> List[str]:
    return text.split("\n")


class HeuristicTextMeasurer:
    """
    Estimates text size without loading a font.

    Each line is ``cells * font_size * 0.6`` pixels wide; the text is
    ``lines * font_size * line_height`` pixels tall. Both are rounded
    to whole pixels.
    """

    def __init__(self, font_config: Optional[FontConfig] = None):
        self.font_config = font_config or FontConfig()

    def measure(self, text: Optional[str], font_size: Optional[int] = None) -> TextDimensions:
        if not text:
            return TextDimensions(0, 0)

        size = font_size or self.font_config.size
        lines = split_lines(text)

        widest = max(display_width(line) for line in lines)
        width = round_half_up(widest * size * AVERAGE_CHAR_WIDTH)
        height = round_half_up(len(lines) * size * self.font_config.line_height)
        return TextDimensions(width, height)

    def minimum_box_size(self, font_size: Optional[int] = None) -> TextDimensions:
        side = (font_size or self.font_config.size) * 2
        return TextDimensions(side, side)


def load_font(family: Optional[str], size: int) -> ImageFont.ImageFont:
    """
    Load a font by family name or file path.

    Tries the name as given (Pillow searches the system font directories),
    then ``<name>.ttf``, then a few common system fonts, and finally
    Pillow's built-in font.

    Args:
        family: Font family name or path to a font file, or None.
        size: Font size in pixels.

    Returns:
        A Pillow font object.
    """
    candidates: List[str] = []
    if family:
        candidates.append(family)
        if not os.path.splitext(family)[1]:
            candidates.append(f"{family}.ttf")
    candidates.extend(FALLBACK_FONT_PATHS)

    for candidate in candidates:
        try:
            return ImageFont.truetype(candidate, size)
        except OSError:
            continue

    return ImageFont.load_default(size=size)


class PillowTextMeasurer:
    """Measures text with a real font through Pillow."""

    def __init__(self, font_config: Optional[FontConfig] = None):
        self.font_config = font_config or FontConfig()
        self._fonts = {}
        # Scratch surface for textbbox
        self._draw = ImageDraw.Draw(Image.new("RGB", (1, 1)))

    def _get_font(self, size: int):
        if size not in self._fonts:
            self._fonts[size] = load_font(self.font_config.family, size)
        return self._fonts[size]

    def measure(self, text: Optional[str], font_size: Optional[int] = None) -> TextDimensions:
        if not text:
            return TextDimensions(0, 0)

        size = font_size or self.font_config.size
        font = self._get_font(size)
        lines = split_lines(text)

        widest = 0
        for line in lines:
            bbox = self._draw.textbbox((0, 0), line, font=font)
            widest = max(widest, bbox[2] - bbox[0])

        height = round_half_up(len(lines) * size * self.font_config.line_height)
        return TextDimensions(int(math.ceil(widest)), height)

    def minimum_box_size(self, font_size: Optional[int] = None) -> TextDimensions:
        side = (font_size or self.font_config.size) * 2
        return TextDimensions(side, side)


def default_text_measurer(font_config: Optional[FontConfig] = None) -> HeuristicTextMeasurer:
    """Create the default measurer (a new instance on every call)."""
    return HeuristicTextMeasurer(font_config)
