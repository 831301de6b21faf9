"""
PNG renderer module.

Rasterizes a laid-out document with Pillow: white boxes with black
borders, centered labels and straight arrows with filled arrowheads.
Coordinates from the layout are multiplied by ``scale`` for
high-resolution output.
"""

import logging
import math
from typing import Optional, Tuple

from PIL import Image, ImageDraw

from .layout import LayoutResult, NodeBox
from .models import Document
from .text_measurement import load_font

logger = logging.getLogger(__name__)


class PNGRenderer:
    """Renders a document and its layout as a PNG image."""

    def __init__(
        self,
        font_size: int = 12,
        font_family: Optional[str] = None,  # Family name or font file path
        scale: int = 2,  # For high-resolution output
        margin: int = 0,
    ):
        if font_size <= 0:
            raise ValueError(f"Font size must be positive, got {font_size}")
        if scale <= 0:
            raise ValueError(f"Scale must be positive, got {scale}")
        self.font_size = font_size
        self.font_family = font_family
        self.scale = scale
        self.margin = margin

        # Colors
        self.bg_color = (255, 255, 255)
        self.box_fill = (255, 255, 255)
        self.box_outline = (0, 0, 0)
        self.text_color = (0, 0, 0)
        self.line_color = (0, 0, 0)

        self.font = None

    def _get_font(self):
        if self.font is None:
            self.font = load_font(self.font_family, self.font_size * self.scale)
        return self.font

    def _to_pixels(self, x: float, y: float) -> Tuple[int, int]:
        offset = self.margin * self.scale
        return (
            int(round(x * self.scale)) + offset,
            int(round(y * self.scale)) + offset,
        )

    def render_image(self, document: Document, layout: LayoutResult) -> Image.Image:
        """
        Draw the diagram into a new image.

        Args:
            document: The document that was laid out.
            layout: Layout computed for ``document``.

        Returns:
            RGB Pillow image.
        """
        width = int(math.ceil(layout.canvas_width * self.scale)) + 2 * self.margin * self.scale
        height = int(math.ceil(layout.canvas_height * self.scale)) + 2 * self.margin * self.scale
        # Pillow cannot create empty images
        img = Image.new("RGB", (max(width, 1), max(height, 1)), self.bg_color)
        draw = ImageDraw.Draw(img)

        for path, node in document.iter_containers():
            box = layout.node_boxes.get(path)
            if box is not None:
                self._draw_box(draw, box, node.label)

        for arrow in document.arrows:
            source = layout.resolve_endpoint(arrow.source)
            target = layout.resolve_endpoint(arrow.target)
            if source is None or target is None:
                logger.warning(
                    "Skipping arrow %s --> %s: endpoint not in layout",
                    arrow.source,
                    arrow.target,
                )
                continue
            self._draw_arrow(
                draw,
                self._to_pixels(source.x, source.y),
                self._to_pixels(target.x, target.y),
            )

        return img

    def render(
        self, document: Document, layout: LayoutResult, output_path: str = "diagram.png"
    ) -> str:
        """
        Render the diagram and save it as a PNG file.

        Args:
            document: The document that was laid out.
            layout: Layout computed for ``document``.
            output_path: Path to save the PNG file.

        Returns:
            Path to the saved PNG file.
        """
        img = self.render_image(document, layout)
        img.save(output_path, "PNG", dpi=(300, 300))
        logger.debug("Saved %dx%d PNG to %s", img.width, img.height, output_path)
        return output_path

    def _draw_box(self, draw: ImageDraw.ImageDraw, box: NodeBox, label: Optional[str]):
        """Draw a box with border and its centered label."""
        line_width = max(1, self.scale)
        x1, y1 = self._to_pixels(box.x, box.y)
        x2, y2 = self._to_pixels(box.right, box.bottom)

        draw.rectangle(
            [x1, y1, x2, y2],
            fill=self.box_fill,
            outline=self.box_outline,
            width=line_width,
        )

        if not label:
            return

        font = self._get_font()
        lines = label.split("\n")
        line_height = self.font_size * self.scale * 1.2

        # Center the block of lines on the box
        center_x = (x1 + x2) / 2
        current_y = (y1 + y2) / 2 - (len(lines) - 1) * line_height / 2
        for line in lines:
            draw.text(
                (center_x, current_y), line, fill=self.text_color, font=font, anchor="mm"
            )
            current_y += line_height

    def _draw_arrow(
        self,
        draw: ImageDraw.ImageDraw,
        from_point: Tuple[int, int],
        to_point: Tuple[int, int],
    ):
        """Draw a straight line with a filled arrowhead at ``to_point``."""
        draw.line([from_point, to_point], fill=self.line_color, width=max(1, self.scale))
        if from_point == to_point:
            return

        x1, y1 = from_point
        x2, y2 = to_point

        arrow_size = 8 * self.scale
        angle = math.atan2(y2 - y1, x2 - x1)

        angle1 = angle + math.pi * 0.8
        angle2 = angle - math.pi * 0.8

        ax1 = x2 + arrow_size * math.cos(angle1)
        ay1 = y2 + arrow_size * math.sin(angle1)
        ax2 = x2 + arrow_size * math.cos(angle2)
        ay2 = y2 + arrow_size * math.sin(angle2)

        draw.polygon([(x2, y2), (ax1, ay1), (ax2, ay2)], fill=self.line_color)


def render_to_png(
    document: Document, layout: LayoutResult, output_path: str = "diagram.png", **kwargs
) -> str:
    """
    Convenience function to render a diagram to PNG.

    Args:
        document: The document that was laid out.
        layout: Layout computed for ``document``.
        output_path: Path to save the PNG file.
        **kwargs: Additional parameters for PNGRenderer.

    Returns:
        Path to the saved PNG file.
    """
    renderer = PNGRenderer(**kwargs)
    return renderer.render(document, layout, output_path)
