"""
SVG renderer for laid-out documents.

Produces a standalone SVG string: one white rectangle and centered label
per container, followed by one straight line with an arrowhead marker per
arrow. Arrows whose endpoints have no position in the layout are left out
rather than failing the whole drawing.
"""

import logging
from typing import List, Optional
from xml.sax.saxutils import escape

from .layout import LayoutResult, NodeBox
from .models import Arrow, Document, format_number

logger = logging.getLogger(__name__)

SVG_NAMESPACE = "http://www.w3.org/2000/svg"
LINE_SPACING = 1.2
XML_ENTITIES = {'"': "&quot;", "'": "&#39;"}

ARROWHEAD_DEFS = """  <defs>
    <marker id="arrowhead" markerWidth="10" markerHeight="7"
            refX="9" refY="3.5" orient="auto" markerUnits="strokeWidth">
      <polygon points="0 0, 10 3.5, 0 7" fill="black" />
    </marker>
  </defs>"""


def escape_xml(text: str) -> str:
    """Escape ``& < > " '`` for use in element text and attribute values."""
    return escape(text, XML_ENTITIES)


def _num(value: float) -> str:
    # Two decimals hide float noise such as 12 * 1.2 = 14.399999999999999
    return format_number(round(value, 2))


class SVGRenderer:
    """Renders a document and its layout as SVG markup."""

    def __init__(self, font_size: int = 12, font_family: str = "Arial"):
        if font_size <= 0:
            raise ValueError(f"Font size must be positive, got {font_size}")
        self.font_size = font_size
        self.font_family = font_family

    def render(self, document: Document, layout: LayoutResult) -> str:
        """
        Render to an SVG string.

        Args:
            document: The document that was laid out.
            layout: Layout computed for ``document``.

        Returns:
            SVG markup.
        """
        nodes = self._render_nodes(document, layout)
        arrows = self._render_arrows(document.arrows, layout)

        lines = [
            f'<svg xmlns="{SVG_NAMESPACE}" width="{_num(layout.canvas_width)}" '
            f'height="{_num(layout.canvas_height)}">',
            ARROWHEAD_DEFS,
        ]
        if nodes:
            lines.extend(["", "  <!-- Node rectangles and labels -->"])
            lines.extend(nodes)
        if arrows:
            lines.extend(["", "  <!-- Arrows -->"])
            lines.extend(arrows)
        lines.append("</svg>")

        return "\n".join(lines)

    def _render_nodes(self, document: Document, layout: LayoutResult) -> List[str]:
        elements: List[str] = []
        for path, node in document.iter_containers():
            box = layout.node_boxes.get(path)
            if box is None:
                continue
            elements.append(self._rect(box))
            if node.label:
                elements.append(self._text(node.label, box))
        return elements

    def _rect(self, box: NodeBox) -> str:
        return (
            f'  <rect x="{_num(box.x)}" y="{_num(box.y)}" '
            f'width="{_num(box.width)}" height="{_num(box.height)}" '
            'fill="white" stroke="black" stroke-width="1" />'
        )

    def _text(self, label: str, box: NodeBox) -> str:
        center_x, center_y = box.point_at(0.5, 0.5)
        lines = label.split("\n")

        if len(lines) == 1:
            return (
                f'  <text x="{_num(center_x)}" y="{_num(center_y)}" '
                f"{self._text_attributes()}>{escape_xml(label)}</text>"
            )

        # Center the block of lines on the box, one tspan per line
        line_height = self.font_size * LINE_SPACING
        start_y = center_y - (len(lines) - 1) * line_height / 2
        parts = [
            f'  <text x="{_num(center_x)}" y="{_num(start_y)}" '
            f"{self._text_attributes()}>"
        ]
        for index, line in enumerate(lines):
            dy = 0 if index == 0 else line_height
            parts.append(
                f'    <tspan x="{_num(center_x)}" dy="{_num(dy)}">'
                f"{escape_xml(line)}</tspan>"
            )
        parts.append("  </text>")
        return "\n".join(parts)

    def _text_attributes(self) -> str:
        return (
            'text-anchor="middle" dominant-baseline="middle" '
            f'font-family="{escape_xml(self.font_family)}" '
            f'font-size="{_num(self.font_size)}"'
        )

    def _render_arrows(self, arrows, layout: LayoutResult) -> List[str]:
        elements: List[str] = []
        for arrow in arrows:
            element = self._line(arrow, layout)
            if element is None:
                logger.warning(
                    "Skipping arrow %s --> %s: endpoint not in layout",
                    arrow.source,
                    arrow.target,
                )
                continue
            elements.append(element)
        return elements

    def _line(self, arrow: Arrow, layout: LayoutResult) -> Optional[str]:
        source = layout.resolve_endpoint(arrow.source)
        target = layout.resolve_endpoint(arrow.target)
        if source is None or target is None:
            return None
        return (
            f'  <line x1="{_num(source.x)}" y1="{_num(source.y)}" '
            f'x2="{_num(target.x)}" y2="{_num(target.y)}" '
            'stroke="black" stroke-width="1" marker-end="url(#arrowhead)" />'
        )


def render_svg(
    document: Document,
    layout: LayoutResult,
    font_size: Optional[int] = None,
    font_family: Optional[str] = None,
) -> str:
    """
    Convenience function to render SVG.

    Args:
        document: The document that was laid out.
        layout: Layout computed for ``document``.
        font_size: Label font size (default 12).
        font_family: Label font family (default Arial).

    Returns:
        SVG markup.
    """
    renderer = SVGRenderer(font_size=font_size or 12, font_family=font_family or "Arial")
    return renderer.render(document, layout)
