"""
Layout engine for arkitecture documents.

Computes a pixel box for every container and a pixel position for every
anchor. The parsed tree is never modified; geometry is returned in a
``LayoutResult`` side table keyed by node path (dot-joined container IDs,
groups contributing no segment).

The algorithm has two passes per top-level node:

1. Bottom-up sizing. Leaf containers are sized from their label (plus a
   1px border on each side) but never smaller than the minimum box. Parents
   pack their children along their direction (sum) and take the widest or
   tallest child on the other axis (max). Containers then stretch their
   direct children to that orthogonal extent. Finally a container's
   ``size`` scales its own orthogonal extent; already-stretched children
   keep their size, which insets the box against its children.
2. Top-down positioning. Children are placed one after another from the
   parent's origin. Top-level nodes are tiled left to right at y = 0.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .models import (
    CENTER_ANCHOR,
    ContainerNode,
    Direction,
    Document,
    LayoutNode,
    in_unit_range,
    join_path,
    split_endpoint,
)
from .text_measurement import TextMeasurer, default_text_measurer

BORDER_WIDTH = 1
DEFAULT_FONT_SIZE = 12


@dataclass(frozen=True)
class NodeBox:
    """Absolute box of a node in pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def point_at(self, rel_x: float, rel_y: float) -> Tuple[float, float]:
        """Absolute position of a point given relative to this box."""
        return self.x + self.width * rel_x, self.y + self.height * rel_y


@dataclass(frozen=True)
class AnchorPoint:
    """Absolute position of a named anchor on a node."""

    node_path: str
    anchor: str
    x: float
    y: float


@dataclass
class LayoutResult:
    """
    Result of the layout algorithm.

    Attributes:
        node_boxes: Container path -> box, in document pre-order.
        anchors: (container path, anchor name) -> absolute anchor position.
        group_boxes: Structural group key -> box (for debugging output).
        canvas_width: Right edge of the rightmost top-level node.
        canvas_height: Bottom edge of the tallest top-level node.
    """

    node_boxes: Dict[str, NodeBox] = field(default_factory=dict)
    anchors: Dict[Tuple[str, str], AnchorPoint] = field(default_factory=dict)
    group_boxes: Dict[str, NodeBox] = field(default_factory=dict)
    canvas_width: float = 0
    canvas_height: float = 0

    def find_anchor(
        self, node_path: str, anchor: str = CENTER_ANCHOR
    ) -> Optional[AnchorPoint]:
        return self.anchors.get((node_path, anchor))

    def node_anchors(self, node_path: str) -> List[AnchorPoint]:
        """All anchors of one node, ``center`` first."""
        return [point for (path, _), point in self.anchors.items() if path == node_path]

    def resolve_endpoint(self, endpoint: str) -> Optional[AnchorPoint]:
        """Resolve an arrow endpoint such as ``a.b#top`` (``center`` when no anchor)."""
        path, anchor = split_endpoint(endpoint)
        return self.find_anchor(path, anchor or CENTER_ANCHOR)


@dataclass
class _LayoutBox:
    """Mutable working geometry for one node while layout is in progress."""

    node: LayoutNode
    key: str
    children: List["_LayoutBox"] = field(default_factory=list)
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0

    @property
    def is_container(self) -> bool:
        return self.node.is_container

    def freeze(self) -> NodeBox:
        return NodeBox(self.x, self.y, self.width, self.height)


class LayoutEngine:
    """
    Computes node boxes and anchor positions.

    Args:
        text_measurer: Measurer used for labels and minimum box size.
            Defaults to a new HeuristicTextMeasurer.
        font_size: Font size passed to the measurer.
    """

    def __init__(
        self,
        text_measurer: Optional[TextMeasurer] = None,
        font_size: int = DEFAULT_FONT_SIZE,
    ):
        if font_size <= 0:
            raise ValueError(f"Font size must be positive, got {font_size}")
        self.text_measurer = text_measurer or default_text_measurer()
        self.font_size = font_size

    def compute_layout(self, document: Document) -> LayoutResult:
        """
        Lay out a document.

        Args:
            document: Document to lay out (normally already validated).

        Returns:
            LayoutResult with boxes, anchors and canvas size.
        """
        roots = [
            self._build_tree(node, "", "", index)
            for index, node in enumerate(document.nodes)
        ]

        for root in roots:
            self._measure(root)

        offset_x = 0.0
        for root in roots:
            self._position(root, offset_x, 0.0)
            offset_x += root.width

        result = LayoutResult()
        for root in roots:
            self._collect(root, result)

        for root in roots:
            result.canvas_width = max(result.canvas_width, root.x + root.width)
            result.canvas_height = max(result.canvas_height, root.y + root.height)

        for path, node in document.iter_containers():
            box = result.node_boxes.get(path)
            if box is not None:
                self._resolve_anchors(path, node, box, result)

        return result

    def _build_tree(
        self, node: LayoutNode, parent_path: str, parent_key: str = "", index: int = 0
    ) -> _LayoutBox:
        if isinstance(node, ContainerNode):
            path = join_path(parent_path, node.id)
            key = path
        else:
            # Groups have no id; key them by position under their parent
            path = parent_path
            key = f"{parent_key}/group[{index}]"
        box = _LayoutBox(node=node, key=key)
        box.children = [
            self._build_tree(child, path, key, i) for i, child in enumerate(node.children)
        ]
        return box

    def _measure(self, box: _LayoutBox) -> None:
        for child in box.children:
            self._measure(child)

        node = box.node
        if not box.children:
            if box.is_container:
                text = self.text_measurer.measure(node.label, self.font_size)
                minimum = self.text_measurer.minimum_box_size(self.font_size)
                box.width = max(text.width + 2 * BORDER_WIDTH, minimum.width)
                box.height = max(text.height + 2 * BORDER_WIDTH, minimum.height)
            else:
                box.width = 0
                box.height = 0
            return

        # size only insets boxes that pack children
        if node.direction is Direction.HORIZONTAL:
            box.width = sum(child.width for child in box.children)
            box.height = max(child.height for child in box.children)
            if box.is_container:
                for child in box.children:
                    child.height = box.height
                if node.size is not None:
                    box.height *= node.size
        else:
            box.height = sum(child.height for child in box.children)
            box.width = max(child.width for child in box.children)
            if box.is_container:
                for child in box.children:
                    child.width = box.width
                if node.size is not None:
                    box.width *= node.size

    def _position(self, box: _LayoutBox, x: float, y: float) -> None:
        box.x = x
        box.y = y

        horizontal = box.node.direction is Direction.HORIZONTAL
        for child in box.children:
            self._position(child, x, y)
            if horizontal:
                x += child.width
            else:
                y += child.height

    def _collect(self, box: _LayoutBox, result: LayoutResult) -> None:
        if box.is_container:
            result.node_boxes[box.key] = box.freeze()
        else:
            result.group_boxes[box.key] = box.freeze()
        for child in box.children:
            self._collect(child, result)

    def _resolve_anchors(
        self, path: str, node: ContainerNode, box: NodeBox, result: LayoutResult
    ) -> None:
        x, y = box.point_at(0.5, 0.5)
        result.anchors[(path, CENTER_ANCHOR)] = AnchorPoint(path, CENTER_ANCHOR, x, y)

        for name, (rel_x, rel_y) in node.anchors.items():
            # Out-of-range anchors are reported by the validator, not placed
            if not (in_unit_range(rel_x) and in_unit_range(rel_y)):
                continue
            x, y = box.point_at(rel_x, rel_y)
            result.anchors[(path, name)] = AnchorPoint(path, name, x, y)


def compute_layout(
    document: Document,
    text_measurer: Optional[TextMeasurer] = None,
    font_size: int = DEFAULT_FONT_SIZE,
) -> LayoutResult:
    """
    Convenience function to lay out a document.

    Args:
        document: Document to lay out.
        text_measurer: Optional measurer; a new default one is used if omitted.
        font_size: Font size for label measurement.

    Returns:
        LayoutResult
    """
    return LayoutEngine(text_measurer, font_size).compute_layout(document)