"""Unit tests for anchor resolution in the layout result."""

from arkitecture.layout import AnchorPoint, LayoutResult, NodeBox
from arkitecture.models import ContainerNode, Document
from arkitecture.parser import parse_arkitecture


class TestNodeBox:
    """Tests for relative-to-absolute conversion."""

    def test_corner_and_center(self):
        box = NodeBox(x=10, y=20, width=100, height=50)
        assert box.point_at(1.0, 1.0) == (110, 70)
        assert box.point_at(0.5, 0.5) == (60, 45)
        assert (box.right, box.bottom) == (110, 70)


class TestAnchorResolution:
    """Tests for anchors emitted by the layout engine."""

    def test_center_is_always_present(self, layout_engine, single_node_document):
        layout = layout_engine.compute_layout(single_node_document)
        assert layout.anchors == {
            ("solo", "center"): AnchorPoint("solo", "center", 15, 15)
        }

    def test_custom_anchor(self, layout_engine):
        document = parse_arkitecture(
            "first {}\nn { anchors: { corner: [1.0, 1.0], top: [0.5, 0] } }"
        ).document
        layout = layout_engine.compute_layout(document)
        assert layout.find_anchor("n", "corner") == AnchorPoint("n", "corner", 60, 30)
        assert layout.find_anchor("n", "top") == AnchorPoint("n", "top", 45, 0)
        assert layout.find_anchor("n") == AnchorPoint("n", "center", 45, 15)

    def test_node_anchors_lists_center_first(self, layout_engine):
        document = parse_arkitecture("n { anchors: { a: [0, 0], b: [1, 0] } }").document
        layout = layout_engine.compute_layout(document)
        assert [point.anchor for point in layout.node_anchors("n")] == ["center", "a", "b"]

    def test_nested_anchor_uses_path_key(self, layout_engine):
        document = parse_arkitecture("p { c { anchors: { left: [0, 0.5] } } }").document
        layout = layout_engine.compute_layout(document)
        assert layout.find_anchor("p.c", "left") == AnchorPoint("p.c", "left", 0, 15)
        assert layout.find_anchor("c", "left") is None

    def test_out_of_range_anchor_is_skipped(self, layout_engine):
        document = Document(
            nodes=[ContainerNode(id="n", anchors={"bad": (1.5, 0), "ok": (1, 1)})]
        )
        layout = layout_engine.compute_layout(document)
        assert layout.find_anchor("n", "bad") is None
        assert layout.find_anchor("n", "ok") == AnchorPoint("n", "ok", 30, 30)

    def test_missing_node_has_no_anchors(self, layout_engine, single_node_document):
        layout = layout_engine.compute_layout(single_node_document)
        assert layout.find_anchor("ghost") is None
        assert layout.node_anchors("ghost") == []


class TestResolveEndpoint:
    """Tests for LayoutResult.resolve_endpoint."""

    def test_endpoint_without_anchor_is_center(self):
        layout = LayoutResult(
            anchors={("a", "center"): AnchorPoint("a", "center", 5, 5)}
        )
        assert layout.resolve_endpoint("a") == AnchorPoint("a", "center", 5, 5)

    def test_endpoint_with_anchor(self, layout_engine):
        document = parse_arkitecture(
            "a { b { anchors: { top: [0.5, 0] } } }\nc {}\na.b#top --> c"
        ).document
        layout = layout_engine.compute_layout(document)
        point = layout.resolve_endpoint("a.b#top")
        assert (point.x, point.y) == (15, 0)

    def test_unresolvable_endpoint(self):
        assert LayoutResult().resolve_endpoint("a#top") is None

    def test_layout_of_unvalidated_document_does_not_fail(self, layout_engine):
        result = parse_arkitecture("a {}\na --> missing#x")
        layout = layout_engine.compute_layout(result.document)
        assert layout.resolve_endpoint(result.document.arrows[0].target) is None
