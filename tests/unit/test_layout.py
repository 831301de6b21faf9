"""Unit tests for the layout engine."""

import pytest

from arkitecture.layout import BORDER_WIDTH, LayoutEngine, LayoutResult, NodeBox, compute_layout
from arkitecture.models import ContainerNode, Direction, Document, GroupNode
from arkitecture.parser import parse_arkitecture


def layout_text(engine, text):
    result = parse_arkitecture(text)
    assert result.success, result.errors
    return engine.compute_layout(result.document)


class TestLeafSizing:
    """Tests for the size of nodes without children."""

    def test_label_plus_border(self, layout_engine):
        layout = layout_text(layout_engine, 'n { label: "Hello" }')
        assert layout.node_boxes["n"] == NodeBox(0, 0, 50 + 2 * BORDER_WIDTH, 30)

    def test_short_label_uses_minimum_box(self, layout_engine, single_node_document):
        layout = layout_engine.compute_layout(single_node_document)
        assert layout.node_boxes["solo"] == NodeBox(0, 0, 30, 30)

    def test_no_label_uses_minimum_box(self, layout_engine):
        layout = layout_text(layout_engine, "n {}")
        assert layout.node_boxes["n"] == NodeBox(0, 0, 30, 30)

    def test_multiline_label(self, layout_engine):
        layout = layout_text(layout_engine, 'n { label: "ab\\ncd\\nef" }')
        box = layout.node_boxes["n"]
        assert (box.width, box.height) == (30, 62)

    def test_heuristic_single_character(self, heuristic_measurer, single_node_document):
        layout = LayoutEngine(heuristic_measurer, 12).compute_layout(single_node_document)
        box = layout.node_boxes["solo"]
        # 7x14 text plus border is below the 24x24 minimum
        assert (box.width, box.height) == (24, 24)

    def test_default_measurer(self, single_node_document):
        layout = compute_layout(single_node_document)
        assert layout.node_boxes["solo"].width == 24

    def test_font_size_reaches_measurer(self, single_node_document):
        layout = compute_layout(single_node_document, font_size=20)
        assert layout.node_boxes["solo"] == NodeBox(0, 0, 40, 40)

    def test_non_positive_font_size(self):
        with pytest.raises(ValueError, match="Font size must be positive"):
            LayoutEngine(font_size=0)


class TestAggregation:
    """Tests for packing children along each direction."""

    def test_horizontal_aggregation_and_stretch(self, layout_engine):
        layout = layout_text(
            layout_engine,
            """
            p {
              direction: "horizontal"
              a { label: "Hello" }
              b { label: "ab\\ncd\\nef" }
            }
            """,
        )
        assert layout.node_boxes["p"] == NodeBox(0, 0, 82, 62)
        assert layout.node_boxes["p.a"] == NodeBox(0, 0, 52, 62)
        assert layout.node_boxes["p.b"] == NodeBox(52, 0, 30, 62)

    def test_vertical_aggregation_and_stretch(self, layout_engine):
        layout = layout_text(
            layout_engine,
            """
            p {
              a { label: "Hello" }
              b { label: "X" }
            }
            """,
        )
        assert layout.node_boxes["p"] == NodeBox(0, 0, 52, 60)
        assert layout.node_boxes["p.a"] == NodeBox(0, 0, 52, 30)
        assert layout.node_boxes["p.b"] == NodeBox(0, 30, 52, 30)

    def test_groups_do_not_stretch_their_children(self, layout_engine):
        layout = layout_text(
            layout_engine,
            """
            p {
              direction: "horizontal"
              group {
                a { label: "Hello" }
                b { label: "X" }
              }
              c { label: "X" }
            }
            """,
        )
        assert layout.node_boxes["p"] == NodeBox(0, 0, 82, 60)
        assert layout.node_boxes["p.a"] == NodeBox(0, 0, 52, 30)
        assert layout.node_boxes["p.b"] == NodeBox(0, 30, 30, 30)
        assert layout.node_boxes["p.c"] == NodeBox(52, 0, 30, 60)
        assert layout.group_boxes == {"p/group[0]": NodeBox(0, 0, 52, 60)}

    def test_group_keys_are_structural(self, layout_engine):
        layout = layout_text(
            layout_engine,
            "p { x {}\ngroup { group { y {} } }\ngroup { z {} } }",
        )
        assert set(layout.group_boxes) == {
            "p/group[1]",
            "p/group[1]/group[0]",
            "p/group[2]",
        }
        assert "p.y" in layout.node_boxes
        assert "p.z" in layout.node_boxes

    def test_top_level_group_keys_are_indexed(self, layout_engine):
        document = Document(
            nodes=[
                GroupNode(children=[ContainerNode(id="a")]),
                GroupNode(children=[ContainerNode(id="b")]),
            ]
        )
        layout = layout_engine.compute_layout(document)
        assert layout.group_boxes == {
            "/group[0]": NodeBox(0, 0, 30, 30),
            "/group[1]": NodeBox(30, 0, 30, 30),
        }
        assert set(layout.node_boxes) == {"a", "b"}

    def test_empty_group_has_zero_size(self, layout_engine):
        document = Document(nodes=[ContainerNode(id="p", children=[GroupNode()])])
        layout = layout_engine.compute_layout(document)
        assert layout.group_boxes["p/group[0]"] == NodeBox(0, 0, 0, 0)
        assert layout.node_boxes["p"].width == 0


class TestSizeOverride:
    """Tests for the size property inset."""

    def test_vertical_size_halves_width(self, layout_engine):
        text = 'p {\n  %s\n  a { label: "Hello" }\n  b { label: "X" }\n}'
        plain = layout_text(layout_engine, text % "")
        inset = layout_text(layout_engine, text % "size: 0.5")
        assert inset.node_boxes["p"].width == plain.node_boxes["p"].width * 0.5
        assert inset.node_boxes["p"].height == plain.node_boxes["p"].height
        # Children keep the pre-override stretch
        assert inset.node_boxes["p.a"].width == 52

    def test_horizontal_size_scales_height(self, layout_engine):
        document = Document(
            nodes=[
                ContainerNode(
                    id="p",
                    direction=Direction.HORIZONTAL,
                    size=0.5,
                    children=[ContainerNode(id="a"), ContainerNode(id="b")],
                )
            ]
        )
        layout = layout_engine.compute_layout(document)
        assert layout.node_boxes["p"] == NodeBox(0, 0, 60, 15)
        assert layout.node_boxes["p.a"].height == 30

    def test_size_is_ignored_on_leaf(self, layout_engine):
        plain = layout_text(layout_engine, 'n { label: "ABCDEFGH" }')
        inset = layout_text(layout_engine, 'n { size: 0.5\nlabel: "ABCDEFGH" }')
        assert inset.node_boxes["n"] == plain.node_boxes["n"] == NodeBox(0, 0, 82, 30)


class TestPositioning:
    """Tests for top-down placement and the canvas."""

    def test_top_level_nodes_tile_left_to_right(self, layout_engine):
        layout = layout_text(layout_engine, 'a { label: "A" }\nb { label: "B" }\na --> b')
        assert layout.node_boxes["a"] == NodeBox(0, 0, 30, 30)
        assert layout.node_boxes["b"] == NodeBox(30, 0, 30, 30)
        assert (layout.canvas_width, layout.canvas_height) == (60, 30)
        assert layout.find_anchor("a") is not None
        assert layout.find_anchor("b") is not None

    def test_canvas_uses_tallest_node(self, layout_engine):
        layout = layout_text(layout_engine, 'a { label: "Hello" }\nb { x {}\ny {} }')
        assert layout.canvas_width == 52 + 30
        assert layout.canvas_height == 60

    def test_nested_positions_are_absolute(self, layout_engine):
        layout = layout_text(
            layout_engine, "first {}\nouter { inner { leaf {} } }"
        )
        assert layout.node_boxes["outer.inner.leaf"].x == 30

    def test_empty_document(self, layout_engine):
        layout = layout_engine.compute_layout(Document())
        assert layout == LayoutResult()
        assert (layout.canvas_width, layout.canvas_height) == (0, 0)
        assert layout.anchors == {}

    def test_node_boxes_are_in_pre_order(self, layout_engine):
        layout = layout_text(layout_engine, "a { b { c {} }\nd {} }\ne {}")
        assert list(layout.node_boxes) == ["a", "a.b", "a.b.c", "a.d", "e"]

    def test_layout_is_repeatable(self, layout_engine, nested_input):
        document = parse_arkitecture(nested_input).document
        assert layout_engine.compute_layout(document) == layout_engine.compute_layout(document)

    def test_tree_is_not_modified(self, layout_engine, nested_input):
        document = parse_arkitecture(nested_input).document
        before = document.nodes
        layout_engine.compute_layout(document)
        assert document.nodes == before
