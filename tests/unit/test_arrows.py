"""Unit tests for arrow statements."""

from arkitecture.models import Arrow, split_endpoint
from arkitecture.parser import parse_arkitecture


NODES = "node1 {}\nnode2 {}\nnode3 {}\n"


class TestArrowParsing:
    """Tests for well-formed arrows."""

    def test_simple_arrow(self):
        result = parse_arkitecture("a {}\nb {}\na --> b")
        assert result.success
        assert result.document.arrows == (Arrow(source="a", target="b"),)
        arrow = result.document.arrows[0]
        assert (arrow.line, arrow.column) == (3, 1)

    def test_dotted_paths_and_anchors(self):
        result = parse_arkitecture("a { b {} }\nc {}\na.b#top --> c#left")
        arrow = result.document.arrows[0]
        assert arrow.source == "a.b#top"
        assert arrow.source_path == "a.b"
        assert arrow.source_anchor == "top"
        assert arrow.target_path == "c"
        assert arrow.target_anchor == "left"

    def test_anchor_defaults_to_center(self):
        arrow = Arrow(source="a", target="b.c")
        assert arrow.source_anchor == "center"
        assert arrow.target_anchor == "center"

    def test_arrows_keep_declaration_order(self):
        result = parse_arkitecture(NODES + "node1 --> node2\nnode2 --> node3\nnode3 --> node1")
        assert [(a.source, a.target) for a in result.document.arrows] == [
            ("node1", "node2"),
            ("node2", "node3"),
            ("node3", "node1"),
        ]

    def test_group_keyword_as_path_segment(self):
        result = parse_arkitecture("x {}\nparent.group.child --> x")
        assert result.success
        assert result.document.arrows[0].source == "parent.group.child"

    def test_blank_lines_and_comments_between_arrows(self):
        result = parse_arkitecture(NODES + "node1 --> node2\n\n# comment\n\nnode2 --> node3\n")
        assert result.success
        assert len(result.document.arrows) == 2

    def test_split_endpoint(self):
        assert split_endpoint("a.b#top") == ("a.b", "top")
        assert split_endpoint("a") == ("a", None)


class TestArrowErrors:
    """Tests for malformed arrows."""

    def test_missing_target(self):
        result = parse_arkitecture(NODES + "node1 -->")
        assert len(result.errors) == 1
        assert result.errors[0].message == (
            "Expected arrow target identifier after '-->', got EOF"
        )
        assert result.document.arrows == ()

    def test_missing_anchor_after_hash(self):
        result = parse_arkitecture(NODES + "node1 --> node2#")
        assert len(result.errors) == 1
        assert result.errors[0].message == "Expected anchor identifier after '#', got EOF"

    def test_missing_identifier_after_dot(self):
        result = parse_arkitecture(NODES + "node1. --> node2")
        assert len(result.errors) == 1
        assert "Expected identifier after '.'" in result.errors[0].message
        assert result.errors[0].line == 4

    def test_missing_operator_reports_node_error_first(self):
        result = parse_arkitecture(NODES + "node1 node2\nnode2 --> node3")
        assert len(result.errors) == 1
        assert result.errors[0].message == (
            "Expected '{' after node id 'node1', got IDENTIFIER"
        )
        assert result.document.arrows == (Arrow(source="node2", target="node3"),)

    def test_missing_operator_in_arrow_phase(self):
        result = parse_arkitecture(NODES + "node1 --> node2\nnode1 node2")
        assert len(result.errors) == 1
        assert result.errors[0].message == (
            "Expected '-->' arrow operator after 'node1', got IDENTIFIER"
        )
        assert len(result.document.arrows) == 1

    def test_number_as_source(self):
        result = parse_arkitecture("node1 {}\n123 --> node1")
        assert len(result.errors) == 1
        assert result.errors[0].message == "Expected node identifier, got NUMBER"
        assert result.document.arrows == ()

    def test_non_identifier_source_in_arrow_phase(self):
        result = parse_arkitecture(NODES + 'node1 --> node2\n"x" --> node3')
        assert result.errors[0].message == "Expected arrow source identifier, got STRING"
        assert len(result.document.arrows) == 1

    def test_trailing_tokens_after_target(self):
        result = parse_arkitecture(NODES + "node1 --> node2 node3")
        assert len(result.errors) == 1
        assert result.errors[0].message == "Unexpected IDENTIFIER after arrow target 'node2'"
        assert result.document.arrows == (Arrow(source="node1", target="node2"),)

    def test_node_after_arrows(self):
        result = parse_arkitecture("a {}\na --> a\nb {}")
        assert len(result.errors) == 1
        assert result.errors[0].message == (
            "Node declarations must appear before arrows, got node 'b'"
        )
        assert [node.id for node in result.document.nodes] == ["a"]

    def test_errors_on_several_lines_are_all_reported(self):
        result = parse_arkitecture(NODES + "node1 -->\nnode2 --> node3#\nnode3 --> node1")
        assert len(result.errors) == 2
        assert [error.line for error in result.errors] == [4, 5]
        assert len(result.document.arrows) == 1
