"""Unit tests for the document model."""

import pytest

from arkitecture.models import ContainerNode, Direction, GroupNode


class TestContainerNode:
    """Tests for ContainerNode construction and immutability."""

    def test_coerces_fields(self):
        node = ContainerNode(id="n", direction="horizontal", anchors={"top": (0, 1)})
        assert node.direction is Direction.HORIZONTAL
        assert node.anchors == {"top": (0.0, 1.0)}
        assert isinstance(node.children, tuple)

    def test_is_hashable(self):
        first = ContainerNode(id="a", anchors={"t": (0, 0)}, children=[GroupNode()])
        second = ContainerNode(id="a", anchors={"t": (0, 0)}, children=[GroupNode()], line=4)
        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_anchors_are_read_only(self):
        node = ContainerNode(id="a", anchors={"t": (0, 0)})
        with pytest.raises(TypeError):
            node.anchors["x"] = (0.5, 0.5)
        assert set(node.anchors) == {"t"}

    def test_anchors_are_copied(self):
        anchors = {"t": (0, 0)}
        node = ContainerNode(id="a", anchors=anchors)
        anchors["x"] = (1, 1)
        assert not node.has_anchor("x")
        assert node.has_anchor("center")
