"""Pytest configuration and shared fixtures for arkitecture tests."""

import pytest

from arkitecture import (
    ContainerNode,
    DiagramGenerator,
    Document,
    FontConfig,
    HeuristicTextMeasurer,
    LayoutEngine,
)
from arkitecture.text_measurement import TextDimensions


class FixedTextMeasurer:
    """Measurer with predictable output: 10px per character, 20px per line."""

    def measure(self, text, font_size=None):
        if not text:
            return TextDimensions(0, 0)
        lines = text.split("\n")
        return TextDimensions(max(len(line) for line in lines) * 10, len(lines) * 20)

    def minimum_box_size(self, font_size=None):
        return TextDimensions(30, 30)


@pytest.fixture
def simple_input():
    """Two labelled nodes joined by an arrow."""
    return """
    frontend {
        label: "Web App"
    }
    backend {
        label: "API"
    }

    frontend --> backend
    """


@pytest.fixture
def nested_input():
    """Nested containers, a group and anchored arrows."""
    return """
    # A small service diagram
    system {
        direction: "horizontal"
        web {
            label: "Web"
            anchors: {
                right: [1.0, 0.5]
            }
        }
        group {
            direction: "vertical"
            api { label: "API" }
            worker { label: "Worker" }
        }
    }
    storage {
        db {
            label: "Database"
            anchors: { top: [0.5, 0.0] }
        }
    }

    system.web#right --> system.api
    system.worker --> storage.db#top
    """


@pytest.fixture
def generator():
    """Default DiagramGenerator instance."""
    return DiagramGenerator()


@pytest.fixture
def fixed_measurer():
    return FixedTextMeasurer()


@pytest.fixture
def layout_engine(fixed_measurer):
    """LayoutEngine using the predictable measurer."""
    return LayoutEngine(fixed_measurer)


@pytest.fixture
def heuristic_measurer():
    return HeuristicTextMeasurer(FontConfig())


@pytest.fixture
def single_node_document():
    return Document(nodes=[ContainerNode(id="solo", label="X")])
