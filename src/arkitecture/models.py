"""
Data models for the arkitecture DSL.

This module contains the dataclasses shared by every pipeline stage: the
parsed document tree, arrows between nodes, and the error records collected
while parsing and validating. The tree is immutable once built; layout
geometry lives in a separate side table (see ``arkitecture.layout``).

Classes:
    Direction: Packing direction of a node's children.
    ContainerNode: A visible box with an id, label, size and anchors.
    GroupNode: A transparent layout-only node that only carries a direction.
    Arrow: A directed connection between two node paths.
    Document: Root aggregate of top-level nodes and arrows.
    ErrorKind: Category of a diagnostic.
    ValidationError: A single diagnostic with source location.
    ParseResult: Outcome of parsing DSL text.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterator, List, Mapping, Optional, Tuple, Union

CENTER_ANCHOR = "center"


class Direction(Enum):
    """Packing direction of a node's children."""

    VERTICAL = "vertical"
    HORIZONTAL = "horizontal"


def _coerce_direction(value) -> Direction:
    if isinstance(value, Direction):
        return value
    try:
        return Direction(value)
    except ValueError:
        raise ValueError(
            f"Invalid direction '{value}', expected 'vertical' or 'horizontal'"
        ) from None


@dataclass(frozen=True)
class ContainerNode:
    """
    A visible box in the diagram.

    Attributes:
        id: Identifier, unique among the containers of the same parent scope.
        label: Optional text shown inside the box (may contain newlines).
        direction: How this node's children are packed.
        size: Optional scale in [0.0, 1.0] applied to the axis orthogonal
            to ``direction``.
        anchors: Named attachment points, relative (x, y) in [0.0, 1.0].
            Stored as a read-only mapping and left out of the hash.
        children: Nested containers and groups, in declaration order.
        line: Source line of the declaration (0 when built in code).
        column: Source column of the declaration (0 when built in code).
    """

    id: str
    label: Optional[str] = None
    direction: Direction = Direction.VERTICAL
    size: Optional[float] = None
    anchors: Mapping[str, Tuple[float, float]] = field(default_factory=dict, hash=False)
    children: Tuple["LayoutNode", ...] = ()
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "direction", _coerce_direction(self.direction))
        object.__setattr__(self, "children", tuple(self.children))
        object.__setattr__(
            self,
            "anchors",
            MappingProxyType(
                {name: (float(x), float(y)) for name, (x, y) in self.anchors.items()}
            ),
        )

    @property
    def is_container(self) -> bool:
        return True

    def has_anchor(self, anchor_id: str) -> bool:
        """Every container has an implicit ``center`` anchor."""
        return anchor_id == CENTER_ANCHOR or anchor_id in self.anchors


@dataclass(frozen=True)
class GroupNode:
    """
    A transparent grouping of siblings.

    Groups draw nothing and take no part in node addressing: their children
    belong to the nearest enclosing container's scope. Only the packing
    direction of the group's own children can be set.
    """

    direction: Direction = Direction.VERTICAL
    children: Tuple["LayoutNode", ...] = ()
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "direction", _coerce_direction(self.direction))
        object.__setattr__(self, "children", tuple(self.children))

    @property
    def is_container(self) -> bool:
        return False


LayoutNode = Union[ContainerNode, GroupNode]


def split_endpoint(endpoint: str) -> Tuple[str, Optional[str]]:
    """
    Split an arrow endpoint into its node path and optional anchor name.

    >>> split_endpoint("a.b#top")
    ('a.b', 'top')
    >>> split_endpoint("a")
    ('a', None)
    """
    path, sep, anchor = endpoint.partition("#")
    return path, (anchor if sep else None)


@dataclass(frozen=True)
class Arrow:
    """A directed connection ``source --> target``.

    Both ends are dotted node paths with an optional ``#anchor`` suffix.
    """

    source: str
    target: str
    line: int = field(default=0, compare=False, repr=False)
    column: int = field(default=0, compare=False, repr=False)

    @property
    def source_path(self) -> str:
        return split_endpoint(self.source)[0]

    @property
    def source_anchor(self) -> str:
        return split_endpoint(self.source)[1] or CENTER_ANCHOR

    @property
    def target_path(self) -> str:
        return split_endpoint(self.target)[0]

    @property
    def target_anchor(self) -> str:
        return split_endpoint(self.target)[1] or CENTER_ANCHOR


@dataclass(frozen=True)
class Document:
    """Root of a parsed diagram: top-level containers plus arrows."""

    nodes: Tuple[ContainerNode, ...] = ()
    arrows: Tuple[Arrow, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "arrows", tuple(self.arrows))

    def iter_containers(self) -> Iterator[Tuple[str, ContainerNode]]:
        """Yield ``(path, node)`` for every container in pre-order."""
        for node in self.nodes:
            yield from iter_containers(node, "")

    def find_node(self, path: str) -> Optional[ContainerNode]:
        """Resolve a dotted node path, or return None."""
        for node_path, node in self.iter_containers():
            if node_path == path:
                return node
        return None


def join_path(parent_path: str, node_id: str) -> str:
    return f"{parent_path}.{node_id}" if parent_path else node_id


def iter_containers(
    node: LayoutNode, parent_path: str
) -> Iterator[Tuple[str, ContainerNode]]:
    """Walk a subtree; groups pass their parent's path through unchanged."""
    if isinstance(node, ContainerNode):
        path = join_path(parent_path, node.id)
        yield path, node
    else:
        path = parent_path
    for child in node.children:
        yield from iter_containers(child, path)


class ErrorKind(Enum):
    """Category of a diagnostic."""

    SYNTAX = "syntax"
    REFERENCE = "reference"
    CONSTRAINT = "constraint"


@dataclass(frozen=True)
class ValidationError:
    """
    A diagnostic produced by the tokenizer, parser or validator.

    Attributes:
        line: 1-based source line, or 0 when no location is known.
        column: 1-based source column, or 0 when no location is known.
        message: Human readable description.
        kind: syntax, reference or constraint.
    """

    line: int
    column: int
    message: str
    kind: ErrorKind

    def __str__(self) -> str:
        location = (
            f" (line {self.line}, column {self.column})" if self.line > 0 else ""
        )
        return f"{self.kind.value.upper()}{location}: {self.message}"


@dataclass
class ParseResult:
    """Result of parsing DSL text.

    ``document`` is always populated, even when errors were found, so that
    tooling can show the recovered structure next to the diagnostics.
    """

    document: Document = field(default_factory=Document)
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


def format_number(value: float) -> str:
    """Format a number for messages: ``2.0`` -> ``2``, ``1.5`` -> ``1.5``."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def in_unit_range(value: float) -> bool:
    return 0.0 <= value <= 1.0
