"""
Semantic validation of parsed documents.

The validator runs after parsing and checks what the grammar cannot:
that node IDs are unique within their scope, that arrow endpoints and
anchors refer to existing nodes, and that numeric values are in range.
Range checks repeat the parser's so that documents built in code (without
the text parser) are held to the same rules.

Every check runs over the whole document and errors are collected, never
raised. The document is not modified.
"""

from typing import Dict, List, Optional, Sequence

from .models import (
    ContainerNode,
    Document,
    ErrorKind,
    LayoutNode,
    ValidationError,
    format_number,
    in_unit_range,
    join_path,
    split_endpoint,
)

ROOT_SCOPE = "root"


class Validator:
    """Collects reference and constraint errors for one document."""

    def __init__(self, document: Document):
        self.document = document
        self.errors: List[ValidationError] = []
        self.node_map: Dict[str, ContainerNode] = {}

    def validate(self) -> List[ValidationError]:
        """
        Run all checks.

        Errors are ordered by check: duplicate IDs, arrow endpoints, arrow
        anchors, then value ranges.

        Returns:
            List of ValidationError (empty when the document is valid).
        """
        self.errors = []
        self.node_map = dict(self.document.iter_containers())

        self._check_unique_ids(self.document.nodes, "")
        self._check_arrow_endpoints()
        self._check_arrow_anchors()
        for _, node in self.document.iter_containers():
            self._check_constraints(node)

        return self.errors

    def _check_unique_ids(self, nodes: Sequence[LayoutNode], parent_path: str) -> None:
        seen = set()
        for node in _flatten_groups(nodes):
            if node.id in seen:
                self._error(
                    f"Duplicate node ID '{node.id}' within "
                    f"{parent_path or ROOT_SCOPE} scope",
                    node,
                    ErrorKind.REFERENCE,
                )
            seen.add(node.id)

        for node in _flatten_groups(nodes):
            self._check_unique_ids(node.children, join_path(parent_path, node.id))

    def _check_arrow_endpoints(self) -> None:
        for arrow in self.document.arrows:
            for role, path in (("source", arrow.source_path), ("target", arrow.target_path)):
                if path not in self.node_map:
                    self._error(
                        f"Arrow {role} node '{path}' does not exist",
                        arrow,
                        ErrorKind.REFERENCE,
                    )

    def _check_arrow_anchors(self) -> None:
        for arrow in self.document.arrows:
            for role, endpoint in (("source", arrow.source), ("target", arrow.target)):
                path, anchor = split_endpoint(endpoint)
                node = self.node_map.get(path)
                # Unresolved nodes were already reported above
                if anchor is None or node is None:
                    continue
                if not node.has_anchor(anchor):
                    self._error(
                        f"Arrow {role} anchor '{anchor}' does not exist "
                        f"on node '{path}'",
                        arrow,
                        ErrorKind.REFERENCE,
                    )

    def _check_constraints(self, node: ContainerNode) -> None:
        if node.size is not None and not in_unit_range(node.size):
            self._error(
                f"Node '{node.id}' size {format_number(node.size)} is out of range, "
                "expected 0.0-1.0",
                node,
                ErrorKind.CONSTRAINT,
            )

        for anchor, coordinates in node.anchors.items():
            for axis, value in zip(("X", "Y"), coordinates):
                if not in_unit_range(value):
                    self._error(
                        f"Node '{node.id}' anchor '{anchor}' {axis} coordinate "
                        f"{format_number(value)} is out of range, expected 0.0-1.0",
                        node,
                        ErrorKind.CONSTRAINT,
                    )

    def _error(self, message: str, located, kind: ErrorKind) -> None:
        self.errors.append(
            ValidationError(located.line, located.column, message, kind)
        )


def _flatten_groups(nodes: Sequence[LayoutNode]) -> List[ContainerNode]:
    """Containers visible at this level, looking through any depth of groups."""
    containers: List[ContainerNode] = []
    for node in nodes:
        if isinstance(node, ContainerNode):
            containers.append(node)
        else:
            containers.extend(_flatten_groups(node.children))
    return containers


def validate(document: Optional[Document]) -> List[ValidationError]:
    """
    Validate a document.

    Args:
        document: Parsed or hand-built document. None validates as empty.

    Returns:
        List of reference and constraint errors.
    """
    if document is None:
        document = Document()
    return Validator(document).validate()
