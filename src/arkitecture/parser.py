"""
Parser module for the arkitecture DSL.

A recursive-descent parser that never stops at the first problem: every
local failure is recorded as a diagnostic, the parser resynchronizes using
the policies in ``arkitecture.recovery``, and parsing continues. The
returned document holds whatever was parsed successfully.

Grammar (informal)::

    document   := node* arrow*
    node       := IDENT '{' body '}'
    group      := 'group' '{' body '}'
    body       := (property | node | group | NEWLINE)*
    property   := IDENT ':' value
    arrow      := endpoint '-->' endpoint
    endpoint   := IDENT ('.' IDENT)* ('#' IDENT)?
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .models import (
    Arrow,
    ContainerNode,
    Direction,
    Document,
    ErrorKind,
    GroupNode,
    LayoutNode,
    ParseResult,
    ValidationError,
    format_number,
    in_unit_range,
)
from .recovery import RecoveryContext, skip_block, synchronize
from .tokenizer import Token, TokenizerError, TokenType, tokenize

PATH_SEGMENT_TYPES = (TokenType.IDENTIFIER, TokenType.GROUP)
ARROW_LOOKAHEAD_TYPES = (TokenType.ARROW, TokenType.DOT, TokenType.HASH)


@dataclass
class _Body:
    """Properties and children collected while parsing a node or group body."""

    is_group: bool
    owner: str = ""
    label: Optional[str] = None
    direction: Direction = Direction.VERTICAL
    size: Optional[float] = None
    anchors: Dict[str, Tuple[float, float]] = field(default_factory=dict)
    children: List[LayoutNode] = field(default_factory=list)


class Parser:
    """Parses a token list into a Document plus diagnostics."""

    def __init__(self, tokens: List[Token]):
        if not tokens or tokens[-1].type is not TokenType.EOF:
            tokens = list(tokens) + [
                Token(TokenType.EOF, "", tokens[-1].line if tokens else 1, 0)
            ]
        self.tokens = tokens
        self.current = 0
        self.errors: List[ValidationError] = []

    def parse(self) -> ParseResult:
        """
        Parse all tokens.

        Top-level node declarations are parsed first; the first statement
        that looks like an arrow switches the parser to the arrow phase.

        Returns:
            ParseResult with the (possibly partial) document and all errors.
        """
        nodes = self._parse_nodes()
        arrows = self._parse_arrows()
        return ParseResult(
            document=Document(nodes=nodes, arrows=arrows), errors=list(self.errors)
        )

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def _parse_nodes(self) -> List[ContainerNode]:
        nodes: List[ContainerNode] = []

        while not self._at_end():
            token = self._peek()
            if token.type is TokenType.NEWLINE:
                self._advance()
                continue

            if token.type is TokenType.IDENTIFIER:
                following = self._peek_next()
                if following.type is TokenType.LBRACE:
                    nodes.append(self._parse_node())
                    continue
                if following.type in ARROW_LOOKAHEAD_TYPES:
                    break
                # Neither a node nor an arrow: report it as a node missing '{'
                self._error(
                    f"Expected '{{' after node id '{token.value}', "
                    f"got {following.type.value}",
                    following,
                )
                self._advance()
                self._synchronize(RecoveryContext.STATEMENT)
                continue

            self._error(f"Expected node identifier, got {token.type.value}", token)
            if token.type is TokenType.GROUP and self._peek_next().type is TokenType.LBRACE:
                # Top-level groups are not allowed; drop the whole block
                self._advance()
                self.current = skip_block(self.tokens, self.current)
            else:
                self._synchronize(RecoveryContext.STATEMENT)

        return nodes

    def _parse_arrows(self) -> List[Arrow]:
        arrows: List[Arrow] = []

        while not self._at_end():
            token = self._peek()
            if token.type is TokenType.NEWLINE:
                self._advance()
                continue

            if (
                token.type is TokenType.IDENTIFIER
                and self._peek_next().type is TokenType.LBRACE
            ):
                self._error(
                    "Node declarations must appear before arrows, "
                    f"got node '{token.value}'",
                    token,
                )
                self._parse_node()
                continue

            arrow = self._parse_arrow()
            if arrow is not None:
                arrows.append(arrow)

        return arrows

    # ------------------------------------------------------------------
    # Nodes and groups
    # ------------------------------------------------------------------

    def _parse_node(self) -> ContainerNode:
        """Parse ``IDENT '{' body '}'``; the caller has checked the first two tokens."""
        id_token = self._advance()
        self._advance()  # '{'

        body = _Body(is_group=False, owner=id_token.value)
        self._parse_body(body)

        if self._check(TokenType.RBRACE):
            self._advance()
        else:
            token = self._peek()
            self._error(
                f"Expected '}}' to close node '{id_token.value}', "
                f"got {token.type.value}",
                token,
            )

        return ContainerNode(
            id=id_token.value,
            label=body.label,
            direction=body.direction,
            size=body.size,
            anchors=body.anchors,
            children=tuple(body.children),
            line=id_token.line,
            column=id_token.column,
        )

    def _parse_group(self) -> Optional[GroupNode]:
        group_token = self._advance()  # 'group'

        if not self._check(TokenType.LBRACE):
            token = self._peek()
            self._error(f"Expected '{{' after 'group', got {token.type.value}", token)
            self._synchronize(RecoveryContext.DECLARATION)
            return None
        self._advance()

        body = _Body(is_group=True)
        self._parse_body(body)

        if self._check(TokenType.RBRACE):
            self._advance()
        else:
            token = self._peek()
            self._error(f"Expected '}}' to close group, got {token.type.value}", token)

        return GroupNode(
            direction=body.direction,
            children=tuple(body.children),
            line=group_token.line,
            column=group_token.column,
        )

    def _parse_body(self, body: _Body) -> None:
        while not self._check(TokenType.RBRACE) and not self._at_end():
            token = self._peek()

            if token.type is TokenType.NEWLINE:
                self._advance()
            elif token.type is TokenType.IDENTIFIER:
                if self._peek_next().type is TokenType.LBRACE:
                    body.children.append(self._parse_node())
                elif body.is_group:
                    self._parse_group_property(body)
                else:
                    self._parse_property(body)
            elif token.type is TokenType.GROUP:
                group = self._parse_group()
                if group is not None:
                    body.children.append(group)
            else:
                if body.is_group:
                    message = (
                        f"Expected nested node or group in group, got {token.type.value}"
                    )
                else:
                    message = (
                        "Expected property name, nested node, or group, "
                        f"got {token.type.value}"
                    )
                self._error(message, token)
                self._advance()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    def _parse_property(self, body: _Body) -> None:
        name_token = self._advance()
        name = name_token.value

        if not self._expect_colon(name):
            return

        if name == "label":
            self._parse_label(body)
        elif name == "direction":
            self._parse_direction(body)
        elif name == "size":
            self._parse_size(body)
        elif name == "anchors":
            self._parse_anchors(body)
        else:
            self._error(f"Unknown property '{name}'", name_token)
            self._skip_value()

    def _parse_group_property(self, body: _Body) -> None:
        name_token = self._advance()

        if name_token.value != "direction":
            self._error(
                "Groups can only have 'direction' property, "
                f"got '{name_token.value}'",
                name_token,
            )
            if self._check(TokenType.COLON):
                self._advance()
                self._skip_value()
            return

        if self._expect_colon(name_token.value):
            self._parse_direction(body)

    def _expect_colon(self, property_name: str) -> bool:
        if self._check(TokenType.COLON):
            self._advance()
            return True
        token = self._peek()
        self._error(
            f"Expected ':' after property '{property_name}', got {token.type.value}",
            token,
        )
        self._synchronize(RecoveryContext.PROPERTY)
        return False

    def _parse_label(self, body: _Body) -> None:
        token = self._expect_value(TokenType.STRING, "Expected string value for label")
        if token is not None:
            body.label = token.value

    def _parse_direction(self, body: _Body) -> None:
        token = self._expect_value(
            TokenType.STRING, "Expected string value for direction"
        )
        if token is None:
            return
        try:
            body.direction = Direction(token.value)
        except ValueError:
            self._error(
                f"Invalid direction '{token.value}', "
                "expected 'vertical' or 'horizontal'",
                token,
            )

    def _parse_size(self, body: _Body) -> None:
        token = self._expect_value(TokenType.NUMBER, "Expected number value for size")
        if token is None:
            return
        value = float(token.value)
        if not in_unit_range(value):
            self._error(
                f"Size value {format_number(value)} is out of range, "
                "expected 0.0-1.0",
                token,
                ErrorKind.CONSTRAINT,
            )
            return
        body.size = value

    def _expect_value(self, token_type: TokenType, message: str) -> Optional[Token]:
        if self._check(token_type):
            return self._advance()
        token = self._peek()
        self._error(f"{message}, got {token.type.value}", token)
        self._skip_value()
        return None

    def _skip_value(self) -> None:
        """Skip a single value token, never a body terminator or line break."""
        if not self._at_end() and self._peek().type not in (
            TokenType.RBRACE,
            TokenType.NEWLINE,
        ):
            self._advance()

    # ------------------------------------------------------------------
    # Anchors
    # ------------------------------------------------------------------

    def _parse_anchors(self, body: _Body) -> None:
        if not self._check(TokenType.LBRACE):
            token = self._peek()
            self._error(f"Expected '{{' to start anchors, got {token.type.value}", token)
            self._synchronize(RecoveryContext.PROPERTY)
            return
        self._advance()

        anchors: Dict[str, Tuple[float, float]] = {}
        while True:
            self._skip_newlines()
            if self._check(TokenType.RBRACE):
                self._advance()
                break
            if self._at_end():
                token = self._peek()
                self._error(
                    f"Expected '}}' to close anchors, got {token.type.value}", token
                )
                break

            entry = self._parse_anchor_entry()
            if entry is not None:
                name_token, coordinates = entry
                if name_token.value in anchors:
                    # Reported, but the later entry still replaces the earlier one
                    self._error(
                        f"Duplicate anchor ID '{name_token.value}'", name_token
                    )
                anchors[name_token.value] = coordinates

            saw_newline = self._skip_newlines()
            if self._check(TokenType.COMMA):
                self._advance()
            elif self._check(TokenType.RBRACE) or self._at_end():
                continue
            elif saw_newline and self._check(TokenType.IDENTIFIER):
                continue
            else:
                token = self._peek()
                self._error(
                    f"Expected ',' or '}}' in anchors, got {token.type.value}", token
                )
                self._synchronize(RecoveryContext.ANCHOR_ENTRY)

        body.anchors = anchors

    def _parse_anchor_entry(self) -> Optional[Tuple[Token, Tuple[float, float]]]:
        token = self._peek()
        if token.type is not TokenType.IDENTIFIER:
            self._error(f"Expected anchor identifier, got {token.type.value}", token)
            self._synchronize(RecoveryContext.ANCHOR_ENTRY)
            return None
        name_token = self._advance()

        if not self._check(TokenType.COLON):
            token = self._peek()
            self._error(
                f"Expected ':' after anchor '{name_token.value}', "
                f"got {token.type.value}",
                token,
            )
            self._synchronize(RecoveryContext.ANCHOR_ENTRY)
            return None
        self._advance()

        coordinates = self._parse_coordinates(name_token.value)
        if coordinates is None:
            return None
        return name_token, coordinates

    def _parse_coordinates(self, anchor_name: str) -> Optional[Tuple[float, float]]:
        if not self._check(TokenType.LBRACKET):
            token = self._peek()
            self._error(
                f"Expected '[' to start coordinate array, got {token.type.value}",
                token,
            )
            self._synchronize(RecoveryContext.ANCHOR_ENTRY)
            return None
        self._advance()

        x = self._parse_coordinate(anchor_name, "X")
        if x is None:
            self._synchronize(RecoveryContext.COORDINATES)
            return None

        if not self._check(TokenType.COMMA):
            token = self._peek()
            self._error(
                f"Expected ',' between coordinates, got {token.type.value}", token
            )
            self._synchronize(RecoveryContext.COORDINATES)
            return None
        self._advance()

        y = self._parse_coordinate(anchor_name, "Y")
        if y is None:
            self._synchronize(RecoveryContext.COORDINATES)
            return None

        if not self._check(TokenType.RBRACKET):
            token = self._peek()
            self._error(
                f"Expected ']' to close coordinate array, got {token.type.value}",
                token,
            )
            self._synchronize(RecoveryContext.COORDINATES)
            return None
        self._advance()

        return x, y

    def _parse_coordinate(self, anchor_name: str, axis: str) -> Optional[float]:
        token = self._peek()
        if token.type is not TokenType.NUMBER:
            self._error(
                f"Expected number for {axis} coordinate, got {token.type.value}", token
            )
            return None
        self._advance()

        value = float(token.value)
        if not in_unit_range(value):
            # Out-of-range values are reported but kept on the node
            self._error(
                f"Anchor '{anchor_name}' {axis} coordinate {format_number(value)} "
                "is out of range, expected 0.0-1.0",
                token,
                ErrorKind.CONSTRAINT,
            )
        return value

    # ------------------------------------------------------------------
    # Arrows
    # ------------------------------------------------------------------

    def _parse_arrow(self) -> Optional[Arrow]:
        start = self._peek()
        if start.type not in PATH_SEGMENT_TYPES:
            self._error(
                f"Expected arrow source identifier, got {start.type.value}", start
            )
            self._synchronize(RecoveryContext.STATEMENT)
            return None

        source = self._parse_endpoint()
        if source is None:
            self._synchronize(RecoveryContext.STATEMENT)
            return None

        if not self._check(TokenType.ARROW):
            token = self._peek()
            self._error(
                f"Expected '-->' arrow operator after '{source}', "
                f"got {token.type.value}",
                token,
            )
            self._synchronize(RecoveryContext.STATEMENT)
            return None
        self._advance()

        token = self._peek()
        if token.type not in PATH_SEGMENT_TYPES:
            self._error(
                "Expected arrow target identifier after '-->', "
                f"got {token.type.value}",
                token,
            )
            self._synchronize(RecoveryContext.STATEMENT)
            return None

        target = self._parse_endpoint()
        if target is None:
            self._synchronize(RecoveryContext.STATEMENT)
            return None

        if not self._at_end() and not self._check(TokenType.NEWLINE):
            token = self._peek()
            self._error(
                f"Unexpected {token.type.value} after arrow target '{target}'", token
            )
            self._synchronize(RecoveryContext.STATEMENT)

        return Arrow(source=source, target=target, line=start.line, column=start.column)

    def _parse_endpoint(self) -> Optional[str]:
        """Parse ``segment ('.' segment)* ('#' IDENT)?``; the first segment is checked."""
        segments = [self._advance().value]

        while self._check(TokenType.DOT):
            self._advance()
            token = self._peek()
            if token.type not in PATH_SEGMENT_TYPES:
                self._error(
                    f"Expected identifier after '.' in node path, got {token.type.value}",
                    token,
                )
                return None
            segments.append(self._advance().value)

        endpoint = ".".join(segments)

        if self._check(TokenType.HASH):
            self._advance()
            token = self._peek()
            if token.type is not TokenType.IDENTIFIER:
                self._error(
                    f"Expected anchor identifier after '#', got {token.type.value}",
                    token,
                )
                return None
            endpoint = f"{endpoint}#{self._advance().value}"

        return endpoint

    # ------------------------------------------------------------------
    # Token helpers
    # ------------------------------------------------------------------

    def _peek(self) -> Token:
        return self.tokens[self.current]

    def _peek_next(self) -> Token:
        return self.tokens[min(self.current + 1, len(self.tokens) - 1)]

    def _check(self, token_type: TokenType) -> bool:
        return self._peek().type is token_type

    def _advance(self) -> Token:
        token = self.tokens[self.current]
        if not self._at_end():
            self.current += 1
        return token

    def _at_end(self) -> bool:
        return self._peek().type is TokenType.EOF

    def _skip_newlines(self) -> bool:
        skipped = False
        while self._check(TokenType.NEWLINE):
            self._advance()
            skipped = True
        return skipped

    def _synchronize(self, context: RecoveryContext) -> None:
        self.current = synchronize(self.tokens, self.current, context)

    def _error(
        self, message: str, token: Token, kind: ErrorKind = ErrorKind.SYNTAX
    ) -> None:
        self.errors.append(ValidationError(token.line, token.column, message, kind))


def parse(tokens: List[Token]) -> ParseResult:
    """
    Parse a token list.

    Args:
        tokens: Output of ``tokenize``.

    Returns:
        ParseResult; ``success`` is False when any error was recorded.
    """
    return Parser(tokens).parse()


def parse_arkitecture(source: str) -> ParseResult:
    """
    Tokenize and parse DSL text.

    A tokenizer failure cannot be recovered from; it is returned as a single
    syntax error alongside an empty document.

    Args:
        source: Full DSL text.

    Returns:
        ParseResult with the document and every error found.
    """
    try:
        tokens = tokenize(source)
    except TokenizerError as error:
        return ParseResult(
            errors=[
                ValidationError(error.line, error.column, str(error), ErrorKind.SYNTAX)
            ]
        )
    return parse(tokens)
