"""
Error-recovery policies for the parser.

After a local parse failure the parser records a diagnostic and then skips
tokens until it reaches a point where parsing can safely resume. Each
parsing context has its own policy, kept in one table so the behaviour can
be read (and tested) in isolation from the grammar code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, Sequence

from .tokenizer import Token, TokenType


class RecoveryContext(Enum):
    """Parsing contexts that have a recovery policy."""

    STATEMENT = "statement"  # a top-level node declaration or arrow line
    DECLARATION = "declaration"  # a malformed group header inside a body
    PROPERTY = "property"  # a property with a missing colon or bad value
    ANCHOR_ENTRY = "anchor_entry"  # one `name: [x, y]` entry of an anchors block
    COORDINATES = "coordinates"  # the `[x, y]` array of an anchor entry


@dataclass(frozen=True)
class RecoveryPolicy:
    """
    Where skipping stops for one context.

    Attributes:
        stop_before: Token types that end the skip and are left unconsumed.
        stop_after: Token types that end the skip and are consumed.
    """

    stop_before: FrozenSet[TokenType]
    stop_after: FrozenSet[TokenType] = frozenset()


POLICIES = {
    RecoveryContext.STATEMENT: RecoveryPolicy(
        stop_before=frozenset({TokenType.NEWLINE}),
    ),
    RecoveryContext.DECLARATION: RecoveryPolicy(
        stop_before=frozenset(
            {TokenType.IDENTIFIER, TokenType.RBRACE, TokenType.NEWLINE}
        ),
    ),
    RecoveryContext.PROPERTY: RecoveryPolicy(
        stop_before=frozenset(
            {TokenType.NEWLINE, TokenType.IDENTIFIER, TokenType.RBRACE}
        ),
    ),
    RecoveryContext.ANCHOR_ENTRY: RecoveryPolicy(
        stop_before=frozenset({TokenType.COMMA, TokenType.NEWLINE, TokenType.RBRACE}),
    ),
    RecoveryContext.COORDINATES: RecoveryPolicy(
        stop_before=frozenset({TokenType.NEWLINE, TokenType.RBRACE}),
        stop_after=frozenset({TokenType.RBRACKET}),
    ),
}


def synchronize(
    tokens: Sequence[Token], position: int, context: RecoveryContext
) -> int:
    """
    Skip tokens according to the policy for ``context``.

    EOF always stops the skip. The token at ``position`` is examined like
    any other, so a call made while sitting on a stop token is a no-op.

    Args:
        tokens: Token list (terminated by EOF).
        position: Index to start skipping from.
        context: Recovery context selecting the policy.

    Returns:
        Index of the first token after the skipped region.
    """
    policy = POLICIES[context]
    while position < len(tokens):
        token_type = tokens[position].type
        if token_type is TokenType.EOF or token_type in policy.stop_before:
            return position
        position += 1
        if token_type in policy.stop_after:
            return position
    return position


def skip_block(tokens: Sequence[Token], position: int) -> int:
    """
    Skip a balanced ``{ ... }`` block starting at ``position``.

    Nested braces are matched. An unclosed block runs to EOF.

    Args:
        tokens: Token list (terminated by EOF).
        position: Index of the opening LBRACE.

    Returns:
        Index of the first token after the matching RBRACE, or of EOF.
    """
    depth = 0
    while position < len(tokens):
        token_type = tokens[position].type
        if token_type is TokenType.EOF:
            return position
        position += 1
        if token_type is TokenType.LBRACE:
            depth += 1
        elif token_type is TokenType.RBRACE:
            depth -= 1
            if depth <= 0:
                return position
    return position
