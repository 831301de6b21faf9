"""
Tokenizer for the arkitecture DSL.

Converts source text into a flat list of tokens with line/column positions.
This is the only stage that fails fast: an unexpected character or an
unterminated string raises ``TokenizerError`` since a broken character
stream cannot be resynchronized.

Notes on the lexical grammar:

- ``#`` starts a line comment when it is at column 1 or follows whitespace;
  directly after other text it is the anchor separator (``node#anchor``).
- Newlines are tokens. They separate statements at the top level and
  inside node and group bodies.
- Numbers are unsigned. A leading ``-`` is never part of a number, so
  ``-0.1`` is reported as an unexpected ``-``.
- ``-->`` is matched before any single-character handling.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List


class TokenType(Enum):
    """Kinds of tokens produced by the tokenizer."""

    IDENTIFIER = "IDENTIFIER"
    STRING = "STRING"
    NUMBER = "NUMBER"
    LBRACE = "LBRACE"  # {
    RBRACE = "RBRACE"  # }
    LBRACKET = "LBRACKET"  # [
    RBRACKET = "RBRACKET"  # ]
    COLON = "COLON"  # :
    COMMA = "COMMA"  # ,
    ARROW = "ARROW"  # -->
    DOT = "DOT"  # .
    HASH = "HASH"  # #
    GROUP = "GROUP"  # group keyword
    NEWLINE = "NEWLINE"
    EOF = "EOF"


SINGLE_CHAR_TOKENS = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    ":": TokenType.COLON,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
}

ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
}

GROUP_KEYWORD = "group"
ARROW_OPERATOR = "-->"


@dataclass(frozen=True)
class Token:
    """
    A lexical token.

    Attributes:
        type: Kind of token.
        value: Source text, or the decoded contents for STRING tokens.
        line: 1-based line where the token starts.
        column: 1-based column where the token starts.
    """

    type: TokenType
    value: str
    line: int
    column: int


class TokenizerError(Exception):
    """Raised on characters or literals that cannot be tokenized."""

    def __init__(self, message: str, line: int, column: int):
        super().__init__(f"{message} at line {line}, column {column}")
        self.reason = message
        self.line = line
        self.column = column


class Tokenizer:
    """Scans DSL source text into tokens."""

    def __init__(self, source: str):
        self.source = source
        self.position = 0
        self.line = 1
        self.column = 1

    def tokenize(self) -> List[Token]:
        """
        Scan the whole input.

        Returns:
            All tokens, always terminated by a single EOF token.

        Raises:
            TokenizerError: On an unexpected character or unterminated string.
        """
        tokens: List[Token] = []
        while True:
            self._skip_whitespace_and_comments()
            if self._at_end():
                break
            tokens.append(self._next_token())

        tokens.append(Token(TokenType.EOF, "", self.line, self.column))
        return tokens

    def _next_token(self) -> Token:
        line, column = self.line, self.column
        char = self._peek()

        if char == "#":
            self._advance()
            return Token(TokenType.HASH, "#", line, column)

        if char == "\n":
            self._advance()
            return Token(TokenType.NEWLINE, "\n", line, column)

        if self.source.startswith(ARROW_OPERATOR, self.position):
            for _ in ARROW_OPERATOR:
                self._advance()
            return Token(TokenType.ARROW, ARROW_OPERATOR, line, column)

        if char in SINGLE_CHAR_TOKENS:
            self._advance()
            return Token(SINGLE_CHAR_TOKENS[char], char, line, column)

        if char == '"':
            return self._scan_string(line, column)

        if _is_digit(char):
            return self._scan_number(line, column)

        if _is_alpha(char):
            return self._scan_identifier(line, column)

        raise TokenizerError(f"Unexpected character '{char}'", line, column)

    def _scan_string(self, line: int, column: int) -> Token:
        self._advance()  # opening quote
        chars: List[str] = []

        while not self._at_end() and self._peek() != '"':
            char = self._advance()
            if char != "\\":
                chars.append(char)
                continue
            if self._at_end():
                raise TokenizerError("Unterminated string escape", line, column)
            escaped = self._advance()
            # Unknown escapes keep the escaped character as-is
            chars.append(ESCAPES.get(escaped, escaped))

        if self._at_end():
            raise TokenizerError("Unterminated string", line, column)

        self._advance()  # closing quote
        return Token(TokenType.STRING, "".join(chars), line, column)

    def _scan_number(self, line: int, column: int) -> Token:
        start = self.position
        while _is_digit(self._peek()):
            self._advance()

        # A dot is only part of the number when a digit follows it
        if self._peek() == "." and _is_digit(self._peek(1)):
            self._advance()
            while _is_digit(self._peek()):
                self._advance()

        return Token(TokenType.NUMBER, self.source[start : self.position], line, column)

    def _scan_identifier(self, line: int, column: int) -> Token:
        start = self.position
        while _is_alpha(self._peek()) or _is_digit(self._peek()):
            self._advance()

        text = self.source[start : self.position]
        token_type = TokenType.GROUP if text == GROUP_KEYWORD else TokenType.IDENTIFIER
        return Token(token_type, text, line, column)

    def _skip_whitespace_and_comments(self) -> None:
        while not self._at_end():
            char = self._peek()
            if char in (" ", "\t", "\r"):
                self._advance()
            elif char == "#" and self._starts_comment():
                while not self._at_end() and self._peek() != "\n":
                    self._advance()
            else:
                break

    def _starts_comment(self) -> bool:
        if self.column == 1 or self.position == 0:
            return True
        return self.source[self.position - 1] in (" ", "\t", "\r", "\n")

    def _peek(self, offset: int = 0) -> str:
        index = self.position + offset
        if index >= len(self.source):
            return ""
        return self.source[index]

    def _advance(self) -> str:
        char = self.source[self.position]
        self.position += 1
        if char == "\n":
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return char

    def _at_end(self) -> bool:
        return self.position >= len(self.source)


def _is_digit(char: str) -> bool:
    return "0" <= char <= "9"


def _is_alpha(char: str) -> bool:
    return ("a" <= char <= "z") or ("A" <= char <= "Z") or char == "_"


def tokenize(source: str) -> List[Token]:
    """
    Convenience function to tokenize DSL source.

    Args:
        source: Full DSL text.

    Returns:
        List of tokens ending with EOF.
    """
    return Tokenizer(source).tokenize()
