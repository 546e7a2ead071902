"""
Tokenizer (lexer) for the Storie scripting language.

Converts script source into a flat stream of tokens for the parser.
Indentation is tracked per logical line and turned into synthetic
INDENT/DEDENT tokens, so the parser never has to look at whitespace.

Keywords are not recognized here: ``var``, ``if``, ``and``, ``true`` and
friends all come out as IDENTIFIER tokens and the parser decides what
they mean.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from .errors import TokenizerError
from .limits import ScriptLimits, check_source_length


class TokenType(Enum):
    """Token types produced by the tokenizer."""

    # Literals
    INT = "INT"
    FLOAT = "FLOAT"
    STRING = "STRING"

    # Identifiers (including keywords)
    IDENTIFIER = "IDENTIFIER"

    # Operators
    OPERATOR = "OPERATOR"

    # Delimiters
    LPAREN = "LPAREN"
    RPAREN = "RPAREN"
    COMMA = "COMMA"
    COLON = "COLON"

    # Layout
    NEWLINE = "NEWLINE"
    INDENT = "INDENT"
    DEDENT = "DEDENT"

    # Special
    EOF = "EOF"


@dataclass(frozen=True)
class Token:
    """A token produced by the tokenizer."""

    type: TokenType
    value: str
    line: int
    column: int


PUNCTUATION = {
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
}

SINGLE_CHAR_OPERATORS = ("+", "-", "*", "/", "%", "=", "<", ">")

TWO_CHAR_OPERATORS = ("==", "!=", "<=", ">=")


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_identifier_start(ch: str) -> bool:
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ch == "_"


def _is_identifier_part(ch: str) -> bool:
    return _is_identifier_start(ch) or _is_digit(ch)


def _is_blank(ch: str) -> bool:
    return ch in (" ", "\t")


class Tokenizer:
    """Tokenizer for script sources."""

    def __init__(self, source: str, limits: Optional[ScriptLimits] = None):
        self._source = source
        self._limits = limits
        self._tokens: List[Token] = []
        self._indent_stack: List[int] = [0]
        # (line, column) of every currently open '('
        self._open_parens: List[Tuple[int, int]] = []
        self._line_no = 0
        self._text = ""
        self._pos = 0

    def tokenize(self) -> List[Token]:
        """Tokenizes the whole source and returns all tokens."""
        check_source_length(self._source, self._limits)

        lines = self._source.split("\n")
        for index, raw in enumerate(lines):
            self._line_no = index + 1
            self._text = raw[:-1] if raw.endswith("\r") else raw
            self._pos = 0
            self._scan_line()

        if self._open_parens:
            line, column = self._open_parens[-1]
            raise TokenizerError("Unclosed '('", line, column, self._source)

        end_line = max(len(lines), 1)
        while len(self._indent_stack) > 1:
            self._indent_stack.pop()
            self._add_token(TokenType.DEDENT, "", end_line, 1)

        self._add_token(TokenType.EOF, "", end_line, len(self._text) + 1)
        return self._tokens

    def _add_token(self, token_type: TokenType, value: str, line: int, column: int) -> None:
        self._tokens.append(Token(token_type, value, line, column))

    def _error(self, message: str, column: int) -> TokenizerError:
        return TokenizerError(message, self._line_no, column, self._source)

    def _peek(self, offset: int = 0) -> str:
        index = self._pos + offset
        if index >= len(self._text):
            return "\0"
        return self._text[index]

    # ============================================================
    # Line Handling
    # ============================================================

    def _scan_line(self) -> None:
        continued = bool(self._open_parens)

        if not continued:
            while _is_blank(self._peek()):
                self._pos += 1

            # Blank and comment-only lines carry no tokens at all
            if self._pos >= len(self._text) or self._peek() == "#":
                return

            self._handle_indentation(self._pos)

        while self._pos < len(self._text):
            if not self._scan_token():
                break

        if not self._open_parens:
            self._add_token(TokenType.NEWLINE, "", self._line_no, len(self._text) + 1)

    def _handle_indentation(self, width: int) -> None:
        current = self._indent_stack[-1]

        if width > current:
            self._indent_stack.append(width)
            self._add_token(TokenType.INDENT, "", self._line_no, 1)
            return

        while width < self._indent_stack[-1]:
            self._indent_stack.pop()
            self._add_token(TokenType.DEDENT, "", self._line_no, 1)

        if width != self._indent_stack[-1]:
            raise self._error(
                f"Inconsistent indentation: width {width} does not match "
                "any enclosing block",
                width + 1,
            )

    # ============================================================
    # Token Scanning
    # ============================================================

    def _scan_token(self) -> bool:
        """Scans one token; returns False when the rest of the line is a comment."""
        ch = self._peek()
        column = self._pos + 1

        if _is_blank(ch):
            self._pos += 1
            return True

        if ch == "#":
            return False

        two = ch + self._peek(1)
        if two in TWO_CHAR_OPERATORS:
            self._pos += 2
            self._add_token(TokenType.OPERATOR, two, self._line_no, column)
            return True

        if ch in SINGLE_CHAR_OPERATORS:
            self._pos += 1
            self._add_token(TokenType.OPERATOR, ch, self._line_no, column)
            return True

        if ch in PUNCTUATION:
            self._pos += 1
            self._track_paren(ch, column)
            self._add_token(PUNCTUATION[ch], ch, self._line_no, column)
            return True

        if ch == '"' or ch == "'":
            self._scan_string(ch, column)
            return True

        if _is_digit(ch):
            self._scan_number(column)
            return True

        if _is_identifier_start(ch):
            self._scan_identifier(column)
            return True

        if ch == "!":
            raise self._error("Unexpected '!'. Did you mean '!='?", column)

        raise self._error(f"Unexpected character: '{ch}'", column)

    def _track_paren(self, ch: str, column: int) -> None:
        if ch == "(":
            self._open_parens.append((self._line_no, column))
        elif ch == ")" and self._open_parens:
            self._open_parens.pop()

    def _scan_string(self, quote: str, column: int) -> None:
        # Skip opening quote
        self._pos += 1
        start = self._pos

        while self._pos < len(self._text) and self._text[self._pos] != quote:
            self._pos += 1

        if self._pos >= len(self._text):
            raise self._error("Unterminated string", column)

        value = self._text[start : self._pos]
        # Consume closing quote
        self._pos += 1
        self._add_token(TokenType.STRING, value, self._line_no, column)

    def _scan_number(self, column: int) -> None:
        start = self._pos
        token_type = TokenType.INT

        while _is_digit(self._peek()):
            self._pos += 1

        # Fractional part
        if self._peek() == "." and _is_digit(self._peek(1)):
            token_type = TokenType.FLOAT
            self._pos += 1
            while _is_digit(self._peek()):
                self._pos += 1

        self._add_token(token_type, self._text[start : self._pos], self._line_no, column)

    def _scan_identifier(self, column: int) -> None:
        start = self._pos

        while _is_identifier_part(self._peek()):
            self._pos += 1

        self._add_token(
            TokenType.IDENTIFIER, self._text[start : self._pos], self._line_no, column
        )


def tokenize(source: str, limits: Optional[ScriptLimits] = None) -> List[Token]:
    """
    Tokenizes script source into tokens.

    Args:
        source: The script source to tokenize
        limits: Optional script limits

    Returns:
        List of tokens, always terminated by an EOF token

    Raises:
        TokenizerError: If the source contains invalid tokens or indentation
    """
    tokenizer = Tokenizer(source, limits)
    return tokenizer.tokenize()
