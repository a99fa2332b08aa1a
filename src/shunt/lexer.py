"""Pull-based lexer: expression text to a stream of tokens.

`Lexer.next()` returns exactly one token per call and keeps returning an `END`
token once the input is exhausted. Offsets are indices into the original
text so diagnostics can underline the exact span.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum, auto

from shunt.errors import ErrorKind, ShuntLexError

logger = logging.getLogger("shunt.lexer")


class TokenKind(Enum):
    """All lexical token types produced by the lexer."""

    PLUS = auto()  # +
    MINUS = auto()  # -
    MULTIPLY = auto()  # *
    DIVIDE = auto()  # /
    MODULO = auto()  # % (percentage of)
    EXPONENT = auto()  # ^
    SHIFT_LEFT = auto()  # <<
    SHIFT_RIGHT = auto()  # >>
    PLUS_MINUS = auto()  # +-
    MINUS_PLUS = auto()  # -+
    MULTIPLY_MINUS = auto()  # *-
    MULTIPLY_PLUS = auto()  # *+
    DIVIDE_MINUS = auto()  # /-
    DIVIDE_PLUS = auto()  # /+
    MODULO_MINUS = auto()  # %-
    MODULO_PLUS = auto()  # %+
    FACTORIAL = auto()  # !
    NUMBER = auto()
    VARIABLE = auto()
    FUNCTION = auto()
    OPEN_PAREN = auto()
    CLOSE_PAREN = auto()
    COMMA = auto()
    END = auto()
    ILLEGAL = auto()


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexical token."""

    kind: TokenKind
    literal: str
    offset: int

    @property
    def end(self) -> int:
        return self.offset + len(self.literal)

    def __str__(self) -> str:
        return self.literal


# Two-character lexemes come first so `<<` wins over a lone `<` and `*-` over `*`.
OPERATOR_LEXEMES: dict[str, TokenKind] = {
    "<<": TokenKind.SHIFT_LEFT,
    ">>": TokenKind.SHIFT_RIGHT,
    "+-": TokenKind.PLUS_MINUS,
    "-+": TokenKind.MINUS_PLUS,
    "*-": TokenKind.MULTIPLY_MINUS,
    "*+": TokenKind.MULTIPLY_PLUS,
    "/-": TokenKind.DIVIDE_MINUS,
    "/+": TokenKind.DIVIDE_PLUS,
    "%-": TokenKind.MODULO_MINUS,
    "%+": TokenKind.MODULO_PLUS,
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.MULTIPLY,
    "/": TokenKind.DIVIDE,
    "%": TokenKind.MODULO,
    "^": TokenKind.EXPONENT,
    "!": TokenKind.FACTORIAL,
    "(": TokenKind.OPEN_PAREN,
    ")": TokenKind.CLOSE_PAREN,
    ",": TokenKind.COMMA,
}

_MAX_LEXEME = max(len(k) for k in OPERATOR_LEXEMES)


def _is_digit(c: str) -> bool:
    return "0" <= c <= "9"


def _is_letter(c: str) -> bool:
    return ("a" <= c <= "z") or ("A" <= c <= "Z") or c == "_"


def _is_symbol_char(c: str) -> bool:
    return _is_letter(c) or _is_digit(c) or c == "."


class Lexer:
    """Stateful cursor over the source text."""

    def __init__(self, source: str | None) -> None:
        if source is None:
            raise ShuntLexError("Expression cannot be null", kind=ErrorKind.EMPTY_INPUT)
        if source == "":
            raise ShuntLexError("Expression cannot be empty", kind=ErrorKind.EMPTY_INPUT)
        self.source = source
        self.index = 0

    def __iter__(self) -> Iterator[Token]:
        while True:
            tok = self.next()
            yield tok
            if tok.kind is TokenKind.END:
                return

    def _peek(self, at: int) -> str:
        return self.source[at] if at < len(self.source) else ""

    def _error(self, kind: ErrorKind, message: str, offset: int, length: int) -> ShuntLexError:
        return ShuntLexError(
            message, kind=kind, source=self.source, offset=offset, length=length
        )

    def next(self) -> Token:
        src = self.source
        i = self.index
        while i < len(src) and src[i].isspace():
            i += 1
        self.index = i

        if i >= len(src):
            return Token(TokenKind.END, "", len(src))

        c = src[i]
        if _is_digit(c) or (c == "." and _is_digit(self._peek(i + 1))):
            return self._scan_number(i)
        if _is_letter(c):
            return self._scan_symbol(i)

        for width in range(_MAX_LEXEME, 0, -1):
            lexeme = src[i : i + width]
            kind = OPERATOR_LEXEMES.get(lexeme)
            if kind is not None and len(lexeme) == width:
                self.index = i + width
                return Token(kind, lexeme, i)

        self.index = i + 1
        return Token(TokenKind.ILLEGAL, c, i)

    def _scan_number(self, start: int) -> Token:
        src = self.source
        i = start
        while _is_digit(self._peek(i)):
            i += 1
        if self._peek(i) == ".":
            i += 1
            while _is_digit(self._peek(i)):
                i += 1

        if self._peek(i) in ("e", "E"):
            e_at = i
            nxt = self._peek(i + 1)
            if nxt.isspace():
                raise self._error(
                    ErrorKind.SCIENTIFIC_NOTATION_SPACING,
                    "Scientific notation cannot contain spaces",
                    e_at,
                    2,
                )
            j = i + 1
            if nxt in ("+", "-"):
                j += 1
            if _is_digit(self._peek(j)):
                while _is_digit(self._peek(j)):
                    j += 1
                i = j
            else:
                raise self._invalid_number(start)

        if _is_symbol_char(self._peek(i)):
            raise self._invalid_number(start)

        self.index = i
        return Token(TokenKind.NUMBER, src[start:i], start)

    def _invalid_number(self, start: int) -> ShuntLexError:
        end = start
        while _is_symbol_char(self._peek(end)):
            end += 1
        literal = self.source[start:end]
        return self._error(
            ErrorKind.INVALID_NUMBER, f"Invalid number: '{literal}'", start, end - start
        )

    def _scan_symbol(self, start: int) -> Token:
        i = start
        while _is_symbol_char(self._peek(i)):
            i += 1
        self.index = i
        literal = self.source[start:i]
        kind = TokenKind.FUNCTION if self._peek(i) == "(" else TokenKind.VARIABLE
        return Token(kind, literal, start)


def tokenize(source: str | None) -> list[Token]:
    """Lex `source` completely, including the trailing END token."""

    tokens = list(Lexer(source))
    logger.debug("Lexed %d tokens from %r", len(tokens), source)
    return tokens
