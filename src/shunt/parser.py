"""Shunting-yard parser: token stream to postfix `Program`.

The parser is iterative. It keeps an explicit operator stack (pending binary
operators, unary negations, call markers and paren markers), an output list
and one argument counter per open function call, and alternates between
expecting an operand and expecting an operator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto

from shunt.errors import ErrorKind, ShuntArityError, ShuntLexError, ShuntSyntaxError
from shunt.lexer import Lexer, Token, TokenKind
from shunt.program import BinaryOp, Call, Factorial, Instruction, Negate, Number, Program
from shunt.registry import Function, Operator, get_constant, get_function, get_operator

logger = logging.getLogger("shunt.parser")

DEFAULT_MAX_DEPTH = 256

_SIGN_KINDS = {
    TokenKind.PLUS: False,
    TokenKind.MINUS: True,
    TokenKind.PLUS_MINUS: True,
    TokenKind.MINUS_PLUS: True,
}


@dataclass(frozen=True, slots=True)
class _Paren:
    offset: int


@dataclass(frozen=True, slots=True)
class _CallMarker:
    function: Function
    offset: int


@dataclass(frozen=True, slots=True)
class _NegateMarker:
    offset: int


@dataclass(frozen=True, slots=True)
class _PendingOperator:
    operator: Operator
    offset: int


_StackEntry = _Paren | _CallMarker | _NegateMarker | _PendingOperator


class _State(Enum):
    AWAIT_OPERAND = auto()
    AWAIT_OPERATOR = auto()


class Parser:
    def __init__(self, lexer: Lexer, *, max_depth: int = DEFAULT_MAX_DEPTH) -> None:
        self._lexer = lexer
        self._source = lexer.source
        self._max_depth = max_depth
        self._ops: list[_StackEntry] = []
        self._output: list[Instruction] = []
        self._args: list[int] = []
        self._depth = 0

    # -- helpers ---------------------------------------------------------------

    def _next(self) -> Token:
        tok = self._lexer.next()
        if tok.kind is TokenKind.ILLEGAL:
            raise ShuntLexError(
                f"Invalid character: '{tok.literal}'",
                kind=ErrorKind.ILLEGAL_CHARACTER,
                source=self._source,
                offset=tok.offset,
                length=1,
            )
        return tok

    def _syntax_error(
        self, kind: ErrorKind, message: str, offset: int, length: int = 1
    ) -> ShuntSyntaxError:
        return ShuntSyntaxError(
            message, kind=kind, source=self._source, offset=offset, length=length
        )

    def _emit(self, entry: _StackEntry) -> None:
        if isinstance(entry, _NegateMarker):
            self._output.append(Negate(offset=entry.offset))
        elif isinstance(entry, _PendingOperator):
            self._output.append(BinaryOp(operator=entry.operator, offset=entry.offset))
        else:  # pragma: no cover - parens and calls are consumed by `)`
            raise AssertionError(f"unexpected stack entry: {entry!r}")

    def _pop_to_paren(self) -> bool:
        """Emit entries down to (not including) the nearest paren marker.

        Returns False when the stack ran out without finding one.
        """

        while self._ops:
            if isinstance(self._ops[-1], _Paren):
                return True
            self._emit(self._ops.pop())
        return False

    # -- token handlers ------------------------------------------------------

    def _push_operator(self, operator: Operator, tok: Token) -> None:
        while self._ops:
            top = self._ops[-1]
            if isinstance(top, _NegateMarker) or (
                isinstance(top, _PendingOperator)
                and top.operator.precedence >= operator.precedence
            ):
                self._emit(self._ops.pop())
                continue
            break
        self._ops.append(_PendingOperator(operator=operator, offset=tok.offset))

    def _open(self, paren: Token, call: _CallMarker | None = None) -> Token:
        """Push a paren (and its call marker) and return the token after it."""

        self._depth += 1
        if self._depth > self._max_depth:
            raise self._syntax_error(
                ErrorKind.NESTING_TOO_DEEP,
                f"Expression nests deeper than {self._max_depth} levels",
                paren.offset,
            )
        if call is not None:
            self._ops.append(call)
            self._args.append(1)
        self._ops.append(_Paren(offset=paren.offset))

        nxt = self._next()
        if nxt.kind is TokenKind.CLOSE_PAREN:
            if call is not None:
                message = f"{call.function.name}() cannot be called without arguments"
            else:
                message = "Empty parentheses"
            raise self._syntax_error(
                ErrorKind.EMPTY_PARENS, message, paren.offset, nxt.end - paren.offset
            )
        return nxt

    def _comma(self, tok: Token) -> None:
        found = self._pop_to_paren()
        if not found or len(self._ops) < 2 or not isinstance(self._ops[-2], _CallMarker):
            raise self._syntax_error(
                ErrorKind.UNEXPECTED_TOKEN, "',' is only allowed between function arguments", tok.offset
            )
        self._args[-1] += 1

    def _close(self, tok: Token) -> None:
        if not self._pop_to_paren():
            raise self._syntax_error(
                ErrorKind.UNMATCHED_CLOSE_PAREN, "Closing a paren that was never opened", tok.offset
            )
        self._ops.pop()
        self._depth -= 1

        if not self._ops or not isinstance(self._ops[-1], _CallMarker):
            return
        marker = self._ops.pop()
        assert isinstance(marker, _CallMarker)
        received = self._args.pop()
        fn = marker.function
        length = tok.end - marker.offset

        if fn.is_variadic:
            if received < 1:
                raise self._syntax_error(
                    ErrorKind.EMPTY_PARENS,
                    f"{fn.name}() cannot be called without arguments",
                    marker.offset,
                    length,
                )
            arity = received
        elif received != fn.arity:
            raise ShuntArityError(
                function=fn.name,
                expected=fn.arity,
                received=received,
                source=self._source,
                offset=marker.offset,
                length=length,
            )
        else:
            arity = fn.arity
        self._output.append(Call(function=fn, arity=arity, offset=marker.offset, length=length))

    def _finish(self) -> None:
        for entry in self._ops:
            if isinstance(entry, _Paren):
                raise self._syntax_error(
                    ErrorKind.UNCLOSED_PAREN, "Opened paren is not closed", entry.offset
                )
        while self._ops:
            self._emit(self._ops.pop())

    # -- main loop -------------------------------------------------------------

    def parse(self) -> Program:
        state = _State.AWAIT_OPERAND
        tok = self._next()

        while True:
            kind = tok.kind

            if state is _State.AWAIT_OPERAND:
                if kind in _SIGN_KINDS:
                    if _SIGN_KINDS[kind]:
                        self._ops.append(_NegateMarker(offset=tok.offset))
                    tok = self._next()
                    continue

                if kind is TokenKind.NUMBER:
                    self._output.append(
                        Number(float(tok.literal), offset=tok.offset, length=len(tok.literal))
                    )
                    state = _State.AWAIT_OPERATOR
                elif kind is TokenKind.VARIABLE:
                    value = get_constant(tok.literal)
                    if value is None:
                        message = f"Unknown variable: '{tok.literal}'"
                        if get_function(tok.literal) is not None:
                            message += " (functions must be followed by '(')"
                        raise self._syntax_error(
                            ErrorKind.UNKNOWN_VARIABLE, message, tok.offset, len(tok.literal)
                        )
                    self._output.append(Number(value, offset=tok.offset, length=len(tok.literal)))
                    state = _State.AWAIT_OPERATOR
                elif kind is TokenKind.FUNCTION:
                    fn = get_function(tok.literal)
                    if fn is None:
                        raise self._syntax_error(
                            ErrorKind.UNKNOWN_FUNCTION,
                            f"Unknown function: '{tok.literal}'",
                            tok.offset,
                            len(tok.literal),
                        )
                    # The lexer only yields FUNCTION when `(` follows directly.
                    paren = self._next()
                    tok = self._open(paren, _CallMarker(function=fn, offset=tok.offset))
                    continue
                elif kind is TokenKind.OPEN_PAREN:
                    tok = self._open(tok)
                    continue
                elif kind is TokenKind.END:
                    raise self._syntax_error(
                        ErrorKind.MISSING_OPERAND,
                        "Expected an operand but reached the end of the expression",
                        tok.offset,
                    )
                else:
                    raise self._syntax_error(
                        ErrorKind.MISSING_OPERAND,
                        f"Expected an operand but found '{tok.literal}'",
                        tok.offset,
                        len(tok.literal),
                    )
            else:
                operator = get_operator(kind)
                if operator is not None:
                    self._push_operator(operator, tok)
                    state = _State.AWAIT_OPERAND
                elif kind is TokenKind.FACTORIAL:
                    self._output.append(Factorial(offset=tok.offset))
                elif kind is TokenKind.COMMA:
                    self._comma(tok)
                    state = _State.AWAIT_OPERAND
                elif kind is TokenKind.CLOSE_PAREN:
                    self._close(tok)
                elif kind is TokenKind.END:
                    self._finish()
                    break
                else:
                    raise self._syntax_error(
                        ErrorKind.MISSING_OPERATOR,
                        f"Expected an operator before '{tok.literal}'",
                        tok.offset,
                        len(tok.literal),
                    )

            tok = self._next()

        program = Program(source=self._source, instructions=tuple(self._output))
        logger.debug("Parsed %r into %d instructions: %s", self._source, len(program), program)
        return program


def parse(source: str | None, *, max_depth: int = DEFAULT_MAX_DEPTH) -> Program:
    """Lex and parse `source` into a postfix program."""

    return Parser(Lexer(source), max_depth=max_depth).parse()
