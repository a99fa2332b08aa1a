"""Public entry points: compile and evaluate expression text.

`evaluate` raises `ShuntError` subclasses; `evaluate_result` returns an
`EvalResult` carrying either the value or the error, for callers that prefer
a result value over exception handling.
"""

from __future__ import annotations

from dataclasses import dataclass

from shunt.errors import ErrorKind, ShuntError, ShuntLexError
from shunt.evaluator import Evaluator
from shunt.lexer import Lexer, Token, tokenize
from shunt.parser import DEFAULT_MAX_DEPTH, Parser
from shunt.program import Program

DEFAULT_MAX_LENGTH = 10_000


@dataclass(frozen=True, slots=True)
class EvalResult:
    source: str | None
    value: float | None = None
    error: ShuntError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> float:
        if self.error is not None:
            raise self.error
        assert self.value is not None
        return self.value


def _check_length(source: str | None, max_length: int) -> None:
    if source is not None and len(source) > max_length:
        raise ShuntLexError(
            f"Expression is {len(source)} characters long (limit {max_length})",
            kind=ErrorKind.INPUT_TOO_LONG,
            source=source,
            offset=max_length,
            length=len(source) - max_length,
        )


def compile_expression(
    source: str | None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> Program:
    """Lex and parse `source` into a reusable postfix program."""

    _check_length(source, max_length)
    return Parser(Lexer(source), max_depth=max_depth).parse()


def evaluate(
    source: str | None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> float:
    """Evaluate `source` and return the result as a float."""

    program = compile_expression(source, max_depth=max_depth, max_length=max_length)
    return Evaluator().run(program)


def evaluate_result(
    source: str | None,
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_length: int = DEFAULT_MAX_LENGTH,
) -> EvalResult:
    """Evaluate `source`, capturing any `ShuntError` in the returned result."""

    try:
        value = evaluate(source, max_depth=max_depth, max_length=max_length)
    except ShuntError as e:
        return EvalResult(source=source, error=e)
    return EvalResult(source=source, value=value)


__all__ = [
    "DEFAULT_MAX_LENGTH",
    "EvalResult",
    "Token",
    "compile_expression",
    "evaluate",
    "evaluate_result",
    "tokenize",
]
