from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version

from shunt.errors import (
    ErrorKind,
    ShuntArityError,
    ShuntConfigError,
    ShuntError,
    ShuntEvaluationError,
    ShuntInvariantError,
    ShuntLexError,
    ShuntSyntaxError,
)
from shunt.lexer import Token, TokenKind
from shunt.program import Program
from shunt.runtime import EvalResult, compile_expression, evaluate, evaluate_result, tokenize


def _package_version() -> str:
    try:
        return version("shunt")
    except PackageNotFoundError:
        # Running from a source checkout, or otherwise not installed.
        return "0.0.0"


__version__ = _package_version()

__all__ = [
    "ErrorKind",
    "EvalResult",
    "Program",
    "ShuntArityError",
    "ShuntConfigError",
    "ShuntError",
    "ShuntEvaluationError",
    "ShuntInvariantError",
    "ShuntLexError",
    "ShuntSyntaxError",
    "Token",
    "TokenKind",
    "__version__",
    "compile_expression",
    "evaluate",
    "evaluate_result",
    "tokenize",
]
