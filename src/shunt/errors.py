"""Shunt exception hierarchy.

Keep this module small and dependency-free: it is imported broadly across the
project and by tests. Every expression error carries the source text and the
span it points at so callers can render a caret diagnostic.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(Enum):
    EMPTY_INPUT = "empty_input"
    INPUT_TOO_LONG = "input_too_long"
    ILLEGAL_CHARACTER = "illegal_character"
    SCIENTIFIC_NOTATION_SPACING = "scientific_notation_spacing"
    INVALID_NUMBER = "invalid_number"
    UNKNOWN_VARIABLE = "unknown_variable"
    UNKNOWN_FUNCTION = "unknown_function"
    UNMATCHED_CLOSE_PAREN = "unmatched_close_paren"
    UNCLOSED_PAREN = "unclosed_paren"
    EMPTY_PARENS = "empty_parens"
    MISSING_OPERAND = "missing_operand"
    MISSING_OPERATOR = "missing_operator"
    UNEXPECTED_TOKEN = "unexpected_token"
    NESTING_TOO_DEEP = "nesting_too_deep"
    ARITY_MISMATCH = "arity_mismatch"
    DOMAIN_ERROR = "domain_error"
    INVARIANT_VIOLATION = "invariant_violation"
    INVALID_CONFIG = "invalid_config"


class ShuntError(Exception):
    """Base exception for all Shunt errors."""

    default_kind = ErrorKind.INVARIANT_VIOLATION

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind | None = None,
        source: str = "",
        offset: int = 0,
        length: int = 0,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind if kind is not None else self.default_kind
        self.source = source
        self.offset = offset
        self.length = length

    def to_dict(self) -> dict[str, object]:
        return {
            "type": type(self).__name__,
            "kind": self.kind.value,
            "message": self.message,
            "offset": self.offset,
            "length": self.length,
        }


class ShuntConfigError(ShuntError):
    """Raised for invalid user configuration."""

    default_kind = ErrorKind.INVALID_CONFIG


class ShuntLexError(ShuntError):
    """Raised when the input cannot be split into tokens."""

    default_kind = ErrorKind.ILLEGAL_CHARACTER


class ShuntSyntaxError(ShuntError):
    """Raised when the token stream does not form a valid expression."""

    default_kind = ErrorKind.UNEXPECTED_TOKEN


class ShuntArityError(ShuntError):
    """Raised when a function call receives the wrong number of arguments."""

    default_kind = ErrorKind.ARITY_MISMATCH

    def __init__(
        self,
        *,
        function: str,
        expected: int,
        received: int,
        source: str = "",
        offset: int = 0,
        length: int = 0,
    ) -> None:
        if received < expected:
            prefix = "Lacking arguments"
        else:
            prefix = "Too many arguments"
        super().__init__(
            f"{prefix}: {function}() expects {expected} arguments but received {received}",
            source=source,
            offset=offset,
            length=length,
        )
        self.function = function
        self.expected = expected
        self.received = received

    def to_dict(self) -> dict[str, object]:
        data = super().to_dict()
        data.update(function=self.function, expected=self.expected, received=self.received)
        return data


class ShuntEvaluationError(ShuntError):
    """Raised when a well-formed program cannot be evaluated."""

    default_kind = ErrorKind.DOMAIN_ERROR


class ShuntInvariantError(ShuntError):
    """Raised when the evaluator finds a malformed program (a parser defect)."""

    default_kind = ErrorKind.INVARIANT_VIOLATION
