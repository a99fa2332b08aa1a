"""Process-wide symbol tables: constants, functions and binary operators.

The tables are built once at import time and exposed through read-only
mappings, so concurrent callers can share them without locking. Arithmetic is
done with numpy ufuncs so division by zero and domain errors produce IEEE-754
`inf`/`nan` instead of Python exceptions (callers run them under
`np.errstate(all="ignore")`).
"""

from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

import numpy as np

from shunt.lexer import TokenKind

NAMESPACE_PREFIXES = ("math.", "ienumerable.")

_INT32_MIN = -(2**31)
_UINT32 = 2**32


class CallableKind(Enum):
    UNARY = 1
    BINARY = 2
    TERNARY = 3
    VARIADIC = 0


@dataclass(frozen=True, slots=True)
class Function:
    """A built-in function; `arity == 0` marks a variadic reducer."""

    name: str
    kind: CallableKind
    fn: Callable[..., float]

    @property
    def arity(self) -> int:
        return self.kind.value

    @property
    def is_variadic(self) -> bool:
        return self.kind is CallableKind.VARIADIC


@dataclass(frozen=True, slots=True)
class Operator:
    """A binary operator bound to a token kind."""

    kind: TokenKind
    symbol: str
    precedence: int
    operation: Callable[[float, float], float]


def normalize_name(symbol: str) -> str:
    """Lower-case `symbol` and strip a leading `Math.`/`IEnumerable.` namespace."""

    name = symbol.lower()
    for prefix in NAMESPACE_PREFIXES:
        if name.startswith(prefix):
            return name[len(prefix) :]
    return name


# --- operators ---------------------------------------------------------------


def _to_int32(value: float) -> int:
    # Truncate toward zero and wrap like a C `int` cast.
    return (int(value) - _INT32_MIN) % _UINT32 + _INT32_MIN


def _shift(left: float, right: float, *, to_left: bool) -> float:
    if not (math.isfinite(left) and math.isfinite(right)):
        return math.nan
    value = _to_int32(left)
    count = _to_int32(right) & 31
    result = value << count if to_left else value >> count
    return float(_to_int32(result))


def _shift_left(left: float, right: float) -> float:
    return _shift(left, right, to_left=True)


def _shift_right(left: float, right: float) -> float:
    return _shift(left, right, to_left=False)


def _percent_of(left: float, right: float) -> float:
    return np.multiply(left, np.divide(right, 100.0))


def _with_sign(op: Callable[[float, float], float], *, negate: bool):
    if negate:
        return lambda left, right: op(left, np.negative(right))
    return lambda left, right: op(left, np.positive(right))


_OPERATOR_TABLE: tuple[tuple[TokenKind, str, int, Callable[[float, float], float]], ...] = (
    (TokenKind.SHIFT_LEFT, "<<", 0, _shift_left),
    (TokenKind.SHIFT_RIGHT, ">>", 0, _shift_right),
    (TokenKind.PLUS, "+", 1, np.add),
    (TokenKind.MINUS, "-", 1, np.subtract),
    (TokenKind.PLUS_MINUS, "+-", 1, _with_sign(np.add, negate=True)),
    (TokenKind.MINUS_PLUS, "-+", 1, _with_sign(np.subtract, negate=False)),
    (TokenKind.MULTIPLY, "*", 2, np.multiply),
    (TokenKind.DIVIDE, "/", 2, np.divide),
    (TokenKind.MODULO, "%", 2, _percent_of),
    (TokenKind.MULTIPLY_MINUS, "*-", 2, _with_sign(np.multiply, negate=True)),
    (TokenKind.MULTIPLY_PLUS, "*+", 2, _with_sign(np.multiply, negate=False)),
    (TokenKind.DIVIDE_MINUS, "/-", 2, _with_sign(np.divide, negate=True)),
    (TokenKind.DIVIDE_PLUS, "/+", 2, _with_sign(np.divide, negate=False)),
    (TokenKind.MODULO_MINUS, "%-", 2, _with_sign(_percent_of, negate=True)),
    (TokenKind.MODULO_PLUS, "%+", 2, _with_sign(_percent_of, negate=False)),
    (TokenKind.EXPONENT, "^", 3, np.power),
)


# --- functions -----------------------------------------------------------------


def _single(args: Sequence[float]) -> float:
    if len(args) != 1:
        raise ValueError(f"expects exactly one argument but received {len(args)}")
    return args[0]


def _single_or_default(args: Sequence[float]) -> float:
    if len(args) > 1:
        raise ValueError(f"expects at most one argument but received {len(args)}")
    return args[0] if args else 0.0


def _max_magnitude(x: float, y: float) -> float:
    ax, ay = abs(x), abs(y)
    if ax > ay or math.isnan(ax):
        return x
    if ax == ay:
        return y if np.signbit(x) else x
    return y


def _min_magnitude(x: float, y: float) -> float:
    ax, ay = abs(x), abs(y)
    if ax < ay or math.isnan(ax):
        return x
    if ax == ay:
        return x if np.signbit(x) else y
    return y


def _ieee_remainder(x: float, y: float) -> float:
    if math.isnan(x) or math.isnan(y) or math.isinf(x) or y == 0:
        return math.nan
    return math.remainder(x, y)


def _fused_multiply_add(x: float, y: float, z: float) -> float:
    return np.add(np.multiply(x, y), z)


_VARIADIC: dict[str, Callable[[Sequence[float]], float]] = {
    "sum": lambda args: np.sum(args),
    "average": lambda args: np.mean(args),
    "min": lambda args: np.min(args),
    "max": lambda args: np.max(args),
    "first": lambda args: args[0],
    "last": lambda args: args[-1],
    "count": lambda args: float(len(args)),
    "length": lambda args: float(len(args)),
    "single": _single,
    "firstordefault": lambda args: args[0] if args else 0.0,
    "lastordefault": lambda args: args[-1] if args else 0.0,
    "singleordefault": _single_or_default,
}

_UNARY: dict[str, Callable[[float], float]] = {
    "abs": np.abs,
    "acos": np.arccos,
    "acosh": np.arccosh,
    "asin": np.arcsin,
    "asinh": np.arcsinh,
    "atan": np.arctan,
    "atanh": np.arctanh,
    "bitdecrement": lambda x: np.nextafter(x, -np.inf),
    "bitincrement": lambda x: np.nextafter(x, np.inf),
    "cbrt": np.cbrt,
    "ceiling": np.ceil,
    "cos": np.cos,
    "cosh": np.cosh,
    "exp": np.exp,
    "floor": np.floor,
    "log": np.log,
    "log10": np.log10,
    "log2": np.log2,
    # np.round rounds half to even.
    "round": np.round,
    "sin": np.sin,
    "sinh": np.sinh,
    "sqrt": np.sqrt,
    "tan": np.tan,
    "tanh": np.tanh,
    "truncate": np.trunc,
}

_BINARY: dict[str, Callable[[float, float], float]] = {
    "atan2": np.arctan2,
    "copysign": np.copysign,
    "ieeeremainder": _ieee_remainder,
    "maxmagnitude": _max_magnitude,
    "minmagnitude": _min_magnitude,
    "mod": np.fmod,
    "pow": np.power,
}

_TERNARY: dict[str, Callable[[float, float, float], float]] = {
    "fusedmultiplyadd": _fused_multiply_add,
}


def _build_functions() -> dict[str, Function]:
    out: dict[str, Function] = {}
    for kind, table in (
        (CallableKind.VARIADIC, _VARIADIC),
        (CallableKind.UNARY, _UNARY),
        (CallableKind.BINARY, _BINARY),
        (CallableKind.TERNARY, _TERNARY),
    ):
        for name, fn in table.items():
            out[name] = Function(name=name, kind=kind, fn=fn)
    return out


CONSTANTS: Mapping[str, float] = MappingProxyType(
    {
        "pi": math.pi,
        "e": math.e,
        "tau": math.tau,
    }
)

FUNCTIONS: Mapping[str, Function] = MappingProxyType(_build_functions())

OPERATORS: Mapping[TokenKind, Operator] = MappingProxyType(
    {
        kind: Operator(kind=kind, symbol=symbol, precedence=prec, operation=op)
        for kind, symbol, prec, op in _OPERATOR_TABLE
    }
)


def get_constant(symbol: str) -> float | None:
    """Resolve a constant by (case/namespace-insensitive) name, or None."""

    return CONSTANTS.get(normalize_name(symbol))


def get_function(symbol: str) -> Function | None:
    """Resolve a function by (case/namespace-insensitive) name, or None."""

    return FUNCTIONS.get(normalize_name(symbol))


def get_operator(kind: TokenKind) -> Operator | None:
    """Return the binary operator for a token kind (None for non-operators)."""

    return OPERATORS.get(kind)


def factorial(value: float) -> float:
    """Postfix `!`: factorial of `value` truncated toward zero."""

    if math.isnan(value):
        return math.nan
    if math.isinf(value):
        return math.inf if value > 0 else math.nan
    n = math.trunc(value)
    if n < 0:
        return math.nan
    if n > 170:
        # 171! does not fit in a double.
        return math.inf
    return float(math.factorial(n))
