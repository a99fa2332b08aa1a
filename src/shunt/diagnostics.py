"""Error formatting and actionable hints for Shunt output.

Keep this module small and dependency-light: it is imported by the CLI layer
and only depends on the error hierarchy.
"""

from __future__ import annotations

from shunt.errors import (
    ErrorKind,
    ShuntArityError,
    ShuntConfigError,
    ShuntError,
    ShuntInvariantError,
)


def caret_marker(offset: int, length: int, prefix: str | None = None) -> str:
    """Return the underline for `[offset, offset + length)`, or "" for no span.

    When `prefix` (the text on the same line before the span) is given, tabs in
    it are kept so the marker lines up with the rendered source line.
    """

    if length < 1:
        return ""
    if prefix is None:
        pad = " " * max(0, offset)
    else:
        pad = "".join("\t" if c == "\t" else " " for c in prefix)
    if length == 1:
        return pad + "^"
    if length == 2:
        return pad + "^^"
    return pad + "^" + "~" * (length - 2) + "^"


def render_caret(message: str, source: str, offset: int, length: int) -> str:
    """Render `message`, the source line holding `offset` and a marker beneath the span."""

    if length < 1 or not source:
        return message
    start = source.rfind("\n", 0, offset) + 1
    end = source.find("\n", offset)
    if end == -1:
        end = len(source)
    line = source[start:end]
    # Spans never extend past the end of their line.
    length = min(length, max(1, end - offset))
    marker = caret_marker(offset - start, length, prefix=source[start:offset])
    return f"{message}\n{line}\n{marker}"


def render_error(exc: ShuntError) -> str:
    return render_caret(exc.message, exc.source, exc.offset, exc.length)


_HINTS: dict[ErrorKind, str] = {
    ErrorKind.EMPTY_INPUT: "pass a non-empty expression such as `1 + 2`",
    ErrorKind.SCIENTIFIC_NOTATION_SPACING: "write the exponent without spaces, e.g. `2e+10`",
    ErrorKind.UNCLOSED_PAREN: "add the missing `)`",
    ErrorKind.UNMATCHED_CLOSE_PAREN: "remove the extra `)` or add the matching `(`",
    ErrorKind.EMPTY_PARENS: "functions need at least one argument, e.g. `max(1, 2)`",
    ErrorKind.MISSING_OPERATOR: "insert an operator such as `*` between the two operands",
    ErrorKind.UNKNOWN_VARIABLE: "known constants are `pi`, `e` and `tau`",
    ErrorKind.NESTING_TOO_DEEP: "raise [limits] max_depth in shunt.toml",
    ErrorKind.INPUT_TOO_LONG: "raise [limits] max_length in shunt.toml",
}


def format_hint(exc: BaseException) -> str | None:
    """Return an actionable hint for a known error, or None."""

    if isinstance(exc, ShuntConfigError):
        if "Missing shunt.toml" in str(exc):
            return "create a shunt.toml with `version = 1` in your project root"
        return None

    if isinstance(exc, ShuntInvariantError):
        return "this is a bug in shunt; please report the expression that triggered it"

    if isinstance(exc, ShuntArityError):
        return f"{exc.function}() takes exactly {exc.expected} argument(s)"

    if isinstance(exc, ShuntError):
        return _HINTS.get(exc.kind)

    return None


def format_error_with_hint(exc: BaseException) -> str:
    """Format error message (with caret diagnostic) + optional hint for stderr."""

    if isinstance(exc, ShuntError):
        msg = render_error(exc)
    else:
        msg = (str(exc) or repr(exc)).strip()

    result = f"error: {msg}"
    hint = format_hint(exc)
    if hint:
        result += f"\nhint: {hint}"
    return result
