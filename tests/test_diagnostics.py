"""Tests for shunt.diagnostics: caret rendering and actionable hints."""

from __future__ import annotations

import pytest

from shunt.diagnostics import (
    caret_marker,
    format_error_with_hint,
    format_hint,
    render_caret,
    render_error,
)
from shunt.errors import (
    ErrorKind,
    ShuntArityError,
    ShuntConfigError,
    ShuntError,
    ShuntInvariantError,
    ShuntSyntaxError,
)
from shunt.runtime import evaluate

# --- caret_marker ---


@pytest.mark.parametrize(
    ("offset", "length", "expected"),
    [
        (0, 1, "^"),
        (3, 1, "   ^"),
        (2, 2, "  ^^"),
        (0, 3, "^~^"),
        (1, 6, " ^~~~~^"),
        (4, 0, ""),
    ],
)
def test_caret_marker(offset: int, length: int, expected: str) -> None:
    assert caret_marker(offset, length) == expected


# --- render_caret / render_error ---


def test_render_caret_three_lines() -> None:
    out = render_caret("Unknown function: 'avg'", "avg(2,3,5)", 0, 3)
    assert out == "Unknown function: 'avg'\navg(2,3,5)\n^~^"


def test_render_caret_without_span_is_message_only() -> None:
    assert render_caret("Expression cannot be empty", "", 0, 0) == "Expression cannot be empty"
    assert render_caret("boom", "1 + 2", 0, 0) == "boom"


def _error_for(source: str) -> ShuntError:
    with pytest.raises(ShuntError) as exc:
        evaluate(source)
    return exc.value


def test_render_error_unmatched_paren() -> None:
    out = render_error(_error_for("6 +3) /5"))
    assert out.splitlines() == ["Closing a paren that was never opened", "6 +3) /5", "    ^"]


def test_render_error_scientific_notation() -> None:
    out = render_error(_error_for("2e +10"))
    assert out.splitlines()[-1] == " ^^"


def test_render_error_arity_covers_call() -> None:
    out = render_error(_error_for("Math.Pow(8)"))
    assert out.splitlines()[-1] == "^" + "~" * 9 + "^"


def test_caret_marker_keeps_tabs_from_prefix() -> None:
    assert caret_marker(4, 1, prefix="1 +\t") == "   \t^"


def test_render_error_after_tab_lines_up() -> None:
    out = render_error(_error_for("1 +\t$"))
    assert out.splitlines() == ["Invalid character: '$'", "1 +\t$", "   \t^"]


def test_render_error_shows_only_the_offending_line() -> None:
    out = render_error(_error_for("1 +\n  avg(2)"))
    assert out.splitlines() == ["Unknown function: 'avg'", "  avg(2)", "  ^~^"]


def test_render_caret_clips_span_to_its_line() -> None:
    out = render_caret("too long", "12\n34", 0, 5)
    assert out.splitlines() == ["too long", "12", "^^"]


# --- format_hint ---


def test_hint_for_missing_config() -> None:
    hint = format_hint(ShuntConfigError("Missing shunt.toml at: /tmp/x/shunt.toml"))
    assert hint is not None
    assert "version = 1" in hint


def test_no_hint_for_other_config_errors() -> None:
    assert format_hint(ShuntConfigError("Expected limits.max_depth to be an integer.")) is None


def test_hint_for_invariant_error() -> None:
    hint = format_hint(ShuntInvariantError("stack"))
    assert hint is not None
    assert "bug" in hint


def test_hint_for_arity_error() -> None:
    err = ShuntArityError(function="pow", expected=2, received=1)
    assert format_hint(err) == "pow() takes exactly 2 argument(s)"


def test_hint_by_kind() -> None:
    err = ShuntSyntaxError("x", kind=ErrorKind.NESTING_TOO_DEEP)
    hint = format_hint(err)
    assert hint is not None
    assert "max_depth" in hint


def test_no_hint_for_unrelated_exception() -> None:
    assert format_hint(RuntimeError("x")) is None


# --- format_error_with_hint ---


def test_format_error_with_hint_includes_caret_and_hint() -> None:
    out = format_error_with_hint(_error_for("(1 + 2"))
    lines = out.splitlines()
    assert lines[0] == "error: Opened paren is not closed"
    assert lines[1] == "(1 + 2"
    assert lines[2] == "^"
    assert lines[3] == "hint: add the missing `)`"


def test_format_error_without_hint() -> None:
    out = format_error_with_hint(_error_for("1 + $"))
    assert out.startswith("error: Invalid character: '$'")
    assert "hint:" not in out


def test_format_plain_exception() -> None:
    assert format_error_with_hint(ValueError("bad")) == "error: bad"
