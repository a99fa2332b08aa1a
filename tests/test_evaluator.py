from __future__ import annotations

import math

import pytest

from shunt.errors import ErrorKind, ShuntEvaluationError, ShuntInvariantError
from shunt.evaluator import Evaluator, run
from shunt.lexer import TokenKind
from shunt.parser import parse
from shunt.program import BinaryOp, Call, Negate, Number, Program
from shunt.registry import get_function, get_operator


def _eval(source: str) -> float:
    return run(parse(source))


# --- arithmetic ---


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        ("1 - 2 * 3", -5.0),
        ("(1 - 2) * 3", -3.0),
        ("4 ^ 3 ^ 2", 4096.0),
        ("25%200", 50.0),
        ("200%25", 50.0),
        ("9>>3 /+ 1.2", 2.0),
        ("4>>8>>1", 0.0),
        ("+5.7*4<<6", 1408.0),
        ("6.7 /+ 3>>1", 1.0),
        ("-5 << 3", -40.0),
        ("-.5<<3", 0.0),
        ("5!", 120.0),
        ("-5!", -120.0),
        ("(-0.5)!", 1.0),
        ("2 ^ -1", 0.5),
        ("-2 ^ 2", 4.0),
        ("10 +- 4", 6.0),
        ("10 -+ 4", 6.0),
        ("3 *- 2", -6.0),
        ("50 %- 10", -5.0),
    ],
)
def test_arithmetic(source: str, expected: float) -> None:
    assert _eval(source) == expected


def test_compound_division() -> None:
    assert _eval("19e-11 /- 12") == 19e-11 / -12.0


def test_division_by_zero_is_ieee() -> None:
    assert _eval("1 / 0") == math.inf
    assert _eval("7.9/-0") == -math.inf
    assert math.isnan(_eval("0 / 0"))


def test_domain_errors_yield_nan() -> None:
    assert math.isnan(_eval("log(-42)"))
    assert math.isnan(_eval("sqrt(-1)"))


def test_negated_average_to_the_fourth() -> None:
    assert _eval("(-average(2,3,5)^ 4)") == pytest.approx((10 / 3) ** 4)


def test_factorial_of_constant_truncates() -> None:
    assert _eval("Math.PI!") == 6.0
    assert _eval("2e-13!") == 1.0


def test_result_is_plain_float() -> None:
    value = _eval("1 + 2")
    assert type(value) is float


# --- calls ---


def test_variadic_arguments_keep_order() -> None:
    assert _eval("first(3, 1, 2)") == 3.0
    assert _eval("last(3, 1, 2)") == 2.0
    assert _eval("count(3, 1, 2)") == 3.0


def test_fixed_arity_argument_order() -> None:
    assert _eval("pow(2, 10)") == 1024.0
    assert _eval("atan2(1, 0)") == pytest.approx(math.pi / 2)
    assert _eval("fusedmultiplyadd(2, 3, 4)") == 10.0


def test_reducer_domain_error_carries_call_span() -> None:
    with pytest.raises(ShuntEvaluationError) as exc:
        _eval("1 + single(1, 2)")
    err = exc.value
    assert err.kind is ErrorKind.DOMAIN_ERROR
    assert err.offset == 4
    assert err.length == len("single(1, 2)")
    assert err.message.startswith("single()")


# --- hand-built programs ---


def test_stack_underflow_is_missing_operand() -> None:
    plus = get_operator(TokenKind.PLUS)
    assert plus is not None
    program = Program(source="1 +", instructions=(Number(1.0), BinaryOp(plus, offset=2)))
    with pytest.raises(ShuntEvaluationError) as exc:
        Evaluator().run(program)
    assert exc.value.kind is ErrorKind.MISSING_OPERAND
    assert exc.value.offset == 2
    assert "right operand" in exc.value.message


def test_negate_underflow() -> None:
    program = Program(source="-", instructions=(Negate(offset=0),))
    with pytest.raises(ShuntEvaluationError) as exc:
        run(program)
    assert exc.value.kind is ErrorKind.MISSING_OPERAND


def test_leftover_values_are_an_invariant_error() -> None:
    program = Program(source="1 2", instructions=(Number(1.0), Number(2.0)))
    with pytest.raises(ShuntInvariantError) as exc:
        run(program)
    assert "2 values" in exc.value.message


def test_empty_program_is_an_invariant_error() -> None:
    with pytest.raises(ShuntInvariantError):
        run(Program(source="", instructions=()))


def test_mismatched_fixed_call_arity_is_an_invariant_error() -> None:
    fn = get_function("pow")
    assert fn is not None
    program = Program(
        source="pow(1)",
        instructions=(Number(1.0), Call(fn, arity=1, offset=0, length=6)),
    )
    with pytest.raises(ShuntInvariantError):
        run(program)


def test_evaluator_holds_no_state_between_runs() -> None:
    evaluator = Evaluator()
    program = parse("2 * (3 + 4)")
    assert evaluator.run(program) == 14.0
    assert evaluator.run(program) == 14.0
