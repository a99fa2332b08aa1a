import pytest

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


def test_all_errors_are_subclasses_of_shunt_error() -> None:
    assert issubclass(ShuntConfigError, ShuntError)
    assert issubclass(ShuntLexError, ShuntError)
    assert issubclass(ShuntSyntaxError, ShuntError)
    assert issubclass(ShuntArityError, ShuntError)
    assert issubclass(ShuntEvaluationError, ShuntError)
    assert issubclass(ShuntInvariantError, ShuntError)


def test_error_message_is_preserved() -> None:
    msg = "boom"
    err = ShuntConfigError(msg)
    assert str(err) == msg
    assert err.message == msg


def test_can_catch_any_shunt_error() -> None:
    def raise_one() -> None:
        raise ShuntEvaluationError("nope")

    with pytest.raises(ShuntError):
        raise_one()


def test_default_kinds() -> None:
    assert ShuntConfigError("x").kind is ErrorKind.INVALID_CONFIG
    assert ShuntLexError("x").kind is ErrorKind.ILLEGAL_CHARACTER
    assert ShuntSyntaxError("x").kind is ErrorKind.UNEXPECTED_TOKEN
    assert ShuntEvaluationError("x").kind is ErrorKind.DOMAIN_ERROR
    assert ShuntInvariantError("x").kind is ErrorKind.INVARIANT_VIOLATION


def test_explicit_kind_and_span() -> None:
    err = ShuntSyntaxError(
        "Opened paren is not closed",
        kind=ErrorKind.UNCLOSED_PAREN,
        source="(1",
        offset=0,
        length=1,
    )
    assert err.kind is ErrorKind.UNCLOSED_PAREN
    assert (err.source, err.offset, err.length) == ("(1", 0, 1)
    assert err.to_dict() == {
        "type": "ShuntSyntaxError",
        "kind": "unclosed_paren",
        "message": "Opened paren is not closed",
        "offset": 0,
        "length": 1,
    }


def test_arity_error_fields() -> None:
    err = ShuntArityError(function="pow", expected=2, received=5, source="pow(1,2,3,4,5)", length=14)
    assert err.kind is ErrorKind.ARITY_MISMATCH
    assert str(err) == "Too many arguments: pow() expects 2 arguments but received 5"
    data = err.to_dict()
    assert data["function"] == "pow"
    assert data["expected"] == 2
    assert data["received"] == 5
    assert data["length"] == 14
