"""Stack machine that executes a postfix `Program`."""

from __future__ import annotations

import logging

import numpy as np

from shunt.errors import ErrorKind, ShuntEvaluationError, ShuntInvariantError
from shunt.program import BinaryOp, Call, Factorial, Instruction, Negate, Number, Program
from shunt.registry import CallableKind, factorial

logger = logging.getLogger("shunt.evaluator")


class Evaluator:
    """Runs programs against a fresh operand stack; holds no state between runs."""

    def run(self, program: Program) -> float:
        stack: list[float] = []
        # Division by zero and domain errors yield inf/nan rather than warnings.
        with np.errstate(all="ignore"):
            for ins in program:
                self._step(program, ins, stack)

        if len(stack) != 1:
            raise ShuntInvariantError(
                f"Evaluation finished with {len(stack)} values on the stack, expected 1",
                source=program.source,
            )
        result = float(stack[0])
        logger.debug("Evaluated %r -> %r", program.source, result)
        return result

    def _pop(self, program: Program, ins: Instruction, stack: list[float], count: int) -> list[float]:
        """Pop `count` operands, returned in their original left-to-right order."""

        if len(stack) < count:
            raise ShuntEvaluationError(
                _missing_operand_message(ins, count, len(stack)),
                kind=ErrorKind.MISSING_OPERAND,
                source=program.source,
                offset=ins.offset,
                length=max(getattr(ins, "length", 1), 1),
            )
        if count == 0:
            return []
        args = stack[-count:]
        del stack[-count:]
        return args

    def _step(self, program: Program, ins: Instruction, stack: list[float]) -> None:
        if isinstance(ins, Number):
            stack.append(np.float64(ins.value))
        elif isinstance(ins, Negate):
            (value,) = self._pop(program, ins, stack, 1)
            stack.append(np.negative(value))
        elif isinstance(ins, BinaryOp):
            left, right = self._pop(program, ins, stack, 2)
            stack.append(ins.operator.operation(left, right))
        elif isinstance(ins, Factorial):
            (value,) = self._pop(program, ins, stack, 1)
            stack.append(np.float64(factorial(float(value))))
        elif isinstance(ins, Call):
            stack.append(self._call(program, ins, stack))
        else:
            raise ShuntInvariantError(
                f"Unknown instruction {ins!r}", source=program.source
            )

    def _call(self, program: Program, ins: Call, stack: list[float]) -> float:
        fn = ins.function
        kind = fn.kind
        if kind is CallableKind.VARIADIC:
            args = self._pop(program, ins, stack, ins.arity)
            try:
                return np.float64(fn.fn(tuple(args)))
            except ValueError as e:
                raise ShuntEvaluationError(
                    f"{fn.name}() {e}",
                    source=program.source,
                    offset=ins.offset,
                    length=ins.length,
                ) from e

        if ins.arity != fn.arity:
            raise ShuntInvariantError(
                f"{fn.name}() was resolved with {ins.arity} arguments but takes {fn.arity}",
                source=program.source,
                offset=ins.offset,
                length=ins.length,
            )
        if kind is CallableKind.UNARY:
            (x,) = self._pop(program, ins, stack, 1)
            return fn.fn(x)
        if kind is CallableKind.BINARY:
            x, y = self._pop(program, ins, stack, 2)
            return fn.fn(x, y)
        x, y, z = self._pop(program, ins, stack, 3)
        return fn.fn(x, y, z)


def _missing_operand_message(ins: Instruction, needed: int, available: int) -> str:
    if isinstance(ins, Call):
        return (
            f"{ins.function.name}() is missing arguments, "
            f"expected {needed} received {available}"
        )
    if isinstance(ins, Negate):
        return "Unary '-' is missing its operand"
    if isinstance(ins, Factorial):
        return "'!' is missing its operand"
    if isinstance(ins, BinaryOp):
        if available == 1:
            return f"Binary operator '{ins.operator.symbol}' is missing a right operand"
        return f"Binary operator '{ins.operator.symbol}' is missing operands"
    return "Missing operand"


def run(program: Program) -> float:
    """Evaluate `program` with a fresh `Evaluator`."""

    return Evaluator().run(program)
