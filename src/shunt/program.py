"""Postfix program representation produced by the parser."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from shunt.registry import Function, Operator


@dataclass(frozen=True, slots=True)
class Number:
    value: float
    offset: int = 0
    length: int = 0

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True, slots=True)
class Negate:
    offset: int = 0

    def __str__(self) -> str:
        return "neg"


@dataclass(frozen=True, slots=True)
class BinaryOp:
    operator: Operator
    offset: int = 0

    def __str__(self) -> str:
        return self.operator.symbol


@dataclass(frozen=True, slots=True)
class Call:
    """A function call with its arity already resolved against the call site."""

    function: Function
    arity: int
    offset: int = 0
    length: int = 0

    def __str__(self) -> str:
        return f"{self.function.name}/{self.arity}"


@dataclass(frozen=True, slots=True)
class Factorial:
    offset: int = 0

    def __str__(self) -> str:
        return "!"


Instruction = Number | Negate | BinaryOp | Call | Factorial


@dataclass(frozen=True, slots=True)
class Program:
    """An immutable, ordered postfix instruction sequence."""

    source: str
    instructions: tuple[Instruction, ...]

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)

    def __len__(self) -> int:
        return len(self.instructions)

    def __str__(self) -> str:
        return " ".join(str(ins) for ins in self.instructions)

    def to_list(self) -> list[str]:
        return [str(ins) for ins in self.instructions]
