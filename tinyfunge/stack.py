from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Tuple, Union

from .errors import DivisionByZero, StackUnderflow, TypeMismatch


@dataclass(frozen=True)
class NumericDigit:
    value: int

    def as_int(self) -> int:
        return self.value

    def as_char(self) -> str:
        return chr(self.value & 0xFF)


@dataclass(frozen=True)
class Character:
    code: int

    def as_int(self) -> int:
        return self.code

    def as_char(self) -> str:
        return chr(self.code)


StackValue = Union[NumericDigit, Character]


def _truncating_div(b: int, a: int) -> int:
    quotient = abs(b) // abs(a)
    return -quotient if (a < 0) != (b < 0) else quotient


class Stack:
    """Operand stack used by a single step of execution.

    A Stack is built from the immutable snapshot held by an execution state,
    mutated while one operator is applied, and frozen again with
    :meth:`snapshot`.
    """

    def __init__(self, values: Iterable[StackValue] = ()) -> None:
        self._values: List[StackValue] = list(values)

    def snapshot(self) -> Tuple[StackValue, ...]:
        return tuple(self._values)

    def push(self, value: StackValue) -> None:
        self._values.append(value)

    def pop(self) -> StackValue:
        if not self._values:
            raise StackUnderflow("Cannot pop from an empty stack")
        return self._values.pop()

    def pop_or_default(self, default: StackValue) -> StackValue:
        if not self._values:
            return default
        return self._values.pop()

    def duplicate(self) -> None:
        if not self._values:
            raise StackUnderflow("Nothing to duplicate on an empty stack")
        self._values.append(self._values[-1])

    def add(self) -> None:
        self._binary("+", lambda a, b: a + b)

    def sub(self) -> None:
        self._binary("-", lambda a, b: b - a)

    def mul(self) -> None:
        self._binary("*", lambda a, b: a * b)

    def div(self) -> None:
        self._binary("/", lambda a, b: _truncating_div(b, a))

    def _binary(self, symbol: str, operation: Callable[[int, int], int]) -> None:
        # a is the top of the stack (right operand), b the one below it.
        if len(self._values) < 2:
            raise StackUnderflow(
                f"Operator {symbol!r} needs two operands, stack holds {len(self._values)}"
            )
        a = self._values.pop()
        b = self._values.pop()
        if not isinstance(a, NumericDigit) or not isinstance(b, NumericDigit):
            raise TypeMismatch(f"Operator {symbol!r} needs numeric operands, got {b!r} and {a!r}")
        if symbol == "/" and a.value == 0:
            raise DivisionByZero("Integer division by zero")
        self._values.append(NumericDigit(operation(a.value, b.value)))


def describe_value(value: StackValue) -> str:
    if isinstance(value, Character):
        return repr(value.as_char())
    return str(value.value)


__all__ = ["Character", "NumericDigit", "Stack", "StackValue", "describe_value"]
