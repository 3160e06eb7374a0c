from __future__ import annotations

from typing import Optional, Tuple


class StepLimitExceeded(RuntimeError):
    """Raised when execution exceeds the configured step budget."""


class FungeError(RuntimeError):
    """Base class for fatal errors raised while executing a program."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self.position: Optional[Tuple[int, int]] = None
        self.step: Optional[int] = None

    def at(self, position: Tuple[int, int], step: int) -> "FungeError":
        self.position = position
        self.step = step
        return self

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        row, col = self.position
        return f"{self.message} (row={row}, col={col}, step={self.step})"


class OutOfBoundsPosition(FungeError):
    pass


class StackUnderflow(FungeError):
    pass


class TypeMismatch(FungeError):
    pass


class DivisionByZero(FungeError):
    pass


class UnknownInstruction(FungeError):
    def __init__(self, character: str) -> None:
        super().__init__(f"Unknown instruction {character!r}")
        self.character = character


__all__ = [
    "DivisionByZero",
    "FungeError",
    "OutOfBoundsPosition",
    "StackUnderflow",
    "StepLimitExceeded",
    "TypeMismatch",
    "UnknownInstruction",
]
