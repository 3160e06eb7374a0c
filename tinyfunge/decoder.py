from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict

from .grid import Direction


class ReaderMode(str, Enum):
    NORMAL = "normal"
    STRING = "string"


# === Operators ===


class Operator:
    pass


@dataclass(frozen=True)
class PushDigit(Operator):
    value: int


@dataclass(frozen=True)
class PushCharacter(Operator):
    code: int


@dataclass(frozen=True)
class Add(Operator):
    pass


@dataclass(frozen=True)
class Sub(Operator):
    pass


@dataclass(frozen=True)
class Mul(Operator):
    pass


@dataclass(frozen=True)
class Div(Operator):
    pass


@dataclass(frozen=True)
class ToggleStringMode(Operator):
    pass


@dataclass(frozen=True)
class Pop(Operator):
    pass


@dataclass(frozen=True)
class Duplicate(Operator):
    pass


@dataclass(frozen=True)
class PopMoveHorizontal(Operator):
    pass


@dataclass(frozen=True)
class PopMoveVertical(Operator):
    pass


@dataclass(frozen=True)
class SetDirection(Operator):
    direction: Direction


@dataclass(frozen=True)
class Get(Operator):
    pass


@dataclass(frozen=True)
class Bridge(Operator):
    pass


@dataclass(frozen=True)
class NoOp(Operator):
    pass


@dataclass(frozen=True)
class End(Operator):
    pass


@dataclass(frozen=True)
class Unknown(Operator):
    character: str


_NORMAL_TABLE: Dict[str, Operator] = {
    " ": NoOp(),
    "+": Add(),
    "-": Sub(),
    "*": Mul(),
    "/": Div(),
    '"': ToggleStringMode(),
    ":": Duplicate(),
    ",": Pop(),
    "_": PopMoveHorizontal(),
    "|": PopMoveVertical(),
    "g": Get(),
    "#": Bridge(),
    ">": SetDirection(Direction.RIGHT),
    "<": SetDirection(Direction.LEFT),
    "^": SetDirection(Direction.UP),
    "v": SetDirection(Direction.DOWN),
    "@": End(),
}


def decode(mode: ReaderMode, char: str) -> Operator:
    """Map a grid character to the operator it denotes under ``mode``."""
    if mode is ReaderMode.STRING:
        if char == '"':
            return ToggleStringMode()
        return PushCharacter(ord(char))
    if "0" <= char <= "9":
        return PushDigit(ord(char) - ord("0"))
    return _NORMAL_TABLE.get(char, Unknown(char))


__all__ = [
    "Add",
    "Bridge",
    "Div",
    "Duplicate",
    "End",
    "Get",
    "Mul",
    "NoOp",
    "Operator",
    "Pop",
    "PopMoveHorizontal",
    "PopMoveVertical",
    "PushCharacter",
    "PushDigit",
    "ReaderMode",
    "SetDirection",
    "Sub",
    "ToggleStringMode",
    "Unknown",
    "decode",
]
