from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from .errors import OutOfBoundsPosition

Position = Tuple[int, int]


class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"

    @property
    def vector(self) -> Position:
        return _VECTORS[self]

    def advance(self, position: Position, distance: int = 1) -> Position:
        d_row, d_col = self.vector
        return position[0] + d_row * distance, position[1] + d_col * distance


_VECTORS = {
    Direction.UP: (-1, 0),
    Direction.DOWN: (1, 0),
    Direction.LEFT: (0, -1),
    Direction.RIGHT: (0, 1),
}


def _strip_terminator(line: str) -> str:
    # Only "\n" and an optional preceding "\r" end a row.
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line


@dataclass(frozen=True)
class Grid:
    """Read-only program text addressed by (row, col).

    Rows keep their original lengths; a column past the end of a row is out
    of bounds rather than implicitly padded with spaces.
    """

    rows: Tuple[str, ...]

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "Grid":
        return cls(tuple(_strip_terminator(line) for line in lines))

    @classmethod
    def from_text(cls, text: str) -> "Grid":
        rows = text.split("\n")
        if rows and rows[-1] == "":
            rows.pop()
        return cls(tuple(_strip_terminator(row) for row in rows))

    @property
    def height(self) -> int:
        return len(self.rows)

    def contains(self, position: Position) -> bool:
        row, col = position
        return 0 <= row < len(self.rows) and 0 <= col < len(self.rows[row])

    def char_at(self, position: Position) -> str:
        if not self.contains(position):
            row, col = position
            raise OutOfBoundsPosition(f"Position ({row}, {col}) lies outside the program grid")
        row, col = position
        return self.rows[row][col]

    def get(self, position: Position, default: Optional[str] = None) -> Optional[str]:
        if not self.contains(position):
            return default
        row, col = position
        return self.rows[row][col]


__all__ = ["Direction", "Grid", "Position"]
