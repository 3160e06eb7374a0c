from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterator, Optional, Tuple, Union

from .decoder import (
    Add,
    Bridge,
    Div,
    Duplicate,
    End,
    Get,
    Mul,
    NoOp,
    Operator,
    Pop,
    PopMoveHorizontal,
    PopMoveVertical,
    PushCharacter,
    PushDigit,
    ReaderMode,
    SetDirection,
    Sub,
    ToggleStringMode,
    Unknown,
    decode,
)
from .errors import FungeError, OutOfBoundsPosition, StepLimitExceeded, UnknownInstruction
from .grid import Direction, Grid, Position
from .stack import Character, NumericDigit, Stack, StackValue

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecutionState:
    grid: Grid = field(repr=False)
    position: Position
    direction: Direction
    mode: ReaderMode
    stack: Tuple[StackValue, ...]
    output: str
    terminated: bool
    step: int
    operator: Optional[Operator] = None


class StepOutcome(str, Enum):
    CONTINUE = "continue"
    TERMINATED = "terminated"
    ERROR = "error"


@dataclass(frozen=True)
class StepResult:
    state: ExecutionState
    outcome: StepOutcome
    error: Optional[FungeError] = None


def initial_state(grid: Grid, direction: Direction = Direction.RIGHT) -> ExecutionState:
    return ExecutionState(
        grid=grid,
        position=(0, 0),
        direction=direction,
        mode=ReaderMode.NORMAL,
        stack=(),
        output="",
        terminated=False,
        step=0,
    )


def step(state: ExecutionState) -> StepResult:
    """Decode and apply the instruction under the pointer.

    The returned state is a fresh value; ``state`` is left untouched. On a
    fatal error the pre-step state is returned together with the error,
    annotated with the position and step index where it happened.
    """
    if state.terminated:
        return StepResult(state, StepOutcome.TERMINATED)

    index = state.step + 1
    try:
        operator = decode(state.mode, state.grid.char_at(state.position))
        updated = _apply(state, operator)
    except FungeError as exc:
        exc.at(state.position, index)
        logger.debug("Execution failed: %s", exc)
        return StepResult(state, StepOutcome.ERROR, exc)

    logger.debug(
        "step=%d pos=%s op=%s stack=%d", index, state.position, operator, len(updated.stack)
    )
    if updated.terminated:
        return StepResult(replace(updated, step=index), StepOutcome.TERMINATED)
    advanced = replace(
        updated,
        position=updated.direction.advance(updated.position),
        step=index,
    )
    return StepResult(advanced, StepOutcome.CONTINUE)


def _apply(state: ExecutionState, operator: Operator) -> ExecutionState:
    stack = Stack(state.stack)

    if isinstance(operator, PushDigit):
        stack.push(NumericDigit(operator.value))
    elif isinstance(operator, PushCharacter):
        stack.push(Character(operator.code))
    elif isinstance(operator, Add):
        stack.add()
    elif isinstance(operator, Sub):
        stack.sub()
    elif isinstance(operator, Mul):
        stack.mul()
    elif isinstance(operator, Div):
        stack.div()
    elif isinstance(operator, Duplicate):
        stack.duplicate()
    elif isinstance(operator, Pop):
        value = stack.pop()
        return replace(
            state,
            stack=stack.snapshot(),
            output=state.output + value.as_char(),
            operator=operator,
        )
    elif isinstance(operator, PopMoveHorizontal):
        value = stack.pop_or_default(NumericDigit(0))
        direction = Direction.RIGHT if value.as_int() == 0 else Direction.LEFT
        return replace(state, stack=stack.snapshot(), direction=direction, operator=operator)
    elif isinstance(operator, PopMoveVertical):
        value = stack.pop_or_default(NumericDigit(0))
        direction = Direction.DOWN if value.as_int() == 0 else Direction.UP
        return replace(state, stack=stack.snapshot(), direction=direction, operator=operator)
    elif isinstance(operator, Get):
        col = stack.pop().as_int()
        row = stack.pop().as_int()
        char = state.grid.get((row, col))
        stack.push(NumericDigit(ord(char) if char is not None else 0))
    elif isinstance(operator, ToggleStringMode):
        mode = ReaderMode.STRING if state.mode is ReaderMode.NORMAL else ReaderMode.NORMAL
        return replace(state, mode=mode, operator=operator)
    elif isinstance(operator, SetDirection):
        return replace(state, direction=operator.direction, operator=operator)
    elif isinstance(operator, Bridge):
        skipped = state.direction.advance(state.position)
        if not state.grid.contains(skipped):
            row, col = skipped
            raise OutOfBoundsPosition(f"Bridge skips over ({row}, {col}), outside the program grid")
        return replace(state, position=skipped, operator=operator)
    elif isinstance(operator, NoOp):
        return replace(state, operator=operator)
    elif isinstance(operator, End):
        return replace(state, terminated=True, operator=operator)
    elif isinstance(operator, Unknown):
        raise UnknownInstruction(operator.character)
    else:
        raise UnknownInstruction(str(operator))

    return replace(state, stack=stack.snapshot(), operator=operator)


@dataclass
class FungeInterpreter:
    initial_direction: Direction = Direction.RIGHT

    def initial_state(self, grid: Grid) -> ExecutionState:
        return initial_state(grid, self.initial_direction)

    def run(self, program: Union[Grid, str], max_steps: Optional[int] = None) -> str:
        state: Optional[ExecutionState] = None
        for state in self.step(program, max_steps=max_steps):
            pass
        return state.output if state is not None else ""

    def step(
        self,
        program: Union[Grid, str],
        max_steps: Optional[int] = None,
    ) -> Iterator[ExecutionState]:
        grid = program if isinstance(program, Grid) else Grid.from_text(program)
        state = self.initial_state(grid)
        steps = 0

        while True:
            if max_steps is not None and steps >= max_steps:
                raise StepLimitExceeded("Program exceeded allowed step count")

            result = step(state)
            if result.error is not None:
                raise result.error
            state = result.state
            steps += 1
            yield state
            if result.outcome is StepOutcome.TERMINATED:
                return


__all__ = [
    "ExecutionState",
    "FungeInterpreter",
    "StepOutcome",
    "StepResult",
    "initial_state",
    "step",
]
