from .errors import (
    DivisionByZero,
    FungeError,
    OutOfBoundsPosition,
    StackUnderflow,
    StepLimitExceeded,
    TypeMismatch,
    UnknownInstruction,
)
from .grid import Direction, Grid
from .interpreter import ExecutionState, FungeInterpreter, StepOutcome, StepResult, step
from .visualizer import VisualizerSession

__all__ = [
    "Direction",
    "DivisionByZero",
    "ExecutionState",
    "FungeError",
    "FungeInterpreter",
    "Grid",
    "OutOfBoundsPosition",
    "StackUnderflow",
    "StepLimitExceeded",
    "StepOutcome",
    "StepResult",
    "TypeMismatch",
    "UnknownInstruction",
    "VisualizerSession",
    "step",
]
