from __future__ import annotations

import argparse
import shlex
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import FungeError, StepLimitExceeded
from .grid import Grid, Position
from .interpreter import ExecutionState, FungeInterpreter
from .stack import describe_value


@dataclass
class VisualizerSession:
    code: str
    max_steps: Optional[int] = None
    history_limit: int = 200

    def __post_init__(self) -> None:
        self.grid = Grid.from_text(self.code)
        self.breakpoints: set[Position] = set()
        self.history: List[ExecutionState] = []
        self.hit_breakpoint: Optional[Position] = None
        self._init_interpreter()

    def _init_interpreter(self) -> None:
        self.interpreter = FungeInterpreter()
        self.step_iter = self.interpreter.step(self.grid, max_steps=self.max_steps)
        self.finished = False
        self.error: Optional[str] = None
        self.last_state: ExecutionState = self.interpreter.initial_state(self.grid)
        self._record_state(self.last_state)

    def restart(self) -> None:
        self._init_interpreter()

    def _record_state(self, state: ExecutionState) -> None:
        self.history.append(state)
        if len(self.history) > self.history_limit:
            self.history.pop(0)
        self.last_state = state

    def step_forward(self, count: int = 1) -> Sequence[ExecutionState]:
        states: List[ExecutionState] = []
        if count <= 0:
            return states
        self.hit_breakpoint = None
        for _ in range(count):
            if self.finished:
                break
            try:
                state = next(self.step_iter)
            except StopIteration:
                self.finished = True
                break
            except StepLimitExceeded:
                self.finished = True
                raise
            except FungeError as exc:
                self.finished = True
                self.error = str(exc)
                raise
            self._record_state(state)
            states.append(state)
            if state.terminated:
                self.finished = True
                break
            if state.position in self.breakpoints:
                self.hit_breakpoint = state.position
                break
        return states

    def run_until_break(self, limit: Optional[int] = None) -> Sequence[ExecutionState]:
        states: List[ExecutionState] = []
        executed = 0
        while limit is None or executed < limit:
            step_states = self.step_forward(1)
            if not step_states:
                break
            states.extend(step_states)
            executed += 1
            if self.hit_breakpoint is not None:
                break
        return states

    def current_state(self) -> ExecutionState:
        return self.last_state

    def add_breakpoint(self, row: int, col: int) -> None:
        self.breakpoints.add((row, col))

    def remove_breakpoint(self, row: int, col: int) -> bool:
        if (row, col) in self.breakpoints:
            self.breakpoints.remove((row, col))
            return True
        return False

    def clear_breakpoints(self) -> None:
        self.breakpoints.clear()

    def list_breakpoints(self) -> List[Position]:
        return sorted(self.breakpoints)

    def is_finished(self) -> bool:
        return self.finished


def format_state(state: ExecutionState) -> str:
    lines: List[str] = []
    op_display = type(state.operator).__name__ if state.operator is not None else "(init)"
    row, col = state.position
    lines.append(
        f"step={state.step} pos=({row},{col}) dir={state.direction.value} "
        f"mode={state.mode.value} op={op_display}"
    )
    if state.terminated:
        lines.append("terminated")
    if state.output:
        lines.append(f"output={state.output!r}")
    lines.append("stack=[" + ", ".join(describe_value(value) for value in state.stack) + "]")
    lines.append(f"code={_format_row_window(state.grid, state.position)}")
    return "\n".join(lines)


def _format_row_window(grid: Grid, position: Position, window: int = 16) -> str:
    row, col = position
    if not 0 <= row < grid.height:
        return "(outside grid)"
    line = grid.rows[row]
    if not line:
        return "(empty)"
    start = max(0, col - window)
    end = min(len(line), col + window + 1)
    pieces: List[str] = []
    for index in range(start, end):
        ch = line[index]
        if index == col:
            pieces.append(f"[{ch}]")
        else:
            pieces.append(ch)
    if col >= len(line):
        pieces.append("[END]")
    return "".join(pieces)


def run_repl(session: VisualizerSession) -> None:
    print("TinyFunge Visualizer (type 'help' for commands)")
    _print_state(session.current_state())
    while True:
        try:
            line = input("(viz) ").strip()
        except EOFError:
            print()
            break
        if not line:
            continue
        parts = shlex.split(line)
        command = parts[0].lower()
        args = parts[1:]
        try:
            if command in {"n", "next"}:
                count = 1
                if args:
                    count = max(1, int(args[0]))
                states = session.step_forward(count)
                if states:
                    _print_state(states[-1])
                elif session.is_finished():
                    print("プログラムは終了しています。")
            elif command in {"r", "run"}:
                limit = int(args[0]) if args else None
                states = session.run_until_break(limit)
                if states:
                    _print_state(states[-1])
                    if session.hit_breakpoint is not None:
                        row, col = session.hit_breakpoint
                        print(f"ブレークポイント ({row},{col}) に到達しました。")
                        session.hit_breakpoint = None
                elif session.is_finished():
                    print("プログラムは終了しました。")
            elif command == "state":
                _print_state(session.current_state())
            elif command == "history":
                count = int(args[0]) if args else 10
                for state in session.history[-count:]:
                    _print_state(state)
            elif command == "break":
                if len(args) < 2:
                    print("ブレークポイントを ROW COL で指定してください。")
                    continue
                row, col = int(args[0]), int(args[1])
                session.add_breakpoint(row, col)
                print(f"ブレークポイント ({row},{col}) を設定しました。")
            elif command == "breaks":
                points = session.list_breakpoints()
                if not points:
                    print("ブレークポイントはありません。")
                else:
                    print("ブレークポイント:", ", ".join(f"({r},{c})" for r, c in points))
            elif command == "clear":
                if len(args) < 2:
                    session.clear_breakpoints()
                    print("ブレークポイントを全て削除しました。")
                else:
                    row, col = int(args[0]), int(args[1])
                    if session.remove_breakpoint(row, col):
                        print(f"ブレークポイント ({row},{col}) を削除しました。")
                    else:
                        print(f"ブレークポイント ({row},{col}) は存在しません。")
            elif command == "restart":
                session.restart()
                print("セッションを再開しました。")
                _print_state(session.current_state())
            elif command in {"quit", "exit"}:
                break
            elif command == "help":
                _print_help()
            else:
                print("不明なコマンドです。'help' を参照してください。")
        except ValueError:
            print("数値が正しくありません。", file=sys.stderr)
        except StepLimitExceeded:
            print("ステップ上限に達しました。", file=sys.stderr)
        except FungeError as exc:
            print(f"実行時エラー: {exc}", file=sys.stderr)


def _print_state(state: ExecutionState) -> None:
    print("-" * 40)
    print(format_state(state))


def _print_help() -> None:
    print(
        "利用可能なコマンド:\n"
        "  next [N]        : N ステップ進める (省略時 1)\n"
        "  run [N]         : ブレークポイントまたは N ステップ到達まで実行\n"
        "  state           : 現在の状態を表示\n"
        "  history [N]     : 直近 N ステップの履歴を表示\n"
        "  break ROW COL   : 指定位置にブレークポイントを設定\n"
        "  breaks          : ブレークポイント一覧\n"
        "  clear [ROW COL] : ブレークポイントを削除 (省略で全削除)\n"
        "  restart         : セッションをリセット\n"
        "  quit/exit       : 終了\n"
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="TinyFunge visualizer")
    parser.add_argument("source", help="Path to a TinyFunge program")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=5_000_000,
        help="ステップ上限 (デフォルト: 5,000,000)",
    )
    parser.add_argument(
        "--history-limit",
        type=int,
        default=200,
        help="履歴に保持するステップ数",
    )
    args = parser.parse_args(argv)

    try:
        source_text = Path(args.source).read_text(encoding="utf-8")
    except OSError as exc:
        print(f"ファイルを開けません: {exc}", file=sys.stderr)
        return 1

    session = VisualizerSession(
        source_text,
        max_steps=args.max_steps,
        history_limit=args.history_limit,
    )
    run_repl(session)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
