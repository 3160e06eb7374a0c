from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

from .errors import FungeError, StepLimitExceeded
from .grid import Grid
from .interpreter import FungeInterpreter
from .visualizer import format_state


def load_program(path: str) -> Grid:
    source_path = Path(path)
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {path}")
    return Grid.from_text(source_path.read_text(encoding="utf-8"))


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="TinyFunge interpreter CLI")
    parser.add_argument("source", help="Path to a TinyFunge program")
    parser.add_argument(
        "--max-steps",
        type=int,
        default=None,
        help="Abort after this many instructions (default: unlimited)",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        help="Print every execution state to stderr",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        grid = load_program(args.source)
    except FileNotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    interpreter = FungeInterpreter()
    output = ""
    try:
        for state in interpreter.step(grid, max_steps=args.max_steps):
            output = state.output
            if args.trace:
                print(format_state(state), file=sys.stderr)
    except FungeError as exc:
        sys.stdout.write(output)
        print(f"Runtime error: {exc}", file=sys.stderr)
        return 1
    except StepLimitExceeded as exc:
        sys.stdout.write(output)
        print(str(exc), file=sys.stderr)
        return 1

    sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
