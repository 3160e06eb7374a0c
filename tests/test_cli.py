from pathlib import Path
import tempfile
from contextlib import redirect_stderr, redirect_stdout
import io
import unittest

from tinyfunge.cli import load_program, main as cli_main


class CLITests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write_source(self, content: str, name: str = "program.tf") -> Path:
        path = self.tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    def test_load_program_keeps_ragged_rows(self) -> None:
        source_path = self._write_source("v\n>  @\n")
        grid = load_program(str(source_path))
        self.assertEqual(grid.rows, ("v", ">  @"))

    def test_cli_run_outputs_program_result(self) -> None:
        source_path = self._write_source('v\n>"olleh",,,,,@\n')
        buffer = io.StringIO()
        with redirect_stdout(buffer):
            exit_code = cli_main([str(source_path)])
        self.assertEqual(exit_code, 0)
        self.assertEqual(buffer.getvalue(), "hello")

    def test_cli_trace_writes_states_to_stderr(self) -> None:
        source_path = self._write_source(">@")
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            exit_code = cli_main([str(source_path), "--trace"])
        self.assertEqual(exit_code, 0)
        self.assertIn("step=1 pos=(0,1) dir=right", stderr.getvalue())
        self.assertIn("terminated", stderr.getvalue())

    def test_cli_reports_runtime_error(self) -> None:
        source_path = self._write_source('"A",?')
        stdout, stderr = io.StringIO(), io.StringIO()
        with redirect_stdout(stdout), redirect_stderr(stderr):
            exit_code = cli_main([str(source_path)])
        self.assertEqual(exit_code, 1)
        self.assertEqual(stdout.getvalue(), "A")
        self.assertIn("Runtime error: Unknown instruction '?'", stderr.getvalue())
        self.assertIn("row=0, col=4, step=5", stderr.getvalue())
        self.assertNotIn("Execution failed", stderr.getvalue())

    def test_cli_step_limit(self) -> None:
        source_path = self._write_source("><")
        stderr = io.StringIO()
        with redirect_stdout(io.StringIO()), redirect_stderr(stderr):
            exit_code = cli_main([str(source_path), "--max-steps", "5"])
        self.assertEqual(exit_code, 1)
        self.assertIn("exceeded allowed step count", stderr.getvalue())

    def test_cli_missing_file_errors(self) -> None:
        buffer = io.StringIO()
        with redirect_stderr(buffer):
            exit_code = cli_main(["does_not_exist.tf"])
        self.assertEqual(exit_code, 1)
        self.assertIn("Source file not found", buffer.getvalue())


if __name__ == "__main__":
    unittest.main()
