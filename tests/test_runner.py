"""CommandRunner against real child processes (the Python interpreter itself)."""

from __future__ import annotations

import io
import os
import sys

import pytest

from docker_publish.runner import EXIT_NOT_FOUND, CommandFailed, CommandRunner


def py(code: str) -> list:
    return [sys.executable, "-c", code]


def test_returns_exit_status(tmp_path) -> None:
    runner = CommandRunner(str(tmp_path), trace_stream=io.StringIO())

    assert runner.run(py("import sys; sys.exit(0)")) == 0
    assert runner.run(py("import sys; sys.exit(3)")) == 3


def test_runs_in_workspace(tmp_path) -> None:
    runner = CommandRunner(str(tmp_path), trace_stream=io.StringIO())
    expected = os.path.realpath(str(tmp_path))
    code = f"import os, sys; sys.exit(0 if os.path.realpath(os.getcwd()) == {expected!r} else 9)"

    assert runner.run(py(code)) == 0


def test_trace_echoes_argv_before_running(tmp_path) -> None:
    stream = io.StringIO()
    runner = CommandRunner(str(tmp_path), trace_stream=stream)

    runner.run(py("pass"))

    assert stream.getvalue() == f"$ {sys.executable} -c pass\n"


def test_trace_defaults_to_stderr(tmp_path, capsys) -> None:
    runner = CommandRunner(str(tmp_path))

    runner.run(py("pass"))

    captured = capsys.readouterr()
    assert captured.err.startswith("$ ")
    assert "-c pass" in captured.err


def test_untraced_command_is_not_echoed(tmp_path) -> None:
    stream = io.StringIO()
    runner = CommandRunner(str(tmp_path), trace_stream=stream)

    runner.run(py("pass"), quiet=True, trace=False)

    assert stream.getvalue() == ""


def test_input_text_is_fed_to_stdin(tmp_path) -> None:
    runner = CommandRunner(str(tmp_path), trace_stream=io.StringIO())
    code = "import sys; sys.exit(0 if sys.stdin.read() == 'abc' else 5)"

    assert runner.run(py(code), input_text="abc") == 0


def test_check_raises_with_returncode(tmp_path) -> None:
    runner = CommandRunner(str(tmp_path), trace_stream=io.StringIO())

    with pytest.raises(CommandFailed) as excinfo:
        runner.check(py("import sys; sys.exit(4)"))

    assert excinfo.value.returncode == 4
    assert excinfo.value.args_list[0] == sys.executable


def test_missing_binary_reports_not_found(tmp_path) -> None:
    runner = CommandRunner(str(tmp_path), trace_stream=io.StringIO())

    assert runner.run(["/nonexistent/bin/docker", "info"]) == EXIT_NOT_FOUND


def test_dry_run_traces_without_executing(tmp_path) -> None:
    stream = io.StringIO()
    runner = CommandRunner(str(tmp_path), dry_run=True, trace_stream=stream)
    marker = tmp_path / "ran"

    rc = runner.run(py(f"open({str(marker)!r}, 'w').close(); import sys; sys.exit(1)"))

    assert rc == 0
    assert not marker.exists()
    assert stream.getvalue().startswith("$ ")


def test_quiet_discards_child_output(tmp_path, capfd) -> None:
    runner = CommandRunner(str(tmp_path), trace_stream=io.StringIO())

    runner.run(py("import sys; print('hidden-out'); print('hidden-err', file=sys.stderr)"), quiet=True)
    runner.run(py("print('shown-out')"))

    captured = capfd.readouterr()
    assert "hidden-out" not in captured.out
    assert "hidden-err" not in captured.err
    assert "shown-out" in captured.out
