import sys

import pytest

from stackpilot.errors import StackError
from stackpilot.services.command_runner import CommandRunner


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


def test_command_runner_raises_with_stderr():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(StackError, match="boom"):
        runner.run(
            [sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(1)"],
            check=True,
            capture_output=True,
        )


def test_command_runner_returns_when_check_disabled():
    runner = CommandRunner(logger=DummyLogger())

    result = runner.run(
        [sys.executable, "-c", "import sys; sys.exit(1)"],
        check=False,
        capture_output=True,
    )

    assert result.returncode == 1


def test_command_runner_runs_inside_configured_directory(tmp_path):
    runner = CommandRunner(logger=DummyLogger(), cwd=tmp_path)

    result = runner.run(
        [sys.executable, "-c", "import os; print(os.getcwd())"],
        capture_output=True,
    )

    assert result.stdout.strip() == str(tmp_path)


def test_command_runner_reports_missing_binary():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(StackError, match="Required command not found"):
        runner.run(["stackpilot-definitely-missing-binary"])


def test_command_runner_timeout_raises_error():
    runner = CommandRunner(logger=DummyLogger())

    with pytest.raises(StackError, match="timed out"):
        runner.run(
            [sys.executable, "-c", "import time; time.sleep(2)"],
            check=True,
            capture_output=True,
            timeout=0.1,
        )


def test_command_runner_applies_default_timeout():
    runner = CommandRunner(logger=DummyLogger(), default_timeout=0.1)

    with pytest.raises(StackError, match="timed out after 0.1s"):
        runner.run([sys.executable, "-c", "import time; time.sleep(2)"], capture_output=True)
