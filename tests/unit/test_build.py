"""Unit tests for the build runner and the subprocess adapter."""

from __future__ import annotations

import sys
from pathlib import Path

from helpers import FakeRunner

from github_work_orchestrator.orchestrator.process import (
    CommandRequest,
    CommandResult,
    SubprocessCommandRunner,
)
from github_work_orchestrator.orchestrator.work.build import BuildRunner


def test_missing_checkout_is_a_failed_outcome(tmp_path: Path) -> None:
    runner = FakeRunner()

    outcome = BuildRunner(runner=runner).build(project="org/alpha", path=tmp_path / "gone")

    assert outcome.ok is False
    assert "No local checkout" in outcome.message
    assert runner.requests == []


def test_timeout_is_reported(tmp_path: Path) -> None:
    runner = FakeRunner(
        lambda req: CommandResult(
            argv=req.argv, returncode=124, stdout="", stderr="", timed_out=True
        )
    )

    outcome = BuildRunner(command="make", runner=runner, timeout_seconds=1).build(
        project="org/alpha", path=tmp_path
    )

    assert outcome.ok is False
    assert outcome.message == "timed out"
    assert outcome.returncode == 124
    assert runner.requests[0].timeout_seconds == 1


def test_subprocess_runner_reports_missing_executable(tmp_path: Path) -> None:
    result = SubprocessCommandRunner().run(
        CommandRequest(argv=("definitely-not-a-real-binary-xyz",), cwd=tmp_path)
    )

    assert result.returncode == 127
    assert result.ok is False


def test_subprocess_runner_captures_output(tmp_path: Path) -> None:
    result = SubprocessCommandRunner().run(
        CommandRequest(argv=(sys.executable, "-c", "print('hello')"), cwd=tmp_path)
    )

    assert result.ok is True
    assert result.stdout.strip() == "hello"
