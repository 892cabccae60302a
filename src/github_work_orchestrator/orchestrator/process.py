"""Subprocess helpers for running external commands (git, build tools)."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True, slots=True)
class CommandRequest:
    """Typed command invocation request."""

    argv: tuple[str, ...]
    cwd: Path | None = None
    timeout_seconds: float | None = None
    shell: bool = False


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Typed command execution result."""

    argv: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


class CommandRunner(Protocol):
    """Runtime command-execution interface."""

    def run(self, request: CommandRequest) -> CommandResult: ...


class SubprocessCommandRunner:
    """Default command-runner adapter backed by subprocess.

    A missing executable is reported as returncode 127 rather than raised, so every
    caller handles failures through the same result shape.
    """

    def run(self, request: CommandRequest) -> CommandResult:
        args: str | list[str] = request.argv[0] if request.shell else list(request.argv)
        try:
            completed = subprocess.run(
                args,
                cwd=request.cwd,
                capture_output=True,
                text=True,
                check=False,
                shell=request.shell,
                timeout=request.timeout_seconds,
            )
        except FileNotFoundError as exc:
            return CommandResult(argv=request.argv, returncode=127, stdout="", stderr=str(exc))
        except subprocess.TimeoutExpired as exc:
            stdout = exc.stdout if isinstance(exc.stdout, str) else ""
            stderr = exc.stderr if isinstance(exc.stderr, str) else ""
            return CommandResult(
                argv=request.argv,
                returncode=124,
                stdout=stdout,
                stderr=stderr,
                timed_out=True,
            )

        return CommandResult(
            argv=request.argv,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
