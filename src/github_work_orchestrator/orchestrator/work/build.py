"""Run the project build step."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from github_work_orchestrator.orchestrator.process import (
    CommandRequest,
    CommandRunner,
    SubprocessCommandRunner,
)

logger = logging.getLogger(__name__)

_OUTPUT_TAIL_CHARS = 2000


@dataclass(frozen=True, slots=True)
class BuildOutcome:
    project: str
    ok: bool
    message: str
    returncode: int | None = None


class BuildRunner:
    """Run a shell build command inside a project checkout."""

    def __init__(
        self,
        *,
        command: str = "npm run build",
        runner: CommandRunner | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self._command = command
        self._runner = runner or SubprocessCommandRunner()
        self._timeout_seconds = timeout_seconds

    def build(self, *, project: str, path: Path) -> BuildOutcome:
        if not path.is_dir():
            return BuildOutcome(project=project, ok=False, message=f"No local checkout at {path}")

        result = self._runner.run(
            CommandRequest(
                argv=(self._command,),
                cwd=path,
                timeout_seconds=self._timeout_seconds,
                shell=True,
            )
        )
        if result.ok:
            logger.info("Project built", extra={"project": project, "command": self._command})
            return BuildOutcome(project=project, ok=True, message="built", returncode=0)

        detail = (result.stderr or result.stdout).strip()[-_OUTPUT_TAIL_CHARS:]
        reason = "timed out" if result.timed_out else f"exit code {result.returncode}"
        logger.warning(
            "Project build failed",
            extra={"project": project, "command": self._command, "returncode": result.returncode},
        )
        return BuildOutcome(
            project=project,
            ok=False,
            message=f"'{self._command}' failed ({reason}): {detail}" if detail else reason,
            returncode=result.returncode,
        )
