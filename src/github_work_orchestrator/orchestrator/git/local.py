"""Local git adapter.

Thin wrapper over the `git` executable. Queries return values; mutations raise
:class:`GitCommandError` when git exits non-zero so callers can attach context.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from github_work_orchestrator.orchestrator.process import (
    CommandRequest,
    CommandResult,
    CommandRunner,
    SubprocessCommandRunner,
)

logger = logging.getLogger(__name__)

_PREFERRED_ORIGIN_REMOTES = ("origin", "upstream")


@dataclass
class GitCommandError(Exception):
    """Raised when a git invocation exits non-zero."""

    argv: tuple[str, ...]
    cwd: str
    returncode: int
    stderr: str

    def __str__(self) -> str:
        detail = self.stderr.strip() or f"exit code {self.returncode}"
        return f"'{' '.join(self.argv)}' failed in {self.cwd}: {detail}"


class LocalGit:
    """Run git commands against local checkouts."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        *,
        timeout_seconds: float | None = None,
        git_path: str = "git",
    ) -> None:
        self._runner = runner or SubprocessCommandRunner()
        self._timeout_seconds = timeout_seconds
        self._git_path = git_path

    def _query(self, path: Path, *args: str) -> CommandResult:
        request = CommandRequest(
            argv=(self._git_path, *args),
            cwd=path,
            timeout_seconds=self._timeout_seconds,
        )
        return self._runner.run(request)

    def _run(self, path: Path, *args: str) -> str:
        result = self._query(path, *args)
        if not result.ok:
            raise GitCommandError(
                argv=result.argv,
                cwd=str(path),
                returncode=result.returncode,
                stderr=result.stderr,
            )
        logger.debug("git command succeeded", extra={"argv": list(result.argv), "cwd": str(path)})
        return result.stdout.strip()

    # Queries

    def has_local_branch(self, path: Path, branch: str) -> bool:
        result = self._query(path, "show-ref", "--verify", "--quiet", f"refs/heads/{branch}")
        return result.ok

    def remote_url(self, path: Path, remote: str) -> str | None:
        result = self._query(path, "remote", "get-url", remote)
        if not result.ok:
            return None
        url = result.stdout.strip()
        return url or None

    def has_remote(self, path: Path, remote: str, url_pattern: str | None = None) -> bool:
        """Return True if `remote` exists (and, when given, its URL matches `url_pattern`)."""

        url = self.remote_url(path, remote)
        if url is None:
            return False
        if url_pattern is None:
            return True
        return re.search(url_pattern, url) is not None

    def list_remotes(self, path: Path) -> list[str]:
        output = self._run(path, "remote")
        return [line.strip() for line in output.splitlines() if line.strip()]

    def determine_origin_remote(self, path: Path) -> str | None:
        """Pick the remote that stands for the canonical repository.

        Prefers `origin`, then `upstream`, then the first configured remote.
        """

        remotes = self.list_remotes(path)
        for candidate in _PREFERRED_ORIGIN_REMOTES:
            if candidate in remotes:
                return candidate
        return remotes[0] if remotes else None

    def tracking_ref(self, path: Path, branch: str) -> str | None:
        """Return the upstream of `branch` as `<remote>/<branch>`, or None."""

        result = self._query(
            path, "rev-parse", "--abbrev-ref", "--symbolic-full-name", f"{branch}@{{upstream}}"
        )
        if not result.ok:
            return None
        return result.stdout.strip() or None

    def current_branch(self, path: Path) -> str:
        return self._run(path, "rev-parse", "--abbrev-ref", "HEAD")

    # Mutations

    def add_remote(self, path: Path, remote: str, url: str) -> None:
        self._run(path, "remote", "add", remote, url)

    def checkout(self, path: Path, branch: str) -> None:
        self._run(path, "checkout", branch)

    def create_branch(self, path: Path, branch: str) -> None:
        self._run(path, "checkout", "-b", branch)

    def track_remote_branch(self, path: Path, remote: str, branch: str) -> None:
        self._run(path, "checkout", "-b", branch, "--track", f"{remote}/{branch}")

    def fetch(self, path: Path, remote: str, branch: str) -> None:
        self._run(path, "fetch", remote, branch)

    def pull(self, path: Path, remote: str, branch: str) -> None:
        self._run(path, "pull", "--set-upstream", remote, branch)

    def push(self, path: Path, remote: str, branch: str) -> None:
        self._run(path, "push", "--set-upstream", remote, branch)
