"""Test doubles shared by the unit tests."""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path

from github_work_orchestrator.orchestrator.github.client import IssueDetails
from github_work_orchestrator.orchestrator.process import CommandRequest, CommandResult


class FakeGit:
    """In-memory stand-in for `LocalGit` that tracks branches, remotes and upstreams."""

    def __init__(self) -> None:
        self.remotes: dict[Path, dict[str, str]] = {}
        self.branches: dict[Path, set[str]] = {}
        self.upstreams: dict[tuple[Path, str], str] = {}
        self.current: dict[Path, str] = {}
        self.calls: list[tuple[str, ...]] = []

    def add_checkout(self, path: Path, *, remotes: dict[str, str], branch: str = "main") -> None:
        self.remotes[path] = dict(remotes)
        self.branches[path] = {branch}
        self.current[path] = branch

    def mutations(self, path: Path | None = None) -> list[tuple[str, ...]]:
        return [c[1:] for c in self.calls if path is None or c[0] == str(path)]

    # Queries

    def has_local_branch(self, path: Path, branch: str) -> bool:
        return branch in self.branches.get(path, set())

    def remote_url(self, path: Path, remote: str) -> str | None:
        return self.remotes.get(path, {}).get(remote)

    def has_remote(self, path: Path, remote: str, url_pattern: str | None = None) -> bool:
        url = self.remote_url(path, remote)
        if url is None:
            return False
        return url_pattern is None or re.search(url_pattern, url) is not None

    def list_remotes(self, path: Path) -> list[str]:
        return list(self.remotes.get(path, {}))

    def determine_origin_remote(self, path: Path) -> str | None:
        remotes = self.list_remotes(path)
        for candidate in ("origin", "upstream"):
            if candidate in remotes:
                return candidate
        return remotes[0] if remotes else None

    def tracking_ref(self, path: Path, branch: str) -> str | None:
        return self.upstreams.get((path, branch))

    def current_branch(self, path: Path) -> str:
        return self.current[path]

    # Mutations

    def _record(self, path: Path, *args: str) -> None:
        self.calls.append((str(path), *args))

    def add_remote(self, path: Path, remote: str, url: str) -> None:
        self._record(path, "remote-add", remote, url)
        self.remotes.setdefault(path, {})[remote] = url

    def checkout(self, path: Path, branch: str) -> None:
        self._record(path, "checkout", branch)
        self.current[path] = branch

    def create_branch(self, path: Path, branch: str) -> None:
        self._record(path, "create-branch", branch)
        self.branches.setdefault(path, set()).add(branch)
        self.current[path] = branch

    def track_remote_branch(self, path: Path, remote: str, branch: str) -> None:
        self._record(path, "track", remote, branch)
        self.branches.setdefault(path, set()).add(branch)
        self.upstreams[(path, branch)] = f"{remote}/{branch}"
        self.current[path] = branch

    def fetch(self, path: Path, remote: str, branch: str) -> None:
        self._record(path, "fetch", remote, branch)

    def pull(self, path: Path, remote: str, branch: str) -> None:
        self._record(path, "pull", remote, branch)
        self.upstreams[(path, branch)] = f"{remote}/{branch}"

    def push(self, path: Path, remote: str, branch: str) -> None:
        self._record(path, "push", remote, branch)
        self.upstreams[(path, branch)] = f"{remote}/{branch}"


class FakeRunner:
    """Command runner that records requests and answers from a callback."""

    def __init__(
        self, respond: Callable[[CommandRequest], CommandResult] | None = None
    ) -> None:
        self.requests: list[CommandRequest] = []
        self._respond = respond or (
            lambda req: CommandResult(argv=req.argv, returncode=0, stdout="", stderr="")
        )

    def run(self, request: CommandRequest) -> CommandResult:
        self.requests.append(request)
        return self._respond(request)


def open_issue(
    repository: str, number: int, *, assignees: list[str] | None = None, status: str = "open"
) -> IssueDetails:
    return IssueDetails(
        repository=repository,
        number=number,
        title=f"Issue {number}",
        created_at=None,
        status=status,
        assignees=assignees or [],
    )

