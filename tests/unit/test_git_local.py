"""Unit tests for the local git adapter (scripted command runner)."""

from __future__ import annotations

from pathlib import Path

import pytest
from helpers import FakeRunner

from github_work_orchestrator.orchestrator.git.local import GitCommandError, LocalGit
from github_work_orchestrator.orchestrator.process import CommandRequest, CommandResult


def _scripted(outputs: dict[tuple[str, ...], tuple[int, str]]) -> FakeRunner:
    """Answer by git sub-argv; unknown commands succeed with no output."""

    def respond(req: CommandRequest) -> CommandResult:
        code, out = outputs.get(req.argv[1:], (0, ""))
        return CommandResult(
            argv=req.argv, returncode=code, stdout=out if code == 0 else "", stderr=out
        )

    return FakeRunner(respond)


def test_mutations_run_expected_git_commands(tmp_path: Path) -> None:
    runner = _scripted({})
    git = LocalGit(runner, timeout_seconds=5)

    git.create_branch(tmp_path, "work/a")
    git.push(tmp_path, "workspace", "work/a")
    git.track_remote_branch(tmp_path, "origin", "work/a")
    git.pull(tmp_path, "origin", "work/a")

    assert [r.argv for r in runner.requests] == [
        ("git", "checkout", "-b", "work/a"),
        ("git", "push", "--set-upstream", "workspace", "work/a"),
        ("git", "checkout", "-b", "work/a", "--track", "origin/work/a"),
        ("git", "pull", "--set-upstream", "origin", "work/a"),
    ]
    assert all(r.cwd == tmp_path and r.timeout_seconds == 5 for r in runner.requests)


def test_failed_mutation_raises_with_stderr(tmp_path: Path) -> None:
    git = LocalGit(_scripted({("push", "--set-upstream", "origin", "b"): (1, "rejected")}))

    with pytest.raises(GitCommandError) as excinfo:
        git.push(tmp_path, "origin", "b")

    assert excinfo.value.returncode == 1
    assert "rejected" in str(excinfo.value)


def test_branch_and_tracking_queries(tmp_path: Path) -> None:
    git = LocalGit(
        _scripted(
            {
                ("show-ref", "--verify", "--quiet", "refs/heads/missing"): (1, ""),
                (
                    "rev-parse",
                    "--abbrev-ref",
                    "--symbolic-full-name",
                    "work/a@{upstream}",
                ): (0, "workspace/work/a\n"),
                ("rev-parse", "--abbrev-ref", "HEAD"): (0, "work/a\n"),
            }
        )
    )

    assert git.has_local_branch(tmp_path, "work/a") is True
    assert git.has_local_branch(tmp_path, "missing") is False
    assert git.tracking_ref(tmp_path, "work/a") == "workspace/work/a"
    assert git.current_branch(tmp_path) == "work/a"


def test_has_remote_matches_url_pattern(tmp_path: Path) -> None:
    git = LocalGit(
        _scripted(
            {
                ("remote", "get-url", "workspace"): (0, "git@github.com:dev/alpha.git\n"),
                ("remote", "get-url", "nope"): (2, "error: No such remote 'nope'"),
            }
        )
    )

    assert git.has_remote(tmp_path, "workspace") is True
    assert git.has_remote(tmp_path, "workspace", r"/alpha(?:\.git)?$") is True
    assert git.has_remote(tmp_path, "workspace", r"/beta(?:\.git)?$") is False
    assert git.has_remote(tmp_path, "nope") is False


@pytest.mark.parametrize(
    ("listing", "expected"),
    [
        ("fork\nupstream\norigin\n", "origin"),
        ("fork\nupstream\n", "upstream"),
        ("fork\nmirror\n", "fork"),
        ("", None),
    ],
)
def test_determine_origin_remote(tmp_path: Path, listing: str, expected: str | None) -> None:
    git = LocalGit(_scripted({("remote",): (0, listing)}))

    assert git.determine_origin_remote(tmp_path) == expected
