"""Unit tests for repository provisioning (mocked GitHub, fake git)."""

from __future__ import annotations

import re
from pathlib import Path
from unittest.mock import Mock

import pytest
from helpers import FakeGit
from github import GithubException

from github_work_orchestrator.orchestrator.errors import ConflictError, FatalError, NotFoundError
from github_work_orchestrator.orchestrator.github.client import (
    RepositoryInfo,
    RepositoryNotFound,
)
from github_work_orchestrator.orchestrator.github.repo_provisioner import (
    PrivateRepo,
    PublicRepo,
    RepoProvisioner,
    fork_url_pattern,
)


def _provisioner(github: Mock, git: FakeGit) -> RepoProvisioner:
    return RepoProvisioner(
        github=github, git=git, workspace_remote="workspace"  # type: ignore[arg-type]
    )


def _provision(provisioner: RepoProvisioner, path: Path):
    return provisioner.provision(
        org="org", repo_base_name="alpha", local_path=path, caller_login="dev"
    )


def test_private_repo_uses_origin_remote(
    playground: Path, fake_git: FakeGit, mock_github: Mock
) -> None:
    mock_github.get_repository.side_effect = None
    mock_github.get_repository.return_value = RepositoryInfo(
        full_name="org/alpha", owner="org", name="alpha", private=True
    )
    path = playground / "org" / "alpha"

    binding = _provision(_provisioner(mock_github, fake_git), path)

    assert binding.kind == PrivateRepo()
    assert binding.visibility == "private"
    assert binding.remote_name == "origin"
    assert binding.remote_owner == "org"
    mock_github.find_repository.assert_not_called()
    mock_github.create_fork.assert_not_called()
    assert fake_git.calls == []


def test_public_repo_without_fork_creates_fork_and_remote(
    playground: Path, fake_git: FakeGit, mock_github: Mock
) -> None:
    path = playground / "org" / "alpha"

    binding = _provision(_provisioner(mock_github, fake_git), path)

    assert binding.kind == PublicRepo(fork_existed=False)
    assert binding.fork_created is True
    assert binding.remote_added is True
    assert binding.remote_name == "workspace"
    assert binding.remote_owner == "dev"
    mock_github.find_repository.assert_called_once_with(owner="dev", repo="alpha")
    mock_github.create_fork.assert_called_once_with(owner="org", repo="alpha")
    assert fake_git.mutations(path) == [
        ("remote-add", "workspace", "git@github.com:dev/alpha.git")
    ]


def test_public_repo_with_fork_and_matching_remote_changes_nothing(
    playground: Path, fake_git: FakeGit, mock_github: Mock
) -> None:
    path = playground / "org" / "alpha"
    fake_git.remotes[path]["workspace"] = "git@github.com:dev/alpha.git"
    mock_github.find_repository.return_value = RepositoryInfo(
        full_name="dev/alpha", owner="dev", name="alpha", private=False
    )

    binding = _provision(_provisioner(mock_github, fake_git), path)

    assert binding.kind == PublicRepo(fork_existed=True)
    assert (binding.fork_created, binding.remote_added) == (False, False)
    mock_github.create_fork.assert_not_called()
    assert fake_git.calls == []


def test_mismatched_workspace_remote_conflicts_before_any_change(
    playground: Path, fake_git: FakeGit, mock_github: Mock
) -> None:
    path = playground / "org" / "alpha"
    fake_git.remotes[path]["workspace"] = "git@github.com:dev/something-else.git"

    with pytest.raises(ConflictError) as excinfo:
        _provision(_provisioner(mock_github, fake_git), path)

    assert excinfo.value.context["step"] == "verify-workspace-remote"
    assert "something-else" in str(excinfo.value)
    mock_github.create_fork.assert_not_called()
    assert fake_git.calls == []


def test_missing_repository_is_not_found(
    playground: Path, fake_git: FakeGit, mock_github: Mock
) -> None:
    mock_github.get_repository.side_effect = RepositoryNotFound(repository="org/alpha")

    with pytest.raises(NotFoundError) as excinfo:
        _provision(_provisioner(mock_github, fake_git), playground / "org" / "alpha")

    assert excinfo.value.context == {"repository": "org/alpha", "step": "repo-lookup"}


def test_other_api_failures_propagate(
    playground: Path, fake_git: FakeGit, mock_github: Mock
) -> None:
    mock_github.get_repository.side_effect = GithubException(500, {"message": "oops"}, None)

    with pytest.raises(GithubException):
        _provision(_provisioner(mock_github, fake_git), playground / "org" / "alpha")


def test_fork_failure_is_fatal(playground: Path, fake_git: FakeGit, mock_github: Mock) -> None:
    mock_github.create_fork.side_effect = GithubException(403, {"message": "nope"}, None)
    path = playground / "org" / "alpha"

    with pytest.raises(FatalError) as excinfo:
        _provision(_provisioner(mock_github, fake_git), path)

    assert excinfo.value.context["step"] == "create-fork"
    assert fake_git.calls == []


@pytest.mark.parametrize(
    ("url", "matches"),
    [
        ("git@github.com:dev/alpha.git", True),
        ("https://github.com/dev/alpha", True),
        ("git@github.com:dev/alpha-tools.git", False),
        ("git@github.com:dev/xalpha.git", False),
    ],
)
def test_fork_url_pattern(url: str, matches: bool) -> None:
    assert (re.search(fork_url_pattern("alpha"), url) is not None) is matches
