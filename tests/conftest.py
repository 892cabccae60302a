"""Test configuration and fixtures."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import Mock

import pytest
from helpers import FakeGit, FakeRunner, open_issue

from github_work_orchestrator.orchestrator.github.client import GitHubClient, RepositoryInfo
from github_work_orchestrator.orchestrator.work.build import BuildRunner
from github_work_orchestrator.orchestrator.work.orchestrator import WorkOrchestrator
from github_work_orchestrator.orchestrator.work.projects import ProjectCatalog
from github_work_orchestrator.orchestrator.work.registry import InMemoryWorkStore, WorkRegistry


@pytest.fixture
def playground(tmp_path: Path) -> Path:
    """Provide a playground holding two checkouts: org/alpha and org/beta."""
    root = tmp_path / "playground"
    for name in ("alpha", "beta"):
        (root / "org" / name / ".git").mkdir(parents=True)
    return root


@pytest.fixture
def fake_git(playground: Path) -> FakeGit:
    git = FakeGit()
    for name in ("alpha", "beta"):
        git.add_checkout(
            playground / "org" / name, remotes={"origin": f"git@github.com:org/{name}.git"}
        )
    return git


@pytest.fixture
def remote_branches() -> set[tuple[str, str, str]]:
    """Branches that exist on GitHub, as (owner, repo, branch)."""
    return set()


@pytest.fixture
def mock_github(remote_branches: set[tuple[str, str, str]]) -> Mock:
    """Provide a GitHub client mock for public repos with no forks yet."""
    github = Mock(spec=GitHubClient)
    github.get_authenticated_login.return_value = "dev"
    github.get_repository.side_effect = lambda *, owner, repo: RepositoryInfo(
        full_name=f"{owner}/{repo}", owner=owner, name=repo, private=False
    )
    github.find_repository.return_value = None
    github.branch_exists.side_effect = (
        lambda *, owner, repo, branch: (owner, repo, branch) in remote_branches
    )
    github.get_issue.side_effect = lambda *, repository, issue_number: open_issue(
        repository, issue_number
    )
    github.assign_issue.side_effect = lambda *, repository, issue_number, assignees: assignees
    return github


@pytest.fixture
def registry() -> WorkRegistry:
    return WorkRegistry(InMemoryWorkStore())


@pytest.fixture
def build_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def orchestrator(
    playground: Path,
    fake_git: FakeGit,
    mock_github: Mock,
    registry: WorkRegistry,
    build_runner: FakeRunner,
) -> WorkOrchestrator:
    return WorkOrchestrator(
        registry=registry,
        catalog=ProjectCatalog(playground),
        git=fake_git,  # type: ignore[arg-type]
        github=mock_github,
        builder=BuildRunner(command="make", runner=build_runner),
    )
