"""Make sure a repository has the right remote before branch work begins.

Private repositories are worked on directly through their origin remote. Public
repositories are worked on through a fork owned by the caller, reached via a fixed
`workspace` remote.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path

from github import GithubException

from github_work_orchestrator.orchestrator.errors import ConflictError, FatalError, NotFoundError
from github_work_orchestrator.orchestrator.git.local import GitCommandError, LocalGit
from github_work_orchestrator.orchestrator.github.client import GitHubClient, RepositoryNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PrivateRepo:
    pass


@dataclass(frozen=True, slots=True)
class PublicRepo:
    fork_existed: bool


RepoKind = PrivateRepo | PublicRepo


@dataclass(frozen=True, slots=True)
class RepoBinding:
    """Where branch work for one repository happens."""

    org: str
    repo_base_name: str
    local_path: Path
    kind: RepoKind
    remote_name: str
    # Owner of the repository the remote points at (the org, or the caller's fork).
    remote_owner: str
    fork_created: bool = False
    remote_added: bool = False

    @property
    def project(self) -> str:
        return f"{self.org}/{self.repo_base_name}"

    @property
    def visibility(self) -> str:
        return "private" if isinstance(self.kind, PrivateRepo) else "public"


def fork_url_pattern(repo_base_name: str) -> str:
    """Regex matched against the workspace remote URL."""

    return rf"/{re.escape(repo_base_name)}(?:\.git)?$"


class RepoProvisioner:
    def __init__(
        self,
        *,
        github: GitHubClient,
        git: LocalGit,
        workspace_remote: str = "workspace",
        ssh_host: str = "github.com",
    ) -> None:
        self._github = github
        self._git = git
        self._workspace_remote = workspace_remote
        self._ssh_host = ssh_host

    def fork_url(self, owner: str, repo_base_name: str) -> str:
        return f"git@{self._ssh_host}:{owner}/{repo_base_name}.git"

    def provision(
        self, *, org: str, repo_base_name: str, local_path: Path, caller_login: str
    ) -> RepoBinding:
        kind = self._classify(org=org, repo_base_name=repo_base_name, caller_login=caller_login)
        if isinstance(kind, PrivateRepo):
            return self._provision_private(
                org=org, repo_base_name=repo_base_name, local_path=local_path
            )
        return self._provision_public(
            org=org,
            repo_base_name=repo_base_name,
            local_path=local_path,
            caller_login=caller_login,
            kind=kind,
        )

    def _classify(self, *, org: str, repo_base_name: str, caller_login: str) -> RepoKind:
        project = f"{org}/{repo_base_name}"
        try:
            info = self._github.get_repository(owner=org, repo=repo_base_name)
        except RepositoryNotFound as e:
            raise NotFoundError(
                f"Could not find project '{project}' repo on GitHub: {e.detail or e}",
                repository=project,
                step="repo-lookup",
            ) from e
        if info.private:
            return PrivateRepo()

        # Absence of a fork is an expected outcome; `find_repository` maps 404 to None.
        fork = self._github.find_repository(owner=caller_login, repo=repo_base_name)
        return PublicRepo(fork_existed=fork is not None)

    def _provision_private(self, *, org: str, repo_base_name: str, local_path: Path) -> RepoBinding:
        project = f"{org}/{repo_base_name}"
        try:
            remote = self._git.determine_origin_remote(local_path)
        except GitCommandError as e:
            raise FatalError(
                f"Could not inspect remotes for '{project}': {e}",
                repository=project,
                step="detect-origin",
            ) from e
        if remote is None:
            raise FatalError(
                f"Project '{project}' at {local_path} has no git remotes.",
                repository=project,
                step="detect-origin",
            )
        logger.info(
            "Private repository uses origin remote", extra={"repo": project, "remote": remote}
        )
        return RepoBinding(
            org=org,
            repo_base_name=repo_base_name,
            local_path=local_path,
            kind=PrivateRepo(),
            remote_name=remote,
            remote_owner=org,
        )

    def _provision_public(
        self,
        *,
        org: str,
        repo_base_name: str,
        local_path: Path,
        caller_login: str,
        kind: PublicRepo,
    ) -> RepoBinding:
        project = f"{org}/{repo_base_name}"
        remote = self._workspace_remote

        # Check the remote before any mutation: a mismatched remote must leave no trace.
        has_matching = self._git.has_remote(local_path, remote, fork_url_pattern(repo_base_name))
        if not has_matching and self._git.has_remote(local_path, remote):
            raise ConflictError(
                f"Project {project} has a '{remote}' remote with an unexpected URL "
                f"({self._git.remote_url(local_path, remote)}). Check and address manually.",
                repository=project,
                step="verify-workspace-remote",
            )

        fork_created = False
        if not kind.fork_existed:
            try:
                self._github.create_fork(owner=org, repo=repo_base_name)
            except GithubException as e:
                raise FatalError(
                    f"Failed to fork '{project}' for {caller_login}: {e}",
                    repository=project,
                    step="create-fork",
                ) from e
            fork_created = True

        remote_added = False
        if not has_matching:
            url = self.fork_url(caller_login, repo_base_name)
            try:
                self._git.add_remote(local_path, remote, url)
            except GitCommandError as e:
                raise FatalError(
                    f"Failed to add '{remote}' remote to '{project}': {e}",
                    repository=project,
                    step="add-workspace-remote",
                ) from e
            remote_added = True
            logger.info("Workspace remote added", extra={"repo": project, "url": url})

        return RepoBinding(
            org=org,
            repo_base_name=repo_base_name,
            local_path=local_path,
            kind=kind,
            remote_name=remote,
            remote_owner=caller_login,
            fork_created=fork_created,
            remote_added=remote_added,
        )
