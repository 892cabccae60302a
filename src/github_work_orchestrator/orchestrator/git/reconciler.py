"""Bring a work branch into the same state locally and on its remote.

The decision is a pure function of the observed branch presence; executing it is a
separate step so the table can be tested without git.

Decision table (first match wins):

    remote  local  tracking  -> action
    yes     yes    yes       -> NOOP
    yes     any    -         -> PULL
    no      yes    -         -> PUSH
    no      no     -         -> CREATE_AND_PUSH

Every action leaves the local branch tracking `<remote>/<branch>`, so inspecting again
after any action yields NOOP.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import requests

from github_work_orchestrator.orchestrator.errors import FatalError
from github_work_orchestrator.orchestrator.git.local import GitCommandError, LocalGit
from github_work_orchestrator.orchestrator.github.client import GitHubClient

logger = logging.getLogger(__name__)


class BranchAction(str, Enum):
    CREATE_AND_PUSH = "create-and-push"
    PULL = "pull"
    PUSH = "push"
    NOOP = "noop"


@dataclass(frozen=True, slots=True)
class BranchPresenceState:
    has_local_branch: bool
    has_remote_branch: bool
    is_tracking: bool = False


def decide_action(state: BranchPresenceState) -> BranchAction:
    if state.has_remote_branch and state.has_local_branch and state.is_tracking:
        return BranchAction.NOOP
    if state.has_remote_branch:
        return BranchAction.PULL
    if state.has_local_branch:
        return BranchAction.PUSH
    return BranchAction.CREATE_AND_PUSH


class BranchReconciler:
    def __init__(self, *, github: GitHubClient, git: LocalGit) -> None:
        self._github = github
        self._git = git

    def inspect(
        self,
        *,
        local_path: Path,
        owner: str,
        repo_base_name: str,
        branch: str,
        remote_name: str,
    ) -> BranchPresenceState:
        repository = f"{owner}/{repo_base_name}"
        try:
            has_remote = self._github.branch_exists(owner=owner, repo=repo_base_name, branch=branch)
        except requests.RequestException as e:
            raise FatalError(
                f"Could not check branch '{branch}' on {repository}: {e}",
                repository=repository,
                branch=branch,
                step="inspect-remote-branch",
            ) from e

        has_local = self._git.has_local_branch(local_path, branch)
        is_tracking = (
            has_local and self._git.tracking_ref(local_path, branch) == f"{remote_name}/{branch}"
        )
        return BranchPresenceState(
            has_local_branch=has_local, has_remote_branch=has_remote, is_tracking=is_tracking
        )

    def reconcile(
        self,
        *,
        local_path: Path,
        owner: str,
        repo_base_name: str,
        branch: str,
        remote_name: str | None = None,
    ) -> BranchAction:
        """Inspect, decide and apply the single synchronizing action for one repository."""

        repository = f"{owner}/{repo_base_name}"
        if remote_name is None:
            remote_name = self._default_remote(local_path, repository)

        state = self.inspect(
            local_path=local_path,
            owner=owner,
            repo_base_name=repo_base_name,
            branch=branch,
            remote_name=remote_name,
        )
        action = decide_action(state)
        logger.info(
            "Reconciling work branch",
            extra={
                "repo": repository,
                "branch": branch,
                "remote": remote_name,
                "has_local_branch": state.has_local_branch,
                "has_remote_branch": state.has_remote_branch,
                "action": action.value,
            },
        )

        try:
            self.apply(
                action,
                local_path=local_path,
                branch=branch,
                remote_name=remote_name,
                has_local_branch=state.has_local_branch,
            )
        except GitCommandError as e:
            raise FatalError(
                f"Failed to {action.value} branch '{branch}' in {repository}: {e}",
                repository=repository,
                branch=branch,
                step=action.value,
            ) from e
        return action

    def apply(
        self,
        action: BranchAction,
        *,
        local_path: Path,
        branch: str,
        remote_name: str,
        has_local_branch: bool,
    ) -> None:
        git = self._git
        if action is BranchAction.CREATE_AND_PUSH:
            git.create_branch(local_path, branch)
            git.push(local_path, remote_name, branch)
        elif action is BranchAction.PULL:
            git.fetch(local_path, remote_name, branch)
            if has_local_branch:
                git.checkout(local_path, branch)
                git.pull(local_path, remote_name, branch)
            else:
                git.track_remote_branch(local_path, remote_name, branch)
        elif action is BranchAction.PUSH:
            git.checkout(local_path, branch)
            git.push(local_path, remote_name, branch)

    def _default_remote(self, local_path: Path, repository: str) -> str:
        try:
            remote = self._git.determine_origin_remote(local_path)
        except GitCommandError as e:
            raise FatalError(
                f"Could not determine origin remote for {repository}: {e}",
                repository=repository,
                step="detect-origin",
            ) from e
        if remote is None:
            raise FatalError(
                f"{repository} at {local_path} has no git remotes.",
                repository=repository,
                step="detect-origin",
            )
        return remote
