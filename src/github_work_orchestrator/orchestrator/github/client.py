"""GitHub API client wrapper.

This intentionally wraps PyGithub and a `requests` session to keep GitHub calls out
of the orchestration code and make tests easy. Unlike a single-repository client it
addresses repositories per call, because one unit of work spans several.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

import requests
from github import Auth, Github, GithubException

logger = logging.getLogger(__name__)

_TIMEOUT_SECONDS = 30


@dataclass(frozen=True, slots=True)
class RepositoryInfo:
    """Minimal repository metadata needed for provisioning."""

    full_name: str
    owner: str
    name: str
    private: bool
    ssh_url: str | None = None


@dataclass(frozen=True, slots=True)
class IssueDetails:
    """Minimal issue metadata fetched from GitHub."""

    repository: str
    number: int
    title: str
    created_at: datetime | None
    status: str
    assignees: list[str]


@dataclass
class RepositoryNotFound(Exception):
    """Raised when a repository lookup returns 404."""

    repository: str
    detail: str = ""

    def __str__(self) -> str:
        return f"Repository not found: {self.repository}"


@dataclass
class IssueNotFound(Exception):
    """Raised when an issue lookup returns 404."""

    repository: str
    number: int

    def __str__(self) -> str:
        return f"Issue not found: {self.repository}#{self.number}"


def _is_not_found(exc: requests.HTTPError) -> bool:
    return exc.response is not None and exc.response.status_code == 404


class GitHubClient:
    """Small wrapper around PyGithub and the REST API for the operations we need."""

    def __init__(
        self,
        *,
        token: str,
        base_url: str = "https://api.github.com",
        github_api: Github | None = None,
        session: requests.Session | None = None,
    ) -> None:
        if not token:
            raise ValueError("GitHub token is required")

        self._rest_base_url = base_url.rstrip("/")
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "github-work-orchestrator",
            }
        )

        auth = Auth.Token(token)
        self._github = github_api or Github(auth=auth, base_url=self._rest_base_url)
        self._login: str | None = None

    def _repo_url(self, *, owner: str, repo: str, path: str = "") -> str:
        base = f"{self._rest_base_url}/repos/{owner.strip('/')}/{repo.strip('/')}"
        path = path.strip("/")
        return f"{base}/{path}" if path else base

    def _issues_url(self, *, repository: str, issue_number: int, suffix: str = "") -> str:
        if issue_number <= 0:
            raise ValueError("issue_number must be a positive integer")
        owner, _, repo = repository.strip("/").partition("/")
        if not owner or not repo:
            raise ValueError("repository must be in the form 'owner/repo'")
        path = f"issues/{issue_number}"
        if suffix:
            path = f"{path}/{suffix.lstrip('/')}"
        return self._repo_url(owner=owner, repo=repo, path=path)

    @staticmethod
    def _parse_datetime(value: object) -> datetime | None:
        if not isinstance(value, str) or not value.strip():
            return None
        # GitHub commonly returns timestamps like "2025-01-01T00:00:00Z".
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    @staticmethod
    def _parse_assignees_from_issue_json(data: dict[str, Any]) -> list[str]:
        raw_assignees = data.get("assignees")
        if not isinstance(raw_assignees, list):
            return []
        logins: list[str] = []
        for assignee in raw_assignees:
            if isinstance(assignee, dict):
                login = assignee.get("login")
                if isinstance(login, str) and login.strip():
                    logins.append(login)
        return logins

    @staticmethod
    def _repository_info_from_json(data: dict[str, Any]) -> RepositoryInfo:
        full_name = data.get("full_name")
        if not isinstance(full_name, str) or "/" not in full_name:
            raise ValueError("Invalid repository response: missing full_name")
        owner, _, name = full_name.partition("/")
        ssh_url = data.get("ssh_url")
        return RepositoryInfo(
            full_name=full_name,
            owner=owner,
            name=name,
            private=bool(data.get("private", False)),
            ssh_url=ssh_url if isinstance(ssh_url, str) else None,
        )

    def get_authenticated_login(self) -> str:
        """Return the login of the token owner (cached)."""

        if self._login is None:
            self._login = self._github.get_user().login
            logger.debug("Resolved authenticated GitHub login", extra={"login": self._login})
        return self._login

    def get_repository(self, *, owner: str, repo: str) -> RepositoryInfo:
        """Fetch repository metadata.

        Raises:
            RepositoryNotFound: The repository does not exist or the token cannot see it.
            GithubException: Any other API failure.
        """

        full_name = f"{owner}/{repo}"
        try:
            gh_repo = self._github.get_repo(full_name)
        except GithubException as e:
            if e.status == 404:
                raise RepositoryNotFound(repository=full_name, detail=str(e)) from e
            raise
        return RepositoryInfo(
            full_name=gh_repo.full_name,
            owner=gh_repo.owner.login,
            name=gh_repo.name,
            private=bool(gh_repo.private),
            ssh_url=gh_repo.ssh_url,
        )

    def find_repository(self, *, owner: str, repo: str) -> RepositoryInfo | None:
        """Return repository metadata, or None when GitHub answers 404."""

        resp = self._session.get(self._repo_url(owner=owner, repo=repo), timeout=_TIMEOUT_SECONDS)
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            if _is_not_found(e):
                return None
            raise
        return self._repository_info_from_json(resp.json())

    def create_fork(self, *, owner: str, repo: str) -> RepositoryInfo:
        """Request a fork of `owner/repo` under the authenticated user.

        GitHub creates forks asynchronously; the returned metadata is the acknowledgment,
        not a readiness guarantee.
        """

        source = self._github.get_repo(f"{owner}/{repo}")
        fork = source.create_fork(default_branch_only=True)
        logger.info(
            "Fork requested",
            extra={"source": f"{owner}/{repo}", "fork": fork.full_name},
        )
        return RepositoryInfo(
            full_name=fork.full_name,
            owner=fork.owner.login,
            name=fork.name,
            private=bool(fork.private),
            ssh_url=fork.ssh_url,
        )

    def branch_exists(self, *, owner: str, repo: str, branch: str) -> bool:
        if not branch.strip():
            raise ValueError("branch is required")
        url = self._repo_url(owner=owner, repo=repo, path=f"branches/{branch}")
        resp = self._session.get(url, timeout=_TIMEOUT_SECONDS)
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            if _is_not_found(e):
                return False
            raise
        return True

    def get_issue(self, *, repository: str, issue_number: int) -> IssueDetails:
        """Fetch an issue by number via REST."""

        url = self._issues_url(repository=repository, issue_number=issue_number)
        resp = self._session.get(url, timeout=_TIMEOUT_SECONDS)
        try:
            resp.raise_for_status()
        except requests.HTTPError as e:
            if _is_not_found(e):
                raise IssueNotFound(repository=repository, number=issue_number) from e
            raise
        data: dict[str, Any] = resp.json()

        number = data.get("number")
        if not isinstance(number, int) or number <= 0:
            raise ValueError("Invalid issue response: missing number")

        title = data.get("title")
        state = data.get("state")

        return IssueDetails(
            repository=repository,
            number=number,
            title=title if isinstance(title, str) else "",
            created_at=self._parse_datetime(data.get("created_at")),
            status=state if isinstance(state, str) else "",
            assignees=self._parse_assignees_from_issue_json(data),
        )

    def assign_issue(
        self, *, repository: str, issue_number: int, assignees: list[str]
    ) -> list[str]:
        """Assign an issue to one or more GitHub users.

        Returns:
            The assignee logins returned by GitHub after the assignment attempt.
        """

        normalized = [a.strip() for a in assignees if a.strip()]
        if not normalized:
            raise ValueError("At least one assignee is required")

        url = self._issues_url(repository=repository, issue_number=issue_number, suffix="assignees")
        resp = self._session.post(url, json={"assignees": normalized}, timeout=_TIMEOUT_SECONDS)
        resp.raise_for_status()

        returned_assignees = self._parse_assignees_from_issue_json(resp.json())
        logger.info(
            "Issue assigned",
            extra={
                "repo": repository,
                "issue_number": issue_number,
                "requested_assignees": normalized,
                "returned_assignees": returned_assignees,
            },
        )
        return returned_assignees

    def create_issue_comment(self, *, repository: str, issue_number: int, body: str) -> None:
        if not body.strip():
            raise ValueError("Comment body is required")
        url = self._issues_url(repository=repository, issue_number=issue_number, suffix="comments")
        resp = self._session.post(url, json={"body": body}, timeout=_TIMEOUT_SECONDS)
        resp.raise_for_status()
        logger.debug(
            "Issue comment posted", extra={"repo": repository, "issue_number": issue_number}
        )

    def close(self) -> None:
        self._session.close()
        self._github.close()
