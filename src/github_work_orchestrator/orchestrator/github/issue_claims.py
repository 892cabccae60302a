"""Issue reference handling and issue claiming.

Claiming is a precondition gate for starting work: every issue is checked before any
issue is touched, and any claim failure aborts before repositories are mutated.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

import requests

from github_work_orchestrator.orchestrator.errors import (
    ConflictError,
    FatalError,
    InvalidRequestError,
    NotFoundError,
)
from github_work_orchestrator.orchestrator.github.client import (
    GitHubClient,
    IssueDetails,
    IssueNotFound,
)

logger = logging.getLogger(__name__)

_SLASH_REF = re.compile(r"^(?P<org>[^/\s]+)/(?P<project>[^/\s]+)/(?P<number>\d+)$")
_DASH_REF = re.compile(r"^(?P<org>[^/\s]+)/(?P<project>[^/\s]+)-(?P<number>\d+)$")

DEFAULT_CLAIM_COMMENT = "Work for this issue has begun on branch '{branch}'."


@dataclass(frozen=True, slots=True)
class IssueRef:
    """A fully qualified issue reference: `<org>/<project>/<number>`."""

    org: str
    project: str
    number: int

    @classmethod
    def parse(cls, value: str) -> IssueRef:
        """Parse `<org>/<project>/<n>` (or the legacy `<org>/<project>-<n>`)."""

        raw = value.strip()
        match = _SLASH_REF.match(raw) or _DASH_REF.match(raw)
        if match is None:
            raise InvalidRequestError(
                f"Invalid issue reference '{value}'; expected '<org>/<project>/<number>' "
                "or a bare issue number.",
                issue=value,
            )
        number = int(match.group("number"))
        if number <= 0:
            raise InvalidRequestError(f"Invalid issue number in '{value}'.", issue=value)
        return cls(org=match.group("org"), project=match.group("project"), number=number)

    @property
    def repository(self) -> str:
        return f"{self.org}/{self.project}"

    def __str__(self) -> str:
        return f"{self.org}/{self.project}/{self.number}"


@dataclass(frozen=True, slots=True)
class ClaimedIssue:
    reference: str
    assignees: list[str]
    comment: str


def normalize_issue_refs(issues: list[str], default_project: str) -> list[str]:
    """Qualify bare issue numbers with `default_project`.

    Anything that is not a bare integer is passed through unchanged, so normalizing
    an already-normalized list is a no-op.
    """

    normalized: list[str] = []
    for issue in issues:
        value = issue.strip()
        if value.isdigit():
            value = f"{default_project}/{value}"
        normalized.append(value)
    return normalized


def canonical_issue_refs(issues: list[str], default_project: str) -> list[IssueRef]:
    """Normalize, parse and de-duplicate issue references (stable order)."""

    refs: list[IssueRef] = []
    for value in normalize_issue_refs(issues, default_project):
        ref = IssueRef.parse(value)
        if ref not in refs:
            refs.append(ref)
    return refs


class IssueClaimCoordinator:
    """Verify and claim issues on GitHub."""

    def __init__(self, *, github: GitHubClient) -> None:
        self._github = github

    def verify_available(
        self,
        issues: list[IssueRef],
        *,
        claimant: str | None,
        no_auto_assign: bool = False,
        not_closed: bool = True,
    ) -> list[IssueDetails]:
        """Fail unless every issue can be claimed by `claimant`.

        All issues are inspected before failing so the error lists every problem.
        """

        details: list[IssueDetails] = []
        problems: list[str] = []
        for ref in issues:
            try:
                issue = self._github.get_issue(repository=ref.repository, issue_number=ref.number)
            except IssueNotFound as e:
                raise NotFoundError(f"Issue '{ref}' not found on GitHub.", issue=str(ref)) from e
            except requests.RequestException as e:
                raise FatalError(
                    f"Could not load issue '{ref}': {e}", issue=str(ref), step="verify-issue"
                ) from e
            details.append(issue)

            if not_closed and issue.status.lower() == "closed":
                problems.append(f"{ref} is closed")
            if not no_auto_assign and issue.assignees:
                others = [
                    a for a in issue.assignees if claimant is None or a.lower() != claimant.lower()
                ]
                if others:
                    problems.append(f"{ref} is assigned to {', '.join(others)}")

        if problems:
            raise ConflictError(
                "Issues are not available: " + "; ".join(problems) + ".",
                issues=[str(ref) for ref in issues],
            )

        logger.info("Issues verified available", extra={"issues": [str(r) for r in issues]})
        return details

    def claim(
        self,
        issues: list[IssueRef],
        *,
        assignee: str | None,
        comment: str | None,
        branch_name: str,
    ) -> list[ClaimedIssue]:
        """Assign (when `assignee` is set) and comment on every issue."""

        body = comment or DEFAULT_CLAIM_COMMENT.format(branch=branch_name)
        claimed: list[ClaimedIssue] = []
        for ref in issues:
            assignees: list[str] = []
            try:
                if assignee:
                    assignees = self._github.assign_issue(
                        repository=ref.repository, issue_number=ref.number, assignees=[assignee]
                    )
                self._github.create_issue_comment(
                    repository=ref.repository, issue_number=ref.number, body=body
                )
            except requests.RequestException as e:
                raise FatalError(
                    f"Failed to claim issue '{ref}': {e}", issue=str(ref), step="claim-issue"
                ) from e
            claimed.append(ClaimedIssue(reference=str(ref), assignees=assignees, comment=body))

        logger.info(
            "Issues claimed",
            extra={"issues": [c.reference for c in claimed], "assignee": assignee},
        )
        return claimed
