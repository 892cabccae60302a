"""Persisted work-unit model."""

from __future__ import annotations

import re
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from github_work_orchestrator.orchestrator.errors import InvalidRequestError
from github_work_orchestrator.orchestrator.github.issue_claims import IssueRef

WORK_BRANCH_PREFIX = "work/"

_BRANCH_UNSAFE = re.compile(r"[^a-z0-9._-]+")


def utc_iso_now() -> str:
    return datetime.now(tz=UTC).isoformat()


class ProjectBinding(BaseModel):
    """A project taking part in a unit of work."""

    name: str
    org: str
    repo_base_name: str

    @classmethod
    def from_name(cls, name: str) -> ProjectBinding:
        org, sep, base = name.strip().partition("/")
        if not sep or not org or not base or "/" in base:
            raise InvalidRequestError(
                f"Invalid project name '{name}'; expected '<org>/<repo>'.", project=name
            )
        return cls(name=f"{org}/{base}", org=org, repo_base_name=base)


class WorkUnit(BaseModel):
    """A named bundle of issues and projects sharing one work branch."""

    key: str
    description: str
    issues: list[str] = Field(default_factory=list)
    projects: list[ProjectBinding] = Field(default_factory=list)
    branch_name: str
    created_at: str = Field(default_factory=utc_iso_now)
    updated_at: str = Field(default_factory=utc_iso_now)

    @property
    def project_names(self) -> list[str]:
        return [p.name for p in self.projects]

    def has_project(self, name: str) -> bool:
        return any(p.name == name for p in self.projects)


def work_branch_name(primary_issue: IssueRef) -> str:
    """Derive the shared work branch from the primary issue, e.g. `work/acme-alpha-42`."""

    slug = _BRANCH_UNSAFE.sub("-", f"{primary_issue.org}-{primary_issue.project}".lower())
    return f"{WORK_BRANCH_PREFIX}{slug.strip('-')}-{primary_issue.number}"


def describe_work(issues: list[str], projects: list[ProjectBinding]) -> str:
    primary = issues[0] if issues else "no issues"
    return f"{primary} ({', '.join(p.name for p in projects)})"
