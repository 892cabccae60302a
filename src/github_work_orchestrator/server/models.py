"""Pydantic models for the REST server."""

from __future__ import annotations

from pydantic import BaseModel, Field

from github_work_orchestrator.orchestrator.work.models import WorkUnit


class StartWorkRequest(BaseModel):
    projects: list[str] = Field(min_length=1)
    issues: list[str] = Field(min_length=1)
    assignee: str | None = None
    comment: str | None = None
    no_auto_assign: bool = False


class BuildWorkRequest(BaseModel):
    projects: list[str] | None = None
    all: bool = False


class AddIssuesRequest(BaseModel):
    issues: list[str] = Field(min_length=1)
    assignee: str | None = None
    comment: str | None = None
    no_auto_assign: bool = False


class ApiRepoAction(BaseModel):
    project: str
    visibility: str
    remote_name: str
    fork_created: bool
    remote_added: bool
    action: str


class StartWorkResponse(BaseModel):
    work: WorkUnit
    repositories: list[ApiRepoAction]
    message: str


class ApiBuildOutcome(BaseModel):
    project: str
    ok: bool
    message: str
    returncode: int | None = None


class BuildWorkResponse(BaseModel):
    work_key: str
    ok: bool
    outcomes: list[ApiBuildOutcome]
