"""Top-level driver for units of work.

Start work is an explicit multi-step pipeline without a transaction boundary:

1. validate projects and issues (no side effects)
2. verify, then claim issues on GitHub
3. per project, in order: provision the remote, then reconcile the work branch
4. persist the unit of work

A failure in step 3 leaves earlier repositories as they are and persists nothing; the
raised error names the repository and step so the caller can resume by hand.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from github_work_orchestrator.orchestrator.config import WorkSettings
from github_work_orchestrator.orchestrator.credentials import SettingsCredentials, TokenPurpose
from github_work_orchestrator.orchestrator.errors import ConflictError, InvalidRequestError
from github_work_orchestrator.orchestrator.git.local import LocalGit
from github_work_orchestrator.orchestrator.git.reconciler import BranchAction, BranchReconciler
from github_work_orchestrator.orchestrator.github.client import GitHubClient
from github_work_orchestrator.orchestrator.github.issue_claims import (
    ClaimedIssue,
    IssueClaimCoordinator,
    canonical_issue_refs,
)
from github_work_orchestrator.orchestrator.github.repo_provisioner import RepoProvisioner
from github_work_orchestrator.orchestrator.work.build import BuildOutcome, BuildRunner
from github_work_orchestrator.orchestrator.work.models import (
    ProjectBinding,
    WorkUnit,
    work_branch_name,
)
from github_work_orchestrator.orchestrator.work.projects import ProjectCatalog, ProjectResolver
from github_work_orchestrator.orchestrator.work.registry import JsonWorkStore, WorkRegistry

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RepoActionReport:
    """What start work did to one repository."""

    project: str
    visibility: str
    remote_name: str
    fork_created: bool
    remote_added: bool
    action: BranchAction


@dataclass(frozen=True, slots=True)
class StartWorkResult:
    work_unit: WorkUnit
    claimed: list[ClaimedIssue]
    repositories: list[RepoActionReport]


@dataclass(frozen=True, slots=True)
class _GitHubServices:
    client: GitHubClient
    claims: IssueClaimCoordinator
    provisioner: RepoProvisioner
    reconciler: BranchReconciler


@dataclass(frozen=True, slots=True)
class BuildReport:
    work_key: str
    outcomes: list[BuildOutcome]

    @property
    def ok(self) -> bool:
        return all(o.ok for o in self.outcomes)


class WorkOrchestrator:
    def __init__(
        self,
        *,
        registry: WorkRegistry,
        catalog: ProjectCatalog,
        git: LocalGit,
        github: GitHubClient | None = None,
        builder: BuildRunner | None = None,
        workspace_remote: str = "workspace",
        ssh_host: str = "github.com",
    ) -> None:
        self._registry = registry
        self._catalog = catalog
        self._resolver = ProjectResolver(catalog=catalog, git=git)
        self._builder = builder or BuildRunner()
        self._github = github

        self._services: _GitHubServices | None = None
        if github is not None:
            self._services = _GitHubServices(
                client=github,
                claims=IssueClaimCoordinator(github=github),
                provisioner=RepoProvisioner(
                    github=github, git=git, workspace_remote=workspace_remote, ssh_host=ssh_host
                ),
                reconciler=BranchReconciler(github=github, git=git),
            )

    @classmethod
    def from_settings(cls, settings: WorkSettings, *, with_github: bool = True) -> WorkOrchestrator:
        """Wire the orchestrator from settings.

        `with_github=False` builds an offline instance that can only read work and build.
        """

        github: GitHubClient | None = None
        if with_github:
            token = SettingsCredentials(settings).get_token(TokenPurpose.GITHUB_API)
            github = GitHubClient(token=token, base_url=settings.github_base_url)

        return cls(
            registry=WorkRegistry(JsonWorkStore(settings.work_state_file)),
            catalog=ProjectCatalog(settings.playground_path),
            git=LocalGit(timeout_seconds=settings.git_timeout_seconds),
            github=github,
            builder=BuildRunner(command=settings.build_command),
            workspace_remote=settings.workspace_remote,
            ssh_host=settings.git_ssh_host,
        )

    def _require_github(self) -> _GitHubServices:
        if self._services is None:
            raise InvalidRequestError("This operation requires GitHub access; configure a token.")
        return self._services

    def start_work(
        self,
        *,
        projects: list[str],
        issues: list[str],
        assignee: str | None = None,
        comment: str | None = None,
        no_auto_assign: bool = False,
    ) -> StartWorkResult:
        services = self._require_github()

        # Validation: nothing external is touched until every input checks out.
        project_names = self._resolver.resolve(
            explicit_projects=projects, candidates=self._catalog.list_projects()
        )
        bindings = [ProjectBinding.from_name(name) for name in project_names]
        if not issues:
            raise InvalidRequestError("At least one issue is required to start work.")
        refs = canonical_issue_refs(issues, default_project=project_names[0])
        outside = [str(r) for r in refs if r.repository not in project_names]
        if outside:
            raise InvalidRequestError(
                f"Issues {', '.join(outside)} do not belong to the projects "
                f"{', '.join(project_names)}.",
                issues=outside,
            )

        branch = work_branch_name(refs[0])
        if self._registry.exists(branch):
            raise ConflictError(f"Unit of work '{branch}' already exists.", work_key=branch)

        login = services.client.get_authenticated_login()
        effective_assignee = assignee or (None if no_auto_assign else login)
        services.claims.verify_available(
            refs,
            claimant=assignee or login,
            no_auto_assign=no_auto_assign,
            not_closed=True,
        )
        claimed = services.claims.claim(
            refs, assignee=effective_assignee, comment=comment, branch_name=branch
        )

        reports: list[RepoActionReport] = []
        for binding in bindings:
            repo = services.provisioner.provision(
                org=binding.org,
                repo_base_name=binding.repo_base_name,
                local_path=self._catalog.path_for(binding.name),
                caller_login=login,
            )
            action = services.reconciler.reconcile(
                local_path=repo.local_path,
                owner=repo.remote_owner,
                repo_base_name=repo.repo_base_name,
                branch=branch,
                remote_name=repo.remote_name,
            )
            reports.append(
                RepoActionReport(
                    project=binding.name,
                    visibility=repo.visibility,
                    remote_name=repo.remote_name,
                    fork_created=repo.fork_created,
                    remote_added=repo.remote_added,
                    action=action,
                )
            )

        unit = self._registry.start_work(
            issues=[str(r) for r in refs], projects=bindings, branch_name=branch
        )
        logger.info(
            "Started work",
            extra={
                "work_key": unit.key,
                "description": unit.description,
                "actions": {r.project: r.action.value for r in reports},
            },
        )
        return StartWorkResult(work_unit=unit, claimed=claimed, repositories=reports)

    def build_work(
        self,
        *,
        work_key: str | None = None,
        projects: list[str] | None = None,
        all_projects: bool = False,
        current_dir: Path | None = None,
    ) -> BuildReport:
        """Build each selected project, reporting every outcome.

        A failing project does not stop the remaining builds.
        """

        key = self._resolver.resolve_work_key(work_key, current_dir)
        unit = self._registry.require_data(key)
        selected = self._resolver.resolve(
            explicit_projects=projects,
            all_projects=all_projects,
            current_dir=current_dir,
            work_unit=unit,
        )

        outcomes = [
            self._builder.build(project=project, path=self._catalog.path_for(project))
            for project in selected
        ]
        logger.info(
            "Build finished",
            extra={"work_key": key, "results": {o.project: o.ok for o in outcomes}},
        )
        return BuildReport(work_key=key, outcomes=outcomes)

    def add_issues(
        self,
        *,
        issues: list[str],
        work_key: str | None = None,
        current_dir: Path | None = None,
        assignee: str | None = None,
        comment: str | None = None,
        no_auto_assign: bool = False,
    ) -> WorkUnit:
        """Verify, claim and attach more issues to an existing unit of work."""

        services = self._require_github()
        key = self._resolver.resolve_work_key(work_key, current_dir)
        unit = self._registry.require_data(key)
        if not issues:
            raise InvalidRequestError("At least one issue is required.", work_key=key)

        refs = canonical_issue_refs(issues, default_project=unit.project_names[0])
        new_refs = [r for r in refs if str(r) not in unit.issues]
        outside = [str(r) for r in new_refs if not unit.has_project(r.repository)]
        if outside:
            raise InvalidRequestError(
                f"Issues {', '.join(outside)} do not belong to unit of work '{key}'.",
                issues=outside,
                work_key=key,
            )
        if not new_refs:
            return unit

        login = services.client.get_authenticated_login()
        services.claims.verify_available(
            new_refs, claimant=assignee or login, no_auto_assign=no_auto_assign, not_closed=True
        )
        services.claims.claim(
            new_refs,
            assignee=assignee or (None if no_auto_assign else login),
            comment=comment,
            branch_name=unit.branch_name,
        )
        return self._registry.add_issues(key, [str(r) for r in new_refs])

    def get_work(self, *, work_key: str | None = None, current_dir: Path | None = None) -> WorkUnit:
        key = self._resolver.resolve_work_key(work_key, current_dir)
        return self._registry.require_data(key)

    def close(self) -> None:
        if self._github is not None:
            self._github.close()
