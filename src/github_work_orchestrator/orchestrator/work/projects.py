"""Decide which projects (and which unit of work) an operation applies to."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from github_work_orchestrator.orchestrator.errors import InvalidRequestError, NotFoundError
from github_work_orchestrator.orchestrator.git.local import GitCommandError, LocalGit
from github_work_orchestrator.orchestrator.work.models import WorkUnit

logger = logging.getLogger(__name__)


class ProjectCatalog:
    """Local checkouts laid out as `<playground>/<org>/<repo>`."""

    def __init__(self, playground_root: Path) -> None:
        self._root = playground_root.expanduser()

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, project: str) -> Path:
        org, _, base = project.partition("/")
        return self._root / org / base

    def contains(self, project: str) -> bool:
        return (self.path_for(project) / ".git").exists()

    def list_projects(self) -> list[str]:
        if not self._root.is_dir():
            return []
        projects: list[str] = []
        for org_dir in sorted(p for p in self._root.iterdir() if p.is_dir()):
            for repo_dir in sorted(p for p in org_dir.iterdir() if p.is_dir()):
                if (repo_dir / ".git").exists():
                    projects.append(f"{org_dir.name}/{repo_dir.name}")
        return projects


def dedupe(values: Iterable[str]) -> list[str]:
    """Drop duplicates, keeping the first occurrence."""

    return list(dict.fromkeys(v.strip() for v in values if v.strip()))


class ProjectResolver:
    def __init__(self, *, catalog: ProjectCatalog, git: LocalGit) -> None:
        self._catalog = catalog
        self._git = git

    def resolve(
        self,
        *,
        explicit_projects: list[str] | None,
        all_projects: bool = False,
        current_dir: Path | None = None,
        work_unit: WorkUnit | None = None,
        candidates: Iterable[str] | None = None,
    ) -> list[str]:
        """Return the projects in scope, in a stable order.

        With a unit of work, `all_projects` wins over any explicit list, explicit names
        must belong to the unit, and with neither the project is implied by
        `current_dir`. Without one, explicit names are checked against `candidates`.
        """

        if work_unit is None:
            return self._resolve_new(
                explicit_projects=explicit_projects,
                all_projects=all_projects,
                current_dir=current_dir,
                candidates=candidates,
            )

        if all_projects:
            return work_unit.project_names

        if explicit_projects:
            projects = dedupe(explicit_projects)
            for project in projects:
                if not work_unit.has_project(project):
                    raise NotFoundError(
                        f"No such project '{project}' in unit of work '{work_unit.key}'.",
                        project=project,
                        work_key=work_unit.key,
                    )
            return projects

        project = self.infer_project(current_dir)
        if not work_unit.has_project(project):
            raise NotFoundError(
                f"Current project '{project}' is not part of unit of work '{work_unit.key}'.",
                project=project,
                work_key=work_unit.key,
            )
        return [project]

    def _resolve_new(
        self,
        *,
        explicit_projects: list[str] | None,
        all_projects: bool,
        current_dir: Path | None,
        candidates: Iterable[str] | None,
    ) -> list[str]:
        if all_projects:
            raise InvalidRequestError("Selecting all projects requires an existing unit of work.")

        projects = dedupe(explicit_projects or [])
        if not projects:
            if current_dir is None:
                raise InvalidRequestError("At least one project is required.")
            projects = [self.infer_project(current_dir)]

        known = set(candidates) if candidates is not None else set(self._catalog.list_projects())
        for project in projects:
            if project not in known:
                raise NotFoundError(
                    f"No such local project '{project}'. Do you need to import it?",
                    project=project,
                )
        return projects

    def infer_project(self, current_dir: Path | None) -> str:
        """Infer `<org>/<repo>` from a directory inside the playground."""

        if current_dir is None:
            raise InvalidRequestError(
                "Called with an implied project, but no working directory was provided; "
                "specify the project(s) explicitly."
            )
        root = self._catalog.root.resolve()
        try:
            relative = current_dir.expanduser().resolve().relative_to(root)
        except ValueError as e:
            raise InvalidRequestError(
                f"Working directory {current_dir} is not inside the playground {root}.",
                current_dir=str(current_dir),
            ) from e
        if len(relative.parts) < 2:
            raise InvalidRequestError(
                f"Working directory {current_dir} is not inside a project checkout.",
                current_dir=str(current_dir),
            )
        return f"{relative.parts[0]}/{relative.parts[1]}"

    def resolve_work_key(self, work_key: str | None, current_dir: Path | None) -> str:
        """Use the explicit key, or the current branch of `current_dir`."""

        if work_key:
            return work_key
        if current_dir is None:
            raise InvalidRequestError(
                "Called with implied work, but no working directory was provided; "
                "specify the work key explicitly."
            )
        try:
            branch = self._git.current_branch(current_dir)
        except GitCommandError as e:
            raise InvalidRequestError(
                f"{current_dir} is not a git checkout with a current branch; "
                f"specify the work key explicitly ({e}).",
                current_dir=str(current_dir),
                step="current-branch",
            ) from e
        logger.debug("Implied work key from current branch", extra={"work_key": branch})
        return branch
