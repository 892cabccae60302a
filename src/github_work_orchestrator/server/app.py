"""FastAPI app factory.

Endpoints are thin wrappers over `WorkOrchestrator`; domain errors map onto HTTP
status codes via `WorkError.status_code`.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from fastapi import FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from github_work_orchestrator import __version__
from github_work_orchestrator.orchestrator.errors import WorkError
from github_work_orchestrator.orchestrator.work.models import WorkUnit
from github_work_orchestrator.orchestrator.work.orchestrator import (
    BuildReport,
    WorkOrchestrator,
)
from github_work_orchestrator.server.config import ServerSettings
from github_work_orchestrator.server.models import (
    AddIssuesRequest,
    ApiBuildOutcome,
    ApiRepoAction,
    BuildWorkRequest,
    BuildWorkResponse,
    StartWorkRequest,
    StartWorkResponse,
)

logger = logging.getLogger(__name__)


def _to_build_response(report: BuildReport) -> BuildWorkResponse:
    return BuildWorkResponse(
        work_key=report.work_key,
        ok=report.ok,
        outcomes=[
            ApiBuildOutcome(
                project=o.project, ok=o.ok, message=o.message, returncode=o.returncode
            )
            for o in report.outcomes
        ],
    )


def _cwd(value: str | None) -> Path | None:
    return Path(value) if value else None


def create_app(orchestrator: WorkOrchestrator | None = None) -> FastAPI:
    """Build the API.

    When `orchestrator` is given every request uses it; otherwise one is wired from
    `ServerSettings` per request so the token is only required where GitHub is used.
    """

    settings = ServerSettings()

    app = FastAPI(
        title="GitHub Work Orchestrator",
        version=__version__,
        description="REST API over cross-repository units of work.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.parsed_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @contextmanager
    def work_session(*, with_github: bool) -> Iterator[WorkOrchestrator]:
        try:
            if orchestrator is not None:
                yield orchestrator
                return
            session = WorkOrchestrator.from_settings(settings, with_github=with_github)
            try:
                yield session
            finally:
                session.close()
        except WorkError as e:
            logger.warning(str(e), extra={"error": type(e).__name__, **e.context})
            raise HTTPException(status_code=e.status_code, detail=e.message) from e

    @app.get("/api/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post("/api/work/start", response_model=StartWorkResponse, status_code=201)
    def start_work(req: StartWorkRequest) -> StartWorkResponse:
        with work_session(with_github=True) as work:
            result = work.start_work(
                projects=req.projects,
                issues=req.issues,
                assignee=req.assignee,
                comment=req.comment,
                no_auto_assign=req.no_auto_assign,
            )
        unit = result.work_unit
        return StartWorkResponse(
            work=unit,
            repositories=[
                ApiRepoAction(
                    project=r.project,
                    visibility=r.visibility,
                    remote_name=r.remote_name,
                    fork_created=r.fork_created,
                    remote_added=r.remote_added,
                    action=r.action.value,
                )
                for r in result.repositories
            ],
            message=f"Started work '{unit.description}' on {unit.branch_name}",
        )

    @app.put("/api/work/build", response_model=BuildWorkResponse)
    def build_implied_work(
        req: BuildWorkRequest, x_cwd: str | None = Header(default=None)
    ) -> BuildWorkResponse:
        with work_session(with_github=False) as work:
            report = work.build_work(
                projects=req.projects, all_projects=req.all, current_dir=_cwd(x_cwd)
            )
        return _to_build_response(report)

    # Work keys contain slashes (`work/...`), hence the `path` converter.
    @app.put("/api/work/{work_key:path}/build", response_model=BuildWorkResponse)
    def build_work(
        work_key: str, req: BuildWorkRequest, x_cwd: str | None = Header(default=None)
    ) -> BuildWorkResponse:
        with work_session(with_github=False) as work:
            report = work.build_work(
                work_key=work_key,
                projects=req.projects,
                all_projects=req.all,
                current_dir=_cwd(x_cwd),
            )
        return _to_build_response(report)

    @app.post("/api/work/{work_key:path}/issues/add", response_model=WorkUnit)
    def add_issues(work_key: str, req: AddIssuesRequest) -> WorkUnit:
        with work_session(with_github=True) as work:
            return work.add_issues(
                issues=req.issues,
                work_key=work_key,
                assignee=req.assignee,
                comment=req.comment,
                no_auto_assign=req.no_auto_assign,
            )

    @app.get("/api/work/{work_key:path}", response_model=WorkUnit)
    def get_work(work_key: str) -> WorkUnit:
        with work_session(with_github=False) as work:
            return work.get_work(work_key=work_key)

    return app
