#!/usr/bin/env python3
"""Programmatic start-work example.

This demonstrates using the orchestrator components directly:

* load settings from `.env`
* claim issues and prepare the work branch in each project
* persist the unit of work to `agent_state/work.json`

Projects and issues are passed as arguments (not read from `.env`).
"""

from __future__ import annotations

import argparse
from typing import Sequence

from github_work_orchestrator.orchestrator.config import WorkSettings
from github_work_orchestrator.orchestrator.errors import ConflictError
from github_work_orchestrator.orchestrator.logging import configure_logging
from github_work_orchestrator.orchestrator.work.orchestrator import WorkOrchestrator


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Start a unit of work (programmatic example).")
    parser.add_argument(
        "--projects", required=True, help='Comma-separated projects, e.g. "acme/api,acme/web"'
    )
    parser.add_argument(
        "--issues", required=True, help='Comma-separated issues, e.g. "42,acme/web/7"'
    )
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    projects = [p.strip() for p in args.projects.split(",") if p.strip()]
    issues = [i.strip() for i in args.issues.split(",") if i.strip()]

    settings = WorkSettings()
    configure_logging(settings.log_level)

    orchestrator = WorkOrchestrator.from_settings(settings)
    try:
        result = orchestrator.start_work(projects=projects, issues=issues)
    except ConflictError as exc:
        print(str(exc))
        return 0
    finally:
        orchestrator.close()

    for report in result.repositories:
        print(f"{report.project} ({report.visibility}): {report.action.value}")
    print(f"Branch: {result.work_unit.branch_name}")
    print(f"Persisted to: {settings.work_state_file}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
