"""CLI entrypoint for the work orchestrator."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from github_work_orchestrator import __version__
from github_work_orchestrator.orchestrator.config import WorkSettings
from github_work_orchestrator.orchestrator.errors import WorkError
from github_work_orchestrator.orchestrator.logging import configure_logging
from github_work_orchestrator.orchestrator.work.orchestrator import WorkOrchestrator

logger = logging.getLogger(__name__)

# Commands that never talk to GitHub.
_OFFLINE_COMMANDS = {"build-work", "show-work"}


def _parse_list(values: list[str] | None) -> list[str] | None:
    """Accept repeated flags and comma-separated values alike."""

    if values is None:
        return None
    items = [p.strip() for v in values for p in v.split(",")]
    return [i for i in items if i] or None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="work-orchestrator",
        description="Coordinate cross-repository units of work on GitHub",
    )
    parser.add_argument(
        "--version", action="version", version=f"github-work-orchestrator {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    start = subparsers.add_parser("start-work", help="Create a new unit of work")
    start.add_argument(
        "--project",
        "--projects",
        dest="projects",
        action="append",
        required=True,
        help="Project(s) to include, as '<org>/<repo>' (repeatable or comma-separated)",
    )
    start.add_argument(
        "--issue",
        "--issues",
        dest="issues",
        action="append",
        required=True,
        help=(
            "Issue(s) for the work: a bare number refers to the first project, otherwise "
            "'<org>/<project>/<number>' (repeatable or comma-separated)"
        ),
    )
    start.add_argument(
        "--assignee",
        default=None,
        help="GitHub login to assign the issues to (defaults to the token owner)",
    )
    start.add_argument(
        "--comment",
        default=None,
        help="Comment posted when claiming the issues",
    )
    start.add_argument(
        "--no-auto-assign",
        action="store_true",
        help="Do not assign the issues to the token owner",
    )

    build = subparsers.add_parser(
        "build-work", help="Build the projects of a unit of work (implied from the cwd)"
    )
    build.add_argument("--work-key", default=None, help="Work key (defaults to the current branch)")
    build.add_argument(
        "--project",
        "--projects",
        dest="projects",
        action="append",
        default=None,
        help="Project(s) to build (defaults to the current project)",
    )
    build.add_argument(
        "--all", dest="all_projects", action="store_true", help="Build every project"
    )

    add_issues = subparsers.add_parser(
        "add-issues", help="Claim and attach more issues to a unit of work"
    )
    add_issues.add_argument(
        "--work-key", default=None, help="Work key (defaults to the current branch)"
    )
    add_issues.add_argument(
        "--issue",
        "--issues",
        dest="issues",
        action="append",
        required=True,
        help="Issue(s) to add (repeatable or comma-separated)",
    )
    add_issues.add_argument("--assignee", default=None, help="GitHub login to assign")
    add_issues.add_argument("--comment", default=None, help="Comment posted when claiming")
    add_issues.add_argument("--no-auto-assign", action="store_true")

    show = subparsers.add_parser("show-work", help="Print a unit of work as JSON")
    show.add_argument("--work-key", default=None, help="Work key (defaults to the current branch)")

    return parser


def run_command(args: argparse.Namespace, orchestrator: WorkOrchestrator) -> int:
    current_dir = Path.cwd()

    if args.command == "start-work":
        result = orchestrator.start_work(
            projects=_parse_list(args.projects) or [],
            issues=_parse_list(args.issues) or [],
            assignee=args.assignee,
            comment=args.comment,
            no_auto_assign=args.no_auto_assign,
        )
        for report in result.repositories:
            print(
                f"{report.project}: {report.action.value} on '{report.remote_name}' "
                f"(fork_created={report.fork_created} remote_added={report.remote_added})"
            )
        print(f"Started work '{result.work_unit.description}' on {result.work_unit.branch_name}")
        return 0

    if args.command == "build-work":
        report = orchestrator.build_work(
            work_key=args.work_key,
            projects=_parse_list(args.projects),
            all_projects=args.all_projects,
            current_dir=current_dir,
        )
        for outcome in report.outcomes:
            status = "built" if outcome.ok else f"FAILED: {outcome.message}"
            print(f"{outcome.project}: {status}")
        return 0 if report.ok else 1

    if args.command == "add-issues":
        unit = orchestrator.add_issues(
            issues=_parse_list(args.issues) or [],
            work_key=args.work_key,
            current_dir=current_dir,
            assignee=args.assignee,
            comment=args.comment,
            no_auto_assign=args.no_auto_assign,
        )
        print(f"Work '{unit.key}' issues: {', '.join(unit.issues)}")
        return 0

    if args.command == "show-work":
        unit = orchestrator.get_work(work_key=args.work_key, current_dir=current_dir)
        print(json.dumps(unit.model_dump(mode="json"), indent=2, ensure_ascii=False))
        return 0

    logger.error("Unknown command", extra={"command": args.command})
    return 2


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = WorkSettings()
    except ValidationError as e:
        # Logging isn't configured yet; keep it simple and actionable.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    try:
        orchestrator = WorkOrchestrator.from_settings(
            settings, with_github=args.command not in _OFFLINE_COMMANDS
        )
        try:
            return run_command(args, orchestrator)
        finally:
            orchestrator.close()

    except WorkError as e:
        logger.warning(str(e), extra={"error": type(e).__name__, **e.context})
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
