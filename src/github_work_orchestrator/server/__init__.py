"""FastAPI server adapter for github-work-orchestrator.

This module exposes a REST API over the work orchestration services.

Design intent:
- Keep business logic in `github_work_orchestrator.orchestrator.*`
- Keep server-specific concerns (routing, CORS, error mapping) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from github_work_orchestrator.server.app import create_app
