"""GitHub Work Orchestrator.

Coordinates cross-repository units of work:
- configuration loaded from `.env`
- structured logging
- issue claiming, fork/remote provisioning and work-branch reconciliation
- a local JSON registry of units of work
"""

__version__ = "0.1.0"

from github_work_orchestrator.orchestrator.config import WorkSettings

__all__ = ["__version__", "WorkSettings"]
