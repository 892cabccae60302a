"""Error taxonomy for work-unit orchestration.

Every failure the core raises on purpose is a :class:`WorkError`. Adapters map the
class to their own surface: the CLI to exit codes, the server to HTTP statuses.

Errors carry a ``context`` dict (repository, project, issue, step) so a caller can
resume manually after a partial run.
"""

from __future__ import annotations

from typing import Any


class WorkError(Exception):
    """Base class for expected orchestration failures."""

    status_code: int = 500
    exit_code: int = 1

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context: dict[str, Any] = {k: v for k, v in context.items() if v is not None}

    def __str__(self) -> str:
        return self.message


class InvalidRequestError(WorkError):
    """Bad or missing input (unresolvable project, missing working directory...)."""

    status_code = 400
    exit_code = 2


class NotFoundError(WorkError):
    """Lookup miss: unknown project, work key, repository or issue."""

    status_code = 404
    exit_code = 3


class ConflictError(WorkError):
    """Existing state disagrees with the request (mismatched remote, duplicate key)."""

    status_code = 409
    exit_code = 4


class FatalError(WorkError):
    """Underlying process or transport failure not otherwise classified."""

    status_code = 500
    exit_code = 1
