"""Work-unit registry ("WorkDB").

The registry is the durable source of truth for units of work. Storage is injected
through the small :class:`WorkStore` protocol so tests can use the in-memory store.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Protocol

from github_work_orchestrator.orchestrator.errors import (
    ConflictError,
    FatalError,
    InvalidRequestError,
    NotFoundError,
)
from github_work_orchestrator.orchestrator.github.issue_claims import IssueRef
from github_work_orchestrator.orchestrator.work.models import (
    ProjectBinding,
    WorkUnit,
    describe_work,
    utc_iso_now,
)

logger = logging.getLogger(__name__)


class WorkStore(Protocol):
    """Keyed record store."""

    def get(self, key: str) -> dict[str, Any] | None: ...

    def put(self, key: str, record: dict[str, Any]) -> None: ...


class InMemoryWorkStore:
    def __init__(self) -> None:
        self._records: dict[str, dict[str, Any]] = {}

    def get(self, key: str) -> dict[str, Any] | None:
        record = self._records.get(key)
        return dict(record) if record is not None else None

    def put(self, key: str, record: dict[str, Any]) -> None:
        self._records[key] = dict(record)


class JsonWorkStore:
    """JSON-file backed store: one object mapping work key -> record."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._lock = threading.Lock()

    def _load_unlocked(self) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            return {}
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            # Refuse to continue: a later put would overwrite every stored unit.
            raise FatalError(
                f"Work state file is not valid JSON: {self._path}", path=str(self._path)
            ) from e
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise FatalError(
                f"Work state file has unexpected shape: {self._path}", path=str(self._path)
            )
        malformed = sorted(k for k, v in raw.items() if not isinstance(v, dict))
        if malformed:
            raise FatalError(
                f"Work state file has malformed records {malformed}: {self._path}",
                path=str(self._path),
                work_keys=malformed,
            )
        return raw

    def _save_unlocked(self, records: dict[str, dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(records, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )

    def get(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            return self._load_unlocked().get(key)

    def put(self, key: str, record: dict[str, Any]) -> None:
        with self._lock:
            records = self._load_unlocked()
            records[key] = record
            self._save_unlocked(records)


def _check_issue_membership(issues: list[str], projects: list[ProjectBinding]) -> None:
    names = {p.name for p in projects}
    outside = [i for i in issues if IssueRef.parse(i).repository not in names]
    if outside:
        raise InvalidRequestError(
            f"Issues {', '.join(outside)} do not belong to any project in the work "
            f"({', '.join(sorted(names))}).",
            issues=outside,
        )


class WorkRegistry:
    def __init__(self, store: WorkStore) -> None:
        self._store = store

    def get(self, key: str) -> WorkUnit | None:
        record = self._store.get(key)
        if record is None:
            return None
        return WorkUnit.model_validate(record)

    def exists(self, key: str) -> bool:
        return self._store.get(key) is not None

    def require_data(self, key: str) -> WorkUnit:
        unit = self.get(key)
        if unit is None:
            raise NotFoundError(f"No such unit of work '{key}'.", work_key=key)
        return unit

    def start_work(
        self,
        *,
        issues: list[str],
        projects: list[ProjectBinding],
        branch_name: str,
    ) -> WorkUnit:
        """Create and persist a new unit of work keyed by its branch name."""

        if not issues:
            raise InvalidRequestError("At least one issue is required to start work.")
        if not projects:
            raise InvalidRequestError("At least one project is required to start work.")
        names = [p.name for p in projects]
        if len(set(names)) != len(names):
            raise InvalidRequestError(f"Duplicate projects in {names}.", projects=names)
        _check_issue_membership(issues, projects)

        key = branch_name
        if self.exists(key):
            raise ConflictError(f"Unit of work '{key}' already exists.", work_key=key)

        unit = WorkUnit(
            key=key,
            description=describe_work(issues, projects),
            issues=list(dict.fromkeys(issues)),
            projects=list(projects),
            branch_name=branch_name,
        )
        self._store.put(key, unit.model_dump(mode="json"))
        logger.info(
            "Work unit created",
            extra={"work_key": key, "issues": unit.issues, "projects": unit.project_names},
        )
        return unit

    def add_issues(self, key: str, issues: list[str]) -> WorkUnit:
        unit = self.require_data(key)
        _check_issue_membership(issues, unit.projects)

        merged = list(dict.fromkeys([*unit.issues, *issues]))
        updated = unit.model_copy(update={"issues": merged, "updated_at": utc_iso_now()})
        self._store.put(key, updated.model_dump(mode="json"))
        logger.info(
            "Issues added to work unit",
            extra={"work_key": key, "added": [i for i in merged if i not in unit.issues]},
        )
        return updated
