"""Configuration for the work orchestrator.

Configuration is loaded from:
- environment variables
- and a local `.env` file (if present)

To avoid collisions with other tools that may also use `GITHUB_TOKEN`, this
project uses a dedicated token variable: `ORCHESTRATOR_GITHUB_TOKEN`.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class WorkSettings(BaseSettings):
    """Settings for the work orchestrator.

    Environment variables:
    - ORCHESTRATOR_GITHUB_TOKEN
    - GITHUB_BASE_URL                  (optional)
    - LOG_LEVEL                        (optional)
    - AGENT_STATE_PATH                 (optional)
    - ORCHESTRATOR_PLAYGROUND          (optional)
    - ORCHESTRATOR_WORKSPACE_REMOTE    (optional)
    - ORCHESTRATOR_GIT_SSH_HOST        (optional)
    - ORCHESTRATOR_BUILD_COMMAND       (optional)
    - ORCHESTRATOR_GIT_TIMEOUT_SECONDS (optional)

    Notes:
        The token is not validated at load time. Commands that talk to GitHub ask
        the credential provider for it and fail with a clear message when missing,
        so read-only commands (``show-work``, ``build-work``) work offline.

        Pydantic-settings supports overriding the env file in tests via:
        `WorkSettings(_env_file=path_to_env)`.
    """

    github_token: str = Field(
        default="",
        validation_alias="ORCHESTRATOR_GITHUB_TOKEN",
        description="GitHub token used for API authentication",
    )
    github_base_url: str = Field(
        default="https://api.github.com",
        validation_alias="GITHUB_BASE_URL",
        description="GitHub API base URL (useful for GitHub Enterprise)",
    )

    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root logging level",
    )

    agent_state_path: Path = Field(
        default=Path("agent_state"),
        validation_alias="AGENT_STATE_PATH",
        description="Directory where local agent state is persisted",
    )

    playground_path: Path = Field(
        default=Path.home() / "playground",
        validation_alias="ORCHESTRATOR_PLAYGROUND",
        description="Root directory holding local checkouts as <org>/<repo>",
    )

    workspace_remote: str = Field(
        default="workspace",
        validation_alias="ORCHESTRATOR_WORKSPACE_REMOTE",
        description="Local git remote name that points at the caller's fork of a public repo",
    )
    git_ssh_host: str = Field(
        default="github.com",
        validation_alias="ORCHESTRATOR_GIT_SSH_HOST",
        description="SSH host used when adding the workspace remote",
    )
    git_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        validation_alias="ORCHESTRATOR_GIT_TIMEOUT_SECONDS",
        description="Timeout applied to each git subprocess",
    )

    build_command: str = Field(
        default="npm run build",
        validation_alias="ORCHESTRATOR_BUILD_COMMAND",
        description="Shell command run in each project directory by build-work",
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        extra="ignore",
    )

    @field_validator("agent_state_path", "playground_path")
    @classmethod
    def _expand_home(cls, value: Path) -> Path:
        return value.expanduser()

    @property
    def work_state_file(self) -> Path:
        """Path where work units are persisted."""

        return self.agent_state_path / "work.json"
