"""Credential lookup."""

from __future__ import annotations

from enum import Enum

from github_work_orchestrator.orchestrator.config import WorkSettings
from github_work_orchestrator.orchestrator.errors import InvalidRequestError


class TokenPurpose(str, Enum):
    GITHUB_API = "github-api"


class SettingsCredentials:
    """Serve tokens from settings (environment / `.env`)."""

    def __init__(self, settings: WorkSettings) -> None:
        self._settings = settings

    def get_token(self, purpose: TokenPurpose) -> str:
        if purpose is TokenPurpose.GITHUB_API:
            token = self._settings.github_token.strip()
            if not token:
                raise InvalidRequestError(
                    "ORCHESTRATOR_GITHUB_TOKEN is required for this operation.",
                    purpose=purpose.value,
                )
            return token
        raise InvalidRequestError(f"Unknown token purpose '{purpose}'.")
