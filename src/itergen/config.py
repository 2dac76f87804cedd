"""Application configuration.

Configuration is loaded from environment variables. For local development, you can provide a
`.env` file and set `ITERGEN_ENV_FILE` to point to it.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from itergen.errors import ConfigurationError


class Settings(BaseSettings):
    """itergen settings.

    All fields are environment-configurable. Prefix is `ITERGEN_`. The personal access token
    is also read from `AZURE_DEVOPS_PAT`.
    """

    model_config = SettingsConfigDict(
        env_prefix="ITERGEN_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Core
    log_level: str = Field(default="INFO")

    # Remote service
    ado_url: str = Field(default="https://dev.azure.com")
    organization: str = Field(default="")
    project: str = Field(default="")
    team: str | None = Field(default=None)
    pat: str | None = Field(
        default=None,
        validation_alias=AliasChoices("ITERGEN_PAT", "AZURE_DEVOPS_PAT"),
    )
    api_version: str = Field(default="7.1")

    # Tree traversal
    fetch_depth: int = Field(default=10, ge=1, le=100)
    assign_fetch_depth: int = Field(default=50, ge=1, le=100)
    match_mode: Literal["path", "name"] = Field(default="path")

    # Networking
    http_timeout_s: float = Field(default=30.0, gt=0)

    # Artifacts
    artifacts_dir: Path = Field(default=Path("artifacts"))
    dump_tree: bool = Field(default=True)

    def require_connection(self) -> None:
        """Validate the fields needed before any network call.

        Raises:
            ConfigurationError: If organization, project or PAT is missing.
        """

        missing = [
            name
            for name, value in (
                ("organization", self.organization),
                ("project", self.project),
                ("pat", self.pat),
            )
            if not (value or "").strip()
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}. "
                "Pass them as options or set ITERGEN_* environment variables."
            )


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.
    """

    env_file_override = os.getenv("ITERGEN_ENV_FILE")
    if env_file_override:
        env_path = Path(env_file_override)
        return Settings(_env_file=env_path)

    default_env = Path.cwd() / ".env"
    if default_env.exists():
        return Settings(_env_file=default_env)

    return Settings()
