"""Tests for settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from itergen.config import Settings, load_settings
from itergen.errors import ConfigurationError


def test_settings_read_prefixed_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """It should read ITERGEN_* variables."""

    monkeypatch.setenv("ITERGEN_ORGANIZATION", "contoso")
    monkeypatch.setenv("ITERGEN_PROJECT", "Proj")
    monkeypatch.setenv("ITERGEN_MATCH_MODE", "name")

    settings = Settings()

    assert settings.organization == "contoso"
    assert settings.project == "Proj"
    assert settings.match_mode == "name"
    assert settings.ado_url == "https://dev.azure.com"


def test_pat_falls_back_to_azure_devops_pat(monkeypatch: pytest.MonkeyPatch) -> None:
    """It should accept the PAT from AZURE_DEVOPS_PAT."""

    monkeypatch.setenv("AZURE_DEVOPS_PAT", "from-azure")

    assert Settings().pat == "from-azure"


def test_require_connection_lists_missing_fields() -> None:
    """It should name every missing connection field."""

    with pytest.raises(ConfigurationError) as exc:
        Settings(project="Proj").require_connection()

    assert str(exc.value).startswith("Missing required configuration: organization, pat.")


def test_load_settings_reads_env_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """It should load the file named by ITERGEN_ENV_FILE."""

    env_file = tmp_path / "custom.env"
    env_file.write_text("ITERGEN_ORGANIZATION=from-file\nITERGEN_FETCH_DEPTH=7\n", encoding="utf-8")
    monkeypatch.setenv("ITERGEN_ENV_FILE", str(env_file))

    settings = load_settings()

    assert settings.organization == "from-file"
    assert settings.fetch_depth == 7


def test_load_settings_reads_dotenv_in_cwd(tmp_path: Path) -> None:
    """It should pick up ./.env when present."""

    (tmp_path / ".env").write_text("ITERGEN_PROJECT=dotenv-project\n", encoding="utf-8")

    assert load_settings().project == "dotenv-project"
