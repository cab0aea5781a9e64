"""Tests for secure secret loading from .env files."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from src.config.secrets import load_environment_secrets, resolve_api_key

_ALL_KEYS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "ANTHROPIC_API_KEY", "OPENAI_API_KEY")


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    # setenv first so values loaded from dotenv files are removed on teardown
    for key in (*_ALL_KEYS, "LIVESCAN_ENV_FILE"):
        monkeypatch.setenv(key, "unset")
        monkeypatch.delenv(key)
    return monkeypatch


class TestSecretsLoader:
    """Secret loading behavior for .env files."""

    def test_loads_gemini_api_key_from_secure_env_file(
        self,
        tmp_path: Path,
        clean_env: pytest.MonkeyPatch,
    ) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("GEMINI_API_KEY=from-dotenv\n")
        os.chmod(env_file, 0o600)

        loaded = load_environment_secrets(env_file=env_file)

        assert loaded == env_file
        assert os.environ.get("GEMINI_API_KEY") == "from-dotenv"

    def test_does_not_override_existing_environment_value(
        self,
        tmp_path: Path,
        clean_env: pytest.MonkeyPatch,
    ) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("GEMINI_API_KEY=from-dotenv\n")
        os.chmod(env_file, 0o600)
        clean_env.setenv("GEMINI_API_KEY", "already-set")

        load_environment_secrets(env_file=env_file)

        assert os.environ.get("GEMINI_API_KEY") == "already-set"

    def test_override_replaces_existing_value(
        self,
        tmp_path: Path,
        clean_env: pytest.MonkeyPatch,
    ) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("GEMINI_API_KEY=from-dotenv\n")
        os.chmod(env_file, 0o600)
        clean_env.setenv("GEMINI_API_KEY", "already-set")

        load_environment_secrets(env_file=env_file, override=True)

        assert os.environ.get("GEMINI_API_KEY") == "from-dotenv"

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits differ on Windows")
    def test_rejects_group_or_world_readable_env_file(
        self,
        tmp_path: Path,
        clean_env: pytest.MonkeyPatch,
    ) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("GEMINI_API_KEY=from-dotenv\n")
        os.chmod(env_file, 0o644)

        with pytest.raises(PermissionError):
            load_environment_secrets(env_file=env_file)

        assert os.environ.get("GEMINI_API_KEY") is None

    @pytest.mark.skipif(os.name == "nt", reason="Symlink semantics differ on Windows")
    def test_rejects_symlinked_env_file(
        self,
        tmp_path: Path,
        clean_env: pytest.MonkeyPatch,
    ) -> None:
        target = tmp_path / "real.env"
        target.write_text("GEMINI_API_KEY=from-dotenv\n")
        os.chmod(target, 0o600)
        link = tmp_path / "link.env"
        link.symlink_to(target)

        with pytest.raises(PermissionError):
            load_environment_secrets(env_file=link)

    def test_missing_env_file_returns_none(self, tmp_path: Path) -> None:
        missing = tmp_path / ".env"

        loaded = load_environment_secrets(env_file=missing, strict=False)

        assert loaded is None

    def test_missing_explicit_env_file_raises_when_strict(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_environment_secrets(env_file=tmp_path / "missing.env")

    def test_directory_env_path_has_actionable_error(self, tmp_path: Path) -> None:
        env_dir = tmp_path / ".env"
        env_dir.mkdir()

        with pytest.raises(ValueError, match="not a regular file"):
            load_environment_secrets(env_file=env_dir)

    def test_env_file_from_environment_variable(
        self,
        tmp_path: Path,
        clean_env: pytest.MonkeyPatch,
    ) -> None:
        env_file = tmp_path / "keys.env"
        env_file.write_text("OPENAI_API_KEY=from-env-var-path\n")
        os.chmod(env_file, 0o600)
        clean_env.setenv("LIVESCAN_ENV_FILE", str(env_file))

        loaded = load_environment_secrets(start_dir=tmp_path)

        assert loaded == env_file
        assert os.environ.get("OPENAI_API_KEY") == "from-env-var-path"

    def test_relative_path_resolves_against_start_dir(
        self,
        tmp_path: Path,
        clean_env: pytest.MonkeyPatch,
    ) -> None:
        env_file = tmp_path / "local.env"
        env_file.write_text("ANTHROPIC_API_KEY=relative\n")
        os.chmod(env_file, 0o600)

        loaded = load_environment_secrets(env_file="local.env", start_dir=tmp_path)

        assert loaded == env_file.resolve()
        assert os.environ.get("ANTHROPIC_API_KEY") == "relative"


class TestResolveApiKey:
    """Provider key lookup from the environment."""

    def test_gemini_key(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("GEMINI_API_KEY", "g-key")

        assert resolve_api_key("gemini") == "g-key"

    def test_google_key_fallback(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("GOOGLE_API_KEY", "google-key")

        assert resolve_api_key("gemini") == "google-key"

    def test_gemini_key_preferred_over_google(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("GEMINI_API_KEY", "g-key")
        clean_env.setenv("GOOGLE_API_KEY", "google-key")

        assert resolve_api_key("gemini") == "g-key"

    @pytest.mark.parametrize(
        ("provider", "env_key"),
        [("anthropic", "ANTHROPIC_API_KEY"), ("openai", "OPENAI_API_KEY")],
    )
    def test_other_providers(
        self, clean_env: pytest.MonkeyPatch, provider: str, env_key: str
    ) -> None:
        clean_env.setenv(env_key, "secret")

        assert resolve_api_key(provider) == "secret"

    def test_provider_name_is_normalized(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("OPENAI_API_KEY", "secret")

        assert resolve_api_key(" OpenAI ") == "secret"

    def test_missing_key_returns_none(self, clean_env: pytest.MonkeyPatch) -> None:
        assert resolve_api_key("gemini") is None

    def test_blank_key_returns_none(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("GEMINI_API_KEY", "   ")

        assert resolve_api_key("gemini") is None

    def test_placeholder_key_is_ignored(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("GEMINI_API_KEY", "your_gemini_api_key_here")

        assert resolve_api_key("gemini") is None

    def test_unknown_provider_raises(self) -> None:
        with pytest.raises(ValueError):
            resolve_api_key("cohere")
