"""Secure loading of provider API keys from dotenv files and the environment."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

PROVIDER_ENV_KEYS: dict[str, tuple[str, ...]] = {
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "anthropic": ("ANTHROPIC_API_KEY",),
    "openai": ("OPENAI_API_KEY",),
}

_PLACEHOLDER_API_KEYS = frozenset(
    {
        "your_gemini_api_key_here",
        "your_openai_api_key_here",
        "your_anthropic_api_key_here",
        "your_api_key_here",
        "changeme",
        "replace_me",
    }
)


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _find_env_file(env_file: str | Path | None, base_dir: Path) -> Path | None:
    """Pick the dotenv file to load.

    Symlinks are not followed here so the permission check can see them.
    """
    explicit = env_file or os.environ.get("LIVESCAN_ENV_FILE")
    if explicit:
        path = Path(explicit).expanduser()
        return path if path.is_absolute() else base_dir / path

    return next(
        (path for path in (base_dir / ".env", _project_root() / ".env") if path.exists()),
        None,
    )


def _check_env_file(path: Path) -> None:
    """Refuse dotenv files other local users could read or swap out.

    POSIX only: symlinks, files owned by someone else and files with any
    group or world permission bits are rejected.
    """
    if os.name == "nt":
        return

    if path.is_symlink():
        raise PermissionError(f"API key file {path} is a symlink; point at the real file instead.")

    info = path.stat()
    if hasattr(os, "getuid") and info.st_uid != os.getuid():
        raise PermissionError(f"API key file {path} belongs to another user.")

    if info.st_mode & (stat.S_IRWXG | stat.S_IRWXO):
        raise PermissionError(
            f"API key file {path} is accessible by other users. Run: chmod 600 {path}"
        )


def load_environment_secrets(
    env_file: str | Path | None = None,
    *,
    override: bool = False,
    strict: bool = True,
    start_dir: Path | None = None,
) -> Path | None:
    """Load API keys from a dotenv file into the environment.

    Args:
        env_file: Dotenv path. Falls back to `LIVESCAN_ENV_FILE`, then `.env`
            in the working directory, then `.env` at the project root.
        override: Let dotenv values replace variables that are already set.
        strict: Raise when an explicitly named file does not exist.
        start_dir: Directory relative paths are resolved against (cwd if None).

    Returns:
        Path of the loaded file, or None if nothing was loaded.

    Raises:
        FileNotFoundError: If strict and the named file is missing.
        ValueError: If the path exists but is not a regular file.
        PermissionError: If the file is not private to the current user.
    """
    path = _find_env_file(env_file, (start_dir or Path.cwd()).resolve())
    if path is None:
        return None

    if not path.exists():
        if strict:
            raise FileNotFoundError(f"Dotenv file not found: {path}")
        return None
    if not path.is_file():
        raise ValueError(f"Dotenv path is not a regular file: {path}")

    _check_env_file(path)
    load_dotenv(dotenv_path=path, override=override)
    logger.debug(f"Loaded API keys from {path}")
    return path


def resolve_api_key(provider: str) -> str | None:
    """Read the API key for a provider from the environment.

    Placeholder values copied from example files are ignored.

    Args:
        provider: Provider name ("gemini", "anthropic" or "openai").

    Returns:
        The API key, or None when no usable key is set.

    Raises:
        ValueError: If the provider is unknown.
    """
    normalized = provider.strip().lower()
    if normalized not in PROVIDER_ENV_KEYS:
        raise ValueError(f"Unsupported LLM provider: {provider}")

    for env_key in PROVIDER_ENV_KEYS[normalized]:
        value = os.environ.get(env_key, "").strip()
        if not value:
            continue
        if value.lower() in _PLACEHOLDER_API_KEYS:
            logger.warning(f"Ignoring placeholder value in {env_key}")
            continue
        return value
    return None
