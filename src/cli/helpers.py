"""Shared helper utilities for CLI setup."""

from __future__ import annotations

import argparse
import io
import json
import logging
from pathlib import Path

from PIL import Image

from src.cli.options import LogFormat
from src.config.loader import Config, load_config

logger = logging.getLogger(__name__)

_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic", "google_genai")


class _JSONLogFormatter(logging.Formatter):
    """Compact JSON formatter for machine-readable logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        return json.dumps(payload, separators=(",", ":"), ensure_ascii=True)


def _configure_logging(
    level: str = "INFO",
    log_format: str = LogFormat.READABLE.value,
) -> None:
    """Configure process-wide logging with stable defaults."""
    resolved_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()
    root.handlers = [h for h in root.handlers if not getattr(h, "_livescan_handler", False)]

    handler = logging.StreamHandler()
    handler._livescan_handler = True  # type: ignore[attr-defined]
    if log_format == LogFormat.JSON.value:
        formatter: logging.Formatter = _JSONLogFormatter(datefmt="%Y-%m-%dT%H:%M:%S")
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(resolved_level)

    # Third-party HTTP transport logs are noisy at INFO.
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _load_cli_config(args: argparse.Namespace) -> Config:
    """Load config and apply CLI overrides."""
    config = load_config(getattr(args, "config", None))

    llm_updates: dict[str, object] = {}
    if getattr(args, "provider", None):
        llm_updates["provider"] = args.provider
        # A model name only makes sense for the provider it was configured for
        llm_updates["model"] = None
    if getattr(args, "model", None):
        llm_updates["model"] = args.model
    logging_updates: dict[str, object] = {}
    if getattr(args, "log_level", None):
        logging_updates["level"] = args.log_level
    if getattr(args, "log_format", None):
        logging_updates["format"] = args.log_format

    if not llm_updates and not logging_updates:
        return config

    return config.model_copy(
        update={
            "llm": config.llm.model_copy(update=llm_updates),
            "logging": config.logging.model_copy(update=logging_updates),
        }
    )


def _read_image_as_jpeg(path: str | Path, quality: int = 92) -> bytes:
    """Read an image file and re-encode it as JPEG bytes."""
    with Image.open(path) as image:
        rgb = image.convert("RGB")
    buffer = io.BytesIO()
    rgb.save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()
