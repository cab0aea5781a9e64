"""CLI option models and parser helpers."""

from __future__ import annotations

import argparse
from enum import StrEnum


class LogFormat(StrEnum):
    """CLI log formatter mode."""

    READABLE = "readable"
    JSON = "json"


class ExitCode:
    """Process exit codes."""

    OK = 0
    REMOTE_FAILURE = 1
    MISSING_API_KEY = 2


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", type=str, default=None, help="Path to a YAML config file")
    parser.add_argument("--env-file", type=str, default=None, help="Dotenv file holding API keys")
    parser.add_argument(
        "--provider",
        type=str,
        default=None,
        choices=["gemini", "anthropic", "openai"],
        help="LLM provider override",
    )
    parser.add_argument("--model", type=str, default=None, help="Model name override")
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level override",
    )
    parser.add_argument(
        "--log-format",
        type=str,
        default=None,
        choices=[fmt.value for fmt in LogFormat],
        help="Terminal log format",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="live-qa-scanner",
        description="Scan text piece by piece with a camera, then get your answer.",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Start an interactive scanning session")
    _add_common_arguments(run_parser)
    run_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable ANSI highlighting of bold answer text",
    )

    extract_parser = subparsers.add_parser("extract", help="Extract text from an image file")
    _add_common_arguments(extract_parser)
    extract_parser.add_argument("image", type=str, help="Path to an image file")

    ask_parser = subparsers.add_parser("ask", help="Answer a question without scanning")
    _add_common_arguments(ask_parser)
    ask_parser.add_argument("question", nargs="+", help="Question text")
    ask_parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable ANSI highlighting of bold answer text",
    )

    return parser
