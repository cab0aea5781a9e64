"""CLI entrypoint for the live Q&A scanner."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable

from src.cli.display import render_answer, render_transcript, strip_code_fence
from src.cli.helpers import _configure_logging, _load_cli_config, _read_image_as_jpeg
from src.cli.options import ExitCode, LogFormat, build_arg_parser
from src.cli.runtime import ScannerRuntime, build_runtime, build_text_service
from src.config.loader import Config
from src.config.secrets import load_environment_secrets, resolve_api_key
from src.interfaces.text_service import TextServiceError
from src.models.scan import Operation, ScanRequest, UserError

logger = logging.getLogger(__name__)

ReadLine = Callable[[], Awaitable[str]]
Write = Callable[[str], None]

SESSION_HELP = """Commands:
  camera   start or stop the camera (starting clears scanned text)
  scan     scan the current frame
  cancel   stop processing the current scan
  answer   get an answer for all scanned text
  clear    clear scanned text and the answer
  status   show camera, scan and answer state
  copy     print the answer without code fences
  help     show this help
  quit     stop the camera and exit"""

# Pending background work gets this long to finish on quit
_SHUTDOWN_GRACE_SECONDS = 5.0


async def _prompt_line() -> str:
    return await asyncio.to_thread(input, "> ")


def _format_status(runtime: ScannerRuntime) -> str:
    lines = [
        f"camera: {'on' if runtime.camera_active else 'off'}",
        f"scan: {runtime.scan.state.value}",
        f"answer: {runtime.answer.state.value}",
        f"scanned snippets: {len(runtime.scan.transcript)}",
    ]
    for error in (runtime.camera_error, runtime.scan.error, runtime.answer.result.error):
        if error is not None:
            lines.append(f"error: {error.message}")
    return "\n".join(lines)


async def _scan_and_report(runtime: ScannerRuntime, write: Write) -> None:
    started: list[ScanRequest] = []
    before = len(runtime.scan.transcript)
    ran = await runtime.scan.trigger_scan(on_start=started.append)
    if not ran:
        write("Scan did not start. Check the camera and try again in a moment.")
        return
    if started[0].cancelled:
        return
    if runtime.scan.error is not None:
        write(runtime.scan.error.message)
    elif len(runtime.scan.transcript) > before:
        write(render_transcript(runtime.scan.transcript))


async def _answer_and_report(runtime: ScannerRuntime, write: Write, color: bool) -> None:
    await runtime.answer.request_answer()
    result = runtime.answer.result
    if result.error is not None:
        write(result.error.message)
    else:
        write(render_answer(result.text, color=color))


def _scan_rejection(runtime: ScannerRuntime) -> str | None:
    if not runtime.camera_active:
        return "Start the camera first."
    if runtime.scan.is_scanning:
        return "Already scanning. Use 'cancel' to stop processing."
    if runtime.scan.is_cooling_down:
        return f"Please wait {runtime.scan.cooldown.remaining_seconds:.1f}s before scanning again."
    return None


def _answer_rejection(runtime: ScannerRuntime) -> str | None:
    if not runtime.scan.transcript:
        return "Scan some text first."
    if runtime.answer.is_answering:
        return "Already getting an answer."
    if runtime.answer.is_cooling_down:
        return f"Please wait {runtime.answer.cooldown.remaining_seconds:.1f}s before asking again."
    return None


async def interactive_session(
    runtime: ScannerRuntime,
    read_line: ReadLine = _prompt_line,
    write: Write = print,
    color: bool = True,
) -> int:
    """Run the interactive command loop until quit or end of input.

    Scans and answers run as background tasks so that 'cancel' is accepted
    while a scan is in flight.
    """
    tasks: set[asyncio.Task[None]] = set()

    def spawn(coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        tasks.add(task)
        task.add_done_callback(tasks.discard)

    write(SESSION_HELP)
    try:
        while True:
            try:
                line = await read_line()
            except EOFError:
                break
            command = line.strip().lower()

            if command in ("quit", "exit", "q"):
                break
            if not command:
                continue

            if command == "camera":
                active = await runtime.toggle_camera()
                if runtime.camera_error is not None:
                    write(runtime.camera_error.message)
                else:
                    write(f"Camera {'started' if active else 'stopped'}.")
            elif command == "scan":
                rejection = _scan_rejection(runtime)
                if rejection:
                    write(rejection)
                else:
                    write("Scanning...")
                    spawn(_scan_and_report(runtime, write))
            elif command == "cancel":
                if runtime.scan.cancel_scan():
                    write("Scan cancelled.")
                else:
                    write("No scan in progress.")
            elif command == "answer":
                rejection = _answer_rejection(runtime)
                if rejection:
                    write(rejection)
                else:
                    write(render_answer("", is_answering=True))
                    spawn(_answer_and_report(runtime, write, color))
            elif command == "clear":
                runtime.clear()
                write("Cleared.")
            elif command == "status":
                write(_format_status(runtime))
            elif command == "copy":
                text = runtime.answer.result.text
                write(strip_code_fence(text) if text.strip() else "Nothing to copy.")
            elif command == "help":
                write(SESSION_HELP)
            else:
                write(f"Unknown command: {command}. Type 'help' for commands.")
    finally:
        runtime.shutdown()
        if tasks:
            _, pending = await asyncio.wait(set(tasks), timeout=_SHUTDOWN_GRACE_SECONDS)
            for task in pending:
                task.cancel()

    return ExitCode.OK


def _bootstrap(args: argparse.Namespace) -> tuple[Config, str | None]:
    """Load config and secrets, configure logging, resolve the API key."""
    config = _load_cli_config(args)
    _configure_logging(level=config.logging.level, log_format=config.logging.format)

    env_file = getattr(args, "env_file", None)
    load_environment_secrets(env_file, strict=env_file is not None)
    api_key = resolve_api_key(config.llm.provider)
    if api_key is None:
        logger.error(f"No API key found for provider '{config.llm.provider}'.")
    return config, api_key


def run_command(args: argparse.Namespace) -> int:
    """Execute the `run` command."""
    config, api_key = _bootstrap(args)
    if api_key is None:
        return ExitCode.MISSING_API_KEY

    runtime = build_runtime(config, api_key)
    return asyncio.run(interactive_session(runtime, color=not args.no_color))


def extract_command(args: argparse.Namespace) -> int:
    """Execute the `extract` command."""
    config, api_key = _bootstrap(args)
    if api_key is None:
        return ExitCode.MISSING_API_KEY

    image_bytes = _read_image_as_jpeg(args.image, quality=config.camera.jpeg_quality)
    service = build_text_service(config)
    service.configure(api_key)

    try:
        text = asyncio.run(service.extract_text(image_bytes))
    except TextServiceError as e:
        print(UserError.from_service_error(e, Operation.EXTRACTION).message, file=sys.stderr)
        return ExitCode.REMOTE_FAILURE

    print(text.strip())
    return ExitCode.OK


def ask_command(args: argparse.Namespace) -> int:
    """Execute the `ask` command."""
    config, api_key = _bootstrap(args)
    if api_key is None:
        return ExitCode.MISSING_API_KEY

    service = build_text_service(config)
    service.configure(api_key)

    try:
        answer = asyncio.run(service.get_answer(" ".join(args.question)))
    except TextServiceError as e:
        print(UserError.from_service_error(e, Operation.ANSWER).message, file=sys.stderr)
        return ExitCode.REMOTE_FAILURE

    print(render_answer(answer, color=not args.no_color))
    return ExitCode.OK


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint function."""
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    # Configure a sane bootstrap logger before config loading.
    _configure_logging(
        level="INFO",
        log_format=str(getattr(args, "log_format", None) or LogFormat.READABLE.value),
    )

    try:
        if args.command == "run":
            return run_command(args)
        if args.command == "extract":
            return extract_command(args)
        if args.command == "ask":
            return ask_command(args)
        raise ValueError(f"Unsupported command: {args.command}")
    except Exception as exc:
        logger.error(f"CLI execution failed: {exc}")
        return 1


__all__ = [
    "ask_command",
    "extract_command",
    "interactive_session",
    "main",
    "run_command",
]


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
