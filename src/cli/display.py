"""Terminal rendering of answers and transcript.

Answers arrive as raw model text. A response that is exactly one fenced
code block is shown (and copied) as bare code; anything else is prose where
**bold** spans are highlighted.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

_CODE_BLOCK_RE = re.compile(r"^```(?:\w+)?\n([\s\S]+)\n```$")
_BOLD_RE = re.compile(r"\*\*(.*?)\*\*")

_ANSI_BOLD = "\033[1m"
_ANSI_RESET = "\033[0m"

ANSWER_PLACEHOLDER = 'Scan text and press "answer". The answer will appear here.'
ANSWERING_PLACEHOLDER = "Getting your answer..."


def strip_code_fence(text: str) -> str:
    """Return the code inside a response that is a single fenced block.

    Any other text is returned unchanged. This is the text the "copy"
    command hands out.
    """
    match = _CODE_BLOCK_RE.match(text.strip())
    return match.group(1) if match else text


def is_code_block(text: str) -> bool:
    return _CODE_BLOCK_RE.match(text.strip()) is not None


def render_answer(text: str, is_answering: bool = False, color: bool = True) -> str:
    """Render an answer for the terminal."""
    if is_answering:
        return ANSWERING_PLACEHOLDER
    if not text.strip():
        return ANSWER_PLACEHOLDER
    if is_code_block(text):
        return strip_code_fence(text)
    if not color:
        return _BOLD_RE.sub(r"\1", text)
    return _BOLD_RE.sub(lambda m: f"{_ANSI_BOLD}{m.group(1)}{_ANSI_RESET}", text)


def render_transcript(transcript: Sequence[str]) -> str:
    """Numbered listing of scanned snippets."""
    if not transcript:
        return "(no scanned text)"
    return "\n".join(f"[{index}] {text}" for index, text in enumerate(transcript, start=1))
