"""Prompt templates for the remote text service.

This package provides versioned prompt templates for:
- Text extraction from camera frames
- Answering the accumulated transcript
"""

from src.core.prompts.text_prompts import (
    ANSWER_PROMPT_TEMPLATE,
    EXTRACTION_PROMPT,
    PROMPT_VERSION,
    TextPrompts,
)

__all__ = [
    "ANSWER_PROMPT_TEMPLATE",
    "EXTRACTION_PROMPT",
    "PROMPT_VERSION",
    "TextPrompts",
]
