"""Prompt templates for the remote text service.

Prompt versions are tracked for debugging.
"""

from __future__ import annotations

from dataclasses import dataclass

# Prompt version for tracking
PROMPT_VERSION = "1.0.0"

EXTRACTION_PROMPT = (
    "Extract all visible text from this image. Respond with only the extracted text, "
    "preserving line breaks. If no text is found, return an empty response."
)

ANSWER_PROMPT_TEMPLATE = """Treat the following text as a question: "{question}"
Provide a direct and concise answer to that question.
Follow these formatting rules for your response:
1. For general questions, make the most important parts of the answer bold using Markdown (e.g., "**this is important**").
2. If the question asks for a code snippet, provide ONLY the code enclosed in a Markdown code block (e.g., ```language\\ncode here\\n```). Do not provide any additional explanations.
3. If the question is unclear, return a helpful message."""


@dataclass(frozen=True)
class TextPrompts:
    """Prompt set used by the text service.

    Attributes:
        version: Prompt version string.
        extraction_prompt: Fixed instruction sent alongside each image.
        answer_template: Template embedding the question.
    """

    version: str = PROMPT_VERSION
    extraction_prompt: str = EXTRACTION_PROMPT
    answer_template: str = ANSWER_PROMPT_TEMPLATE

    def build_answer_prompt(self, question: str) -> str:
        """Embed a question into the answer template."""
        return self.answer_template.format(question=question)
