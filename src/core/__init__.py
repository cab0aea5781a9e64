"""Core scanner logic package.

This package provides:
- ScanCoordinator: Frame capture, extraction and transcript accumulation
- AnswerCoordinator: Answer requests over the whole transcript
- CooldownWindow: Fixed-duration lockout, one per coordinator
- TextPrompts: Prompt templates for the remote text service
"""

from src.core.answer import AnswerCoordinator, AnswerState, join_transcript
from src.core.cooldown import CooldownWindow
from src.core.prompts import TextPrompts
from src.core.scan import ScanCoordinator, ScanState

__all__ = [
    "AnswerCoordinator",
    "AnswerState",
    "CooldownWindow",
    "ScanCoordinator",
    "ScanState",
    "TextPrompts",
    "join_transcript",
]
