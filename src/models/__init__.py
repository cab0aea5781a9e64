"""Shared data models for the scanner.

Display-facing models use Pydantic for validation and serialization.
"""

from src.models.scan import (
    AnswerResult,
    Operation,
    ScanRequest,
    UserError,
    UserErrorKind,
)

__all__ = [
    "AnswerResult",
    "Operation",
    "ScanRequest",
    "UserError",
    "UserErrorKind",
]
