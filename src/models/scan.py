"""Models for scan requests, user-facing errors and answers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, Field

from src.interfaces.text_service import ErrorKind, TextServiceError


class Operation(str, Enum):
    """Remote operation an error came from."""

    EXTRACTION = "extraction"
    ANSWER = "answer"


class UserErrorKind(str, Enum):
    """Kinds of errors shown to the user."""

    API_BUSY = "api_busy"
    EXTRACTION_FAILED = "extraction_failed"
    ANSWER_FAILED = "answer_failed"
    INVALID_CREDENTIAL = "invalid_credential"
    NOT_CONFIGURED = "not_configured"
    CAMERA_UNAVAILABLE = "camera_unavailable"


_BUSY_MESSAGES: dict[Operation, str] = {
    Operation.EXTRACTION: "API is busy. Please wait a moment before scanning again.",
    Operation.ANSWER: "API is busy. Please wait a moment before trying again.",
}

_FAILED: dict[Operation, tuple[UserErrorKind, str]] = {
    Operation.EXTRACTION: (
        UserErrorKind.EXTRACTION_FAILED,
        "Failed to extract text. Please try again.",
    ),
    Operation.ANSWER: (
        UserErrorKind.ANSWER_FAILED,
        "Could not get an answer. Please try again.",
    ),
}


class UserError(BaseModel):
    """An error held for display."""

    kind: UserErrorKind
    message: str = Field(..., min_length=1)

    model_config = {"frozen": True}

    @classmethod
    def from_service_error(cls, error: TextServiceError, operation: Operation) -> UserError:
        """Map a classified remote failure to a user-facing error."""
        if error.kind == ErrorKind.RATE_LIMITED:
            return cls(kind=UserErrorKind.API_BUSY, message=_BUSY_MESSAGES[operation])
        if error.kind == ErrorKind.INVALID_CREDENTIAL:
            return cls(
                kind=UserErrorKind.INVALID_CREDENTIAL,
                message="The API key is not valid. Please check it and try again.",
            )
        if error.kind == ErrorKind.NOT_CONFIGURED:
            return cls(
                kind=UserErrorKind.NOT_CONFIGURED,
                message="API not initialized. Please set your API key first.",
            )
        kind, message = _FAILED[operation]
        return cls(kind=kind, message=message)

    @classmethod
    def camera_unavailable(cls) -> UserError:
        return cls(
            kind=UserErrorKind.CAMERA_UNAVAILABLE,
            message="Could not access the camera. Please grant permission and try again.",
        )


class AnswerResult(BaseModel):
    """Latest answer text, or the error that replaced it."""

    text: str = Field(default="", description="Raw answer text, markdown intact")
    error: UserError | None = Field(default=None)

    model_config = {"frozen": True}

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())


@dataclass
class ScanRequest:
    """The single in-flight extraction attempt."""

    image_bytes: bytes
    cancelled: bool = False
