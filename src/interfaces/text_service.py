"""Remote text service interface for extraction and answering."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import StrEnum


class ErrorKind(StrEnum):
    """Structured classification of a remote call failure."""

    NOT_CONFIGURED = "not_configured"
    INVALID_CREDENTIAL = "invalid_credential"
    RATE_LIMITED = "rate_limited"
    FAILED = "failed"


class TextServiceError(Exception):
    """Error raised when a remote text service call fails.

    Attributes:
        kind: Classification attached where the call failed.
        status_code: Transport status code, when one was reported.
    """

    default_kind = ErrorKind.FAILED

    def __init__(
        self,
        message: str,
        kind: ErrorKind | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind or self.default_kind
        self.status_code = status_code

    @property
    def retryable(self) -> bool:
        """Only rate-limited failures are worth retrying."""
        return self.kind == ErrorKind.RATE_LIMITED


class NotConfiguredError(TextServiceError):
    """A call was made before an API key was configured."""

    default_kind = ErrorKind.NOT_CONFIGURED


class InvalidCredentialError(TextServiceError):
    """The API key is empty or rejected by the provider. Never retried."""

    default_kind = ErrorKind.INVALID_CREDENTIAL


class RateLimitError(TextServiceError):
    """The provider reported quota exhaustion (HTTP 429)."""

    default_kind = ErrorKind.RATE_LIMITED


class TextService(ABC):
    """Abstract interface for the remote text-generation service.

    The service performs two remote operations:
    - Extracting visible text from an encoded image
    - Answering a question built from accumulated text
    """

    @abstractmethod
    def configure(self, api_key: str) -> None:
        """Store credentials for subsequent calls.

        Raises:
            InvalidCredentialError: If the key is empty.
        """
        ...

    @abstractmethod
    async def extract_text(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
        """Extract all visible text from an image.

        Returns:
            Extracted text, an empty string when none was found.

        Raises:
            TextServiceError: If the call fails.
        """
        ...

    @abstractmethod
    async def get_answer(self, question: str) -> str:
        """Answer a question, returning raw text with markdown intact.

        Raises:
            TextServiceError: If the call fails.
        """
        ...
