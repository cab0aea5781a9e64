"""Remote text service client for text extraction and answering.

This module wraps a hosted generative model behind two operations:
- extract_text: read all visible text from a camera frame
- get_answer: answer the accumulated transcript as a question

Both calls go through the shared retry wrapper, which retries only
rate-limited failures with exponential backoff. Provider SDK errors are
classified where the call fails, from the transport status, and re-raised
as TextServiceError subclasses.

Supported providers are Gemini (default), Anthropic and OpenAI.

Example:
    >>> from src.vision.text_service import RemoteTextService
    >>>
    >>> service = RemoteTextService(provider="gemini")
    >>> service.configure(api_key)
    >>> text = await service.extract_text(frame.raw_bytes)
    >>> answer = await service.get_answer(text)
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from src.core.prompts import TextPrompts
from src.interfaces.text_service import (
    ErrorKind,
    InvalidCredentialError,
    NotConfiguredError,
    RateLimitError,
    TextService,
    TextServiceError,
)
from src.vision.retry import RetryPolicy, SleepFn, call_with_retry

logger = logging.getLogger(__name__)

# Valid providers
VALID_PROVIDERS = {"gemini", "anthropic", "openai"}

_DEFAULT_MODELS: dict[str, str] = {
    "gemini": "gemini-2.5-flash",
    "anthropic": "claude-3-5-sonnet-latest",
    "openai": "gpt-4o-mini",
}

_INVALID_KEY_REASON = "API_KEY_INVALID"
_RESOURCE_EXHAUSTED = "RESOURCE_EXHAUSTED"


def _find_error_reason(details: Any, reason: str) -> bool:
    """Search a provider error payload for a google.rpc.ErrorInfo reason."""
    if isinstance(details, dict):
        if details.get("reason") == reason:
            return True
        return any(_find_error_reason(value, reason) for value in details.values())
    if isinstance(details, list):
        return any(_find_error_reason(item, reason) for item in details)
    return False


def classify_provider_error(error: Exception) -> tuple[ErrorKind, int | None]:
    """Classify a provider SDK exception from its transport status.

    Anthropic and OpenAI status errors carry ``status_code``; Gemini errors
    carry an integer ``code``, a ``status`` name and a ``details`` payload.

    Args:
        error: Exception raised by a provider SDK.

    Returns:
        Tuple of (error kind, HTTP status code or None).
    """
    status_code = getattr(error, "status_code", None)
    if not isinstance(status_code, int):
        code = getattr(error, "code", None)
        status_code = code if isinstance(code, int) else None
    status = str(getattr(error, "status", "") or "").upper()

    if status_code in (401, 403) or _find_error_reason(
        getattr(error, "details", None), _INVALID_KEY_REASON
    ):
        return ErrorKind.INVALID_CREDENTIAL, status_code
    if status_code == 429 or status == _RESOURCE_EXHAUSTED:
        return ErrorKind.RATE_LIMITED, status_code
    return ErrorKind.FAILED, status_code


def _wrap_provider_error(error: Exception) -> TextServiceError:
    """Convert a provider exception into a classified TextServiceError."""
    kind, status_code = classify_provider_error(error)
    message = f"API call failed: {error}"
    if kind == ErrorKind.INVALID_CREDENTIAL:
        return InvalidCredentialError(message, status_code=status_code)
    if kind == ErrorKind.RATE_LIMITED:
        return RateLimitError(message, status_code=status_code)
    return TextServiceError(message, status_code=status_code)


class RemoteTextService(TextService):
    """Retrying client for a hosted text-generation model.

    The instance is constructed explicitly and passed to the coordinators
    that need it. It holds no state beyond the configured credential and
    the provider client built from it.

    Attributes:
        provider: Provider name.
        model: Model name used for both operations.
        retry_policy: Backoff parameters for rate-limited calls.
    """

    def __init__(
        self,
        provider: str = "gemini",
        model: str | None = None,
        max_tokens: int = 4096,
        retry_policy: RetryPolicy | None = None,
        prompts: TextPrompts | None = None,
        sleep: SleepFn | None = None,
    ) -> None:
        """Initialize the text service.

        Args:
            provider: LLM provider ("gemini", "anthropic" or "openai").
            model: Model name. Defaults based on provider.
            max_tokens: Response token limit for providers that require one.
            retry_policy: Retry parameters. Uses defaults if None.
            prompts: Prompt templates. Uses defaults if None.
            sleep: Awaitable sleep used for backoff. Uses asyncio.sleep if None.

        Raises:
            ValueError: If provider is not supported.
        """
        if provider not in VALID_PROVIDERS:
            raise ValueError(f"Invalid provider: {provider}. Must be one of {VALID_PROVIDERS}")

        self._provider = provider
        self._model = model or _DEFAULT_MODELS[provider]
        self._max_tokens = max_tokens
        self._retry_policy = retry_policy or RetryPolicy()
        self._prompts = prompts or TextPrompts()
        self._sleep = sleep
        self._api_key: str | None = None
        self._client: Any = None

        logger.debug(f"RemoteTextService initialized: provider={provider}, model={self._model}")

    @property
    def provider(self) -> str:
        return self._provider

    @property
    def model(self) -> str:
        return self._model

    @property
    def retry_policy(self) -> RetryPolicy:
        return self._retry_policy

    @property
    def is_configured(self) -> bool:
        """Whether an API key has been configured."""
        return self._api_key is not None

    def configure(self, api_key: str) -> None:
        """Store the API key for subsequent calls.

        Args:
            api_key: Provider API key.

        Raises:
            InvalidCredentialError: If the key is empty. The service is left
                unconfigured.
        """
        self._client = None
        if not api_key or not api_key.strip():
            self._api_key = None
            logger.error("Attempted to configure the text service without a key.")
            raise InvalidCredentialError("API key is empty")
        self._api_key = api_key.strip()
        logger.info(f"Text service configured for provider {self._provider}")

    async def extract_text(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
        """Extract all visible text from an encoded image.

        Args:
            image_bytes: Encoded image bytes.
            mime_type: MIME type of the image.

        Returns:
            Extracted text, or an empty string if none was found.

        Raises:
            NotConfiguredError: If called before configure().
            TextServiceError: If the call fails after retries.
        """
        self._require_configured()
        prompt = self._prompts.extraction_prompt
        try:
            text = await self._with_retry(lambda: self._generate(prompt, image_bytes, mime_type))
        except TextServiceError as e:
            logger.error(f"Error calling the text service for text extraction after retries: {e}")
            raise
        return text or ""

    async def get_answer(self, question: str) -> str:
        """Answer a question using the fixed answer template.

        Args:
            question: Question text, typically the joined transcript.

        Returns:
            Raw answer text, markdown and code fences intact.

        Raises:
            NotConfiguredError: If called before configure().
            TextServiceError: If the call fails after retries.
        """
        self._require_configured()
        prompt = self._prompts.build_answer_prompt(question)
        try:
            text = await self._with_retry(lambda: self._generate(prompt))
        except TextServiceError as e:
            logger.error(f"Error calling the text service for getting an answer after retries: {e}")
            raise
        return text or ""

    def _require_configured(self) -> None:
        if self._api_key is None:
            raise NotConfiguredError("API not initialized. Please set your API key first.")

    async def _with_retry(self, api_call: Callable[[], Awaitable[str | None]]) -> str | None:
        if self._sleep is None:
            return await call_with_retry(api_call, self._retry_policy)
        return await call_with_retry(api_call, self._retry_policy, sleep=self._sleep)

    async def _generate(
        self,
        prompt: str,
        image_bytes: bytes | None = None,
        mime_type: str = "image/jpeg",
    ) -> str | None:
        """Send one request to the configured provider.

        Returns:
            Response text, or None if the model returned no text.

        Raises:
            TextServiceError: Classified failure of the call.
        """
        try:
            if self._provider == "gemini":
                return await self._generate_gemini(prompt, image_bytes, mime_type)
            elif self._provider == "anthropic":
                return await self._generate_anthropic(prompt, image_bytes, mime_type)
            elif self._provider == "openai":
                return await self._generate_openai(prompt, image_bytes, mime_type)
            else:
                raise TextServiceError(f"Unknown provider: {self._provider}")
        except TextServiceError:
            raise
        except Exception as e:
            raise _wrap_provider_error(e) from e

    async def _generate_gemini(
        self,
        prompt: str,
        image_bytes: bytes | None,
        mime_type: str,
    ) -> str | None:
        try:
            from google import genai
            from google.genai import types
        except ImportError as e:
            raise TextServiceError(
                "google-genai package not installed. Install with: pip install google-genai"
            ) from e

        if self._client is None:
            self._client = genai.Client(api_key=self._api_key)

        contents: Any
        if image_bytes is not None:
            contents = [types.Part.from_bytes(data=image_bytes, mime_type=mime_type), prompt]
        else:
            contents = prompt

        response = await self._client.aio.models.generate_content(
            model=self._model,
            contents=contents,
        )
        return response.text

    async def _generate_anthropic(
        self,
        prompt: str,
        image_bytes: bytes | None,
        mime_type: str,
    ) -> str | None:
        try:
            import anthropic
        except ImportError as e:
            raise TextServiceError(
                "anthropic package not installed. Install with: pip install anthropic"
            ) from e

        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self._api_key)

        content: list[dict[str, Any]] = []
        if image_bytes is not None:
            content.append(
                {
                    "type": "image",
                    "source": {
                        "type": "base64",
                        "media_type": mime_type,
                        "data": base64.b64encode(image_bytes).decode("utf-8"),
                    },
                }
            )
        content.append({"type": "text", "text": prompt})

        message = await self._client.messages.create(
            model=self._model,
            max_tokens=self._max_tokens,
            messages=[{"role": "user", "content": content}],
        )
        texts = [block.text for block in message.content if hasattr(block, "text")]
        return "".join(texts) if texts else None

    async def _generate_openai(
        self,
        prompt: str,
        image_bytes: bytes | None,
        mime_type: str,
    ) -> str | None:
        try:
            import openai
        except ImportError as e:
            raise TextServiceError(
                "openai package not installed. Install with: pip install openai"
            ) from e

        if self._client is None:
            self._client = openai.AsyncOpenAI(api_key=self._api_key)

        content: list[dict[str, Any]] = [{"type": "text", "text": prompt}]
        if image_bytes is not None:
            image_base64 = base64.b64encode(image_bytes).decode("utf-8")
            content.append(
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{mime_type};base64,{image_base64}"},
                }
            )

        response = await self._client.chat.completions.create(
            model=self._model,
            max_tokens=self._max_tokens,
            messages=[{"role": "user", "content": content}],
        )
        return response.choices[0].message.content
