"""Answer coordinator: submits the transcript and holds the latest answer."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from enum import StrEnum
from typing import TYPE_CHECKING

from src.core.cooldown import CooldownWindow
from src.interfaces.text_service import TextServiceError
from src.models.scan import AnswerResult, Operation, UserError

if TYPE_CHECKING:
    from src.interfaces.text_service import TextService

logger = logging.getLogger(__name__)


class AnswerState(StrEnum):
    """Observable states of the answer coordinator."""

    IDLE = "idle"
    ANSWERING = "answering"
    COOLING_DOWN = "cooling_down"


def join_transcript(parts: Sequence[str]) -> str:
    """Join transcript snippets in order with single spaces."""
    return " ".join(parts)


class AnswerCoordinator:
    """Requests answers for the whole transcript.

    Mirrors the scan coordinator with its own cooldown and guard, but has no
    cancellation path: every request runs to completion and then starts the
    cooldown, whatever the outcome.
    """

    def __init__(
        self,
        text_service: TextService,
        transcript_provider: Callable[[], Sequence[str]],
        cooldown_seconds: float = 5.0,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        """Initialize the answer coordinator.

        Args:
            text_service: Service used to generate answers.
            transcript_provider: Returns the current transcript.
            cooldown_seconds: Lockout after each answer request.
            on_change: Called after every observable state change.
        """
        self._text_service = text_service
        self._transcript_provider = transcript_provider
        self._on_change = on_change
        self._cooldown = CooldownWindow(
            duration_seconds=cooldown_seconds,
            name="answer cooldown",
            on_expire=self._notify,
        )
        self._result = AnswerResult()
        self._answering = False

    @property
    def result(self) -> AnswerResult:
        return self._result

    @property
    def cooldown(self) -> CooldownWindow:
        return self._cooldown

    @property
    def is_answering(self) -> bool:
        return self._answering

    @property
    def is_cooling_down(self) -> bool:
        return self._cooldown.active

    @property
    def state(self) -> AnswerState:
        if self._answering:
            return AnswerState.ANSWERING
        if self._cooldown.active:
            return AnswerState.COOLING_DOWN
        return AnswerState.IDLE

    @property
    def can_answer(self) -> bool:
        """Whether request_answer() would start a new request."""
        return (
            not self._answering
            and not self._cooldown.active
            and len(self._transcript_provider()) > 0
        )

    async def request_answer(self) -> bool:
        """Submit the joined transcript as a question.

        Returns:
            True if a request ran, False if it was rejected by a guard.
        """
        if not self.can_answer:
            logger.debug(f"Answer request ignored in state {self.state}")
            return False

        question = join_transcript(self._transcript_provider())
        self._answering = True
        self._result = AnswerResult()
        self._notify()
        logger.info(f"Requesting answer for {len(question)} characters of text")

        try:
            text = await self._text_service.get_answer(question)
        except TextServiceError as e:
            logger.error(f"Error getting answer: {e}")
            self._result = AnswerResult(error=UserError.from_service_error(e, Operation.ANSWER))
        else:
            self._result = AnswerResult(text=text)
        finally:
            self._answering = False
            self._cooldown.start()
            self._notify()

        return True

    def clear(self) -> None:
        """Reset the held answer and error."""
        self._result = AnswerResult()
        self._notify()

    def close(self) -> None:
        """Drop a pending cooldown."""
        self._cooldown.close()

    def _notify(self) -> None:
        if self._on_change is None:
            return
        try:
            self._on_change()
        except Exception as e:
            logger.warning(f"Answer state callback error: {e}")
