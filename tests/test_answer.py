"""Tests for the answer coordinator."""

from __future__ import annotations

import asyncio

from src.core.answer import AnswerCoordinator, AnswerState, join_transcript
from src.core.scan import ScanCoordinator
from src.interfaces.text_service import ErrorKind, RateLimitError, TextServiceError
from src.models.scan import UserErrorKind
from src.vision.capture import CaptureSession


def test_join_transcript_uses_single_spaces() -> None:
    assert join_transcript(["foo", "bar", "baz"]) == "foo bar baz"


def test_join_transcript_single_snippet() -> None:
    assert join_transcript(["only"]) == "only"


class TestAnswerCoordinator:
    """Tests for request_answer() and its guards."""

    def test_initial_state(self, fake_text_service) -> None:
        answer = AnswerCoordinator(fake_text_service, lambda: [])

        assert answer.state == AnswerState.IDLE
        assert answer.result.text == ""
        assert answer.result.error is None

    def test_empty_transcript_is_rejected(self, fake_text_service) -> None:
        answer = AnswerCoordinator(fake_text_service, lambda: [])

        assert asyncio.run(answer.request_answer()) is False
        assert fake_text_service.answer_questions == []

    def test_submits_joined_transcript(self, fake_text_service) -> None:
        fake_text_service.answer_results = ["**4**"]
        answer = AnswerCoordinator(fake_text_service, lambda: ["foo", "bar", "baz"], 0.01)

        assert asyncio.run(answer.request_answer()) is True
        assert fake_text_service.answer_questions == ["foo bar baz"]
        assert answer.result.text == "**4**"
        assert answer.result.has_text is True

    def test_request_while_answering_is_rejected(self, fake_text_service) -> None:
        fake_text_service.answer_results = ["done"]
        answer = AnswerCoordinator(fake_text_service, lambda: ["q"], 0.01)

        async def scenario() -> tuple[AnswerState, str, bool]:
            fake_text_service.answer_gate = asyncio.Event()
            task = asyncio.create_task(answer.request_answer())
            await asyncio.sleep(0)
            state = answer.state
            text_while_pending = answer.result.text
            second = await answer.request_answer()
            fake_text_service.answer_gate.set()
            await task
            await answer.cooldown.wait()
            return state, text_while_pending, second

        state, pending_text, second = asyncio.run(scenario())

        assert state == AnswerState.ANSWERING
        assert pending_text == ""
        assert second is False
        assert fake_text_service.max_answer_in_flight == 1

    def test_cooldown_after_success(self, fake_text_service) -> None:
        fake_text_service.answer_results = ["a", "b"]
        answer = AnswerCoordinator(fake_text_service, lambda: ["q"], 10.0)

        async def scenario() -> tuple[AnswerState, bool]:
            await answer.request_answer()
            state = answer.state
            again = await answer.request_answer()
            answer.close()
            return state, again

        state, again = asyncio.run(scenario())

        assert state == AnswerState.COOLING_DOWN
        assert again is False
        assert answer.result.text == "a"

    def test_allowed_after_cooldown(self, fake_text_service) -> None:
        fake_text_service.answer_results = ["a", "b"]
        answer = AnswerCoordinator(fake_text_service, lambda: ["q"], 0.01)

        async def scenario() -> bool:
            await answer.request_answer()
            await answer.cooldown.wait()
            return await answer.request_answer()

        assert asyncio.run(scenario()) is True
        assert answer.result.text == "b"

    def test_rate_limit_error_replaces_answer(self, fake_text_service) -> None:
        fake_text_service.answer_results = ["old answer", RateLimitError("429")]
        answer = AnswerCoordinator(fake_text_service, lambda: ["q"], 0.01)

        async def scenario() -> bool:
            await answer.request_answer()
            await answer.cooldown.wait()
            await answer.request_answer()
            cooling = answer.is_cooling_down
            answer.close()
            return cooling

        cooling = asyncio.run(scenario())

        assert answer.result.text == ""
        assert answer.result.error.kind == UserErrorKind.API_BUSY
        assert answer.result.error.message == "API is busy. Please wait a moment before trying again."
        assert cooling is True

    def test_generic_failure_message(self, fake_text_service) -> None:
        fake_text_service.answer_results = [TextServiceError("boom", kind=ErrorKind.FAILED)]
        answer = AnswerCoordinator(fake_text_service, lambda: ["q"], 0.01)

        asyncio.run(answer.request_answer())

        assert answer.result.error.kind == UserErrorKind.ANSWER_FAILED
        assert answer.result.error.message == "Could not get an answer. Please try again."

    def test_clear_resets_result(self, fake_text_service) -> None:
        fake_text_service.answer_results = ["text"]
        answer = AnswerCoordinator(fake_text_service, lambda: ["q"], 0.01)
        asyncio.run(answer.request_answer())

        answer.clear()

        assert answer.result.text == ""
        assert answer.result.error is None


class TestIndependentCooldowns:
    """Scan and answer lockouts do not affect each other."""

    def test_answer_allowed_during_scan_cooldown(self, fake_backend, fake_text_service) -> None:
        fake_text_service.extract_results = ["What is 2 + 2?"]
        fake_text_service.answer_results = ["**4**"]
        session = CaptureSession(fake_backend)
        scan = ScanCoordinator(session, fake_text_service, cooldown_seconds=10.0)
        answer = AnswerCoordinator(fake_text_service, lambda: scan.transcript, 10.0)

        async def scenario() -> tuple[bool, bool, bool]:
            await session.start()
            await scan.trigger_scan()
            scan_cooling = scan.is_cooling_down
            answered = await answer.request_answer()
            still_cooling = scan.is_cooling_down
            scan.close()
            answer.close()
            return scan_cooling, answered, still_cooling

        scan_cooling, answered, still_cooling = asyncio.run(scenario())

        assert scan_cooling is True
        assert answered is True
        assert still_cooling is True
        assert answer.result.text == "**4**"

    def test_scan_allowed_during_answer_cooldown(self, fake_backend, fake_text_service) -> None:
        fake_text_service.extract_results = ["first", "second"]
        fake_text_service.answer_results = ["answer"]
        session = CaptureSession(fake_backend)
        scan = ScanCoordinator(session, fake_text_service, cooldown_seconds=0.01)
        answer = AnswerCoordinator(fake_text_service, lambda: scan.transcript, 10.0)

        async def scenario() -> bool:
            await session.start()
            await scan.trigger_scan()
            await scan.cooldown.wait()
            await answer.request_answer()
            ran = await scan.trigger_scan()
            answer.close()
            return ran

        assert asyncio.run(scenario()) is True
        assert scan.transcript == ("first", "second")

    def test_transcript_read_at_request_time(self, fake_text_service) -> None:
        parts: list[str] = ["a"]
        fake_text_service.answer_results = ["x"]
        answer = AnswerCoordinator(fake_text_service, lambda: parts, 0.01)
        parts.append("b")

        asyncio.run(answer.request_answer())

        assert fake_text_service.answer_questions == ["a b"]
