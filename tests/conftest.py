"""Shared fakes for scanner tests.

The camera and the remote text service are replaced with in-process fakes
so the coordinators can be driven deterministically on an asyncio loop.
"""

from __future__ import annotations

import asyncio

import pytest
from PIL import Image

from src.interfaces.camera import (
    CameraBackend,
    CameraConstraints,
    CameraStream,
    CameraUnavailable,
    MediaTrack,
)
from src.interfaces.text_service import InvalidCredentialError, TextService


class FakeTrack:
    """Hardware track that counts stop() calls."""

    def __init__(self) -> None:
        self.stop_calls = 0

    @property
    def stopped(self) -> bool:
        return self.stop_calls > 0

    def stop(self) -> None:
        self.stop_calls += 1


class FakeStream(CameraStream):
    """Stream returning a fixed image (or None before the first frame)."""

    def __init__(self, image: Image.Image | None, track_count: int = 2) -> None:
        self.image = image
        self._tracks = [FakeTrack() for _ in range(track_count)]

    @property
    def tracks(self) -> list[MediaTrack]:
        return list(self._tracks)

    @property
    def fake_tracks(self) -> list[FakeTrack]:
        return self._tracks

    def read_frame(self) -> Image.Image | None:
        return self.image


class FakeBackend(CameraBackend):
    """Camera backend handing out FakeStreams."""

    def __init__(
        self,
        image: Image.Image | None = None,
        fail: bool = False,
        track_count: int = 2,
    ) -> None:
        super().__init__()
        self.image = image if image is not None else Image.new("RGB", (64, 48), (200, 200, 200))
        self.fail = fail
        self.track_count = track_count
        self.opened_with: list[CameraConstraints] = []
        self.streams: list[FakeStream] = []

    def _open(self, constraints: CameraConstraints) -> CameraStream:
        self.opened_with.append(constraints)
        if self.fail:
            raise CameraUnavailable("Permission denied")
        stream = FakeStream(self.image, track_count=self.track_count)
        self.streams.append(stream)
        return stream


class FakeTextService(TextService):
    """Scripted text service.

    Results are popped in call order; an Exception result is raised. When a
    gate event is set on the instance, calls block on it before resolving,
    which keeps them in flight for as long as a test needs.
    """

    def __init__(self) -> None:
        self.api_key: str | None = None
        self.extract_results: list[str | Exception] = []
        self.answer_results: list[str | Exception] = []
        self.extract_gate: asyncio.Event | None = None
        self.answer_gate: asyncio.Event | None = None
        self.extract_calls: list[bytes] = []
        self.answer_questions: list[str] = []
        self.extract_in_flight = 0
        self.answer_in_flight = 0
        self.max_extract_in_flight = 0
        self.max_answer_in_flight = 0

    def configure(self, api_key: str) -> None:
        if not api_key:
            raise InvalidCredentialError("API key is empty")
        self.api_key = api_key

    async def extract_text(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> str:
        self.extract_calls.append(image_bytes)
        self.extract_in_flight += 1
        self.max_extract_in_flight = max(self.max_extract_in_flight, self.extract_in_flight)
        try:
            if self.extract_gate is not None:
                await self.extract_gate.wait()
            result = self.extract_results.pop(0) if self.extract_results else ""
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.extract_in_flight -= 1

    async def get_answer(self, question: str) -> str:
        self.answer_questions.append(question)
        self.answer_in_flight += 1
        self.max_answer_in_flight = max(self.max_answer_in_flight, self.answer_in_flight)
        try:
            if self.answer_gate is not None:
                await self.answer_gate.wait()
            result = self.answer_results.pop(0) if self.answer_results else ""
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.answer_in_flight -= 1


class RecordingSleep:
    """Awaitable sleep replacement recording requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def fake_text_service() -> FakeTextService:
    return FakeTextService()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def backend_factory():
    """Build FakeBackends with custom settings."""
    return FakeBackend
